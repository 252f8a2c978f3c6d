"""Cache manifest: files persisted between builds to speed up installs."""

from __future__ import annotations

import posixpath
from pathlib import Path

from next_builder.errors import ConfigError
from next_builder.files import FileSet, glob
from next_builder.logging import get_logger
from next_builder.manifest import read_package_json
from next_builder.strategies import select_strategy
from next_builder.versions import get_next_version, is_legacy_next

log = get_logger(__name__)


def prepare_cache(work_path: Path, entrypoint: str) -> FileSet:
    log.info("preparing cache ...")
    work_path = Path(work_path)
    entry_directory = posixpath.dirname(entrypoint)
    entry_path = work_path / entry_directory

    requirement = get_next_version(read_package_json(entry_path))
    if not requirement:
        raise ConfigError("Could not parse Next.js version")
    strategy = select_strategy(is_legacy_next(requirement))

    patterns = strategy.cache_patterns()
    if not patterns:
        log.info("skipping cache", extra={"mode": strategy.mode})
        return {}

    log.info("producing cache file manifest ...")
    cache: FileSet = {}
    for pattern in patterns:
        cache.update(glob(posixpath.join(entry_directory, pattern), work_path))
    log.info("cache file manifest produced", extra={"count": len(cache)})
    return cache
