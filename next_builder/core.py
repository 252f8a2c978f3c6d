"""Build orchestration: download -> classify -> install -> build -> package -> output."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path

from next_builder import toolchain
from next_builder.config import Settings, get_settings
from next_builder.devserver import DEV_SERVERS, DevServerRegistry
from next_builder.errors import ConfigError
from next_builder.files import FileFsRef, FileSet, download
from next_builder.logging import get_logger
from next_builder.manifest import BUILD_SCRIPT, read_package_json
from next_builder.routes import (
    check_routes,
    dev_route,
    get_watchers,
    merge_output,
    next_static_files,
    static_directory_files,
)
from next_builder.strategies import select_strategy
from next_builder.types import BuildMeta, BuildResult, Route
from next_builder.versions import detect_mode

log = get_logger(__name__)

VERSION = 2
REQUIRES_INITIAL_BUILD = True
config = {"max_lambda_size": "5mb"}

DOT_NEXT_URL = "https://zeit.co/docs/v2/deployments/official-builders/next-js-now-next/"


def validate_entrypoint(entrypoint: str) -> None:
    if not re.search(r"(^|/)(package\.json|next\.config\.js)$", entrypoint):
        raise ConfigError('The entrypoint for next-builder has to be "package.json" or "next.config.js"')


def _build_dev(
    files: FileSet, entrypoint: str, meta: BuildMeta, registry: DevServerRegistry
) -> BuildResult:
    entry_dir = files[entrypoint].fs_path.parent
    log.info(f"Requested {meta.request_path}", extra={"entrypoint": entrypoint})

    url = registry.get_or_start(entrypoint, entry_dir)

    routes: list[Route] = []
    if isinstance(meta.request_path, str):
        routes.append(dev_route(meta.request_path, url))
    return BuildResult(routes=check_routes(routes), output={}, watch=[])


def build(
    files: FileSet,
    work_path: Path,
    entrypoint: str,
    meta: BuildMeta | None = None,
    *,
    registry: DevServerRegistry | None = None,
    settings: Settings | None = None,
) -> BuildResult:
    """Build a Next.js project into per-page lambdas and static files.

    In interactive mode (``meta.is_dev``) no artifacts are produced; the
    project's dev server is started once and a forwarding route is returned.
    """
    validate_entrypoint(entrypoint)
    meta = meta or BuildMeta()
    settings = settings or get_settings()

    if meta.is_dev and isinstance(files.get(entrypoint), FileFsRef):
        return _build_dev(files, entrypoint, meta, registry or DEV_SERVERS)

    work_path = Path(work_path).resolve()
    entry_directory = posixpath.dirname(entrypoint)
    entry_path = work_path / entry_directory
    dot_next = entry_path / ".next"

    log.info("downloading user files...")
    download(files, work_path)

    if dot_next.exists():
        log.warning(
            f"WARNING: You should probably not upload the `.next` directory. See {DOT_NEXT_URL} for more information."
        )

    package_json = read_package_json(entry_path)
    strategy = select_strategy(detect_mode(package_json))
    log.info(f"MODE: {strategy.mode}", extra={"mode": strategy.mode})

    strategy.normalize_manifest(entry_path, package_json)

    token = settings.npm_auth_token
    log.info("installing dependencies...")
    with toolchain.npm_auth(entry_path, token):
        toolchain.run_npm_install(entry_path, ["--prefer-offline"])

    log.info("running user script...")
    toolchain.run_package_json_script(entry_path, BUILD_SCRIPT)

    strategy.after_build(entry_path, token)

    discovery = strategy.discover(entry_path, work_path)
    lambdas = strategy.package(discovery, entry_directory)

    output = merge_output(
        lambdas,
        next_static_files(entry_path, entry_directory),
        static_directory_files(files, entry_directory),
    )
    return BuildResult(routes=check_routes([]), output=output, watch=get_watchers(dot_next, work_path))
