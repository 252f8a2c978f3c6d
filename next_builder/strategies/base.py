"""Packaging strategy contract and the shared per-page packager.

A strategy owns everything that differs between the legacy and serverless
pipelines: how the manifest is normalized, what runs after the build script,
how compiled pages are discovered and which files go into each page's lambda.
The build driver selects one strategy per invocation and never branches on the
mode again.
"""

from __future__ import annotations

import posixpath
import re
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from next_builder.files import FileRef, FileSet
from next_builder.lambdas import DEFAULT_HANDLER, DEFAULT_RUNTIME, Lambda, create_lambda
from next_builder.logging import get_logger

log = get_logger(__name__)

# Always bundled into other pages; on their own they would only ever 404.
SPECIAL_PAGES = frozenset({"_app.js", "_error.js", "_document.js"})

_INDEX_SUFFIX = re.compile(r"(^|/)index$")


def page_name(page: str) -> str:
    """``blog/index.js`` -> ``blog/index``."""
    return re.sub(r"\.js$", "", page)


def route_name(page: str) -> str:
    """``about.js`` -> ``about``, ``blog/index.js`` -> ``blog``, ``index.js`` -> ``""``."""
    return _INDEX_SUFFIX.sub("", page_name(page))


@dataclass(frozen=True)
class PageDescriptor:
    page: str
    name: str
    route: str
    bundle: FileRef

    @classmethod
    def from_bundle(cls, page: str, bundle: FileRef) -> PageDescriptor:
        return cls(page=page, name=page_name(page), route=route_name(page), bundle=bundle)

    @property
    def pathname(self) -> str:
        return f"/{self.route}"


@dataclass
class Discovery:
    """Read-only result of walking the build output."""

    pages: list[PageDescriptor]
    shared: FileSet = field(default_factory=dict)
    build_id: str | None = None


class PackagingStrategy(ABC):
    mode: str = ""
    handler: str = DEFAULT_HANDLER
    runtime: str = DEFAULT_RUNTIME

    @abstractmethod
    def normalize_manifest(self, entry_path: Path, package_json: dict) -> None: ...

    def after_build(self, entry_path: Path, token: str | None) -> None:
        return None

    @abstractmethod
    def discover(self, entry_path: Path, work_path: Path) -> Discovery: ...

    @abstractmethod
    def assemble(self, discovery: Discovery, page: PageDescriptor) -> FileSet: ...

    @abstractmethod
    def cache_patterns(self) -> list[str]: ...

    def package(self, discovery: Discovery, entry_directory: str) -> dict[str, Lambda]:
        """Create one lambda per non-special page, concurrently."""
        pages = [p for p in discovery.pages if p.page not in SPECIAL_PAGES]
        if not pages:
            return {}

        def _one(page: PageDescriptor) -> tuple[str, Lambda]:
            log.info(f'Creating lambda for page: "{page.page}"...', extra={"mode": self.mode})
            unit = create_lambda(self.assemble(discovery, page), handler=self.handler, runtime=self.runtime)
            log.info(f'Created lambda for page: "{page.page}"', extra={"size": unit.size})
            return posixpath.join(entry_directory, page.name), unit

        with ThreadPoolExecutor(max_workers=min(8, len(pages))) as pool:
            return dict(pool.map(_one, pages))
