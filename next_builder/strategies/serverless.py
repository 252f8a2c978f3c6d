"""Serverless strategy for Next.js >= 8 (``target: "serverless"``).

Each compiled page under ``.next/serverless/pages`` is self-contained, so a
lambda only needs the bridge, the launcher, the optional ``assets`` folder and
the page itself.
"""

from __future__ import annotations

from pathlib import Path

from next_builder.errors import BuildError
from next_builder.files import FileSet, glob
from next_builder.launcher import BRIDGE_NAME, LAUNCHER_NAME, bridge_file, serverless_launcher_file
from next_builder.logging import get_logger
from next_builder.manifest import ensure_build_script, write_package_json
from next_builder.strategies.base import Discovery, PackagingStrategy, PageDescriptor

log = get_logger(__name__)

NO_PAGES_URL = "https://err.sh/zeit/now-builders/now-next-no-serverless-pages-built"
NEXT_CONFIG = "next.config.js"


def get_next_config(work_path: Path, entry_path: Path) -> str | None:
    """Return the contents of ``next.config.js`` from the entry directory or work path."""
    for candidate in (Path(entry_path) / NEXT_CONFIG, Path(work_path) / NEXT_CONFIG):
        if candidate.is_file():
            return candidate.read_text(encoding="utf-8")
    return None


class ServerlessStrategy(PackagingStrategy):
    mode = "serverless"

    def normalize_manifest(self, entry_path: Path, package_json: dict) -> None:
        if ensure_build_script(package_json):
            log.warning(
                'WARNING: "now-build" script not found. '
                'Adding \'"now-build": "next build"\' to "package.json" automatically'
            )
            log.info("normalized package.json result", extra={"package_json": package_json})
            write_package_json(entry_path, package_json)

    def discover(self, entry_path: Path, work_path: Path) -> Discovery:
        log.info("preparing lambda files...")
        serverless = entry_path / ".next" / "serverless"
        bundles = glob("**/*.js", serverless / "pages")

        if not bundles:
            message = f"No serverless pages were built. {NO_PAGES_URL}"
            next_config = get_next_config(work_path, entry_path)
            if next_config is not None:
                log.info(f"Found {NEXT_CONFIG}:\n{next_config}")
                message = f"{message}\n\nFound {NEXT_CONFIG}:\n{next_config}"
            raise BuildError(message)

        # Optional folder placed alongside every page entrypoint.
        assets = glob("assets/**", serverless)
        if assets:
            log.info("detected assets to be bundled with lambda", extra={"assets": sorted(assets)})

        return Discovery(
            pages=[PageDescriptor.from_bundle(page, ref) for page, ref in sorted(bundles.items())],
            shared={
                BRIDGE_NAME: bridge_file(),
                LAUNCHER_NAME: serverless_launcher_file(),
                **assets,
            },
        )

    def assemble(self, discovery: Discovery, page: PageDescriptor) -> FileSet:
        return {**discovery.shared, "page.js": page.bundle}

    def cache_patterns(self) -> list[str]:
        return ["node_modules/**", ".next/cache/**", "package-lock.json", "yarn.lock"]
