"""Legacy strategy for Next.js <= 7.0.2 (``next build --lambdas``).

Every lambda carries the production ``node_modules``, the ``.next`` root and
server files, the three special pages and its own page bundle, rendered behind
``next-server`` by a launcher with the page pathname baked in.
"""

from __future__ import annotations

from pathlib import Path

from next_builder import toolchain
from next_builder.errors import BuildError
from next_builder.files import FileSet, exclude_files, glob
from next_builder.launcher import BRIDGE_NAME, LAUNCHER_NAME, bridge_file, legacy_launcher_template
from next_builder.logging import get_logger
from next_builder.manifest import normalize_package_json, remove_lockfiles, write_package_json
from next_builder.strategies.base import SPECIAL_PAGES, Discovery, PageDescriptor, PackagingStrategy

log = get_logger(__name__)

LEGACY_MODE_URL = "http://err.sh/zeit/now-builders/now-next-legacy-mode"


def _pages_dir(build_id: str) -> str:
    return f".next/server/static/{build_id}/pages"


class LegacyStrategy(PackagingStrategy):
    mode = "legacy"

    def normalize_manifest(self, entry_path: Path, package_json: dict) -> None:
        remove_lockfiles(entry_path)
        log.warning(f"WARNING: your application is being deployed in legacy mode. {LEGACY_MODE_URL}")
        log.info("normalizing package.json")
        normalized = normalize_package_json(package_json)
        log.info("normalized package.json result", extra={"package_json": normalized})
        write_package_json(entry_path, normalized)

    def after_build(self, entry_path: Path, token: str | None) -> None:
        log.info("running npm install --production...")
        with toolchain.npm_auth(entry_path, token):
            toolchain.run_npm_install(entry_path, ["--prefer-offline", "--production"])

    def discover(self, entry_path: Path, work_path: Path) -> Discovery:
        log.info("preparing lambda files...")
        try:
            build_id = (entry_path / ".next" / "BUILD_ID").read_text(encoding="utf-8").strip()
        except FileNotFoundError as exc:
            raise BuildError(
                'BUILD_ID not found in ".next". The "package.json" "build" script did not run "next build"'
            ) from exc

        node_modules = exclude_files(
            glob("node_modules/**", entry_path),
            lambda key: key.startswith("node_modules/.cache/"),
        )
        shared: FileSet = {
            **node_modules,
            **glob(".next/*", entry_path),
            **glob(".next/server/*", entry_path),
            BRIDGE_NAME: bridge_file(),
        }
        shared.update(glob("next.config.js", entry_path))

        pages_dir = _pages_dir(build_id)
        bundles = glob("**/*.js", entry_path / pages_dir)
        for special in SPECIAL_PAGES:
            if special in bundles:
                shared[f"{pages_dir}/{special}"] = bundles[special]

        return Discovery(
            pages=[PageDescriptor.from_bundle(page, ref) for page, ref in sorted(bundles.items())],
            shared=shared,
            build_id=build_id,
        )

    def assemble(self, discovery: Discovery, page: PageDescriptor) -> FileSet:
        pages_dir = _pages_dir(discovery.build_id or "")
        return {
            **discovery.shared,
            f"{pages_dir}/{page.page}": page.bundle,
            LAUNCHER_NAME: legacy_launcher_template().render(page.pathname),
        }

    def cache_patterns(self) -> list[str]:
        # Swapping between full and production installs makes a cached
        # node_modules unreliable.
        return []
