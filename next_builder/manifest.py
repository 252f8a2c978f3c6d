"""package.json helpers: read, write and normalize the project manifest."""

from __future__ import annotations

import json
from pathlib import Path

from next_builder.logging import get_logger
from next_builder.validator import validate_package_json
from next_builder.versions import LEGACY_PIN

log = get_logger(__name__)

BUILD_SCRIPT = "now-build"
DEFAULT_BUILD_COMMAND = "next build"
LEGACY_BUILD_COMMAND = "NODE_OPTIONS=--max_old_space_size=3000 next build --lambdas"
LOCKFILES = ("yarn.lock", "package-lock.json")


def read_package_json(entry_path: Path) -> dict:
    """Load ``package.json`` from *entry_path*; a missing file reads as ``{}``."""
    package_path = Path(entry_path) / "package.json"
    try:
        data = json.loads(package_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        log.info("package.json not found in entry", extra={"path": str(package_path)})
        return {}
    except json.JSONDecodeError as exc:
        log.warning("package.json is not valid JSON", extra={"path": str(package_path), "error": str(exc)})
        return {}
    validate_package_json(data)
    return data


def write_package_json(entry_path: Path, package_json: dict) -> None:
    (Path(entry_path) / "package.json").write_text(
        json.dumps(package_json, indent=2), encoding="utf-8"
    )


def remove_lockfiles(entry_path: Path) -> list[str]:
    """Delete checked-in lockfiles so a later ``--production`` install starts clean."""
    removed: list[str] = []
    for name in LOCKFILES:
        try:
            (Path(entry_path) / name).unlink()
        except FileNotFoundError:
            log.info(f"no {name} removed")
        else:
            removed.append(name)
    return removed


def normalize_package_json(package_json: dict | None = None) -> dict:
    """Rewrite a manifest into the shape the legacy pipeline expects.

    ``react`` and ``react-dom`` stay runtime dependencies; everything else is
    moved to ``devDependencies`` so the production-only reinstall sheds it.
    ``next-server`` (runtime) and ``next`` (build time) are pinned to the last
    release that supports ``next build --lambdas``.
    """
    package_json = dict(package_json or {})
    dependencies: dict[str, str] = {}
    dev_dependencies = {
        **(package_json.get("dependencies") or {}),
        **(package_json.get("devDependencies") or {}),
    }

    for name in ("react", "react-dom"):
        if name in dev_dependencies:
            dependencies[name] = dev_dependencies.pop(name)
    dev_dependencies.pop("next-server", None)

    return {
        **package_json,
        "dependencies": {"next-server": LEGACY_PIN, **dependencies},
        "devDependencies": {**dev_dependencies, "next": LEGACY_PIN},
        "scripts": {**(package_json.get("scripts") or {}), BUILD_SCRIPT: LEGACY_BUILD_COMMAND},
    }


def ensure_build_script(package_json: dict) -> bool:
    """Inject the default build script when missing. Returns True if *package_json* changed."""
    scripts = package_json.get("scripts") or {}
    if scripts.get(BUILD_SCRIPT):
        return False
    package_json["scripts"] = {BUILD_SCRIPT: DEFAULT_BUILD_COMMAND, **scripts}
    return True
