from __future__ import annotations

import json
from pathlib import Path

import pytest

from next_builder.errors import ConfigError
from next_builder.manifest import (
    BUILD_SCRIPT,
    DEFAULT_BUILD_COMMAND,
    LEGACY_BUILD_COMMAND,
    ensure_build_script,
    normalize_package_json,
    read_package_json,
    remove_lockfiles,
    write_package_json,
)
from next_builder.versions import LEGACY_PIN


def test_ensure_build_script_injects_once_and_keeps_other_scripts() -> None:
    pkg = {"scripts": {"dev": "next", "lint": "eslint ."}}

    assert ensure_build_script(pkg) is True
    first = dict(pkg["scripts"])
    assert ensure_build_script(pkg) is False

    assert pkg["scripts"] == first
    assert first == {BUILD_SCRIPT: DEFAULT_BUILD_COMMAND, "dev": "next", "lint": "eslint ."}


def test_ensure_build_script_leaves_existing_script_alone() -> None:
    pkg = {"scripts": {BUILD_SCRIPT: "next build && next export"}}
    assert ensure_build_script(pkg) is False
    assert pkg["scripts"][BUILD_SCRIPT] == "next build && next export"


def test_normalize_package_json_pins_legacy_toolchain() -> None:
    pkg = {
        "name": "blog",
        "dependencies": {"next": "7.0.2", "react": "16.6.0", "react-dom": "16.6.0", "lodash": "4.17.11"},
        "devDependencies": {"next-server": "7.0.0", "jest": "23.0.0"},
        "scripts": {"dev": "next"},
    }

    out = normalize_package_json(pkg)

    assert out["name"] == "blog"
    assert out["dependencies"] == {"next-server": LEGACY_PIN, "react": "16.6.0", "react-dom": "16.6.0"}
    assert out["devDependencies"] == {"lodash": "4.17.11", "jest": "23.0.0", "next": LEGACY_PIN}
    assert out["scripts"] == {"dev": "next", BUILD_SCRIPT: LEGACY_BUILD_COMMAND}


def test_remove_lockfiles_tolerates_missing_files(tmp_path: Path) -> None:
    (tmp_path / "yarn.lock").write_text("# lock", encoding="utf-8")

    assert remove_lockfiles(tmp_path) == ["yarn.lock"]
    assert remove_lockfiles(tmp_path) == []
    assert not (tmp_path / "yarn.lock").exists()


def test_read_package_json_missing_file_is_empty(tmp_path: Path) -> None:
    assert read_package_json(tmp_path) == {}


def test_read_and_write_round_trip(tmp_path: Path) -> None:
    write_package_json(tmp_path, {"dependencies": {"next": "^8.0.0"}})
    assert json.loads((tmp_path / "package.json").read_text(encoding="utf-8")) == {
        "dependencies": {"next": "^8.0.0"}
    }
    assert read_package_json(tmp_path)["dependencies"]["next"] == "^8.0.0"


def test_read_package_json_rejects_malformed_scripts(tmp_path: Path) -> None:
    write_package_json(tmp_path, {"scripts": ["next build"]})
    with pytest.raises(ConfigError, match="scripts"):
        read_package_json(tmp_path)
