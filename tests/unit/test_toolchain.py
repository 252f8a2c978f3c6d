from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from next_builder import toolchain
from next_builder.errors import BuildError


@pytest.fixture
def calls(monkeypatch) -> list[tuple[list[str], Path]]:
    recorded: list[tuple[list[str], Path]] = []

    def fake_run(cmd, cwd, check):
        recorded.append((cmd, cwd))
        return subprocess.CompletedProcess(cmd, 0)

    monkeypatch.setattr(toolchain.subprocess, "run", fake_run)
    monkeypatch.setattr(toolchain, "_has", lambda cmd: True)
    return recorded


def test_install_uses_npm_without_yarn_lock(tmp_path: Path, calls) -> None:
    toolchain.run_npm_install(tmp_path, ["--prefer-offline"])
    assert calls == [(["npm", "install", "--prefer-offline"], tmp_path)]


def test_install_and_scripts_use_yarn_with_lockfile(tmp_path: Path, write_tree, calls) -> None:
    write_tree(tmp_path, {"yarn.lock": "", "package.json": {"scripts": {"now-build": "next build"}}})

    toolchain.run_npm_install(tmp_path, ["--production"])
    assert toolchain.run_package_json_script(tmp_path, "now-build") is True

    assert [c for c, _ in calls] == [["yarn", "--production"], ["yarn", "run", "now-build"]]


def test_missing_script_is_skipped(tmp_path: Path, write_tree, calls) -> None:
    write_tree(tmp_path, {"package.json": {"scripts": {}}})
    assert toolchain.run_package_json_script(tmp_path, "now-build") is False
    assert calls == []


def test_failed_command_raises_build_error(tmp_path: Path, monkeypatch) -> None:
    def failing(cmd, cwd, check):
        raise subprocess.CalledProcessError(1, cmd)

    monkeypatch.setattr(toolchain.subprocess, "run", failing)
    with pytest.raises(BuildError, match="exited with code 1"):
        toolchain.run_npm_install(tmp_path)


def test_npmrc_is_removed_even_when_install_fails(tmp_path: Path) -> None:
    npmrc = tmp_path / ".npmrc"
    with pytest.raises(BuildError):
        with toolchain.npm_auth(tmp_path, "s3cret"):
            assert npmrc.read_text(encoding="utf-8") == "//registry.npmjs.org/:_authToken=s3cret"
            raise BuildError("install failed")
    assert not npmrc.exists()


def test_npm_auth_without_token_writes_nothing(tmp_path: Path) -> None:
    with toolchain.npm_auth(tmp_path, None) as path:
        assert path is None
    assert not (tmp_path / ".npmrc").exists()
