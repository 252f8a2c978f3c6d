"""Node toolchain invocation: dependency install and package.json scripts.

Uses ``yarn`` when the project ships a ``yarn.lock`` and yarn is installed,
``npm`` otherwise. Every failure surfaces as a BuildError; nothing is retried.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from next_builder.errors import BuildError
from next_builder.logging import get_logger

log = get_logger(__name__)

NPMRC = ".npmrc"
REGISTRY = "//registry.npmjs.org/"


def _has(cmd: str) -> bool:
    return shutil.which(cmd) is not None


def _uses_yarn(root: Path) -> bool:
    return (root / "yarn.lock").exists() and _has("yarn")


def _run(cmd: list[str], cwd: Path) -> None:
    log.info(f"Running `{' '.join(cmd)}`", extra={"cwd": str(cwd)})
    try:
        subprocess.run(cmd, cwd=cwd, check=True)
    except FileNotFoundError as exc:
        raise BuildError(f"Command not found: {cmd[0]}") from exc
    except subprocess.CalledProcessError as exc:
        raise BuildError(f"`{' '.join(cmd)}` exited with code {exc.returncode}") from exc


def run_npm_install(root: Path, args: list[str] | None = None) -> None:
    root = Path(root)
    args = list(args or [])
    if _uses_yarn(root):
        _run(["yarn", *args], cwd=root)
    else:
        _run(["npm", "install", *args], cwd=root)


def run_package_json_script(root: Path, script_name: str) -> bool:
    """Run *script_name* from ``package.json``. Returns False when it is not declared."""
    root = Path(root)
    try:
        pkg = json.loads((root / "package.json").read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        pkg = {}
    if script_name not in (pkg.get("scripts") or {}):
        log.warning(f'Script "{script_name}" not found in package.json, skipping')
        return False

    if _uses_yarn(root):
        _run(["yarn", "run", script_name], cwd=root)
    else:
        _run(["npm", "run", script_name], cwd=root)
    return True


@contextmanager
def npm_auth(root: Path, token: str | None) -> Iterator[Path | None]:
    """Write a scoped ``.npmrc`` for the duration of the block.

    The file is removed on every exit path so the token never reaches a later
    build stage or the packaged output. Without a token this is a no-op.
    """
    if not token:
        yield None
        return

    npmrc = Path(root) / NPMRC
    log.info("found NPM_AUTH_TOKEN in environment, creating .npmrc")
    npmrc.write_text(f"{REGISTRY}:_authToken={token}", encoding="utf-8")
    try:
        yield npmrc
    finally:
        npmrc.unlink(missing_ok=True)
