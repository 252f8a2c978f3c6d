"""Launcher shims shipped inside every lambda.

``now__bridge.js`` adapts a Node request listener to the platform invocation
contract. ``now__launcher.js`` is the lambda entry point: a static file in
serverless mode, and a per-page rendering of ``legacy-launcher.js`` (with the
page pathname baked in) in legacy mode.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from string import Template

from next_builder.files import FileBlob, FileFsRef

BRIDGE_NAME = "now__bridge.js"
LAUNCHER_NAME = "now__launcher.js"


def _resource_path(name: str) -> Path:
    return Path(str(resources.files("next_builder.launchers").joinpath(name)))


def bridge_file() -> FileFsRef:
    return FileFsRef.from_path(_resource_path("bridge.js"))


def serverless_launcher_file() -> FileFsRef:
    return FileFsRef.from_path(_resource_path("launcher.js"))


@dataclass(frozen=True)
class LauncherTemplate:
    source: str

    def render(self, pathname: str) -> FileBlob:
        if not pathname.startswith("/"):
            raise ValueError(f"pathname must be absolute, got {pathname!r}")
        text = Template(self.source).substitute(pathname=json.dumps(pathname))
        return FileBlob(data=text.encode("utf-8"))


@lru_cache(maxsize=1)
def legacy_launcher_template() -> LauncherTemplate:
    return LauncherTemplate(_resource_path("legacy-launcher.js").read_text(encoding="utf-8"))
