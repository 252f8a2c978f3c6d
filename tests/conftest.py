from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from next_builder.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Every test sees settings built from its own environment."""
    monkeypatch.delenv("NPM_AUTH_TOKEN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _write_tree(root: Path, files: dict[str, str | bytes | dict]) -> Path:
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, dict):
            target.write_text(json.dumps(content, indent=2), encoding="utf-8")
        elif isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def write_tree() -> Callable[[Path, dict], Path]:
    """Write ``{relative path: content}`` under a root; dict content is dumped as JSON."""
    return _write_tree
