"""Output assembly: static files, watch list and dev-mode routes."""

from __future__ import annotations

import posixpath
from pathlib import Path
from urllib.parse import urlsplit

from next_builder.files import FileRef, FileSet, glob, include_only_entry_directory, only_static_directory
from next_builder.lambdas import Lambda
from next_builder.types import Route
from next_builder.validator import validate_routes


def next_static_files(entry_path: Path, entry_directory: str) -> FileSet:
    """Map ``.next/static/**`` to the public ``_next/static/`` prefix."""
    compiled = glob("**", Path(entry_path) / ".next" / "static")
    return {
        posixpath.join(entry_directory, f"_next/static/{key}"): ref for key, ref in compiled.items()
    }


def static_directory_files(files: FileSet, entry_directory: str) -> FileSet:
    """The project's own ``static/`` directory, passed through unchanged."""
    return only_static_directory(include_only_entry_directory(files, entry_directory), entry_directory)


def merge_output(
    lambdas: dict[str, Lambda], next_static: FileSet, static_dir: FileSet
) -> dict[str, Lambda | FileRef]:
    return {**lambdas, **next_static, **static_dir}


def get_watchers(dot_next: Path, work_path: Path) -> list[str]:
    """Build output files whose change means the dev build should be redone."""
    dot_next = Path(dot_next)
    if not dot_next.is_dir():
        return []
    watch = [
        p for p in dot_next.iterdir() if p.is_file() and (p.name == "BUILD_ID" or p.suffix == ".json")
    ]
    return sorted(p.relative_to(work_path).as_posix() for p in watch)


def dev_route(request_path: str, base_url: str) -> Route:
    # ``src`` is matched as a regex, so the query string (and its ``?``) is dropped.
    request_path = request_path.lstrip("/")
    return Route(src=urlsplit(f"/{request_path}").path, dest=f"{base_url}/{request_path}")


def check_routes(routes: list[Route]) -> list[Route]:
    validate_routes([r.model_dump() for r in routes])
    return routes
