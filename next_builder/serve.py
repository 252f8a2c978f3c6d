"""Request routing: decide whether this builder serves a request path.

The decision is made against the *source* files, so it works before any build
output exists.
"""

from __future__ import annotations

import posixpath
import re

from next_builder.files import FileSet, include_only_entry_directory

PAGE_EXTENSIONS = (".js", ".ts", ".jsx", ".tsx", ".mdx")
SPECIAL_PAGE_NAMES = frozenset({"_app", "_error", "_document"})


def _entry_prefix(entrypoint: str) -> str:
    entry = posixpath.dirname(entrypoint)
    return "" if entry in {"", "."} else f"{entry}/"


def page_candidates(name: str) -> list[str]:
    if name in {"", "/"}:
        return [f"index{ext}" for ext in PAGE_EXTENSIONS]
    return [f"{name}{ext}" for ext in PAGE_EXTENSIONS] + [
        f"{name}/index{ext}" for ext in PAGE_EXTENSIONS
    ]


def page_exists(name: str, pages: FileSet, entry_prefix: str = "") -> bool:
    return any(f"{entry_prefix}pages/{candidate}" in pages for candidate in page_candidates(name))


def should_serve(entrypoint: str, files: FileSet, request_path: str) -> bool:
    prefix = _entry_prefix(entrypoint)
    escaped = re.escape(prefix)
    request_path = request_path.lstrip("/")

    if re.match(rf"^{escaped}static/.+$", request_path):
        return True

    pages = include_only_entry_directory(files, f"{prefix}pages")

    client_page = re.match(rf"^{escaped}_next/static/unoptimized-build/pages/(.+)\.js$", request_path)
    if client_page:
        requested = client_page.group(1)
        if requested in SPECIAL_PAGE_NAMES:
            return True
        return page_exists(requested, pages, prefix)

    if re.match(rf"^{escaped}_next.+$", request_path):
        return True

    name = request_path[:-1] if request_path.endswith("/") else request_path
    if prefix:
        # Page names are relative to the project directory.
        if name == prefix.rstrip("/"):
            name = ""
        elif name.startswith(prefix):
            name = name[len(prefix):]
        else:
            return False
    return page_exists(name, pages, prefix)
