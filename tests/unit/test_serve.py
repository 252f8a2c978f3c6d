from __future__ import annotations

import pytest

from next_builder.files import FileBlob
from next_builder.serve import page_exists, should_serve

SOURCE = {"pages/index.js": FileBlob(b""), "pages/about.js": FileBlob(b""), "package.json": FileBlob(b"{}")}


@pytest.mark.parametrize(
    "path",
    [
        "",
        "/",
        "/about",
        "/about/",
        "about",
        "_next/static/chunks/main.js",
        "/_next/on-demand-entries-ping",
        "static/logo.png",
        "_next/static/unoptimized-build/pages/_app.js",
        "_next/static/unoptimized-build/pages/about.js",
    ],
)
def test_serves_known_paths(path: str) -> None:
    assert should_serve("package.json", SOURCE, path) is True


@pytest.mark.parametrize("path", ["/missing", "_next/static/unoptimized-build/pages/missing.js", "static"])
def test_rejects_unknown_paths(path: str) -> None:
    assert should_serve("package.json", SOURCE, path) is False


def test_page_exists_checks_index_and_extensions() -> None:
    pages = {"pages/docs/index.tsx": FileBlob(b""), "pages/post.mdx": FileBlob(b"")}
    assert page_exists("docs", pages)
    assert page_exists("post", pages)
    assert not page_exists("", pages)


def test_nested_entrypoint_scopes_paths() -> None:
    files = {"www/pages/index.js": FileBlob(b""), "www/pages/about.ts": FileBlob(b"")}
    assert should_serve("www/next.config.js", files, "www/about")
    assert should_serve("www/next.config.js", files, "www/")
    assert should_serve("www/next.config.js", files, "www/_next/static/x.js")
    assert not should_serve("www/next.config.js", files, "about")
