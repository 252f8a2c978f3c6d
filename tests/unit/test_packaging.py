from __future__ import annotations

import pytest

from next_builder.files import FileBlob
from next_builder.launcher import legacy_launcher_template
from next_builder.strategies.base import Discovery, PageDescriptor, route_name
from next_builder.strategies.serverless import ServerlessStrategy


@pytest.mark.parametrize(
    ("page", "route"),
    [("about.js", "about"), ("blog/index.js", "blog"), ("index.js", ""), ("blog/indexes.js", "blog/indexes")],
)
def test_route_name(page: str, route: str) -> None:
    assert route_name(page) == route


def test_page_descriptor_keeps_index_in_name() -> None:
    page = PageDescriptor.from_bundle("blog/index.js", FileBlob(b""))
    assert (page.name, page.route, page.pathname) == ("blog/index", "blog", "/blog")


def test_legacy_launcher_renders_pathname() -> None:
    rendered = legacy_launcher_template().render("/blog").read_bytes().decode("utf-8")
    assert 'const pathname = "/blog";' in rendered
    assert "${" not in rendered


def test_legacy_launcher_requires_absolute_pathname() -> None:
    with pytest.raises(ValueError):
        legacy_launcher_template().render("blog")


def test_special_pages_never_become_lambdas() -> None:
    pages = [
        PageDescriptor.from_bundle(name, FileBlob(name.encode()))
        for name in ("_app.js", "_document.js", "_error.js", "index.js", "docs/index.js")
    ]

    lambdas = ServerlessStrategy().package(Discovery(pages=pages), "site")

    assert sorted(lambdas) == ["site/docs/index", "site/index"]
    assert lambdas["site/index"].read("page.js") == b"index.js"
