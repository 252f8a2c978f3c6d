from __future__ import annotations

import pytest

from next_builder.errors import ConfigError
from next_builder.versions import LEGACY_VERSIONS, detect_mode, get_next_version, is_legacy_next


def test_every_listed_legacy_version_is_legacy() -> None:
    for version in LEGACY_VERSIONS:
        assert is_legacy_next(version), version


@pytest.mark.parametrize("tag", ["latest", "canary"])
def test_dist_tags_are_never_legacy(tag: str) -> None:
    assert is_legacy_next(tag) is False


@pytest.mark.parametrize("requirement", ["v7.0.2-canary.49", "^7.0.0", "~6.1.0", "4.x", ">=5.0.0 <6.0.0"])
def test_ranges_satisfied_by_legacy_releases(requirement: str) -> None:
    assert is_legacy_next(requirement) is True


@pytest.mark.parametrize("requirement", ["^8.0.0", ">=8.0.0", "8.1.0", "~9.0.0", "^8.0.0-canary.1"])
def test_ranges_only_satisfied_by_newer_releases(requirement: str) -> None:
    assert is_legacy_next(requirement) is False


def test_unparseable_requirement_is_config_error() -> None:
    with pytest.raises(ConfigError):
        is_legacy_next("github:zeit/next.js")


def test_dependencies_take_precedence_over_dev_dependencies() -> None:
    pkg = {"dependencies": {"next": "^8.0.0"}, "devDependencies": {"next": "7.0.2"}}
    assert get_next_version(pkg) == "^8.0.0"
    assert get_next_version({"devDependencies": {"next": "7.0.2"}}) == "7.0.2"
    assert get_next_version({}) is None


def test_detect_mode_requires_next_dependency() -> None:
    with pytest.raises(ConfigError, match="No Next.js version could be detected"):
        detect_mode({"dependencies": {"react": "16.8.0"}})
    assert detect_mode({"devDependencies": {"next": "7.0.1"}}) is True
    assert detect_mode({"dependencies": {"next": "latest"}}) is False
