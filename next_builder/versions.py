"""Next.js version detection.

Releases up to 7.0.2 cannot emit per-page serverless bundles, so projects that
pin one of them are built in *legacy* mode (``next build --lambdas`` and
``next-server``). Everything newer, and the ``latest``/``canary`` dist-tags,
goes through the serverless pipeline.
"""

from __future__ import annotations

import re

from semantic_version import NpmSpec, Version

from next_builder.errors import ConfigError

DIST_TAGS = {"latest", "canary"}

_STABLE = [
    "0.1.0", "0.1.1", "0.2.0", "0.2.1", "0.2.2", "0.2.3", "0.2.4", "0.2.5",
    "0.2.6", "0.2.7", "0.2.8", "0.2.9", "0.2.10", "0.2.11", "0.2.12", "0.2.13",
    "0.2.14", "0.3.0", "0.3.1", "0.3.2", "0.3.3", "0.4.0", "0.4.1", "0.5.0",
    "0.6.0", "0.6.1", "0.7.0", "0.7.1", "0.7.2", "0.8.0", "0.8.1", "0.8.2",
    "0.8.3", "0.9.0", "0.9.1", "0.9.2", "0.9.3", "0.9.4", "0.9.5", "0.9.6",
    "0.9.7", "0.9.8", "0.9.9", "0.9.10", "0.9.11",
    "1.0.0", "1.0.1", "1.0.2", "1.1.0", "1.1.1", "1.1.2", "1.2.0", "1.2.1",
    "1.2.2", "1.2.3",
    "2.0.0", "2.0.1", "2.1.0", "2.1.1", "2.2.0", "2.3.0", "2.3.1", "2.4.0",
    "2.4.1", "2.4.2", "2.4.3", "2.4.4", "2.4.5", "2.4.6", "2.4.7", "2.4.8",
    "2.4.9",
    "3.0.0", "3.0.1", "3.0.2", "3.0.3", "3.0.4", "3.0.5", "3.0.6", "3.1.0",
    "3.2.0", "3.2.1", "3.2.2", "3.2.3",
    "4.0.0", "4.0.1", "4.0.2", "4.0.3", "4.0.4", "4.0.5", "4.1.0", "4.1.1",
    "4.1.2", "4.1.3", "4.1.4", "4.2.0", "4.2.1", "4.2.2", "4.2.3",
    "5.0.0", "5.1.0",
    "6.0.0", "6.0.1", "6.0.2", "6.0.3", "6.1.0", "6.1.1", "6.1.2",
    "7.0.0", "7.0.1", "7.0.2",
]

_PRERELEASES = (
    [f"5.0.0-beta.{n}" for n in range(0, 42)]
    + [f"6.0.0-canary.{n}" for n in range(1, 8)]
    + [f"6.0.4-canary.{n}" for n in range(0, 10)]
    + [f"6.1.1-canary.{n}" for n in range(0, 6)]
    + [f"7.0.0-canary.{n}" for n in range(0, 21)]
    + [f"7.0.1-canary.{n}" for n in range(0, 7)]
    + [f"7.0.2-alpha.{n}" for n in range(1, 4)]
    + [f"7.0.2-canary.{n}" for n in range(0, 50)]
)

LEGACY_VERSIONS: tuple[str, ...] = tuple(_STABLE + _PRERELEASES)

# Newest release the legacy pipeline pins ``next``/``next-server`` to.
LEGACY_PIN = "v7.0.2-canary.49"

_V_PREFIX = re.compile(r"(?<![0-9A-Za-z])v(?=\d)")


def get_next_version(package_json: dict) -> str | None:
    """Return the declared ``next`` requirement, dependencies first."""
    for section in ("dependencies", "devDependencies"):
        deps = package_json.get(section) or {}
        if deps.get("next"):
            return deps["next"]
    return None


def _strip_v(requirement: str) -> str:
    return _V_PREFIX.sub("", requirement.strip())


def is_legacy_next(requirement: str) -> bool:
    if requirement in DIST_TAGS:
        return False

    if _strip_v(requirement) in LEGACY_VERSIONS:
        return True

    try:
        spec = NpmSpec(_strip_v(requirement))
    except ValueError as exc:
        raise ConfigError(f'Could not parse Next.js version requirement "{requirement}"') from exc

    # No legacy release satisfies the range, so it targets a newer Next.js.
    return spec.select(Version(v) for v in LEGACY_VERSIONS) is not None


def detect_mode(package_json: dict) -> bool:
    """Return True when the project must be built in legacy mode."""
    requirement = get_next_version(package_json)
    if not requirement:
        raise ConfigError(
            'No Next.js version could be detected in "package.json". '
            'Make sure `"next"` is installed in "dependencies" or "devDependencies"'
        )
    return is_legacy_next(requirement)
