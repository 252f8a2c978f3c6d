"""Packaging strategies, selected once per build from the detected Next.js version."""

from __future__ import annotations

from next_builder.strategies.base import PackagingStrategy
from next_builder.strategies.legacy import LegacyStrategy
from next_builder.strategies.serverless import ServerlessStrategy


def select_strategy(is_legacy: bool) -> PackagingStrategy:
    return LegacyStrategy() if is_legacy else ServerlessStrategy()


__all__ = ["LegacyStrategy", "PackagingStrategy", "ServerlessStrategy", "select_strategy"]
