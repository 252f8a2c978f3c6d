"""Build Next.js applications into per-page lambdas."""

from next_builder.cache import prepare_cache
from next_builder.core import REQUIRES_INITIAL_BUILD, VERSION, build
from next_builder.serve import should_serve

__version__ = "0.1.0"

__all__ = [
    "REQUIRES_INITIAL_BUILD",
    "VERSION",
    "build",
    "prepare_cache",
    "should_serve",
]
