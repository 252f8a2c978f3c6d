"""next-builder exception hierarchy.

Every fatal condition raised by the builder inherits from BuilderError, so the
platform can surface the message verbatim and callers can catch one type.
"""


class BuilderError(Exception):
    """Base exception for all next-builder errors."""


class ConfigError(BuilderError):
    """Invalid entrypoint or project manifest."""


class BuildError(BuilderError):
    """External toolchain failed or the build output has an unexpected shape."""


class DevServerError(BuilderError):
    """The development server exited or never reported readiness."""


class UnsafePathError(BuilderError):
    """A file set key escapes its declared root."""
