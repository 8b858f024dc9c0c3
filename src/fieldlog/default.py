"""Process-wide default Logger and module-level shortcuts.

For call sites that have no Logger at hand:

    import fieldlog

    fieldlog.info("cache warmed", entries=1024)

The default instance is shared by the whole process. ``root`` replaces it
with a copy carrying extra root fields, so every later call through this
module sees them. Code that needs scoped fields should derive its own Logger
(``get_default().with_data(...)``) instead.

Thread Safety:
    Lazy creation is locked. ``root`` and ``set_default`` are not: callers
    changing the default concurrently must synchronize themselves.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from fieldlog.config import new
from fieldlog.logger import Logger

_default: Logger | None = None
_default_lock = threading.Lock()


def get_default() -> Logger:
    """Return the default Logger, creating it on first use.

    The default is built by ``fieldlog.new()``: standard output,
    ``$SERVICE_NAME`` and ``$RELEASE`` from the environment.
    """
    global _default

    # Double-checked locking for thread-safe lazy initialization
    if _default is None:
        with _default_lock:
            if _default is None:  # pragma: no branch
                _default = new()
    return _default


def set_default(logger: Logger) -> None:
    """Replace the default Logger."""
    global _default
    _default = logger


def reset_default() -> None:
    """Drop the default Logger; the next access builds a fresh one.

    Warning:
        Meant for tests and reconfiguration at startup.
    """
    global _default
    with _default_lock:
        _default = None


def root(fields: Mapping[str, Any] | None = None, /, **kwargs: Any) -> None:
    """Add top-level fields to the default Logger for the whole process.

    Replaces the default with ``get_default().with_root(...)``. Loggers
    obtained from the default earlier keep their own fields.

    Args:
        fields: Field set to merge into the root region.
        **kwargs: More fields, applied after ``fields``.

    Example:
        >>> fieldlog.root({"region": "eu-west-1"})
        >>> fieldlog.info("started")  # line carries "region" at top level
    """
    set_default(get_default().with_root(fields, **kwargs))


def debug(message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any) -> None:
    """Emit a debug line through the default Logger."""
    get_default().debug(message, *fields, **kwargs)


def info(message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any) -> None:
    """Emit an info line through the default Logger.

    Args:
        message: Message text.
        *fields: Inline field sets for this line only, later sets winning.
        **kwargs: One more field set, applied last.

    Raises:
        Exception: Whatever the default Logger's sink raises on write.

    Example:
        >>> fieldlog.info("cache warmed", entries=1024)
    """
    get_default().info(message, *fields, **kwargs)


def warn(message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any) -> None:
    """Emit a warn line through the default Logger."""
    get_default().warn(message, *fields, **kwargs)


warning = warn


def error(message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any) -> None:
    """Emit an error line through the default Logger."""
    get_default().error(message, *fields, **kwargs)


def fatal(message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any) -> None:
    """Emit a fatal line through the default Logger and exit with status 1.

    Args:
        message: Message text.
        *fields: Inline field sets for this line only.
        **kwargs: One more field set, applied last.

    Raises:
        SystemExit: Always, after the write (even a failed one).
    """
    get_default().fatal(message, *fields, **kwargs)
