"""Carry a Logger through a request or task scope.

Uses ``contextvars`` so the bound Logger follows the current thread or
asyncio task without being passed through every call:

    with bind(log.with_id(request_id)):
        handle()  # anywhere below: from_context().info("...")

Bindings nest; leaving a ``bind`` block restores the Logger that was bound
before it.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field

from fieldlog.default import get_default
from fieldlog.logger import Logger

_current_logger: contextvars.ContextVar[Logger | None] = contextvars.ContextVar(
    "fieldlog_logger", default=None
)


def from_context() -> Logger:
    """Return the Logger bound to the current context.

    Returns:
        The innermost bound Logger, or the process default Logger when
        nothing is bound.
    """
    bound = _current_logger.get()
    if bound is None:
        return get_default()
    return bound


@dataclass
class bind:  # noqa: N801
    """Context manager binding a Logger for the enclosed scope.

    Usage:
        with bind(log.with_id("abc")) as scoped:
            from_context() is scoped  # True
    """

    logger: Logger
    _token: contextvars.Token[Logger | None] | None = field(
        default=None, init=False, repr=False
    )

    def __enter__(self) -> Logger:
        self._token = _current_logger.set(self.logger)
        return self.logger

    def __exit__(self, *args: object) -> None:
        """Restore the previous binding. Exceptions are not suppressed."""
        if self._token is not None:
            _current_logger.reset(self._token)
            self._token = None
