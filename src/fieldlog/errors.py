"""Stack-trace capability for errors attached to a Logger.

An error attached with ``Logger.with_error`` is rendered into the ``error``
block of the emitted line. When the error can report the frames recorded
where it was created, those frames become the ``stack`` field; otherwise the
emitter falls back to a snapshot of the calling thread's stack.

The capability is an explicit protocol rather than an attribute probe:

    class MyError(Exception):
        def stack_trace(self) -> Sequence[traceback.FrameSummary]:
            return self._frames

Example:
    from fieldlog.errors import TracedError, with_stack

    # Record the stack at construction (like raising with context)
    err = TracedError("upstream timed out")
    log.with_error(err).error("request failed")

    # Or wrap an exception that was caught
    try:
        fetch()
    except OSError as exc:
        log.with_error(with_stack(exc)).error("fetch failed")
"""

from __future__ import annotations

import traceback
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

#: Upper bound in bytes for the fallback stack snapshot.
STACK_SIZE: int = 4 << 10


@runtime_checkable
class StackTracer(Protocol):
    """Errors that can report the frames recorded where they were created."""

    def stack_trace(self) -> Sequence[Any]:
        """Return the recorded frames, outermost first."""
        ...  # pragma: no cover


class TracedError(Exception):
    """Exception that records the creating thread's stack at construction.

    The frames are captured in ``__init__`` so the stack points at the code
    that built the error, not at the code that eventually logs it.

    Attributes:
        frames: ``traceback.StackSummary`` recorded at construction, or the
            frames supplied by the caller.
    """

    def __init__(
        self, message: str = "", *, frames: Sequence[Any] | None = None
    ) -> None:
        """Create the error and record its stack.

        Args:
            message: Human-readable error message.
            frames: Pre-recorded frames to use instead of the current stack.
                ``with_stack`` passes the frames of a caught exception here.
        """
        super().__init__(message)
        if frames is None:
            # Drop this __init__ frame so the stack ends at the caller.
            frames = traceback.extract_stack()[:-1]
        self.frames = frames

    def stack_trace(self) -> Sequence[Any]:
        """Return the frames recorded for this error."""
        return self.frames


def with_stack(err: BaseException | None) -> BaseException | None:
    """Annotate an exception with a stack trace.

    Wraps ``err`` in a ``TracedError`` carrying the same message. The
    original exception is kept as ``__cause__``. When ``err`` was raised and
    still carries its traceback, the frames of that traceback are used;
    otherwise the current stack is recorded.

    Args:
        err: Exception to annotate. ``None`` is passed through.

    Returns:
        ``err`` unchanged if it already satisfies ``StackTracer`` or is
        ``None``, else a new ``TracedError``.

    Example:
        >>> try:
        ...     int("x")
        ... except ValueError as exc:
        ...     traced = with_stack(exc)
        >>> isinstance(traced, StackTracer)
        True
    """
    if err is None or isinstance(err, StackTracer):
        return err

    frames: Sequence[Any] | None = None
    if err.__traceback__ is not None:
        frames = traceback.extract_tb(err.__traceback__)
    else:
        frames = traceback.extract_stack()[:-1]

    wrapped = TracedError(str(err) or type(err).__name__, frames=frames)
    wrapped.__cause__ = err
    return wrapped


def format_frames(frames: Sequence[Any]) -> str:
    """Render a frame sequence as text.

    ``traceback.FrameSummary`` items are rendered the way Python prints
    tracebacks (``File "...", line N, in func`` plus the source line). Any
    other item is rendered with ``str()`` on its own line.

    Args:
        frames: Ordered frames as returned by ``StackTracer.stack_trace()``.

    Returns:
        The rendered stack, or an empty string for an empty sequence.
    """
    parts: list[str] = []
    for frame in frames:
        if isinstance(frame, traceback.FrameSummary):
            parts.extend(traceback.format_list([frame]))
        else:
            parts.append(f"{frame}\n")
    return "".join(parts)


def capture_stack(limit: int = STACK_SIZE, skip: int = 1) -> str:
    """Snapshot the calling thread's stack, bounded to ``limit`` bytes.

    The innermost frames are the interesting ones, so when the rendered
    stack exceeds ``limit`` the oldest frames are dropped.

    Args:
        limit: Maximum size of the result in UTF-8 bytes.
        skip: Number of innermost frames to leave out (1 drops this function).

    Returns:
        The rendered stack, never longer than ``limit`` bytes.
    """
    frames = traceback.extract_stack()
    if skip > 0:
        frames = frames[:-skip]
    rendered = "".join(traceback.format_list(frames)).encode("utf-8")
    if len(rendered) > limit:
        rendered = rendered[-limit:]
    return rendered.decode("utf-8", errors="ignore")
