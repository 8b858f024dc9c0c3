"""Assembly and emission of one JSON log line.

Every level method of ``Logger`` ends here. ``emit`` reads the Logger's
field state, builds one document and writes it to the sink as a single
newline-terminated line:

    {"timestamp":"2026-10-19T09:30:00+00:00","host":"web-1","release":"v42",
     "service":"billing","name":"billing","ddtags":"","level":"info",
     "status":"info","id":"4d0c...","data":{"invoice":17},
     "nanoseconds":1792402200000000000,"message":"invoice sent"}

Document layout, in order of construction:
- ``timestamp`` then the envelope (host, release, service, name, ddtags,
  injected fields)
- ``level`` and ``status`` (same value, both kept for consumers)
- ``id`` when the Logger has one
- ``data`` when the merged data region is non-empty
- ``error`` when an error is attached
- ``nanoseconds`` and ``message``
- root fields, merged last so a colliding key replaces the value above

Emission is synchronous. The line is handed to the sink in one ``write``
call; sink errors propagate to the caller unchanged.
"""

from __future__ import annotations

import io
import json
import logging
import sys
import time
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from fieldlog.errors import StackTracer, capture_stack, format_frames

if TYPE_CHECKING:
    from fieldlog.logger import Logger

logger = logging.getLogger(__name__)

#: Clock used for both ``timestamp`` and ``nanoseconds``.
_clock_ns = time.time_ns

#: Exit status used after a fatal line has been written.
FATAL_EXIT_CODE = 1


class Level(str, Enum):
    """Severity of a log line, rendered as its lowercase value."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


# =============================================================================
# Sinks
# =============================================================================


class Sink(Protocol):
    """Byte destination for log lines."""

    def write(self, data: bytes, /) -> Any:
        """Accept one complete log line."""
        ...  # pragma: no cover


class StdoutSink:
    """Sink writing to whatever ``sys.stdout`` is at write time.

    Resolving the stream late keeps a Logger built at import time pointed
    at the current stdout when the process (or a test) redirects it.
    """

    def write(self, data: bytes, /) -> int:
        """Write one UTF-8 encoded line to the current ``sys.stdout``.

        Args:
            data: Complete log line, newline included.

        Returns:
            Number of bytes accepted.

        Raises:
            UnicodeDecodeError: If ``data`` is not valid UTF-8.
            OSError: Whatever the stream raises on write.
        """
        sys.stdout.write(data.decode("utf-8"))
        return len(data)

    def flush(self) -> None:
        """Flush the current ``sys.stdout`` so each line is visible at once."""
        sys.stdout.flush()

    def close(self) -> None:
        """No-op: standard output is owned by the process."""

    def __repr__(self) -> str:
        return "StdoutSink()"


def write_line(sink: Any, line: str) -> None:
    """Hand one serialized line to ``sink`` in a single ``write`` call.

    Text streams (``io.TextIOBase``: ``sys.stdout``, ``StringIO``, files
    opened in text mode) receive ``str``; every other sink receives UTF-8
    bytes. The sink is flushed afterwards when it supports it.

    Args:
        sink: Destination with a ``write`` method.
        line: Complete JSON line including the trailing newline.

    Raises:
        Whatever the sink raises. Failures are not retried or wrapped.
    """
    if isinstance(sink, io.TextIOBase):
        sink.write(line)
    else:
        sink.write(line.encode("utf-8"))

    flush = getattr(sink, "flush", None)
    if callable(flush):
        flush()


# =============================================================================
# Document assembly
# =============================================================================


def format_timestamp(nanoseconds: int) -> str:
    """Render epoch nanoseconds as an RFC 3339 UTC timestamp (seconds)."""
    return datetime.fromtimestamp(nanoseconds // 1_000_000_000, tz=UTC).isoformat()


def error_block(err: BaseException) -> dict[str, str]:
    """Build the ``error`` object for an attached exception.

    When ``err`` satisfies ``StackTracer`` its recorded frames become the
    stack. Otherwise the current thread's stack is captured, bounded to
    ``STACK_SIZE`` bytes.

    Args:
        err: The attached exception.

    Returns:
        ``{"message": ..., "stack": ...}``. The message falls back to the
        exception type name when ``str(err)`` is empty.
    """
    if isinstance(err, StackTracer):
        stack = format_frames(err.stack_trace())
    else:
        stack = capture_stack(skip=2)

    message = str(err) or type(err).__name__
    return {"message": message, "stack": stack}


def build_event(
    log: Logger,
    level: Level,
    message: str,
    fields: tuple[Mapping[str, Any] | None, ...] = (),
) -> dict[str, Any]:
    """Assemble the document for one log line.

    Inline ``fields`` are applied over the Logger's data region in call
    order, for this line only. Empty sets are skipped and never force an
    empty ``data`` object.

    Args:
        log: Logger whose field state is rendered. Not modified.
        level: Severity of the line.
        message: Message text.
        fields: Inline field sets, highest precedence last.

    Returns:
        The document, ready for ``encode_event``.
    """
    now_ns = _clock_ns()

    document: dict[str, Any] = {"timestamp": format_timestamp(now_ns)}
    document.update(log.envelope)
    document["level"] = level.value
    document["status"] = level.value

    if log.id:
        document["id"] = log.id

    data = log.data
    for field_set in fields:
        if field_set:
            data.update(field_set)
    if data:
        document["data"] = data

    if log.err is not None:
        document["error"] = error_block(log.err)

    document["nanoseconds"] = now_ns
    document["message"] = message

    document.update(log.root)
    return document


# =============================================================================
# Encoding
# =============================================================================


def _stringify(value: Any) -> str:
    """``json.dumps`` default hook: fall back to ``str()`` or a placeholder."""
    try:
        return str(value)
    except Exception:
        return f"<unserializable {type(value).__name__}>"


def _dumps(value: Any, ensure_ascii: bool = False) -> str:
    return json.dumps(
        value,
        default=_stringify,
        ensure_ascii=ensure_ascii,
        allow_nan=False,
        separators=(",", ":"),
    )


def _placeholder_for(value: Any) -> Any:
    """Return ``value`` if it encodes on its own, else a placeholder string."""
    try:
        _dumps(value)
    except (TypeError, ValueError, RecursionError) as e:
        return f"<unserializable: {type(e).__name__}>"
    return value


def _sanitize(document: Mapping[Any, Any]) -> dict[str, Any]:
    """Replace every top-level or ``data`` value that cannot be encoded."""
    clean: dict[str, Any] = {}
    for key, value in document.items():
        if key == "data" and isinstance(value, Mapping):
            value = {str(k): _placeholder_for(v) for k, v in value.items()}
        clean[str(key)] = _placeholder_for(value)
    return clean


def _is_utf8_encodable(text: str) -> bool:
    if text.isascii():
        return True
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def encode_event(document: Mapping[str, Any]) -> str:
    """Serialize a document as one compact JSON line.

    Values JSON cannot encode natively are written as ``str(value)``. If the
    document still fails to encode (circular references, unsupported key
    types, NaN or infinite floats) the offending values are replaced by
    placeholders so the line is still written. Text that is not valid UTF-8
    (lone surrogates from ``os.fsdecode`` of undecodable file names) is
    written with ``\\uXXXX`` escapes.

    Args:
        document: Output of ``build_event``.

    Returns:
        The JSON text followed by a single newline. The text always encodes
        as UTF-8.

    Example:
        >>> encode_event({"n": float("nan"), "ok": 1})
        '{"n":"<unserializable: ValueError>","ok":1}\\n'
    """
    try:
        encoded = _dumps(document)
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning(f"Log line has unencodable fields, using placeholders: {e}")
        document = _sanitize(document)
        encoded = _dumps(document)

    if not _is_utf8_encodable(encoded):
        encoded = _dumps(document, ensure_ascii=True)
    return encoded + "\n"


# =============================================================================
# Emission
# =============================================================================


def emit(
    log: Logger,
    level: Level,
    message: str,
    *fields: Mapping[str, Any] | None,
) -> None:
    """Build, encode and write one log line.

    For ``Level.FATAL`` the process exits with status 1 once the write has
    returned, and also when the write raised.

    Args:
        log: Logger supplying sink, envelope and fields.
        level: Severity of the line.
        message: Message text.
        *fields: Inline field sets for this line only.

    Raises:
        SystemExit: Always, for ``Level.FATAL``.
        Exception: Any error raised by the sink's ``write``.
    """
    if level is Level.FATAL:
        try:
            _write(log, level, message, fields)
        finally:
            sys.exit(FATAL_EXIT_CODE)

    _write(log, level, message, fields)


def _write(
    log: Logger,
    level: Level,
    message: str,
    fields: tuple[Mapping[str, Any] | None, ...],
) -> None:
    line = encode_event(build_event(log, level, message, fields))
    write_line(log.sink, line)
