"""Immutable structured logger.

A ``Logger`` is a value: every builder call returns a new Logger and leaves
the original untouched, so a request handler can derive a scoped copy
without affecting the Logger it was given.

Regions carried by a Logger:
- ``id``: correlation id, emitted as top-level ``id`` when non-empty
- ``err``: attached exception, emitted as the ``error`` block
- ``data``: fields nested under the top-level ``data`` key
- ``root``: fields merged at the top level of the line

Example:
    log = fieldlog.new("billing")

    req_log = log.with_id(request_id).with_data({"customer": cid})
    req_log.info("invoice sent", {"invoice": 17})

    # The parent is unchanged
    log.info("tick")  # no id, no data

    # Keyword arguments are another inline field set
    req_log.warn("retrying", attempt=2)

Thread Safety:
    Logger values are never mutated after construction and may be shared
    freely between threads. The sink is shared by reference; interleaving
    of concurrent writes is up to the sink.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fieldlog.emitter import Level, Sink, StdoutSink, emit
from fieldlog.fields import Data, copy_fields, merge_fields


@dataclass(frozen=True)
class Logger:
    """Structured logger value.

    Build Loggers with ``fieldlog.new`` rather than calling the constructor;
    ``new`` fills in the envelope from the environment.

    Attributes:
        sink: Destination of emitted lines, shared by every derived Logger.
        envelope: Read-only fields written on every line (host, release,
            service, name, ddtags and injected fields).
        id: Correlation id. Empty means no ``id`` key.
        err: Attached exception, or None.
    """

    sink: Sink = field(default_factory=StdoutSink)
    envelope: Mapping[str, Any] = field(default_factory=dict)
    id: str = ""
    err: BaseException | None = None
    _data: Data = field(default_factory=dict, repr=False)
    _root: Data = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.envelope, MappingProxyType):
            object.__setattr__(self, "envelope", MappingProxyType(dict(self.envelope)))

    # -------------------------------------------------------------------------
    # Field access
    # -------------------------------------------------------------------------

    @property
    def data(self) -> Data:
        """Deep copy of the nested data region. Mutating it has no effect."""
        return copy_fields(self._data)

    @property
    def root(self) -> Data:
        """Deep copy of the top-level root region. Mutating it has no effect."""
        return copy_fields(self._root)

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def with_id(self, id: str) -> Logger:
        """Return a Logger with the correlation id set to ``id``."""
        return dataclasses.replace(self, id=id)

    def with_error(self, err: BaseException | None) -> Logger:
        """Return a Logger with ``err`` attached.

        The exception is stored as is; its message and stack are read when a
        line is emitted. Passing None detaches any previous error.
        """
        return dataclasses.replace(self, err=err)

    def with_data(
        self, fields: Mapping[str, Any] | None = None, /, **kwargs: Any
    ) -> Logger:
        """Return a Logger with fields added to the nested data region.

        ``fields`` is applied over the existing data, then ``kwargs`` over
        that; later keys win. Values are deep-copied so mutating a structure
        after passing it in does not change what this Logger emits.

        Args:
            fields: Field set to merge in.
            **kwargs: More fields, applied after ``fields``.

        Returns:
            New Logger. This Logger's data is unchanged.

        Example:
            >>> log = new().with_data({"a": 1}).with_data({"a": 2, "b": 3})
            >>> log.data
            {'a': 2, 'b': 3}
        """
        return dataclasses.replace(self, _data=merge_fields(self._data, fields, kwargs))

    def with_root(
        self, fields: Mapping[str, Any] | None = None, /, **kwargs: Any
    ) -> Logger:
        """Return a Logger with fields added to the top-level root region.

        Same merge rule as ``with_data``. Root fields are written at the top
        level of each line and replace any envelope or reserved key of the
        same name (``level``, ``message``, ...).
        """
        return dataclasses.replace(self, _root=merge_fields(self._root, fields, kwargs))

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def log(
        self,
        level: Level | str,
        message: str,
        /,
        *fields: Mapping[str, Any] | None,
        **kwargs: Any,
    ) -> None:
        """Emit a line at ``level`` (a ``Level`` or its string value)."""
        emit(self, Level(level), message, *fields, kwargs)

    def debug(
        self, message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any
    ) -> None:
        """Emit a debug line with optional inline fields."""
        emit(self, Level.DEBUG, message, *fields, kwargs)

    def info(
        self, message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any
    ) -> None:
        """Emit an info line with optional inline fields.

        Args:
            message: Message text.
            *fields: Field sets merged over the data region for this line
                only, later sets winning.
            **kwargs: One more field set, applied last.
        """
        emit(self, Level.INFO, message, *fields, kwargs)

    def warn(
        self, message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any
    ) -> None:
        """Emit a warn line with optional inline fields."""
        emit(self, Level.WARN, message, *fields, kwargs)

    warning = warn

    def error(
        self, message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any
    ) -> None:
        """Emit an error line with optional inline fields."""
        emit(self, Level.ERROR, message, *fields, kwargs)

    def fatal(
        self, message: str, /, *fields: Mapping[str, Any] | None, **kwargs: Any
    ) -> None:
        """Emit a fatal line, then exit the process with status 1.

        Raises:
            SystemExit: Always, after the write (even a failed one).
        """
        emit(self, Level.FATAL, message, *fields, kwargs)
