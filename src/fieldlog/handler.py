"""Route standard-library ``logging`` records into a fieldlog Logger.

Lets third-party libraries that log through ``logging`` produce the same
JSON lines as the application:

    handler = FieldLogHandler(from_context)
    logging.getLogger().addHandler(handler)

    logging.getLogger("urllib3").warning("retrying %s", url)
    # {"level":"warn","data":{"logger":"urllib3"},"message":"retrying ...",...}
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from fieldlog.emitter import Level
from fieldlog.logger import Logger


def level_for(levelno: int) -> Level:
    """Map a ``logging`` level number to a fieldlog level.

    CRITICAL maps to ``Level.ERROR``: a forwarded record never terminates
    the process.
    """
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


class FieldLogHandler(logging.Handler):
    """Handler that forwards records to a fieldlog Logger.

    Includes a recursion guard so a Logger whose sink itself logs through
    ``logging`` cannot loop.
    """

    # Thread-local recursion guard to prevent infinite loops
    _local = threading.local()

    def __init__(
        self,
        logger_getter: Callable[[], Logger | None],
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a Logger accessor.

        A getter rather than a Logger so the target can follow the current
        context (``fieldlog.context.from_context``) or a replaced default.

        Args:
            logger_getter: Returns the Logger to write to, or None to drop
                the record.
            level: Minimum level to forward.
        """
        super().__init__(level)
        self._get_logger = logger_getter

    def emit(self, record: logging.LogRecord) -> None:
        """Forward one record.

        The record's logger name goes under ``data.logger``. An exception in
        ``record.exc_info`` is attached with ``with_error``. Failures are
        passed to ``handleError`` rather than raised.
        """
        if getattr(self._local, "emitting", False):
            return

        try:
            self._local.emitting = True

            log = self._get_logger()
            if log is None:
                return

            if record.exc_info and record.exc_info[1] is not None:
                log = log.with_error(record.exc_info[1])

            log.log(level_for(record.levelno), record.getMessage(), logger=record.name)
        except Exception:
            # Don't raise exceptions in logging
            self.handleError(record)
        finally:
            self._local.emitting = False
