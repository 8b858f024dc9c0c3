"""fieldlog: immutable structured JSON logging.

Example:
    import fieldlog

    log = fieldlog.new("billing")
    log = log.with_id(request_id).with_data({"customer": customer_id})
    log.info("invoice sent", {"invoice": 17})

    try:
        charge()
    except PaymentError as exc:
        log.with_error(fieldlog.with_stack(exc)).error("charge failed")

    # Module-level shortcuts use the process-wide default Logger
    fieldlog.info("cache warmed", entries=1024)
"""

from fieldlog.config import (
    LoggerConfig,
    Option,
    build_logger,
    new,
    new_with_writer,
    with_field,
)
from fieldlog.context import bind, from_context
from fieldlog.default import (
    debug,
    error,
    fatal,
    get_default,
    info,
    reset_default,
    root,
    set_default,
    warn,
    warning,
)
from fieldlog.emitter import Level, Sink, StdoutSink
from fieldlog.errors import StackTracer, TracedError, with_stack
from fieldlog.fields import Data
from fieldlog.handler import FieldLogHandler
from fieldlog.logger import Logger

__version__ = "0.1.0"

__all__ = [
    # Logger
    "Data",
    "Level",
    "Logger",
    # Construction
    "LoggerConfig",
    "Option",
    "Sink",
    "StdoutSink",
    "build_logger",
    "new",
    "new_with_writer",
    "with_field",
    # Errors
    "StackTracer",
    "TracedError",
    "with_stack",
    # Default instance
    "debug",
    "error",
    "fatal",
    "get_default",
    "info",
    "reset_default",
    "root",
    "set_default",
    "warn",
    "warning",
    # Bridges
    "FieldLogHandler",
    # Context
    "bind",
    "from_context",
]
