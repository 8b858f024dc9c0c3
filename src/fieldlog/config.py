"""Logger construction and configuration.

Example:
    # Service name from the argument, everything else discovered
    log = fieldlog.new("billing")

    # Custom sink and a static envelope field
    log = fieldlog.new_with_writer(
        "billing", open("app.log", "ab"), with_field("region", "eu-west-1")
    )

    # From an explicit config (tests, embedded use)
    config = LoggerConfig.from_env()
    config.sink = buffer
    log = build_logger(config)
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fieldlog import environment
from fieldlog.emitter import Sink, StdoutSink
from fieldlog.logger import Logger

#: Injector run once at construction to extend the envelope in place.
Option = Callable[[dict[str, Any]], None]


def with_field(key: str, value: Any) -> Option:
    """Return an option adding a static field to every emitted line.

    Example:
        >>> log = new("api", with_field("region", "eu-west-1"))
        >>> log.envelope["region"]
        'eu-west-1'
    """

    def apply(envelope: dict[str, Any]) -> None:
        envelope[key] = value

    return apply


@dataclass
class LoggerConfig:
    """Settings a Logger is built from.

    Attributes:
        service_name: Written as both ``service`` and ``name``.
        release: Release identifier written as ``release``.
        host: Host name written as ``host``.
        sink: Destination of emitted lines (stdout when None).
        fields: Extra static envelope fields, applied before options.
        cpuset_path: Pseudo-file the container id is read from.
    """

    service_name: str = ""
    release: str = ""
    host: str = ""
    sink: Sink | None = None

    fields: dict[str, Any] = field(default_factory=dict)

    cpuset_path: Path = environment.DEFAULT_CPUSET_PATH

    @classmethod
    def from_env(
        cls,
        service_name: str = "",
        environ: Mapping[str, str] | None = None,
    ) -> LoggerConfig:
        """Build a config from the process environment.

        Args:
            service_name: Explicit service name. When empty,
                ``$SERVICE_NAME`` is used.
            environ: Variables to read instead of ``os.environ``.

        Returns:
            Config with service name, release and host filled in.
        """
        if environ is None:
            environ = os.environ
        return cls(
            service_name=environment.service_name(service_name, environ),
            release=environment.release(environ),
            host=environment.hostname(),
        )


def build_logger(config: LoggerConfig, *options: Option) -> Logger:
    """Create a Logger from ``config``, then apply ``options`` in order.

    Envelope order is host, release, service, name, ddtags, ``config.fields``,
    then whatever the options add.
    """
    envelope: dict[str, Any] = {
        "host": config.host,
        "release": config.release,
        "service": config.service_name,
        "name": config.service_name,
        "ddtags": environment.ddtags(config.cpuset_path),
    }
    envelope.update(config.fields)

    for option in options:
        option(envelope)

    sink = config.sink if config.sink is not None else StdoutSink()
    return Logger(sink=sink, envelope=envelope)


def new(service_name: str = "", *options: Option, sink: Sink | None = None) -> Logger:
    """Create a Logger writing to ``sink`` (standard output by default).

    Args:
        service_name: Service name; ``$SERVICE_NAME`` when empty.
        *options: Envelope injectors such as ``with_field``.
        sink: Destination of emitted lines.

    Returns:
        A Logger with no id, error or fields.
    """
    config = LoggerConfig.from_env(service_name)
    config.sink = sink
    return build_logger(config, *options)


def new_with_writer(service_name: str, sink: Sink, *options: Option) -> Logger:
    """Create a Logger writing to ``sink``."""
    return new(service_name, *options, sink=sink)
