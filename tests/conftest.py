"""Pytest configuration and fixtures for fieldlog tests.

Every test starts with no default Logger and with ``SERVICE_NAME`` and
``RELEASE`` unset, so tests never depend on the developer's environment or
on each other through the process-wide default instance.
"""

import pytest

from fieldlog import emitter
from fieldlog.config import LoggerConfig, build_logger
from fieldlog.default import reset_default
from tests.helpers import RecordingSink

#: 2023-11-14T22:13:20Z plus a sub-second part.
FIXED_NS = 1_700_000_000_123_456_789


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Clear fieldlog environment variables and the default Logger.

    Yields:
        None. Resets the default Logger again after the test.
    """
    monkeypatch.delenv("SERVICE_NAME", raising=False)
    monkeypatch.delenv("RELEASE", raising=False)
    reset_default()
    yield
    reset_default()


@pytest.fixture
def fixed_clock(monkeypatch):
    """Freeze the emitter clock at ``FIXED_NS``.

    Returns:
        int: The frozen epoch nanoseconds.
    """
    monkeypatch.setattr(emitter, "_clock_ns", lambda: FIXED_NS)
    return FIXED_NS


@pytest.fixture
def sink():
    """Provide a fresh RecordingSink."""
    return RecordingSink()


@pytest.fixture
def make_logger(sink, tmp_path):
    """Factory building Loggers with a fixed envelope.

    Host, release and service are fixed and the cpuset path points at a
    missing file, so envelopes are identical on every machine.

    Args:
        sink: RecordingSink fixture every Logger writes to.
        tmp_path: Pytest temporary directory.

    Returns:
        Callable[..., Logger]: ``make_logger(service_name="svc", *options)``.

    Example:
        >>> def test_example(make_logger, sink):
        ...     make_logger().info("hi")
        ...     assert sink.last["service"] == "svc"
    """

    def factory(service_name: str = "svc", *options):
        config = LoggerConfig(
            service_name=service_name,
            release="r1",
            host="test-host",
            sink=sink,
            cpuset_path=tmp_path / "missing-cpuset",
        )
        return build_logger(config, *options)

    return factory
