"""Discovery of the envelope values attached to every log line.

All lookups are best effort: a failure yields an empty value rather than an
exception, so constructing a Logger never fails because of the host it runs
on.

Environment variables:
    SERVICE_NAME: Service name used when none is passed explicitly.
    RELEASE: Release identifier (image tag, git sha, ...).
"""

from __future__ import annotations

import logging
import os
import socket
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

SERVICE_NAME_ENV = "SERVICE_NAME"
RELEASE_ENV = "RELEASE"

#: cpuset of PID 1. Inside a container its last path segment is the
#: container id (``/docker/<id>``, ``/kubepods/.../<id>``).
DEFAULT_CPUSET_PATH = Path("/proc/1/cpuset")


def hostname() -> str:
    """Return the system host name, or ``""`` if it cannot be determined."""
    try:
        return socket.gethostname()
    except OSError as e:
        logger.debug(f"Host name lookup failed: {e}")
        return ""


def release(environ: Mapping[str, str] | None = None) -> str:
    """Return the release identifier from ``$RELEASE`` (may be empty)."""
    if environ is None:
        environ = os.environ
    return environ.get(RELEASE_ENV, "")


def service_name(name: str = "", environ: Mapping[str, str] | None = None) -> str:
    """Return ``name``, falling back to ``$SERVICE_NAME`` when it is empty."""
    if name:
        return name
    if environ is None:
        environ = os.environ
    return environ.get(SERVICE_NAME_ENV, "")


def container_id(cpuset_path: Path | str = DEFAULT_CPUSET_PATH) -> str | None:
    """Read the container id from a cpuset pseudo-file.

    The file holds a cgroup path such as ``/docker/3f2a...``. The container
    id is its last segment, stripped of whitespace.

    Args:
        cpuset_path: File to read. Defaults to ``/proc/1/cpuset``.

    Returns:
        The container id, or None when the file is missing, unreadable or
        names the root cgroup (``/``), as on a bare host.

    Example:
        >>> container_id("/proc/1/cpuset")  # inside docker
        '3f2a9c...'
    """
    try:
        content = Path(cpuset_path).read_text()
    except OSError:
        return None

    cid = content.split("/")[-1].strip()
    return cid or None


def ddtags(cpuset_path: Path | str = DEFAULT_CPUSET_PATH) -> str:
    """Build the comma-joined ``key:value`` tag list for the envelope.

    Currently carries ``container_id:<id>`` when running in a container and
    is empty otherwise.
    """
    tags: list[str] = []

    cid = container_id(cpuset_path)
    if cid:
        tags.append(f"container_id:{cid}")

    return ",".join(tags)
