"""Test helpers for fieldlog.

Example:
    from tests.helpers import RecordingSink

    def test_something():
        sink = RecordingSink()
        fieldlog.new("svc", sink=sink).info("hello")
        assert sink.last["message"] == "hello"
"""

from __future__ import annotations

import json
from typing import Any


class RecordingSink:
    """Byte sink recording every write.

    Mirrors a minimal writer: ``write`` and ``close`` only, no ``flush``.
    Writing after ``close`` raises ``ValueError``.
    """

    def __init__(self) -> None:
        self.writes: list[bytes] = []
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("can't write to a closed writer")
        self.writes.append(data)
        return len(data)

    def close(self) -> None:
        self.closed = True

    @property
    def raw(self) -> str:
        """Everything written so far, decoded."""
        return b"".join(self.writes).decode("utf-8")

    @property
    def events(self) -> list[dict[str, Any]]:
        """Each written line parsed as JSON."""
        return [json.loads(w) for w in self.writes]

    @property
    def last(self) -> dict[str, Any]:
        """The most recent line parsed as JSON."""
        return json.loads(self.writes[-1])
