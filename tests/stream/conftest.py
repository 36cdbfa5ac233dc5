"""Fixtures for stream tests.

``ListStreamSource`` replays a fixed list of decoded messages so that
subscriptions can be driven deterministically without a socket.
"""

from __future__ import annotations

from typing import Any

import pytest

from x10stream.interface import StreamSource


class ListStreamSource(StreamSource):
    """In-memory StreamSource: yields ``messages`` then ends (or raises ``error``)."""

    def __init__(self, messages: list[Any], error: Exception | None = None) -> None:
        self._messages = list(messages)
        self._error = error
        self.connected = False
        self.closed = False
        self.close_calls = 0
        self.recv_calls = 0

    async def connect(self) -> None:
        self.connected = True

    async def recv(self) -> dict[str, Any] | None:
        if not self.connected:
            raise RuntimeError("not connected")
        self.recv_calls += 1
        if self._messages:
            return self._messages.pop(0)
        if self._error is not None:
            raise self._error
        return None

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True

    def is_closed(self) -> bool:
        return self.closed


@pytest.fixture
def list_source():
    """Factory for ListStreamSource instances."""
    return ListStreamSource
