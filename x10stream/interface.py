"""Abstract interface for stream sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StreamSource(ABC):
    """Contract for push-stream transports.

    A source delivers decoded JSON messages in arrival order. It knows nothing
    about order books or accounts; subscriptions own one source each and do
    all state reconstruction on top of it.

    Lifecycle:
        source = WebSocketStreamSource(url)
        await source.connect()
        while (message := await source.recv()) is not None:
            ...
        await source.close()
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying transport.

        Must be called exactly once before recv().
        """

    @abstractmethod
    async def recv(self) -> dict[str, Any] | None:
        """Wait for the next message.

        Returns the decoded JSON object, or None when the stream ended cleanly.
        Raises on transport failure. Raises RuntimeError if called before
        connect().
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the transport.

        Safe to call multiple times, and before connect().
        """

    @abstractmethod
    def is_closed(self) -> bool:
        """True when no further messages can be received."""
