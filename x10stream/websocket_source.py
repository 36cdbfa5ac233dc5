"""WebSocket transport for the exchange push streams."""

from __future__ import annotations

import json
import logging
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosedOK
from websockets.protocol import State

from .config import API_KEY_HEADER, USER_AGENT
from .interface import StreamSource

logger = logging.getLogger(__name__)


class WebSocketStreamSource(StreamSource):
    """StreamSource over one websocket connection.

    The server pings every 15s and expects a pong within 10s; the websockets
    library answers pings on its own. There is no reconnect: when the socket
    goes away the source is closed and a new one must be created.
    """

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        ping_interval: float | None = 20.0,
        ping_timeout: float | None = 10.0,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._ws: ClientConnection | None = None
        self._msgs_count = 0

    @property
    def url(self) -> str:
        return self._url

    @property
    def msgs_count(self) -> int:
        """Number of frames received so far, decodable or not."""
        return self._msgs_count

    async def connect(self) -> None:
        if self._ws is not None:
            raise RuntimeError(f"already connected to {self._url}")
        headers = {API_KEY_HEADER: self._api_key} if self._api_key else None
        self._ws = await connect(
            self._url,
            additional_headers=headers,
            user_agent_header=USER_AGENT,
            ping_interval=self._ping_interval,
            ping_timeout=self._ping_timeout,
        )
        logger.info("Connected to stream %s", self._url)

    async def recv(self) -> dict[str, Any] | None:
        if self._ws is None:
            raise RuntimeError("WebSocket is not connected")
        while True:
            try:
                frame = await self._ws.recv()
            except ConnectionClosedOK:
                logger.info("Stream %s closed by peer", self._url)
                return None
            self._msgs_count += 1
            try:
                return json.loads(frame)
            except ValueError as e:
                logger.warning("Skipping undecodable frame from %s: %s", self._url, e)

    async def close(self) -> None:
        if self._ws is not None and self._ws.state is not State.CLOSED:
            await self._ws.close()
            logger.info("Stream %s closed", self._url)

    def is_closed(self) -> bool:
        return self._ws is None or self._ws.state is State.CLOSED
