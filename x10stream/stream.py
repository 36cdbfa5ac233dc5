"""SSE streaming endpoint for live order-book views."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator, Callable

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .subscription import OrderbookSubscription

logger = logging.getLogger(__name__)


def create_stream_router(
    subscription_factory: Callable[[str], OrderbookSubscription],
) -> APIRouter:
    """Create the SSE streaming router.

    ``subscription_factory(market)`` must return a new, unconnected
    subscription. Every client connection gets its own, since a subscription
    serves exactly one consumer.
    """
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/orderbook/{market}")
    async def stream_orderbook(market: str, request: Request) -> StreamingResponse:
        """SSE endpoint for the full order book of one market.

        Each event carries the complete book after one change:

            data: {"market": "BTC-USD", "bids": [...], "asks": [...], ...}
        """
        return StreamingResponse(
            _generate_events(subscription_factory(market), request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    subscription: OrderbookSubscription,
    request: Request,
) -> AsyncGenerator[str, None]:
    """Async generator that yields one SSE event per order-book view.

    Stops when the client disconnects or the stream ends; the subscription is
    closed either way.
    """
    # Tell the client to retry after 1 second if the connection drops
    yield "retry: 1000\n\n"

    client_ip = request.client.host if request.client else "unknown"
    logger.info("SSE client %s subscribed to %s", client_ip, subscription.market)

    try:
        try:
            await subscription.connect()
        except Exception as e:
            logger.error("Order book stream for %s could not connect: %s", subscription.market, e)
            return
        async for view in subscription:
            if await request.is_disconnected():
                logger.info("SSE client disconnected: %s", client_ip)
                break
            yield f"data: {json.dumps(view.to_dict())}\n\n"
    finally:
        await subscription.close()
        if subscription.last_error is not None:
            logger.warning(
                "Order book stream for %s failed: %s", subscription.market, subscription.last_error
            )
