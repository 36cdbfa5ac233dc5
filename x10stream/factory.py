"""Factory for creating stream sources and subscriptions."""

from __future__ import annotations

import logging
import os

from .config import ENVIRONMENTS
from .interface import StreamSource
from .stream_client import PerpetualStreamClient
from .subscription import AccountSubscription, OrderbookSubscription

logger = logging.getLogger(__name__)


def _stream_client_from_env() -> PerpetualStreamClient | None:
    """Live stream client for X10_ENVIRONMENT, or None when it is unset."""
    environment = os.environ.get("X10_ENVIRONMENT", "").strip().lower()
    if not environment:
        return None
    if environment not in ENVIRONMENTS:
        raise ValueError(
            f"X10_ENVIRONMENT must be one of {sorted(ENVIRONMENTS)}, got {environment!r}"
        )
    url = os.environ.get("X10_STREAM_URL", "").strip() or ENVIRONMENTS[environment].stream_url
    return PerpetualStreamClient(api_url=url)


def create_orderbook_source(market: str, depth: int | None = None) -> StreamSource:
    """Create the order-book source selected by environment variables.

    - X10_ENVIRONMENT set to mainnet/testnet → WebSocketStreamSource
      (X10_STREAM_URL overrides the environment's stream URL)
    - Otherwise → SimulatedOrderbookSource (GBM simulation)

    Returns an unconnected source.
    """
    client = _stream_client_from_env()
    if client is not None:
        logger.info("Order book source for %s: live stream %s", market, client.api_url)
        return client.subscribe_to_orderbooks(market, depth)

    from .simulator import SimulatedOrderbookSource

    logger.info("Order book source for %s: GBM simulator", market)
    return SimulatedOrderbookSource(market=market, depth=depth or 10)


def create_orderbook_subscription(market: str, depth: int | None = None) -> OrderbookSubscription:
    """Unconnected order-book subscription on the environment-selected source."""
    return OrderbookSubscription(create_orderbook_source(market, depth), market)


def create_account_subscription() -> AccountSubscription:
    """Unconnected account subscription using X10_ENVIRONMENT and X10_API_KEY.

    There is no simulated account stream, so both variables are required.
    """
    client = _stream_client_from_env()
    if client is None:
        raise ValueError("X10_ENVIRONMENT must be set for account subscriptions")
    api_key = os.environ.get("X10_API_KEY", "").strip()
    if not api_key:
        raise ValueError("X10_API_KEY must be set for account subscriptions")
    return client.account_subscription(api_key)
