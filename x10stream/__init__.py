"""Local mirror of exchange order books and account state from push streams.

Public API:
    OrderbookSubscription  - Full order book of one market, rebuilt from SNAPSHOT/DELTA events
    AccountSubscription    - Live orders, open positions and balance of one account
    OrderbookView          - Immutable sorted book emitted per change
    AccountView            - Immutable account state emitted per change
    StreamSource           - Abstract interface for stream transports
    WebSocketStreamSource  - Live websocket transport
    SimulatedOrderbookSource - Offline GBM order-book stream
    PerpetualStreamClient  - Stream URL builder for all exchange streams
    create_orderbook_subscription - Factory that selects live stream or simulator
    create_stream_router   - FastAPI router factory for the SSE endpoint
"""

__version__ = "0.1.0"

from .account import AccountReducer
from .config import MAINNET_CONFIG, TESTNET_CONFIG, EndpointConfig
from .envelope import Envelope, EnvelopeType
from .factory import create_account_subscription, create_orderbook_source, create_orderbook_subscription
from .interface import StreamSource
from .models import (
    AccountBalance,
    AccountOrder,
    AccountPosition,
    AccountView,
    OrderbookView,
    OrderStatus,
    PositionStatus,
    PriceLevel,
)
from .orderbook import OrderbookReducer
from .simulator import SimulatedOrderbookSource
from .stream import create_stream_router
from .stream_client import PerpetualStreamClient
from .subscription import AccountSubscription, OrderbookSubscription, Subscription, SubscriptionState
from .websocket_source import WebSocketStreamSource

__all__ = [
    "AccountBalance",
    "AccountOrder",
    "AccountPosition",
    "AccountReducer",
    "AccountSubscription",
    "AccountView",
    "EndpointConfig",
    "Envelope",
    "EnvelopeType",
    "MAINNET_CONFIG",
    "OrderbookReducer",
    "OrderbookSubscription",
    "OrderbookView",
    "OrderStatus",
    "PerpetualStreamClient",
    "PositionStatus",
    "PriceLevel",
    "SimulatedOrderbookSource",
    "StreamSource",
    "Subscription",
    "SubscriptionState",
    "TESTNET_CONFIG",
    "WebSocketStreamSource",
    "create_account_subscription",
    "create_orderbook_source",
    "create_orderbook_subscription",
    "create_stream_router",
]
