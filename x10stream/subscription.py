"""Subscriptions: a stream source plus a reducer, exposed as a stream of full views."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Generic, TypeVar

from .account import AccountReducer
from .envelope import Envelope, EnvelopeType
from .interface import StreamSource
from .models import (
    AccountBalance,
    AccountOrder,
    AccountPosition,
    AccountView,
    OrderbookView,
    PriceLevel,
)
from .orderbook import OrderbookReducer, parse_orderbook_payload

logger = logging.getLogger(__name__)

ViewT = TypeVar("ViewT")

# Raised while parsing a payload; the event is skipped and the stream goes on
MALFORMED_PAYLOAD_ERRORS = (KeyError, TypeError, ValueError, InvalidOperation)


class SubscriptionState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    CLOSED = "closed"


class Subscription(ABC, Generic[ViewT]):
    """Owns one stream source and one reducer.

    Usage:
        sub = OrderbookSubscription(source, "BTC-USD")
        await sub.connect()
        async for view in sub:
            ...
        await sub.close()

    Iterating yields one immutable view per emitted change. Iteration ends,
    without raising, when the source is exhausted, when close() is called, or
    when the transport fails. A failure is kept in ``last_error`` so callers
    can tell "ended" from "failed".
    """

    def __init__(self, source: StreamSource) -> None:
        self._source = source
        self._state = SubscriptionState.UNCONNECTED
        self._last_timestamp: int = 0
        self._last_sequence: int = 0
        self._last_error: Exception | None = None
        self._handlers: dict[EnvelopeType, Callable[[Envelope], bool]] = {}

    # --- Lifecycle ---

    async def connect(self):
        """Acquire the stream source. Returns self.

        Raises RuntimeError if called more than once.
        """
        if self._state is not SubscriptionState.UNCONNECTED:
            raise RuntimeError(f"connect() called on a {self._state.value} subscription")
        await self._source.connect()
        self._state = SubscriptionState.CONNECTED
        logger.info("%s connected", self._name)
        return self

    async def close(self) -> None:
        """Release the source. Safe to call multiple times and from any state."""
        if self._state is SubscriptionState.CLOSED:
            return
        self._state = SubscriptionState.CLOSED
        await self._source.close()
        logger.info("%s closed", self._name)

    def is_closed(self) -> bool:
        """True after close(), or once a connected source has shut down."""
        if self._state is SubscriptionState.CLOSED:
            return True
        return self._state is SubscriptionState.CONNECTED and self._source.is_closed()

    async def __aenter__(self):
        return await self.connect()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def last_timestamp(self) -> int:
        return self._last_timestamp

    @property
    def last_sequence(self) -> int:
        return self._last_sequence

    @property
    def last_error(self) -> Exception | None:
        """Transport error that ended the last iteration, or None."""
        return self._last_error

    # --- Consumption ---

    def __aiter__(self) -> AsyncIterator[ViewT]:
        if self._state is SubscriptionState.UNCONNECTED:
            raise RuntimeError("connect() must be called before iterating a subscription")
        return self._views()

    async def _views(self) -> AsyncIterator[ViewT]:
        while not self.is_closed():
            try:
                raw = await self._source.recv()
            except Exception as e:
                if self._state is SubscriptionState.CLOSED:
                    logger.info("%s: receive interrupted by close()", self._name)
                else:
                    self._last_error = e
                    logger.error("%s: stream failed: %s", self._name, e)
                break

            if raw is None:
                logger.info("%s: stream ended", self._name)
                break

            if self.process(raw):
                yield self.build_view()

    def process(self, raw: dict[str, Any]) -> bool:
        """Apply one decoded message. Returns True when a view should be emitted.

        Sequencing metadata is taken from every well-formed envelope, whether
        or not its payload is applied.
        """
        try:
            envelope = Envelope.from_dict(raw)
        except TypeError as e:
            logger.warning("%s: skipping non-object message: %s", self._name, e)
            return False

        if envelope.ts is not None:
            self._last_timestamp = envelope.ts
        if envelope.seq is not None:
            self._last_sequence = envelope.seq

        if envelope.error:
            logger.warning("%s: server error on stream: %s", self._name, envelope.error)
            return False

        handler = self._handlers.get(envelope.type)
        if handler is None or envelope.data is None:
            return False

        try:
            return handler(envelope)
        except MALFORMED_PAYLOAD_ERRORS as e:
            logger.warning(
                "%s: skipping malformed %s payload (seq=%s): %r",
                self._name,
                envelope.type.value,
                envelope.seq,
                e,
            )
            return False

    @abstractmethod
    def build_view(self) -> ViewT:
        """Immutable view of the current state, stamped with the last ts/seq."""

    @property
    def _name(self) -> str:
        return type(self).__name__


class OrderbookSubscription(Subscription[OrderbookView]):
    """Full order book for one market, rebuilt from SNAPSHOT and DELTA events."""

    def __init__(self, source: StreamSource, market: str) -> None:
        super().__init__(source)
        self._book = OrderbookReducer(market)
        self._handlers = {
            EnvelopeType.SNAPSHOT: self._on_snapshot,
            EnvelopeType.DELTA: self._on_delta,
        }

    @property
    def market(self) -> str:
        return self._book.market

    def _on_snapshot(self, envelope: Envelope) -> bool:
        _, bids, asks = parse_orderbook_payload(envelope.data)
        return self._book.apply_snapshot(bids, asks)

    def _on_delta(self, envelope: Envelope) -> bool:
        _, bids, asks = parse_orderbook_payload(envelope.data)
        return self._book.apply_delta(bids, asks)

    def build_view(self) -> OrderbookView:
        return self._book.build_view(self._last_timestamp, self._last_sequence)

    def best_bid(self) -> PriceLevel | None:
        return self._book.best_bid()

    def best_ask(self) -> PriceLevel | None:
        return self._book.best_ask()

    def mid_price(self) -> Decimal | None:
        return self._book.mid_price()

    @property
    def _name(self) -> str:
        return f"OrderbookSubscription[{self._book.market}]"


class AccountSubscription(Subscription[AccountView]):
    """Live orders, open positions and balance of one account."""

    def __init__(self, source: StreamSource) -> None:
        super().__init__(source)
        self._account = AccountReducer()
        self._handlers = {
            EnvelopeType.ORDER: self._on_orders,
            EnvelopeType.POSITION: self._on_positions,
            EnvelopeType.BALANCE: self._on_balance,
        }

    def _on_orders(self, envelope: Envelope) -> bool:
        orders = [AccountOrder.from_dict(o) for o in envelope.data.get("orders") or []]
        return self._account.apply_orders(orders, envelope.is_snapshot_payload)

    def _on_positions(self, envelope: Envelope) -> bool:
        positions = [AccountPosition.from_dict(p) for p in envelope.data.get("positions") or []]
        return self._account.apply_positions(positions, envelope.is_snapshot_payload)

    def _on_balance(self, envelope: Envelope) -> bool:
        raw = envelope.data.get("balance")
        if raw is None:
            return False
        balance = AccountBalance.from_dict(raw)
        return self._account.apply_balance(balance, envelope.is_snapshot_payload)

    def build_view(self) -> AccountView:
        return self._account.build_view(self._last_timestamp, self._last_sequence)

    def get_orders(self) -> list[AccountOrder]:
        return self._account.get_orders()

    def get_positions(self) -> list[AccountPosition]:
        return self._account.get_positions()

    def get_balance(self) -> AccountBalance | None:
        return self._account.get_balance()

    def get_position(self, market: str) -> AccountPosition | None:
        return self._account.get_position(market)

    def get_orders_by_market(self, market: str) -> list[AccountOrder]:
        return self._account.get_orders_by_market(market)
