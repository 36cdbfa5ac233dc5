"""Order-book reducer: applies snapshot and additive delta events to level maps."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal
from operator import attrgetter
from typing import Any

from .models import OrderbookView, PriceLevel

logger = logging.getLogger(__name__)

_by_price = attrgetter("price")

# Buffered pre-snapshot deltas are logged at every multiple of this count
PENDING_WARN_THRESHOLD = 1000


def parse_orderbook_payload(data: dict[str, Any]) -> tuple[str, list[PriceLevel], list[PriceLevel]]:
    """Parse ``{"m": market, "b": [...], "a": [...]}`` into (market, bids, asks).

    Raises KeyError/TypeError/ValueError (or decimal.InvalidOperation) when the
    payload is malformed. Empty level lists are valid.
    """
    market = data["m"]
    if not market:
        raise ValueError("orderbook payload has an empty market")
    raw_bids, raw_asks = data["b"], data["a"]
    if not isinstance(raw_bids, list) or not isinstance(raw_asks, list):
        raise TypeError("orderbook levels must be lists")
    bids = [PriceLevel.from_dict(level) for level in raw_bids]
    asks = [PriceLevel.from_dict(level) for level in raw_asks]
    return market, bids, asks


class OrderbookReducer:
    """Mirror of one market's order book.

    Each side is a dict keyed by the canonical price string. Only levels with
    strictly positive quantity are stored. Deltas are relative: the incoming
    quantity is added to the stored one.

    Deltas that arrive before the first snapshot are buffered and replayed in
    receipt order right after that snapshot. Later snapshots are plain resets.
    """

    def __init__(self, market: str) -> None:
        self._market = market
        self._bids: dict[str, PriceLevel] = {}
        self._asks: dict[str, PriceLevel] = {}
        self._initialized = False
        self._pending: list[tuple[list[PriceLevel], list[PriceLevel]]] = []

    @property
    def market(self) -> str:
        return self._market

    @property
    def initialized(self) -> bool:
        """True once the first snapshot has been applied."""
        return self._initialized

    @property
    def pending_deltas(self) -> int:
        """Number of deltas waiting for the first snapshot."""
        return len(self._pending)

    def apply_snapshot(self, bids: Iterable[PriceLevel], asks: Iterable[PriceLevel]) -> bool:
        """Replace both sides wholesale. Always returns True (emit a view).

        The new state is built aside and swapped in only once complete, so an
        exception leaves the book and the pending buffer untouched.
        """
        new_bids = _levels_from(bids)
        new_asks = _levels_from(asks)

        if not self._initialized:
            if self._pending:
                logger.debug(
                    "%s: replaying %d buffered deltas after first snapshot",
                    self._market,
                    len(self._pending),
                )
            for pending_bids, pending_asks in self._pending:
                self._apply_levels(new_bids, pending_bids)
                self._apply_levels(new_asks, pending_asks)

        self._bids, self._asks = new_bids, new_asks
        if not self._initialized:
            self._initialized = True
            self._pending.clear()
        return True

    def apply_delta(self, bids: Iterable[PriceLevel], asks: Iterable[PriceLevel]) -> bool:
        """Add relative quantity changes, both sides or neither.

        Returns True when the delta was applied, False when it was buffered
        because no snapshot has been seen yet.
        """
        if not self._initialized:
            self._pending.append((list(bids), list(asks)))
            if len(self._pending) % PENDING_WARN_THRESHOLD == 0:
                logger.warning(
                    "%s: %d deltas buffered without a snapshot",
                    self._market,
                    len(self._pending),
                )
            return False
        new_bids = dict(self._bids)
        new_asks = dict(self._asks)
        self._apply_levels(new_bids, bids)
        self._apply_levels(new_asks, asks)
        self._bids, self._asks = new_bids, new_asks
        return True

    @staticmethod
    def _apply_levels(side: dict[str, PriceLevel], levels: Iterable[PriceLevel]) -> None:
        for level in levels:
            key = level.key
            existing = side.get(key)
            if existing is None:
                if level.qty > 0:
                    side[key] = level
                continue
            qty = existing.qty + level.qty
            if qty <= 0:
                del side[key]
            else:
                side[key] = PriceLevel(price=existing.price, qty=qty)

    # --- Point queries ---

    def best_bid(self) -> PriceLevel | None:
        """Highest-priced bid level, or None if the bid side is empty."""
        return max(self._bids.values(), key=_by_price, default=None)

    def best_ask(self) -> PriceLevel | None:
        """Lowest-priced ask level, or None if the ask side is empty."""
        return min(self._asks.values(), key=_by_price, default=None)

    def mid_price(self) -> Decimal | None:
        bid = self.best_bid()
        ask = self.best_ask()
        if bid is None or ask is None:
            return None
        return (bid.price + ask.price) / 2

    def build_view(self, timestamp: int = 0, sequence: int = 0) -> OrderbookView:
        """Sorted immutable view of the current levels. Never mutates state."""
        return OrderbookView(
            market=self._market,
            bids=tuple(sorted(self._bids.values(), key=_by_price, reverse=True)),
            asks=tuple(sorted(self._asks.values(), key=_by_price)),
            timestamp=timestamp,
            sequence=sequence,
        )


def _levels_from(levels: Iterable[PriceLevel]) -> dict[str, PriceLevel]:
    side: dict[str, PriceLevel] = {}
    for level in levels:
        if level.qty > 0:
            side[level.key] = level
    return side
