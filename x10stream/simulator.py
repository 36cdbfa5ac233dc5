"""GBM-based order-book simulator, usable as an offline stream source."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from decimal import ROUND_FLOOR, Decimal
from typing import Any

import numpy as np

from .interface import StreamSource
from .seed_markets import DEFAULT_PARAMS, DEFAULT_TICK, MARKET_PARAMS, QTY_STEP, SEED_MIDS, TICK_SIZES

logger = logging.getLogger(__name__)

Ladder = dict[Decimal, Decimal]


class OrderbookSimulator:
    """Geometric Brownian Motion mid price with a ladder of resting levels.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Crypto markets never close, so dt is a fraction of a calendar year.
    Around each mid the book has ``depth`` levels per side, one tick apart,
    with exponentially distributed sizes.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600
    DEFAULT_DT = 0.5 / SECONDS_PER_YEAR

    def __init__(
        self,
        market: str,
        depth: int = 10,
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
        seed: int | None = None,
    ) -> None:
        if depth < 1:
            raise ValueError(f"depth must be positive, got {depth}")
        self._market = market
        self._depth = depth
        self._dt = dt
        self._event_prob = event_probability
        self._rng = np.random.default_rng(seed)

        params = MARKET_PARAMS.get(market, DEFAULT_PARAMS)
        self._mu = params["mu"]
        self._sigma = params["sigma"]
        self._base_qty = params["base_qty"]
        self._tick = Decimal(TICK_SIZES.get(market, DEFAULT_TICK))
        self._qty_step = Decimal(QTY_STEP)
        self._mid = SEED_MIDS.get(market, float(self._rng.uniform(50.0, 500.0)))

    @property
    def market(self) -> str:
        return self._market

    @property
    def mid(self) -> float:
        return self._mid

    def step(self) -> float:
        """Advance the mid by one time step and return it."""
        drift = (self._mu - 0.5 * self._sigma**2) * self._dt
        diffusion = self._sigma * math.sqrt(self._dt) * self._rng.standard_normal()
        self._mid *= math.exp(drift + diffusion)

        # Rare jump: 2-5% either way
        if self._rng.random() < self._event_prob:
            shock = float(self._rng.uniform(0.02, 0.05) * self._rng.choice([-1, 1]))
            self._mid *= 1 + shock
            logger.debug("Random event on %s: %.1f%%", self._market, shock * 100)

        return self._mid

    def ladder(self) -> tuple[Ladder, Ladder]:
        """Current (bids, asks) as price -> qty maps."""
        best_bid = (Decimal(repr(float(self._mid))) / self._tick).to_integral_value(ROUND_FLOOR) * self._tick
        best_ask = best_bid + self._tick

        sizes = self._rng.exponential(self._base_qty, size=2 * self._depth)
        bids: Ladder = {}
        asks: Ladder = {}
        for i in range(self._depth):
            bid_price = best_bid - i * self._tick
            if bid_price > 0:
                bids[bid_price] = self._quantize_qty(sizes[i])
            asks[best_ask + i * self._tick] = self._quantize_qty(sizes[self._depth + i])
        return bids, asks

    def _quantize_qty(self, size: float) -> Decimal:
        qty = Decimal(repr(float(size))).quantize(self._qty_step)
        return max(qty, self._qty_step)


def _diff(old: Ladder, new: Ladder) -> Ladder:
    """Relative changes turning ``old`` into ``new``."""
    changes: Ladder = {}
    for price in old.keys() | new.keys():
        change = new.get(price, Decimal(0)) - old.get(price, Decimal(0))
        if change != 0:
            changes[price] = change
    return changes


def _wire_levels(levels: Ladder) -> list[dict[str, str]]:
    return [{"p": str(price), "q": str(qty)} for price, qty in sorted(levels.items())]


class SimulatedOrderbookSource(StreamSource):
    """StreamSource producing order-book envelopes from OrderbookSimulator.

    The first message is a SNAPSHOT of the ladder; every following message,
    ``update_interval`` seconds apart, is a DELTA carrying the additive
    quantity change per level. ``max_updates`` bounds the number of deltas;
    None streams until closed.
    """

    def __init__(
        self,
        market: str,
        depth: int = 10,
        update_interval: float = 0.5,
        event_probability: float = 0.001,
        seed: int | None = None,
        max_updates: int | None = None,
    ) -> None:
        self._market = market
        self._depth = depth
        self._interval = update_interval
        self._event_prob = event_probability
        self._seed = seed
        self._max_updates = max_updates
        self._sim: OrderbookSimulator | None = None
        self._book: tuple[Ladder, Ladder] | None = None
        self._seq = 0
        self._closed = False

    async def connect(self) -> None:
        if self._sim is not None:
            raise RuntimeError(f"simulated source for {self._market} already connected")
        self._sim = OrderbookSimulator(
            market=self._market,
            depth=self._depth,
            event_probability=self._event_prob,
            seed=self._seed,
        )
        logger.info("Simulated order book started for %s (depth %d)", self._market, self._depth)

    async def recv(self) -> dict[str, Any] | None:
        if self._sim is None:
            raise RuntimeError("simulated source is not connected")
        if self._closed:
            return None

        if self._book is None:
            self._book = self._sim.ladder()
            bids, asks = self._book
            return self._envelope("SNAPSHOT", bids, asks)

        if self._max_updates is not None and self._seq > self._max_updates:
            self._closed = True
            return None

        await asyncio.sleep(self._interval)
        if self._closed:
            return None

        self._sim.step()
        old_bids, old_asks = self._book
        self._book = self._sim.ladder()
        new_bids, new_asks = self._book
        return self._envelope("DELTA", _diff(old_bids, new_bids), _diff(old_asks, new_asks))

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            logger.info("Simulated order book stopped for %s", self._market)

    def is_closed(self) -> bool:
        return self._sim is None or self._closed

    def _envelope(self, kind: str, bids: Ladder, asks: Ladder) -> dict[str, Any]:
        self._seq += 1
        return {
            "type": kind,
            "data": {"m": self._market, "b": _wire_levels(bids), "a": _wire_levels(asks)},
            "ts": int(time.time() * 1000),
            "seq": self._seq,
        }
