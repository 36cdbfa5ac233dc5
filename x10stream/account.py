"""Account reducer: live orders, open positions and the current balance."""

from __future__ import annotations

from collections.abc import Iterable

from .models import AccountBalance, AccountOrder, AccountPosition, AccountView


class AccountReducer:
    """Mirror of one account's streamed state.

    Orders and positions are keyed by exchange id and hold only live entries:
    an order leaves the map as soon as it reaches a terminal status, a
    position as soon as it is closed. The balance is last-write-wins.

    Every ``apply_*`` method returns whether the change should be emitted to
    consumers. The rules differ per entity and are kept as the exchange
    stream defines them:

        orders     snapshot: quiet    delta: emit
        positions  snapshot: emit     delta: emit
        balance    snapshot: quiet    delta: emit
    """

    def __init__(self) -> None:
        self._orders: dict[int, AccountOrder] = {}
        self._positions: dict[int, AccountPosition] = {}
        self._balance: AccountBalance | None = None

    def apply_orders(self, orders: Iterable[AccountOrder], is_snapshot: bool) -> bool:
        if is_snapshot:
            self._orders.clear()
            for order in orders:
                if order.is_live:
                    self._orders[order.id] = order
            return False

        for order in orders:
            if order.is_live:
                self._orders[order.id] = order
            else:
                self._orders.pop(order.id, None)
        return True

    def apply_positions(self, positions: Iterable[AccountPosition], is_snapshot: bool) -> bool:
        if is_snapshot:
            self._positions.clear()
        for position in positions:
            if position.is_closed:
                self._positions.pop(position.id, None)
            else:
                self._positions[position.id] = position
        return True

    def apply_balance(self, balance: AccountBalance, is_snapshot: bool) -> bool:
        self._balance = balance
        return not is_snapshot

    # --- Point queries ---

    def get_orders(self) -> list[AccountOrder]:
        return list(self._orders.values())

    def get_positions(self) -> list[AccountPosition]:
        return list(self._positions.values())

    def get_balance(self) -> AccountBalance | None:
        return self._balance

    def get_position(self, market: str) -> AccountPosition | None:
        """First open position for the market, or None."""
        return next((p for p in self._positions.values() if p.market == market), None)

    def get_orders_by_market(self, market: str) -> list[AccountOrder]:
        return [o for o in self._orders.values() if o.market == market]

    def build_view(self, timestamp: int = 0, sequence: int = 0) -> AccountView:
        return AccountView(
            positions=tuple(self._positions.values()),
            orders=tuple(self._orders.values()),
            balance=self._balance,
            timestamp=timestamp,
            sequence=sequence,
        )
