"""Data models for mirrored exchange state."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


def to_decimal(value: Any) -> Decimal:
    """Parse a wire number (usually a string) without going through float.

    NaN and infinities are rejected: they cannot be ordered against prices.
    """
    if value is None or isinstance(value, bool):
        raise TypeError(f"expected a decimal value, got {value!r}")
    d = Decimal(str(value))
    if not d.is_finite():
        raise ValueError(f"expected a finite decimal value, got {value!r}")
    return d


def _optional_decimal(raw: dict[str, Any], key: str) -> Decimal | None:
    value = raw.get(key)
    return None if value is None else to_decimal(value)


def _str_or_none(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def price_key(price: Decimal) -> str:
    """Canonical map key for a price: ``100``, ``100.0`` and ``1E+2`` collide."""
    return format(price.normalize(), "f")


class OrderStatus(str, Enum):
    UNKNOWN = "UNKNOWN"
    NEW = "NEW"
    UNTRIGGERED = "UNTRIGGERED"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"
    REJECTED = "REJECTED"

    @classmethod
    def parse(cls, value: Any) -> OrderStatus:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


# Orders in any other status are terminal and never kept in the live set
LIVE_ORDER_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.NEW, OrderStatus.UNTRIGGERED, OrderStatus.PARTIALLY_FILLED}
)


class PositionStatus(str, Enum):
    OPENED = "OPENED"
    CLOSED = "CLOSED"


@dataclass(frozen=True, slots=True)
class PriceLevel:
    """One price/quantity pair on one side of an order book."""

    price: Decimal
    qty: Decimal

    @property
    def key(self) -> str:
        return price_key(self.price)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PriceLevel:
        """Parse the compact wire form ``{"p": "100.5", "q": "2"}``."""
        return cls(price=to_decimal(raw["p"]), qty=to_decimal(raw["q"]))

    def to_dict(self) -> dict:
        return {"price": str(self.price), "qty": str(self.qty)}


@dataclass(frozen=True, slots=True)
class AccountOrder:
    """A working order on the account, keyed by the exchange-assigned id."""

    id: int
    market: str
    status: OrderStatus
    side: str = ""
    type: str = ""
    price: Decimal | None = None
    qty: Decimal | None = None
    filled_qty: Decimal | None = None
    cancelled_qty: Decimal | None = None
    external_id: str = ""
    account_id: int | None = None
    reduce_only: bool = False
    post_only: bool = False
    time_in_force: str = ""
    created_time: int = 0
    updated_time: int = 0

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_ORDER_STATUSES

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AccountOrder:
        """Parse an order from the account stream.

        ``id``, ``market`` and ``status`` are required; a missing one raises
        KeyError so the whole event can be skipped as malformed.
        """
        return cls(
            id=int(raw["id"]),
            market=str(raw["market"]),
            status=OrderStatus.parse(raw["status"]),
            side=raw.get("side", ""),
            type=raw.get("type", ""),
            price=_optional_decimal(raw, "price"),
            qty=_optional_decimal(raw, "qty"),
            filled_qty=_optional_decimal(raw, "filledQty"),
            cancelled_qty=_optional_decimal(raw, "cancelledQty"),
            external_id=raw.get("externalId", ""),
            account_id=raw.get("accountId"),
            reduce_only=bool(raw.get("reduceOnly", False)),
            post_only=bool(raw.get("postOnly", False)),
            time_in_force=raw.get("timeInForce", ""),
            created_time=raw.get("createdTime") or 0,
            updated_time=raw.get("updatedTime") or 0,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "market": self.market,
            "status": self.status.value,
            "side": self.side,
            "type": self.type,
            "price": _str_or_none(self.price),
            "qty": _str_or_none(self.qty),
            "filled_qty": _str_or_none(self.filled_qty),
            "cancelled_qty": _str_or_none(self.cancelled_qty),
            "external_id": self.external_id,
            "account_id": self.account_id,
            "reduce_only": self.reduce_only,
            "post_only": self.post_only,
            "time_in_force": self.time_in_force,
            "created_time": self.created_time,
            "updated_time": self.updated_time,
        }


@dataclass(frozen=True, slots=True)
class AccountPosition:
    """An open position, keyed by the exchange-assigned id."""

    id: int
    market: str
    status: str
    side: str = ""
    size: Decimal | None = None
    value: Decimal | None = None
    leverage: Decimal | None = None
    open_price: Decimal | None = None
    mark_price: Decimal | None = None
    liquidation_price: Decimal | None = None
    margin: Decimal | None = None
    unrealised_pnl: Decimal | None = None
    realised_pnl: Decimal | None = None
    account_id: int | None = None
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_closed(self) -> bool:
        return self.status == PositionStatus.CLOSED

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AccountPosition:
        return cls(
            id=int(raw["id"]),
            market=str(raw["market"]),
            status=str(raw["status"]),
            side=raw.get("side", ""),
            size=_optional_decimal(raw, "size"),
            value=_optional_decimal(raw, "value"),
            leverage=_optional_decimal(raw, "leverage"),
            open_price=_optional_decimal(raw, "openPrice"),
            mark_price=_optional_decimal(raw, "markPrice"),
            liquidation_price=_optional_decimal(raw, "liquidationPrice"),
            margin=_optional_decimal(raw, "margin"),
            unrealised_pnl=_optional_decimal(raw, "unrealisedPnl"),
            realised_pnl=_optional_decimal(raw, "realisedPnl"),
            account_id=raw.get("accountId"),
            created_at=raw.get("createdAt") or 0,
            updated_at=raw.get("updatedAt") or 0,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "market": self.market,
            "status": self.status,
            "side": self.side,
            "size": _str_or_none(self.size),
            "value": _str_or_none(self.value),
            "leverage": _str_or_none(self.leverage),
            "open_price": _str_or_none(self.open_price),
            "mark_price": _str_or_none(self.mark_price),
            "liquidation_price": _str_or_none(self.liquidation_price),
            "margin": _str_or_none(self.margin),
            "unrealised_pnl": _str_or_none(self.unrealised_pnl),
            "realised_pnl": _str_or_none(self.realised_pnl),
            "account_id": self.account_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True, slots=True)
class AccountBalance:
    """Collateral balance of the account. Each update replaces the last one."""

    collateral_name: str = ""
    balance: Decimal | None = None
    status: str = ""
    equity: Decimal | None = None
    available_for_trade: Decimal | None = None
    available_for_withdrawal: Decimal | None = None
    unrealised_pnl: Decimal | None = None
    initial_margin: Decimal | None = None
    margin_ratio: Decimal | None = None
    exposure: Decimal | None = None
    leverage: Decimal | None = None
    updated_time: int = 0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AccountBalance:
        if not isinstance(raw, dict):
            raise TypeError(f"balance must be a JSON object, got {type(raw).__name__}")
        return cls(
            collateral_name=raw.get("collateralName", ""),
            balance=_optional_decimal(raw, "balance"),
            status=raw.get("status", ""),
            equity=_optional_decimal(raw, "equity"),
            available_for_trade=_optional_decimal(raw, "availableForTrade"),
            available_for_withdrawal=_optional_decimal(raw, "availableForWithdrawal"),
            unrealised_pnl=_optional_decimal(raw, "unrealisedPnl"),
            initial_margin=_optional_decimal(raw, "initialMargin"),
            margin_ratio=_optional_decimal(raw, "marginRatio"),
            exposure=_optional_decimal(raw, "exposure"),
            leverage=_optional_decimal(raw, "leverage"),
            updated_time=raw.get("updatedTime") or 0,
        )

    def to_dict(self) -> dict:
        return {
            "collateral_name": self.collateral_name,
            "balance": _str_or_none(self.balance),
            "status": self.status,
            "equity": _str_or_none(self.equity),
            "available_for_trade": _str_or_none(self.available_for_trade),
            "available_for_withdrawal": _str_or_none(self.available_for_withdrawal),
            "unrealised_pnl": _str_or_none(self.unrealised_pnl),
            "initial_margin": _str_or_none(self.initial_margin),
            "margin_ratio": _str_or_none(self.margin_ratio),
            "exposure": _str_or_none(self.exposure),
            "leverage": _str_or_none(self.leverage),
            "updated_time": self.updated_time,
        }


@dataclass(frozen=True, slots=True)
class OrderbookView:
    """Immutable full view of one market's book at a point in the stream.

    Bids are sorted by descending price, asks by ascending price.
    """

    market: str
    bids: tuple[PriceLevel, ...] = ()
    asks: tuple[PriceLevel, ...] = ()
    timestamp: int = 0
    sequence: int = 0

    @property
    def best_bid(self) -> PriceLevel | None:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> PriceLevel | None:
        return self.asks[0] if self.asks else None

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "market": self.market,
            "bids": [level.to_dict() for level in self.bids],
            "asks": [level.to_dict() for level in self.asks],
            "timestamp": self.timestamp,
            "sequence": self.sequence,
        }


@dataclass(frozen=True, slots=True)
class AccountView:
    """Immutable full view of the account: live positions, live orders, balance."""

    positions: tuple[AccountPosition, ...] = ()
    orders: tuple[AccountOrder, ...] = ()
    balance: AccountBalance | None = None
    timestamp: int = 0
    sequence: int = 0

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "positions": [p.to_dict() for p in self.positions],
            "orders": [o.to_dict() for o in self.orders],
            "balance": self.balance.to_dict() if self.balance else None,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
        }
