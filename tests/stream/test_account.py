"""Tests for AccountReducer."""

from decimal import Decimal

from x10stream.account import AccountReducer
from x10stream.models import AccountBalance, AccountOrder, AccountPosition


def order(order_id, status="NEW", market="BTC-USD", **extra):
    return AccountOrder.from_dict({"id": order_id, "market": market, "status": status, **extra})


def position(position_id, market, status="OPENED", size="1"):
    return AccountPosition.from_dict(
        {"id": position_id, "market": market, "status": status, "size": size}
    )


class TestOrders:
    """Unit tests for live-order tracking."""

    def test_snapshot_keeps_only_live(self):
        """Test that an order snapshot never inserts terminal orders."""
        account = AccountReducer()
        account.apply_orders(
            [order(1, "NEW"), order(2, "FILLED"), order(3, "UNTRIGGERED"), order(4, "CANCELLED"),
             order(5, "PARTIALLY_FILLED")],
            is_snapshot=True,
        )
        assert sorted(o.id for o in account.get_orders()) == [1, 3, 5]

    def test_snapshot_clears_previous(self):
        """Test that an order snapshot replaces the live set."""
        account = AccountReducer()
        account.apply_orders([order(1)], is_snapshot=True)
        account.apply_orders([order(2)], is_snapshot=True)
        assert [o.id for o in account.get_orders()] == [2]

    def test_snapshot_is_quiet(self):
        """Test that an order snapshot does not emit."""
        assert AccountReducer().apply_orders([order(1)], is_snapshot=True) is False

    def test_delta_inserts_and_updates(self):
        """Test that a live delta inserts, then replaces by id."""
        account = AccountReducer()
        assert account.apply_orders([order(1, qty="1")], is_snapshot=False) is True
        account.apply_orders([order(1, "PARTIALLY_FILLED", qty="1", filledQty="0.5")], is_snapshot=False)
        (only,) = account.get_orders()
        assert only.filled_qty == Decimal("0.5")

    def test_terminal_delta_removes(self):
        """Test that a terminal status removes the order."""
        account = AccountReducer()
        account.apply_orders([order(1), order(2)], is_snapshot=True)
        account.apply_orders([order(1, "FILLED")], is_snapshot=False)
        assert [o.id for o in account.get_orders()] == [2]

    def test_terminal_delta_for_unseen_order(self):
        """Test that a FILLED delta for an unknown id leaves it absent."""
        account = AccountReducer()
        assert account.apply_orders([order(9, "FILLED")], is_snapshot=False) is True
        assert account.get_orders() == []

    def test_orders_by_market(self):
        """Test filtering live orders by market."""
        account = AccountReducer()
        account.apply_orders(
            [order(1, market="BTC-USD"), order(2, market="ETH-USD"), order(3, market="BTC-USD")],
            is_snapshot=False,
        )
        assert [o.id for o in account.get_orders_by_market("BTC-USD")] == [1, 3]
        assert account.get_orders_by_market("SOL-USD") == []


class TestPositions:
    """Unit tests for open-position tracking."""

    def test_snapshot_skips_closed_and_emits(self):
        """Test that a position snapshot drops closed entries and emits."""
        account = AccountReducer()
        emitted = account.apply_positions(
            [position(1, "BTC-USD"), position(2, "ETH-USD", "CLOSED")], is_snapshot=True
        )
        assert emitted is True
        assert [p.id for p in account.get_positions()] == [1]

    def test_snapshot_clears_previous(self):
        """Test that a position snapshot replaces the open set."""
        account = AccountReducer()
        account.apply_positions([position(1, "BTC-USD")], is_snapshot=True)
        account.apply_positions([position(2, "ETH-USD")], is_snapshot=True)
        assert [p.id for p in account.get_positions()] == [2]

    def test_delta_closes_position(self):
        """Test that a closing delta removes only that position."""
        account = AccountReducer()
        account.apply_positions([position(1, "BTC-USD"), position(2, "ETH-USD")], is_snapshot=True)
        eth_before = account.get_position("ETH-USD")

        assert account.apply_positions([position(1, "BTC-USD", "CLOSED")], is_snapshot=False) is True
        assert account.get_position("BTC-USD") is None
        assert account.get_position("ETH-USD") is eth_before
        assert len(account.build_view().positions) == 1

    def test_delta_updates_position(self):
        """Test that an open delta replaces the position by id."""
        account = AccountReducer()
        account.apply_positions([position(1, "BTC-USD", size="1")], is_snapshot=False)
        account.apply_positions([position(1, "BTC-USD", size="3")], is_snapshot=False)
        assert account.get_position("BTC-USD").size == Decimal("3")

    def test_get_position_unknown_market(self):
        """Test that an unknown market returns None."""
        assert AccountReducer().get_position("BTC-USD") is None


class TestBalance:
    """Unit tests for balance handling."""

    def test_last_write_wins(self):
        """Test that each balance replaces the previous one."""
        account = AccountReducer()
        account.apply_balance(AccountBalance(balance=Decimal(10), equity=Decimal(12)), is_snapshot=True)
        account.apply_balance(AccountBalance(balance=Decimal(20)), is_snapshot=False)
        assert account.get_balance() == AccountBalance(balance=Decimal(20))

    def test_emission(self):
        """Test that a balance snapshot is quiet and a balance delta emits."""
        account = AccountReducer()
        assert account.apply_balance(AccountBalance(), is_snapshot=True) is False
        assert account.apply_balance(AccountBalance(), is_snapshot=False) is True


class TestAccountView:
    """Unit tests for account view building."""

    def test_empty_view(self):
        """Test the view before any data."""
        view = AccountReducer().build_view()
        assert view.positions == ()
        assert view.orders == ()
        assert view.balance is None

    def test_view_contents(self):
        """Test that the view combines all three entities."""
        account = AccountReducer()
        account.apply_orders([order(1)], is_snapshot=True)
        account.apply_positions([position(2, "ETH-USD")], is_snapshot=True)
        account.apply_balance(AccountBalance(balance=Decimal(5)), is_snapshot=True)
        view = account.build_view(timestamp=100, sequence=7)
        assert [o.id for o in view.orders] == [1]
        assert [p.id for p in view.positions] == [2]
        assert view.balance.balance == Decimal(5)
        assert (view.timestamp, view.sequence) == (100, 7)
        assert view == account.build_view(timestamp=100, sequence=7)
