"""Integration tests for the CreateOrder use case.

Uses in-memory fakes for the store and both remote collaborators.
"""

from decimal import Decimal

import pytest

from orderhub.application.create_order import CreateOrderHandler
from orderhub.application.dto import OrderItemSpec
from orderhub.domain.exceptions import (
    IdentityNotFoundError,
    IdentityUnavailableError,
    InsufficientStockError,
    InvalidRequestError,
    InventoryRejectedError,
    InventoryUnavailableError,
    PersistenceError,
    ProductNotFoundError,
)
from tests.fakes import (
    FakeIdentityClient,
    FakeInventoryClient,
    FakeOrderStore,
    make_product,
)


def _setup(compensate: bool = True):
    """Build handler with fakes: user U1, P1 {10.50 x100}, P2 {25.00 x50}."""
    store = FakeOrderStore()
    identity = FakeIdentityClient(["U1", "U2"])
    inventory = FakeInventoryClient([
        make_product("P1", "10.50", 100, name="Widget"),
        make_product("P2", "25.00", 50, name="Gadget"),
    ])
    handler = CreateOrderHandler(store, identity, inventory, compensate_on_failure=compensate)
    return handler, store, identity, inventory


class TestCreateOrderHappyPath:

    def test_two_line_order(self):
        handler, store, _, inventory = _setup()

        dto = handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("P2", 1)])

        assert dto.total == Decimal("46.00")
        assert dto.status == "pending"
        assert dto.user_id == "U1"
        assert len(dto.items) == 2
        assert inventory.quantity("P1") == 98
        assert inventory.quantity("P2") == 49
        assert store.count() == 1

    def test_total_matches_items(self):
        handler, store, _, _ = _setup()

        dto = handler.handle("U1", [OrderItemSpec("P1", 3), OrderItemSpec("P2", 2)])

        assert dto.total == sum(item.price * item.quantity for item in dto.items)
        stored = store.load_order_with_items(dto.id)
        assert stored.total == stored.computed_total

    def test_items_keep_request_order_and_snapshot_price(self):
        handler, _, _, _ = _setup()

        dto = handler.handle("U1", [OrderItemSpec("P2", 1), OrderItemSpec("P1", 4)])

        assert [item.product_id for item in dto.items] == ["P2", "P1"]
        assert [item.price for item in dto.items] == [Decimal("25.00"), Decimal("10.50")]
        assert dto.items[1].product.name == "Widget"

    def test_lines_processed_in_input_order(self):
        handler, _, _, inventory = _setup()

        handler.handle("U1", [OrderItemSpec("P2", 1), OrderItemSpec("P1", 1)])

        assert inventory.calls[:4] == [
            ("fetch", "P2"),
            ("apply_delta", "P2", -1),
            ("fetch", "P1"),
            ("apply_delta", "P1", -1),
        ]

    def test_resolves_identity_once(self):
        handler, _, identity, _ = _setup()
        handler.handle("U1", [OrderItemSpec("P1", 1), OrderItemSpec("P2", 1)])
        assert identity.calls == ["U1"]

    def test_snapshot_price_rounded_to_cents(self):
        handler, _, _, inventory = _setup()
        inventory.set_price("P1", "3.333")

        dto = handler.handle("U1", [OrderItemSpec("P1", 3)])

        assert dto.items[0].price == Decimal("3.33")
        assert dto.total == Decimal("9.99")


class TestCreateOrderStockBoundary:

    def test_exact_available_quantity_succeeds(self):
        handler, _, _, inventory = _setup()

        handler.handle("U1", [OrderItemSpec("P2", 50)])

        assert inventory.quantity("P2") == 0

    def test_one_over_available_fails_and_leaves_stock(self):
        handler, store, _, inventory = _setup()

        with pytest.raises(InsufficientStockError) as exc_info:
            handler.handle("U1", [OrderItemSpec("P2", 51)])

        assert exc_info.value.product_id == "P2"
        assert exc_info.value.available == 50
        assert exc_info.value.requested == 51
        assert inventory.quantity("P2") == 50
        assert store.count() == 0

    def test_large_request_rejected_without_order(self):
        handler, store, _, inventory = _setup()

        with pytest.raises(InsufficientStockError, match="Available: 100, Requested: 1000"):
            handler.handle("U1", [OrderItemSpec("P1", 1000)])

        assert inventory.quantity("P1") == 100
        assert store.count() == 0


class TestCreateOrderValidation:

    def test_empty_request_rejected_before_any_call(self):
        handler, store, identity, inventory = _setup()

        with pytest.raises(InvalidRequestError, match="at least one item"):
            handler.handle("U1", [])

        assert identity.calls == []
        assert inventory.calls == []
        assert store.transactions_opened == 0
        assert store.count() == 0

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, quantity):
        handler, _, identity, _ = _setup()
        with pytest.raises(InvalidRequestError, match="must be positive"):
            handler.handle("U1", [OrderItemSpec("P1", quantity)])
        assert identity.calls == []

    def test_blank_product_id_rejected(self):
        handler, _, _, _ = _setup()
        with pytest.raises(InvalidRequestError, match="product ID"):
            handler.handle("U1", [OrderItemSpec(" ", 1)])

    def test_blank_user_rejected(self):
        handler, _, _, _ = _setup()
        with pytest.raises(InvalidRequestError, match="User ID"):
            handler.handle("", [OrderItemSpec("P1", 1)])

    def test_unknown_product_rejected(self):
        handler, store, _, _ = _setup()
        with pytest.raises(ProductNotFoundError, match="zzz"):
            handler.handle("U1", [OrderItemSpec("zzz", 1)])
        assert store.count() == 0


class TestCreateOrderIdentity:

    def test_unknown_user_opens_no_transaction(self):
        handler, store, _, inventory = _setup()

        with pytest.raises(IdentityNotFoundError):
            handler.handle("ghost", [OrderItemSpec("P1", 1)])

        assert store.transactions_opened == 0
        assert inventory.calls == []

    def test_identity_outage_is_fatal(self):
        handler, store, identity, _ = _setup()
        identity.unavailable = True

        with pytest.raises(IdentityUnavailableError):
            handler.handle("U1", [OrderItemSpec("P1", 1)])

        assert store.transactions_opened == 0


class TestCreateOrderAtomicVisibility:

    def test_late_unknown_product_leaves_no_order(self):
        handler, store, _, _ = _setup()

        with pytest.raises(ProductNotFoundError):
            handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("zzz", 1)])

        assert store.count() == 0
        assert store.load_orders_by_user("U1") == []

    def test_late_insufficient_stock_leaves_no_order(self):
        handler, store, _, _ = _setup()

        with pytest.raises(InsufficientStockError):
            handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("P2", 500)])

        assert store.count() == 0

    def test_remote_decrement_failure_leaves_no_order(self):
        handler, store, _, inventory = _setup()
        inventory.unavailable_delta.add("P2")

        with pytest.raises(InventoryUnavailableError):
            handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("P2", 1)])

        assert store.count() == 0

    def test_commit_failure_is_persistence_error(self):
        handler, store, _, _ = _setup()
        store.fail_commit = True

        with pytest.raises(PersistenceError):
            handler.handle("U1", [OrderItemSpec("P1", 2)])

        assert store.count() == 0


class TestCreateOrderCompensation:

    def test_earlier_lines_restored_on_late_failure(self):
        handler, _, _, inventory = _setup()

        with pytest.raises(InsufficientStockError):
            handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("P2", 500)])

        assert inventory.quantity("P1") == 100
        assert inventory.deltas() == [("P1", -2), ("P1", 2)]

    def test_all_lines_restored_on_commit_failure(self):
        handler, store, _, inventory = _setup()
        store.fail_commit = True

        with pytest.raises(PersistenceError):
            handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("P2", 3)])

        assert inventory.quantity("P1") == 100
        assert inventory.quantity("P2") == 50

    def test_original_error_survives_failed_compensation(self):
        handler, _, _, inventory = _setup()
        inventory.unavailable_delta.add("P2")

        def p1_goes_down(product_id):
            if product_id == "P2":
                inventory.unavailable_delta.add("P1")

        inventory.after_fetch = p1_goes_down

        with pytest.raises(InventoryUnavailableError):
            handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("P2", 1)])

        assert inventory.quantity("P1") == 98

    def test_disabled_compensation_keeps_earlier_decrements(self):
        handler, store, _, inventory = _setup(compensate=False)

        with pytest.raises(InsufficientStockError):
            handler.handle("U1", [OrderItemSpec("P1", 2), OrderItemSpec("P2", 500)])

        assert inventory.quantity("P1") == 98
        assert inventory.quantity("P2") == 50
        assert store.count() == 0


class TestCreateOrderConcurrentStockDrop:

    def test_stock_taken_between_fetch_and_decrement_is_rejected(self):
        handler, store, _, inventory = _setup()

        # Another request empties P2 right after our snapshot was taken.
        inventory.after_fetch = lambda pid: inventory.set_quantity(pid, 0) if pid == "P2" else None

        with pytest.raises(InventoryRejectedError):
            handler.handle("U1", [OrderItemSpec("P1", 1), OrderItemSpec("P2", 5)])

        assert inventory.quantity("P2") == 0
        assert inventory.quantity("P1") == 100
        assert store.count() == 0


class TestCreateOrderIdempotency:

    def test_repeat_without_key_creates_two_orders(self):
        handler, store, _, inventory = _setup()
        lines = [OrderItemSpec("P1", 1)]

        first = handler.handle("U1", lines)
        second = handler.handle("U1", lines)

        assert first.id != second.id
        assert store.count() == 2
        assert inventory.quantity("P1") == 98

    def test_repeat_with_key_replays_original(self):
        handler, store, identity, inventory = _setup()
        lines = [OrderItemSpec("P1", 1)]

        first = handler.handle("U1", lines, idempotency_key="req-42")
        second = handler.handle("U1", lines, idempotency_key="req-42")

        assert second.id == first.id
        assert store.count() == 1
        assert inventory.quantity("P1") == 99
        assert identity.calls == ["U1"]

    def test_same_key_different_users_are_distinct(self):
        handler, store, _, _ = _setup()

        a = handler.handle("U1", [OrderItemSpec("P1", 1)], idempotency_key="k")
        b = handler.handle("U2", [OrderItemSpec("P1", 1)], idempotency_key="k")

        assert a.id != b.id
        assert store.count() == 2

    def test_losing_a_key_race_returns_winner_and_restores_stock(self):
        handler, store, _, inventory = _setup()
        winner = handler.handle("U1", [OrderItemSpec("P1", 1)], idempotency_key="k")

        # The replay lookup misses once, as if the winner committed just after it.
        real_find = store.find_by_idempotency_key
        lookups = []

        def find_after_first_miss(user_id, key):
            lookups.append(key)
            return None if len(lookups) == 1 else real_find(user_id, key)

        store.find_by_idempotency_key = find_after_first_miss

        result = handler.handle("U1", [OrderItemSpec("P1", 1)], idempotency_key="k")

        assert result.id == winner.id
        assert store.count() == 1
        assert inventory.quantity("P1") == 99
