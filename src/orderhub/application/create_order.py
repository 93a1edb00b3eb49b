"""Application service: Create Order use case.

Coordinates three collaborators that share no transaction: the identity
service, the remote inventory and the local order store.

Flow:
1. Validate the request locally (no collaborator contacted on failure).
2. Replay: an order already stored under the same idempotency key is
   returned as-is.
3. Confirm the user with the identity service.
4. In one local transaction: insert the order, then for each line in input
   order fetch the product, check stock, insert the item with the snapshot
   price and decrement remote stock. Finally store the total.
5. Commit, reload and return the order.

Any failure after step 4 started rolls the local transaction back. Remote
decrements already applied are reversed by the stock reservation service
unless compensation is switched off, in which case they persist.
"""

from __future__ import annotations

import logging

from orderhub.application.dto import OrderDTO, OrderItemSpec
from orderhub.application.order_view import OrderViewAssembler
from orderhub.domain.exceptions import (
    DuplicateOrderError,
    InsufficientStockError,
    InvalidRequestError,
    PersistenceError,
)
from orderhub.domain.gateway.identity_client import IdentityClient
from orderhub.domain.gateway.inventory_client import InventoryClient
from orderhub.domain.model.order import Order, OrderItem
from orderhub.domain.model.value_objects import Money
from orderhub.domain.repository.order_store import OrderStore, OrderUnitOfWork
from orderhub.domain.service.stock_reservation_service import (
    StockReservationService,
)

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(
        self,
        order_store: OrderStore,
        identity: IdentityClient,
        inventory: InventoryClient,
        compensate_on_failure: bool = True,
    ) -> None:
        self._order_store = order_store
        self._identity = identity
        self._inventory = inventory
        self._compensate_on_failure = compensate_on_failure

    def handle(
        self,
        user_id: str,
        item_specs: list[OrderItemSpec],
        idempotency_key: str | None = None,
    ) -> OrderDTO:
        _validate(user_id, item_specs)
        idempotency_key = (idempotency_key or "").strip() or None

        if idempotency_key is not None:
            existing = self._order_store.find_by_idempotency_key(user_id, idempotency_key)
            if existing is not None:
                logger.info(
                    "Replaying order %s for user %s (idempotency key %s)",
                    existing.id, user_id, idempotency_key,
                )
                return self._view(existing)

        self._identity.resolve(user_id)

        order = Order.start(user_id, idempotency_key)
        reservations = StockReservationService(self._inventory)
        try:
            self._order_store.with_transaction(
                lambda unit: self._place(unit, order, item_specs, reservations)
            )
        except DuplicateOrderError:
            # A concurrent request with the same key committed first.
            self._release(reservations, order)
            if idempotency_key is None:
                raise
            winner = self._order_store.find_by_idempotency_key(user_id, idempotency_key)
            if winner is None:
                raise
            return self._view(winner)
        except Exception:
            self._release(reservations, order)
            raise
        reservations.forget()

        stored = self._order_store.load_order_with_items(order.id)
        if stored is None:
            raise PersistenceError(f"Order '{order.id}' vanished after commit")

        logger.info(
            "Created order %s for user %s: %d item(s), total %s",
            stored.id, user_id, len(stored.items), stored.total,
        )
        return self._view(stored)

    # --- Steps ----------------------------------------------------------------

    def _place(
        self,
        unit: OrderUnitOfWork,
        order: Order,
        item_specs: list[OrderItemSpec],
        reservations: StockReservationService,
    ) -> None:
        unit.insert_order(order)

        total = Money.zero()
        for spec in item_specs:
            snapshot = self._inventory.fetch(spec.product_id)
            if spec.quantity > snapshot.quantity:
                raise InsufficientStockError(
                    spec.product_id, snapshot.quantity, spec.quantity
                )

            item = OrderItem.create(
                order_id=order.id,
                product_id=spec.product_id,
                quantity=spec.quantity,
                price=Money(snapshot.price.rounded()),  # <-- price snapshot
            )
            unit.insert_order_item(item)

            reservations.reserve(spec.product_id, spec.quantity)
            total = total + item.line_total

        unit.update_order_total(order.id, total)

    def _release(self, reservations: StockReservationService, order: Order) -> None:
        applied = reservations.applied
        if not applied:
            return
        if not self._compensate_on_failure:
            logger.warning(
                "Order %s failed after %d remote decrement(s); compensation is "
                "disabled, stock stays decremented",
                order.id, len(applied),
            )
            return
        failed = reservations.release_all()
        if failed:
            logger.error(
                "Order %s: %d of %d decrement(s) could not be reversed",
                order.id, len(failed), len(applied),
            )

    def _view(self, order: Order) -> OrderDTO:
        return OrderViewAssembler(self._inventory).to_dto(order)


def _validate(user_id: str, item_specs: list[OrderItemSpec]) -> None:
    if not user_id or not user_id.strip():
        raise InvalidRequestError("User ID is required")
    if not item_specs:
        raise InvalidRequestError("Order must contain at least one item")
    for spec in item_specs:
        if not isinstance(spec.product_id, str) or not spec.product_id.strip():
            raise InvalidRequestError("Every item needs a product ID")
        if isinstance(spec.quantity, bool) or not isinstance(spec.quantity, int):
            raise InvalidRequestError(
                f"Quantity for product '{spec.product_id}' must be an integer"
            )
        if spec.quantity < 1:
            raise InvalidRequestError(
                f"Quantity for product '{spec.product_id}' must be positive"
            )
