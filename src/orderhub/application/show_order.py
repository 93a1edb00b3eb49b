"""Application service: Show Order use case (query).

The boundary passes the caller as ``requester_id``. Ownership is checked on
the stored order, before any product snapshot is fetched.
"""

from __future__ import annotations

from orderhub.application.dto import OrderDTO
from orderhub.application.order_view import OrderViewAssembler
from orderhub.domain.exceptions import ForbiddenError, OrderNotFoundError
from orderhub.domain.gateway.inventory_client import InventoryClient
from orderhub.domain.repository.order_store import OrderStore


class ShowOrderHandler:

    def __init__(self, order_store: OrderStore, inventory: InventoryClient) -> None:
        self._order_store = order_store
        self._inventory = inventory

    def handle(self, order_id: str, requester_id: str | None = None) -> OrderDTO:
        """Return the order; ``requester_id`` set means only its owner may see it."""
        order = self._order_store.load_order_with_items(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if requester_id is not None and not order.is_owned_by(requester_id):
            raise ForbiddenError("You can only access your own orders")
        return OrderViewAssembler(self._inventory).to_dto(order)
