"""Application service: List a user's orders (query)."""

from __future__ import annotations

from orderhub.application.dto import OrderDTO
from orderhub.application.order_view import OrderViewAssembler
from orderhub.domain.gateway.inventory_client import InventoryClient
from orderhub.domain.repository.order_store import OrderStore


class ListUserOrdersHandler:

    def __init__(self, order_store: OrderStore, inventory: InventoryClient) -> None:
        self._order_store = order_store
        self._inventory = inventory

    def handle(self, user_id: str) -> list[OrderDTO]:
        """All orders of ``user_id``, newest first. Pagination is the caller's."""
        orders = self._order_store.load_orders_by_user(user_id)
        return OrderViewAssembler(self._inventory).to_dtos(orders)
