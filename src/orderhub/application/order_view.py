"""Read-side mapping from stored orders to DTOs.

Each item is shown with a fresh product snapshot. A snapshot that cannot
be fetched is replaced by a placeholder so one missing product never fails
the whole read. Snapshots are memoised for the duration of one assembler
only; build a new assembler per request.
"""

from __future__ import annotations

import logging

from orderhub.application.dto import OrderDTO, OrderItemDTO, ProductDTO
from orderhub.domain.exceptions import (
    InventoryUnavailableError,
    ProductNotFoundError,
)
from orderhub.domain.gateway.inventory_client import InventoryClient
from orderhub.domain.model.order import Order, OrderItem
from orderhub.domain.model.product import ProductSnapshot

logger = logging.getLogger(__name__)


class OrderViewAssembler:

    def __init__(self, inventory: InventoryClient) -> None:
        self._inventory = inventory
        self._snapshots: dict[str, ProductSnapshot | None] = {}

    def to_dto(self, order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,
            user_id=order.user_id,
            status=order.status.value,
            items=[self._item_dto(item) for item in order.items],
            total=order.total.rounded(),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def to_dtos(self, orders: list[Order]) -> list[OrderDTO]:
        return [self.to_dto(order) for order in orders]

    # --- Mapping --------------------------------------------------------------

    def _item_dto(self, item: OrderItem) -> OrderItemDTO:
        snapshot = self._snapshot(item.product_id)
        if snapshot is None:
            snapshot = ProductSnapshot.placeholder(item.product_id, item.price)
        return OrderItemDTO(
            id=item.id,
            product_id=item.product_id,
            product=_product_dto(snapshot),
            quantity=item.quantity.value,
            price=item.price.rounded(),
            line_total=item.line_total.rounded(),
        )

    def _snapshot(self, product_id: str) -> ProductSnapshot | None:
        if product_id not in self._snapshots:
            try:
                self._snapshots[product_id] = self._inventory.fetch(product_id)
            except (ProductNotFoundError, InventoryUnavailableError) as exc:
                logger.warning(
                    "Showing placeholder for product %s: %s", product_id, exc
                )
                self._snapshots[product_id] = None
        return self._snapshots[product_id]


def _product_dto(snapshot: ProductSnapshot) -> ProductDTO:
    return ProductDTO(
        id=snapshot.id,
        name=snapshot.name,
        price=snapshot.price.rounded(),
        quantity=snapshot.quantity,
        description=snapshot.description,
        category=snapshot.category,
        sku=snapshot.sku,
        images=list(snapshot.images),
        available=snapshot.available,
    )
