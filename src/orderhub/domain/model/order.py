"""Order aggregate.

An Order owns its items. Items are written once, inside the transaction
that creates the order, and never change afterwards: the item price is a
snapshot of the catalog price at creation time.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from orderhub.domain.exceptions import ValidationError
from orderhub.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    """Order lifecycle states.

    Only PENDING is produced here; the other values are reserved for the
    fulfilment collaborator and have no transitions in this package.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class OrderItem:
    """One line of an order with its frozen unit price."""

    id: str
    order_id: str
    product_id: str
    quantity: Quantity
    price: Money  # locked at order-creation time
    created_at: datetime = field(default_factory=_utcnow)

    @staticmethod
    def create(order_id: str, product_id: str, quantity: int, price: Money) -> OrderItem:
        return OrderItem(
            id=_new_id(),
            order_id=order_id,
            product_id=product_id,
            quantity=Quantity(quantity),
            price=price,
        )

    @property
    def line_total(self) -> Money:
        return self.price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for orders.

    ``total`` is the stored value. ``computed_total`` re-derives it from the
    items; the two agree for every order that made it into the store.
    """

    id: str
    user_id: str
    status: OrderStatus = OrderStatus.PENDING
    total: Money = field(default_factory=Money.zero)
    items: list[OrderItem] = field(default_factory=list)
    idempotency_key: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @staticmethod
    def start(user_id: str, idempotency_key: str | None = None) -> Order:
        """Create the empty pending order that opens a creation transaction."""
        if not user_id or not user_id.strip():
            raise ValidationError("User ID is required")
        return Order(id=_new_id(), user_id=user_id, idempotency_key=idempotency_key)

    @property
    def computed_total(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.line_total
        return result

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id
