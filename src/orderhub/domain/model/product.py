"""Product snapshot as served by the inventory collaborator.

Products are owned by the remote catalog. The orchestrator only ever holds
a point-in-time copy for the duration of one request.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderhub.domain.model.value_objects import Money

UNAVAILABLE_PRODUCT_NAME = "Product not available"


@dataclass(frozen=True)
class ProductSnapshot:

    id: str
    name: str
    price: Money
    quantity: int
    description: str = ""
    category: str = ""
    sku: str = ""
    images: tuple[str, ...] = field(default_factory=tuple)
    available: bool = True

    @staticmethod
    def placeholder(product_id: str, price: Money) -> ProductSnapshot:
        """Display stand-in used when the catalog cannot be reached on a read."""
        return ProductSnapshot(
            id=product_id,
            name=UNAVAILABLE_PRODUCT_NAME,
            price=price,
            quantity=0,
            available=False,
        )
