"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the HTTP/CLI boundary and the application layer
without exposing domain internals. Amounts stay Decimal; formatting is the
boundary's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: one requested line (product id + quantity)."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class ProductDTO:
    """Output: product details shown next to an item, fetched at read time."""

    id: str
    name: str
    price: Decimal
    quantity: int
    description: str = ""
    category: str = ""
    sku: str = ""
    images: list[str] = field(default_factory=list)
    available: bool = True


@dataclass(frozen=True)
class OrderItemDTO:

    id: str
    product_id: str
    product: ProductDTO
    quantity: int
    price: Decimal  # frozen snapshot, not product.price
    line_total: Decimal


@dataclass(frozen=True)
class OrderDTO:

    id: str
    user_id: str
    status: str
    items: list[OrderItemDTO]
    total: Decimal
    created_at: datetime
    updated_at: datetime
