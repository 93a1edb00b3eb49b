"""Request / response models of the HTTP boundary."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from orderhub.application.dto import OrderDTO


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int


class CreateOrderRequest(BaseModel):
    # Emptiness and quantity ranges are business rules, checked by the handler.
    items: list[OrderItemRequest]


class ProductResponse(BaseModel):
    id: str
    name: str
    price: Decimal
    quantity: int
    description: str = ""
    category: str = ""
    sku: str = ""
    images: list[str] = []
    available: bool = True


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    product: ProductResponse
    quantity: int
    price: Decimal


class OrderResponse(BaseModel):
    id: str
    user_id: str
    status: str
    total: Decimal
    items: list[OrderItemResponse]
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def from_dto(dto: OrderDTO) -> OrderResponse:
        return OrderResponse(
            id=dto.id,
            user_id=dto.user_id,
            status=dto.status,
            total=dto.total,
            items=[
                OrderItemResponse(
                    id=item.id,
                    product_id=item.product_id,
                    product=ProductResponse(
                        id=item.product.id,
                        name=item.product.name,
                        price=item.product.price,
                        quantity=item.product.quantity,
                        description=item.product.description,
                        category=item.product.category,
                        sku=item.product.sku,
                        images=item.product.images,
                        available=item.product.available,
                    ),
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in dto.items
            ],
            created_at=dto.created_at,
            updated_at=dto.updated_at,
        )


class OrderPageResponse(BaseModel):
    orders: list[OrderResponse]
    page: int
    limit: int
    total: int


class ErrorResponse(BaseModel):
    error: str
    message: str
