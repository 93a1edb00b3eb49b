"""FastAPI entry point.

The caller's identity arrives in the ``X-User-ID`` header, set by the
authentication gateway in front of this service. Endpoints are plain
``def`` functions, so each request runs on its own worker thread.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request, status

from orderhub.application.dto import OrderItemSpec
from orderhub.application.pagination import PageRequest, paginate
from orderhub.infrastructure.api.errors import register_error_handlers
from orderhub.infrastructure.api.schemas import (
    CreateOrderRequest,
    ErrorResponse,
    OrderPageResponse,
    OrderResponse,
)
from orderhub.infrastructure.bootstrap import Container, build_container
from orderhub.infrastructure.config import Settings, get_settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "orderhub"


def get_container(request: Request) -> Container:
    return request.app.state.container


def current_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-ID")] = None,
) -> str:
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: user ID not found",
        )
    return x_user_id.strip()


ContainerDep = Annotated[Container, Depends(get_container)]
UserIdDep = Annotated[str, Depends(current_user_id)]

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"description": "No caller identity"},
}

order_router = APIRouter(prefix="/api/v1", tags=["Orders"])


@order_router.post(
    "/order",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def create_order(
    body: CreateOrderRequest,
    container: ContainerDep,
    user_id: UserIdDep,
    idempotency_key: Annotated[str | None, Header(alias="Idempotency-Key")] = None,
) -> OrderResponse:
    specs = [OrderItemSpec(product_id=i.product_id, quantity=i.quantity) for i in body.items]
    dto = container.create_order_handler().handle(
        user_id=user_id, item_specs=specs, idempotency_key=idempotency_key
    )
    return OrderResponse.from_dto(dto)


@order_router.get(
    "/order/{order_id}",
    response_model=OrderResponse,
    responses={**_ERRORS, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_order(order_id: str, container: ContainerDep, user_id: UserIdDep) -> OrderResponse:
    dto = container.show_order_handler().handle(order_id, requester_id=user_id)
    return OrderResponse.from_dto(dto)


@order_router.get("/my-orders", response_model=OrderPageResponse, responses=_ERRORS)
def get_my_orders(
    container: ContainerDep,
    user_id: UserIdDep,
    page: str | None = None,
    limit: str | None = None,
) -> OrderPageResponse:
    orders = container.list_user_orders_handler().handle(user_id)
    result = paginate(orders, PageRequest.from_raw(page, limit))
    return OrderPageResponse(
        orders=[OrderResponse.from_dto(dto) for dto in result.items],
        page=result.page,
        limit=result.limit,
        total=result.total,
    )


monitoring_router = APIRouter(tags=["Monitoring"])


@monitoring_router.get("/health")
def health_check() -> dict:
    return {"status": "ok", "service": SERVICE_NAME}


def create_app(container: Container | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the app around ``container``, or around one built from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = container is None
        app.state.container = container or build_container(settings or get_settings())
        yield
        if owned:
            app.state.container.close()

    app = FastAPI(title="Order Service", lifespan=lifespan)
    if container is not None:
        app.state.container = container
    register_error_handlers(app)
    app.include_router(order_router)
    app.include_router(monitoring_router)
    return app
