"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions. The store and the HTTP
clients are built once per process and shared by all requests.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderhub.application.create_order import CreateOrderHandler
from orderhub.application.list_user_orders import ListUserOrdersHandler
from orderhub.application.show_order import ShowOrderHandler
from orderhub.domain.gateway.identity_client import IdentityClient
from orderhub.domain.gateway.inventory_client import InventoryClient
from orderhub.domain.repository.order_store import OrderStore
from orderhub.infrastructure.clients.http_identity_client import HttpIdentityClient
from orderhub.infrastructure.clients.http_inventory_client import HttpInventoryClient
from orderhub.infrastructure.config import Settings
from orderhub.infrastructure.persistence.sqlalchemy_order_store import (
    SqlAlchemyOrderStore,
)


@dataclass
class Container:
    """Long-lived collaborators plus factories for the use-case handlers."""

    order_store: OrderStore
    identity: IdentityClient
    inventory: InventoryClient
    compensate_on_failure: bool = True

    def create_order_handler(self) -> CreateOrderHandler:
        return CreateOrderHandler(
            order_store=self.order_store,
            identity=self.identity,
            inventory=self.inventory,
            compensate_on_failure=self.compensate_on_failure,
        )

    def show_order_handler(self) -> ShowOrderHandler:
        return ShowOrderHandler(order_store=self.order_store, inventory=self.inventory)

    def list_user_orders_handler(self) -> ListUserOrdersHandler:
        return ListUserOrdersHandler(order_store=self.order_store, inventory=self.inventory)

    def close(self) -> None:
        for resource in (self.identity, self.inventory, self.order_store):
            closer = getattr(resource, "close", None) or getattr(resource, "dispose", None)
            if closer is not None:
                closer()


def build_container(settings: Settings) -> Container:
    return Container(
        order_store=SqlAlchemyOrderStore(settings.database_url),
        identity=HttpIdentityClient.from_url(
            settings.identity_service_url, timeout=settings.remote_timeout_seconds
        ),
        inventory=HttpInventoryClient.from_url(
            settings.inventory_service_url, timeout=settings.remote_timeout_seconds
        ),
        compensate_on_failure=settings.compensate_on_failure,
    )
