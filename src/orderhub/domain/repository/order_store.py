"""Abstract transactional store for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Callable, TypeVar

from orderhub.domain.model.order import Order, OrderItem
from orderhub.domain.model.value_objects import Money

T = TypeVar("T")


class OrderUnitOfWork(ABC):
    """Writes staged inside one transaction; visible to readers only on commit."""

    @abstractmethod
    def insert_order(self, order: Order) -> None:
        """Stage a new order row (without items)."""

    @abstractmethod
    def insert_order_item(self, item: OrderItem) -> None:
        """Stage one item row for an order staged in this unit."""

    @abstractmethod
    def update_order_total(self, order_id: str, total: Money) -> None:
        """Set the total of an order staged in this unit."""


class OrderStore(ABC):

    @abstractmethod
    def transaction(self) -> AbstractContextManager[OrderUnitOfWork]:
        """Open one atomic unit.

        Commits when the block exits cleanly, rolls back when it raises.
        Commit failures raise PersistenceError.
        """

    def with_transaction(self, fn: Callable[[OrderUnitOfWork], T]) -> T:
        """Run ``fn`` inside a single transaction and return its result."""
        with self.transaction() as unit:
            return fn(unit)

    @abstractmethod
    def load_order_with_items(self, order_id: str) -> Order | None:
        """Return a committed order with its items, or None."""

    @abstractmethod
    def load_orders_by_user(self, user_id: str) -> list[Order]:
        """Return every committed order of a user, newest first."""

    @abstractmethod
    def find_by_idempotency_key(self, user_id: str, key: str) -> Order | None:
        """Return the committed order created with this key, or None."""
