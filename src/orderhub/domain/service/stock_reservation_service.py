"""Domain service: Stock Reservation.

Decrements remote stock one line at a time on behalf of a single order
creation, and remembers every decrement that the inventory accepted.
If a later step of the same creation fails, ``release_all`` sends the
reverse deltas so the catalog does not stay under-counted for an order
that was never stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from orderhub.domain.exceptions import DomainException
from orderhub.domain.gateway.inventory_client import InventoryClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppliedDecrement:
    product_id: str
    quantity: int


class StockReservationService:

    def __init__(self, inventory: InventoryClient) -> None:
        self._inventory = inventory
        self._applied: list[AppliedDecrement] = []

    @property
    def applied(self) -> list[AppliedDecrement]:
        return list(self._applied)

    def reserve(self, product_id: str, quantity: int) -> None:
        """Decrement stock by ``quantity``; recorded only if the inventory accepts."""
        self._inventory.apply_delta(product_id, -quantity)
        self._applied.append(AppliedDecrement(product_id, quantity))

    def release_all(self) -> list[AppliedDecrement]:
        """Reverse every recorded decrement, newest first.

        Returns the decrements that could not be reversed. Those are logged;
        the caller is already propagating the error that triggered the
        release and must not have it replaced.
        """
        failed: list[AppliedDecrement] = []
        while self._applied:
            entry = self._applied.pop()
            try:
                self._inventory.apply_delta(entry.product_id, entry.quantity)
            except DomainException as exc:
                logger.error(
                    "Compensation failed: could not restore %d of product %s: %s",
                    entry.quantity,
                    entry.product_id,
                    exc,
                )
                failed.append(entry)
            else:
                logger.warning(
                    "Compensated: restored %d of product %s",
                    entry.quantity,
                    entry.product_id,
                )
        return failed

    def forget(self) -> None:
        """Drop the record once the order is durably stored."""
        self._applied.clear()
