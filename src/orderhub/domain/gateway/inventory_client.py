"""Port for the catalog/inventory collaborator.

``fetch`` and ``apply_delta`` are not atomic with each other: a snapshot
showing enough stock gives no guarantee the stock is still there when the
delta arrives. The inventory side guards against negative quantities and
rejects such deltas with InventoryRejectedError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderhub.domain.model.product import ProductSnapshot


class InventoryClient(ABC):

    @abstractmethod
    def fetch(self, product_id: str) -> ProductSnapshot:
        """Return the current snapshot.

        Raises ProductNotFoundError or InventoryUnavailableError.
        """

    @abstractmethod
    def apply_delta(self, product_id: str, delta: int) -> None:
        """Add a signed quantity to the product's stock.

        Raises InventoryRejectedError, ProductNotFoundError or
        InventoryUnavailableError.
        """
