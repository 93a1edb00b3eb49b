"""Domain-level exceptions.

Every failure the orchestrator can report is a subclass of DomainException.
Each class carries a stable ``code`` so the HTTP and CLI layers branch on
the type, never on the message text.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "domain_error"

    def details(self) -> dict:
        """Structured context for the caller, merged into error responses."""
        return {}


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    code = "invalid_request"


class InvalidRequestError(ValidationError):
    """The order request itself is malformed (empty, bad quantity, ...)."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    code = "not_found"


class OrderNotFoundError(EntityNotFoundError):

    code = "order_not_found"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order '{order_id}' not found")
        self.order_id = order_id

    def details(self) -> dict:
        return {"order_id": self.order_id}


class ProductNotFoundError(EntityNotFoundError):

    code = "product_not_found"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product not found: '{product_id}'")
        self.product_id = product_id

    def details(self) -> dict:
        return {"product_id": self.product_id}


class ForbiddenError(DomainException):
    """The caller may not see the requested resource."""

    code = "forbidden"


# --- Remote collaborators ----------------------------------------------------


class RemoteServiceError(DomainException):
    """A remote collaborator could not be reached or answered garbage."""

    code = "remote_service_error"


class IdentityError(DomainException):
    """The caller's identity could not be confirmed."""

    code = "identity_error"


class IdentityNotFoundError(IdentityError):

    code = "identity_not_found"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User '{user_id}' not found")
        self.user_id = user_id

    def details(self) -> dict:
        return {"user_id": self.user_id}


class IdentityUnavailableError(IdentityError, RemoteServiceError):

    code = "identity_unavailable"


class InventoryUnavailableError(RemoteServiceError):

    code = "inventory_unavailable"


class InventoryRejectedError(DomainException):
    """The inventory service refused a quantity adjustment."""

    code = "inventory_rejected"

    def __init__(self, product_id: str, delta: int, reason: str = "") -> None:
        message = f"Inventory rejected change of {delta} for product '{product_id}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.product_id = product_id
        self.delta = delta

    def details(self) -> dict:
        return {"product_id": self.product_id, "delta": self.delta}


class InsufficientStockError(DomainException):

    code = "insufficient_stock"

    def __init__(self, product_id: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient quantity for product '{product_id}'. "
            f"Available: {available}, Requested: {requested}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested

    def details(self) -> dict:
        return {
            "product_id": self.product_id,
            "available": self.available,
            "requested": self.requested,
        }


# --- Local store -------------------------------------------------------------


class PersistenceError(DomainException):
    """The local transaction could not be completed; nothing was stored."""

    code = "persistence_error"


class DuplicateOrderError(PersistenceError):
    """An order with the same (user, idempotency key) was already committed."""

    def __init__(self, user_id: str, idempotency_key: str) -> None:
        super().__init__(
            f"Order for user '{user_id}' with idempotency key "
            f"'{idempotency_key}' already exists"
        )
        self.user_id = user_id
        self.idempotency_key = idempotency_key
