"""httpx implementation of InventoryClient.

Wire contract of the catalog service:

    GET   /products/{id}            -> {id, name, price, quantity, ...}
    PATCH /products/{id}/quantity   body {"change": <signed int>}

The PATCH is refused (400/409/422) when the resulting quantity would be
negative. No retries: a failed call is reported once and the caller decides.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from urllib.parse import quote

import httpx

from orderhub.domain.exceptions import (
    InventoryRejectedError,
    InventoryUnavailableError,
    ProductNotFoundError,
    ValidationError,
)
from orderhub.domain.gateway.inventory_client import InventoryClient
from orderhub.domain.model.product import ProductSnapshot
from orderhub.domain.model.value_objects import Money

logger = logging.getLogger(__name__)

_REJECTION_STATUSES = frozenset({400, 409, 422})


class HttpInventoryClient(InventoryClient):

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 10.0) -> HttpInventoryClient:
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def fetch(self, product_id: str) -> ProductSnapshot:
        response = self._send("GET", _product_path(product_id), product_id)
        if response.status_code == httpx.codes.NOT_FOUND:
            raise ProductNotFoundError(product_id)
        if not response.is_success:
            raise self._unavailable(response, product_id)

        try:
            # Prices stay exact: JSON numbers are decoded straight to Decimal.
            return _to_snapshot(response.json(parse_float=Decimal))
        except (ValueError, KeyError, TypeError, ValidationError) as exc:
            raise InventoryUnavailableError(
                f"Inventory service sent an unreadable product '{product_id}': {exc}"
            ) from exc

    def apply_delta(self, product_id: str, delta: int) -> None:
        logger.info("Adjusting stock of product %s by %+d", product_id, delta)
        response = self._send(
            "PATCH",
            f"{_product_path(product_id)}/quantity",
            product_id,
            json={"change": delta},
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            raise ProductNotFoundError(product_id)
        if response.status_code in _REJECTION_STATUSES:
            raise InventoryRejectedError(product_id, delta, _error_text(response))
        if not response.is_success:
            raise self._unavailable(response, product_id)

    def close(self) -> None:
        self._client.close()

    # --- Internal helpers -----------------------------------------------------

    def _send(self, method: str, path: str, product_id: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            logger.exception(
                "Inventory service unreachable (%s %s) for product %s", method, path, product_id
            )
            raise InventoryUnavailableError(
                f"Inventory service is unavailable: {exc}"
            ) from exc

    @staticmethod
    def _unavailable(response: httpx.Response, product_id: str) -> InventoryUnavailableError:
        logger.error(
            "Inventory service answered %s for product %s", response.status_code, product_id
        )
        return InventoryUnavailableError(
            f"Inventory service answered status {response.status_code} "
            f"for product '{product_id}'"
        )


def _product_path(product_id: str) -> str:
    return f"/products/{quote(product_id, safe='')}"


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body.get("message") or body)
    return str(body)


def _to_snapshot(raw: dict) -> ProductSnapshot:
    return ProductSnapshot(
        id=str(raw["id"]),
        name=raw.get("name", ""),
        price=Money.of(raw["price"]),
        quantity=int(raw["quantity"]),
        description=raw.get("description") or "",
        category=raw.get("category") or "",
        sku=raw.get("sku") or "",
        images=tuple(raw.get("images") or ()),
    )
