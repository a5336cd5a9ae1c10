# Overview: HTTP client for the external inventory system (WooCommerce REST style).

"""
Inventory API Client

The external shop is the stock-of-record. Products are read with
GET /products/{id} (fields used: stock_quantity, manage_stock) and written
with PUT /products/{id} carrying only {"stock_quantity": n}.

Every failure (transport error, non-2xx status, malformed JSON) surfaces as
ExternalSystemError so callers can record it per item and carry on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from flask import current_app

from ..errors import ExternalSystemError


@dataclass(frozen=True)
class ProductStock:
    product_id: str
    manage_stock: bool
    stock_quantity: int


def _parse_stock(value: Any) -> int:
    if value in (None, ""):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ExternalSystemError(f"Invalid stock_quantity {value!r}")


class InventoryClient:
    """
    Thin wrapper over httpx.Client with basic auth and error mapping.
    """

    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        *,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            auth=(consumer_key, consumer_secret),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "InventoryClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ExternalSystemError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            raise ExternalSystemError(
                f"{method} {path} failed with HTTP {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:500]},
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ExternalSystemError(f"{method} {path} returned invalid JSON") from exc

    def get_product(self, product_id: str) -> ProductStock:
        data = self._request("GET", f"/products/{product_id}")
        if not isinstance(data, dict):
            raise ExternalSystemError(f"Unexpected product payload for {product_id}")
        return ProductStock(
            product_id=str(product_id),
            manage_stock=bool(data.get("manage_stock")),
            stock_quantity=_parse_stock(data.get("stock_quantity")),
        )

    def update_stock(self, product_id: str, stock_quantity: int) -> None:
        self._request("PUT", f"/products/{product_id}", json={"stock_quantity": stock_quantity})

    def list_orders(self, per_page: int = 100) -> list[dict]:
        data = self._request(
            "GET",
            "/orders",
            params={"per_page": per_page, "orderby": "date", "order": "desc"},
        )
        if not isinstance(data, list):
            raise ExternalSystemError("Unexpected orders payload")
        return data


def build_inventory_client() -> InventoryClient | None:
    """
    Client for the configured inventory API, or None when not configured.

    Saved settings win over environment config.
    """
    from .settings_service import get_inventory_settings

    settings = get_inventory_settings()
    if not settings:
        return None

    return InventoryClient(
        settings["api_url"],
        settings["consumer_key"],
        settings["consumer_secret"],
        timeout=current_app.config.get("INVENTORY_TIMEOUT_SECONDS", 15.0),
        transport=current_app.config.get("INVENTORY_HTTP_TRANSPORT"),
    )
