# Overview: Service-layer operations for external stock reconciliation.

"""
Inventory Reconciliation Service

WHY: Stock lives in the external shop. Documents that move goods
(deliveries, returns, purchase receipts) push quantity changes there.

OPERATIONS:
- reduce:        goods left (delivery). new = max(0, stock - qty)
- restore:       goods came back (cancelled delivery, processed return). new = stock + qty
- receive-delta: purchase receipt. new = stock + delta, where delta is the
                 reported cumulative receipt minus what was already applied

RULES:
1. Only the change is ever computed locally; the absolute value written is
   read-modify-write against the shop's current stock.
2. Items are processed one by one, in line order, without retries.
3. One item failing never stops the others: the error is recorded and the
   loop moves on (a bad SKU must not block the rest of the shipment).
4. Products that do not manage stock are left alone.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from ..errors import ValidationError, ExternalSystemError
from .inventory_client import InventoryClient, build_inventory_client


logger = logging.getLogger(__name__)


OPERATION_REDUCE = "reduce"
OPERATION_RESTORE = "restore"
OPERATION_RECEIVE_DELTA = "receive-delta"

OPERATIONS = {OPERATION_REDUCE, OPERATION_RESTORE, OPERATION_RECEIVE_DELTA}

_OPERATION_VERBS = {
    OPERATION_REDUCE: "reduced",
    OPERATION_RESTORE: "restored",
    OPERATION_RECEIVE_DELTA: "received",
}


@dataclass(frozen=True)
class StockMovement:
    """Quantity to push for one product; always a change, never an absolute value."""
    product_id: str | None
    quantity: int


@dataclass
class ReconcileResult:
    operation: str
    updated_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)

    def record_error(self, message: str) -> None:
        self.error_count += 1
        self.errors.append(message)

    @property
    def message(self) -> str:
        text = f"Stock {_OPERATION_VERBS[self.operation]} for {self.updated_count} product(s)"
        if self.error_count:
            text += f" ({self.error_count} error(s))"
        return text

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "updated_count": self.updated_count,
            "error_count": self.error_count,
            "errors": list(self.errors),
            "message": self.message,
        }


def movements_from_lines(lines) -> list[StockMovement]:
    """Full line quantities, used by delivery and return flows."""
    return [StockMovement(product_id=line.product_id, quantity=line.quantity) for line in lines]


@contextmanager
def inventory_client(client: InventoryClient | None = None) -> Iterator[InventoryClient | None]:
    """Use the given client, or build (and close) one from settings."""
    if client is not None:
        yield client
        return

    built = build_inventory_client()
    try:
        yield built
    finally:
        if built is not None:
            built.close()


def _new_stock(operation: str, current: int, quantity: int) -> int:
    if operation == OPERATION_REDUCE:
        return max(0, current - quantity)
    return current + quantity


def reconcile(
    movements: Iterable[StockMovement],
    operation: str,
    client: InventoryClient | None = None,
) -> ReconcileResult:
    """
    Push stock changes to the external inventory system.

    Args:
        movements: product/quantity changes, in document line order
        operation: reduce, restore or receive-delta
        client: inventory client (built from settings when omitted)

    Returns:
        ReconcileResult with updated_count, error_count and errors[]
    """
    if operation not in OPERATIONS:
        raise ValidationError(
            f"Invalid operation. Must be one of: {', '.join(sorted(OPERATIONS))}"
        )

    result = ReconcileResult(operation=operation)
    pending = [m for m in movements if m.product_id and m.quantity > 0]
    if not pending:
        return result

    with inventory_client(client) as api:
        for movement in pending:
            if api is None:
                result.record_error(f"Product {movement.product_id}: inventory API not configured")
                continue

            try:
                product = api.get_product(movement.product_id)
                if not product.manage_stock:
                    # Receipts only count real stock writes
                    if operation != OPERATION_RECEIVE_DELTA:
                        result.updated_count += 1
                    continue

                new_stock = _new_stock(operation, product.stock_quantity, movement.quantity)
                api.update_stock(movement.product_id, new_stock)
                result.updated_count += 1
            except ExternalSystemError as exc:
                logger.warning(
                    "Stock %s failed for product %s: %s", operation, movement.product_id, exc
                )
                result.record_error(f"Product {movement.product_id}: {exc}")

    logger.info("%s", result.message)
    return result
