# Overview: Service-layer operations for purchase order receiving.

"""
Purchase Order Receiving Service

WHY: Supplier deliveries arrive in several drops and the same form is often
submitted twice. Each submission carries the CUMULATIVE quantity received per
line, never an increment.

FLOW (receive_purchase_order):
1. delta = reported cumulative quantity - quantity_received stored on the line
2. If the order is not already completed, every positive delta is added to
   the external stock (one call pair per line, failures recorded, loop goes on)
3. quantity_received is overwritten with the reported values, whatever the
   stock calls returned
4. Order status is re-derived from the lines (pending / partial / completed)

IDEMPOTENT: re-submitting the same quantities yields zero deltas, so zero
stock calls. Once completed, edits still update local quantities but never
touch the external stock again.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import ValidationError, PersistenceError
from ..models import PURCHASE_ORDER, PurchaseOrder, DocumentLine
from ..validation import coerce_int
from .concurrency import lock_for_update
from .document_service import get_document
from .inventory_client import InventoryClient
from .inventory_service import (
    ReconcileResult,
    StockMovement,
    OPERATION_RECEIVE_DELTA,
    reconcile,
)
from .lifecycle_service import derive_purchase_order_status, PO_COMPLETED


logger = logging.getLogger(__name__)


def _parse_received_items(raw_items) -> list[tuple[int, int]]:
    if not raw_items or not isinstance(raw_items, list):
        raise ValidationError("Purchase order received items are required")

    parsed: list[tuple[int, int]] = []
    seen: set[int] = set()
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Received item {index} must be an object")
        line_id = coerce_int(raw.get("line_item_id", raw.get("id")), f"Received item {index}: line_item_id", minimum=1)
        quantity = coerce_int(raw.get("quantity_received"), f"Received item {index}: quantity_received", minimum=0)
        if line_id in seen:
            raise ValidationError(f"Line {line_id} appears more than once")
        seen.add(line_id)
        parsed.append((line_id, quantity))
    return parsed


def receive_purchase_order(
    purchase_order_id: int,
    received_items: list[dict],
    *,
    client: InventoryClient | None = None,
) -> dict:
    """
    Record cumulative received quantities and push the new units to stock.

    Args:
        purchase_order_id: Purchase order to receive against
        received_items: [{line_item_id, quantity_received}, ...]
        client: Inventory client (built from settings when omitted)

    Returns:
        {purchase_order, status, stock_update_count, stock_update_errors,
         errors, already_completed, message}

    Raises:
        NotFoundError: Unknown purchase order
        ValidationError: Empty/invalid items or lines not on this order
        PersistenceError: Received quantities could not be saved
    """
    po: PurchaseOrder = get_document(purchase_order_id, PURCHASE_ORDER)
    items = _parse_received_items(received_items)

    # Lock the lines so concurrent receipts compute deltas against the same stored values
    locked = lock_for_update(
        db.session.query(DocumentLine).filter(DocumentLine.document_id == po.id)
    ).all()
    lines_by_id = {line.id: line for line in locked}
    unknown = [line_id for line_id, _ in items if line_id not in lines_by_id]
    if unknown:
        raise ValidationError(
            f"Line(s) {', '.join(str(i) for i in unknown)} do not belong to purchase order {po.document_number}"
        )

    already_completed = po.status == PO_COMPLETED

    movements: list[StockMovement] = []
    for line_id, reported in items:
        line = lines_by_id[line_id]
        delta = reported - (line.quantity_received or 0)
        if delta > 0:
            movements.append(StockMovement(product_id=line.product_id, quantity=delta))

    if already_completed:
        # Stock for this order was already reconciled
        result = ReconcileResult(operation=OPERATION_RECEIVE_DELTA)
    else:
        result = reconcile(movements, OPERATION_RECEIVE_DELTA, client)

    try:
        for line_id, reported in items:
            lines_by_id[line_id].quantity_received = reported
        po.status = derive_purchase_order_status(po.lines)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to save receipt for %s: %s", po.document_number, exc)
        raise PersistenceError("Failed to update received quantities") from exc

    if already_completed:
        message = "Quantities updated; stock unchanged because the purchase order was already completed"
    else:
        message = f"Purchase order received. {result.message}"

    return {
        "purchase_order": po.to_dict(),
        "status": po.status,
        "stock_updated": not already_completed and result.updated_count > 0,
        "stock_update_count": result.updated_count,
        "stock_update_errors": result.error_count,
        "errors": list(result.errors),
        "already_completed": already_completed,
        "message": message,
    }
