# Overview: Service-layer operations for document status lifecycles and their side effects.

"""
Document Lifecycle Service

================================================================================
PURPOSE: One status vocabulary per document type, and the stock side effects
         that certain transitions carry.
================================================================================

STATE MACHINES:
    Delivery note:  pending -> delivered | cancelled
                    delivered -> cancelled
    Return note:    pending -> processed | cancelled
    Invoice:        draft -> sent | paid
                    sent -> paid | overdue
                    overdue -> paid
                    paid -> sent            (payment reversed)
    Quote:          draft -> sent | accepted | expired
                    sent -> accepted | expired | draft
                    expired -> sent         (validity extended and re-sent)
    Purchase order: pending / partial / completed, DERIVED from received
                    quantities; never set by a caller.

SIDE EFFECTS:
    delivery note pending -> delivered     reduce stock by every line
    delivery note delivered -> cancelled   restore stock
    return note pending -> processed       restore stock
    invoice -> paid                        payment_method required, paid_date stamped
    invoice paid -> *                      payment_method and paid_date cleared

RULES:
1. Requesting the current status, or a transition that is not defined, is a
   no-op that reports success (changed=False). Re-submitting is safe.
2. The status change is committed BEFORE the stock side effect runs. A failed
   stock update is reported in the result, the status stays changed.
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..extensions import db
from ..errors import ValidationError, InvalidStateError
from ..models import Document, DELIVERY_NOTE, RETURN_NOTE, INVOICE, QUOTE, PURCHASE_ORDER
from ..time_utils import today
from ..validation import coerce_date, classify_payment_method, PAYMENT_METHODS
from .concurrency import run_with_retry
from .document_service import get_document
from .inventory_client import InventoryClient
from .inventory_service import (
    ReconcileResult,
    OPERATION_REDUCE,
    OPERATION_RESTORE,
    movements_from_lines,
    reconcile,
)


STATUS_PAID = "paid"

PO_PENDING = "pending"
PO_PARTIAL = "partial"
PO_COMPLETED = "completed"
PURCHASE_ORDER_STATUSES = {PO_PENDING, PO_PARTIAL, PO_COMPLETED}

TRANSITIONS: dict[str, dict[str, set[str]]] = {
    DELIVERY_NOTE: {
        "pending": {"delivered", "cancelled"},
        "delivered": {"cancelled"},
        "cancelled": set(),
    },
    RETURN_NOTE: {
        "pending": {"processed", "cancelled"},
        "processed": set(),
        "cancelled": set(),
    },
    INVOICE: {
        "draft": {"sent", "paid"},
        "sent": {"paid", "overdue"},
        "overdue": {"paid"},
        "paid": {"sent"},
    },
    QUOTE: {
        "draft": {"sent", "accepted", "expired"},
        "sent": {"accepted", "expired", "draft"},
        "expired": {"sent"},
        "accepted": set(),
    },
}

SIDE_EFFECTS: dict[tuple[str, str, str], str] = {
    (DELIVERY_NOTE, "pending", "delivered"): OPERATION_REDUCE,
    (DELIVERY_NOTE, "delivered", "cancelled"): OPERATION_RESTORE,
    (RETURN_NOTE, "pending", "processed"): OPERATION_RESTORE,
}


@dataclass
class TransitionResult:
    document: Document
    previous_status: str
    changed: bool
    reconciliation: ReconcileResult | None = None

    @property
    def message(self) -> str:
        if not self.changed:
            return f"Status unchanged ({self.document.status})"
        text = f"Status changed from {self.previous_status} to {self.document.status}"
        if self.reconciliation is not None:
            text += f"; {self.reconciliation.message}"
        return text

    def to_dict(self) -> dict:
        return {
            "document": self.document.to_dict(),
            "previous_status": self.previous_status,
            "changed": self.changed,
            "inventory": self.reconciliation.to_dict() if self.reconciliation else None,
            "message": self.message,
        }


def statuses_for(document_type: str) -> set[str]:
    if document_type == PURCHASE_ORDER:
        return set(PURCHASE_ORDER_STATUSES)
    graph = TRANSITIONS.get(document_type, {})
    result = set(graph)
    for targets in graph.values():
        result |= targets
    return result


def validate_status(document_type: str, status: str) -> None:
    """
    Raises:
        ValidationError: status is not in the type's vocabulary
    """
    allowed = statuses_for(document_type)
    if status not in allowed:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(allowed))}"
        )


def can_transition(document_type: str, from_status: str, to_status: str) -> bool:
    return to_status in TRANSITIONS.get(document_type, {}).get(from_status, set())


def derive_purchase_order_status(lines) -> str:
    """
    Purchase order status from its lines.

    completed: every line received >= ordered
    partial:   something received, not everything
    pending:   nothing received
    """
    lines = list(lines)
    if lines and all((line.quantity_received or 0) >= line.quantity for line in lines):
        return PO_COMPLETED
    if any((line.quantity_received or 0) > 0 for line in lines):
        return PO_PARTIAL
    return PO_PENDING


def _apply_payment(doc: Document, previous: str, new_status: str, payment_method, paid_date) -> None:
    if new_status == STATUS_PAID:
        doc.payment_method = payment_method
        doc.paid_date = paid_date or today()
    elif previous == STATUS_PAID:
        doc.payment_method = None
        doc.paid_date = None


def change_status(
    document_id: int,
    new_status: str,
    *,
    document_type: str | None = None,
    payment_method: str | None = None,
    paid_date: date | str | None = None,
    client: InventoryClient | None = None,
) -> TransitionResult:
    """
    Move a document to a new status and run the transition's side effect.

    Args:
        document_id: Document to change
        new_status: Target status
        document_type: Optional guard, the document must be of this type
        payment_method: cash / transfer / cheque, required when an invoice becomes paid
        paid_date: Optional payment date (defaults to today)
        client: Inventory client (built from settings when omitted)

    Returns:
        TransitionResult (changed=False for no-op requests)

    Raises:
        NotFoundError: Unknown document
        InvalidStateError: Status of this type cannot be set by callers
        ValidationError: Unknown status, or missing/invalid payment method
    """
    doc = get_document(document_id, document_type)
    doc_type = doc.document_type

    if doc_type == PURCHASE_ORDER:
        raise InvalidStateError(
            "Purchase order status is derived from received quantities; record a receipt instead"
        )
    if doc_type not in TRANSITIONS:
        raise InvalidStateError(f"Status of a {doc_type.replace('_', ' ')} cannot be changed")

    validate_status(doc_type, new_status)
    previous = doc.status

    if new_status == previous or not can_transition(doc_type, previous, new_status):
        return TransitionResult(document=doc, previous_status=previous, changed=False)

    method = None
    parsed_paid_date = None
    if doc_type == INVOICE and new_status == STATUS_PAID:
        method = classify_payment_method(payment_method)
        if method is None:
            raise ValidationError(
                f"payment_method is required to mark an invoice paid. Must be one of: {', '.join(PAYMENT_METHODS)}"
            )
        parsed_paid_date = coerce_date(paid_date, "paid_date")

    def _op() -> Document:
        target = get_document(document_id)
        target.status = new_status
        if doc_type == INVOICE:
            _apply_payment(target, previous, new_status, method, parsed_paid_date)
        db.session.commit()
        return target

    doc = run_with_retry(_op)

    reconciliation = None
    operation = SIDE_EFFECTS.get((doc_type, previous, new_status))
    if operation:
        reconciliation = reconcile(movements_from_lines(doc.lines), operation, client)

    return TransitionResult(
        document=doc,
        previous_status=previous,
        changed=True,
        reconciliation=reconciliation,
    )
