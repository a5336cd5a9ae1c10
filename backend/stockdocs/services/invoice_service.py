# Overview: Service-layer operations for invoicing delivered goods from delivery notes.

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import ValidationError, PersistenceError
from ..models import DeliveryNote, Invoice, INVOICE
from ..validation import coerce_int, coerce_date
from .document_service import create_document
from .journal_service import merge_line_items


logger = logging.getLogger(__name__)

INVOICE_SOURCE_DELIVERY_NOTES = "delivery_notes"


def _load_notes(delivery_note_ids) -> list[DeliveryNote]:
    if not delivery_note_ids or not isinstance(delivery_note_ids, list):
        raise ValidationError("delivery_note_ids must be a non-empty list")

    ids = []
    for raw in delivery_note_ids:
        note_id = coerce_int(raw, "delivery_note_ids", minimum=1)
        if note_id not in ids:
            ids.append(note_id)

    notes = db.session.query(DeliveryNote).filter(DeliveryNote.id.in_(ids)).all()
    found = {note.id: note for note in notes}
    missing = [note_id for note_id in ids if note_id not in found]
    if missing:
        raise ValidationError(
            f"Delivery note(s) not found: {', '.join(str(i) for i in missing)}"
        )
    return [found[note_id] for note_id in ids]


def generate_invoice_from_delivery_notes(delivery_note_ids, header: dict | None = None) -> Invoice:
    """
    Create one draft invoice covering several delivery notes of a client.

    Lines are merged by product across notes. Notes are flagged invoiced and
    linked to the new invoice.

    Raises:
        ValidationError: unknown, cancelled or already invoiced notes, or
            notes belonging to different clients
        PersistenceError: the invoice or the note flags could not be saved
    """
    notes = _load_notes(delivery_note_ids)
    header = header or {}

    invoiced = [note.document_number for note in notes if note.invoiced]
    if invoiced:
        raise ValidationError(f"Delivery note(s) already invoiced: {', '.join(invoiced)}")

    cancelled = [note.document_number for note in notes if note.status == "cancelled"]
    if cancelled:
        raise ValidationError(f"Cancelled delivery note(s) cannot be invoiced: {', '.join(cancelled)}")

    names = {note.counterparty_name.strip().lower() for note in notes}
    if len(names) > 1:
        raise ValidationError("All delivery notes must belong to the same client")

    first = notes[0]
    raw_lines = [
        {
            "product_id": line.product_id,
            "sku": line.sku,
            "name": line.name,
            "quantity": line.quantity,
            "unit_price_cents": line.unit_price_cents,
            "tax_rate_bps": line.tax_rate_bps,
        }
        for note in notes
        for line in note.lines
    ]

    numbers = ", ".join(note.document_number for note in notes)
    invoice_header = {
        "counterparty_name": first.counterparty_name,
        "counterparty_email": first.counterparty_email,
        "counterparty_phone": first.counterparty_phone,
        "counterparty_address": first.counterparty_address,
        "document_date": coerce_date(header.get("document_date"), "document_date"),
        "notes": header.get("notes") or f"Delivery notes: {numbers}",
    }
    if header.get("due_date"):
        invoice_header["due_date"] = header["due_date"]

    invoice = create_document(
        INVOICE,
        invoice_header,
        merge_line_items(raw_lines),
        source=INVOICE_SOURCE_DELIVERY_NOTES,
    )

    try:
        for note in notes:
            note.invoiced = True
            note.invoice_id = invoice.id
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Invoice %s created but notes %s not flagged: %s", invoice.document_number, numbers, exc)
        raise PersistenceError(
            f"Invoice {invoice.document_number} created but delivery notes could not be marked invoiced"
        ) from exc

    logger.info("Invoice %s generated from %s", invoice.document_number, numbers)
    return invoice
