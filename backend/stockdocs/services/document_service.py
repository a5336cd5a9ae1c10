# Overview: Service-layer operations for documents; numbering, creation, editing and lookup.

"""
Document Service

SEQUENCES:
    next_document_number() hands out "{prefix}-{year}-{NNNN}" numbers from
    one counter row per (document_type, year). The increment is a single
    UPDATE ... SET current_number = current_number + 1, and the allocation
    commits on its own: a document that later fails to save burns its
    number, the number is never handed out again.

DOCUMENTS:
    Header and lines are written in one transaction. If line insertion
    fails the transaction is rolled back, so no header without lines
    survives. Totals are always derived from the lines.

    Lines are never patched one by one: an edit deletes every line and
    inserts the new set.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import (
    ValidationError,
    NotFoundError,
    InvalidStateError,
    PersistenceError,
)
from ..models import (
    DocumentSequence,
    Document,
    DocumentLine,
    DeliveryNote,
    DOCUMENT_CLASSES,
    SEQUENCE_PREFIXES,
    INVOICE,
)
from ..time_utils import today
from ..validation import coerce_str, coerce_date, coerce_int, parse_line_items
from .concurrency import run_with_retry


logger = logging.getLogger(__name__)


class DocumentSequenceError(PersistenceError):
    """Raised when document sequence operations fail."""
    pass


def next_document_number(
    *,
    document_type: str,
    year: int,
    prefix: str | None = None,
    pad: int = 4,
) -> str:
    """
    Atomically allocate the next document number for a type/year.

    The counter row is created on first use with current_number = 2 (1 is
    issued). If two requests race to create the row, the loser hits the
    unique constraint, rolls back and falls through to the increment.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")
    if not year:
        raise DocumentSequenceError("year is required")

    prefix = prefix or SEQUENCE_PREFIXES.get(document_type)
    if not prefix:
        raise DocumentSequenceError(f"No number prefix for document type '{document_type}'")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.year == year,
        )
        .values(current_number=DocumentSequence.current_number + 1)
        .execution_options(synchronize_session=False)
    )

    def _increment() -> tuple[str, int] | None:
        result = db.session.execute(stmt)
        if not result.rowcount:
            return None
        row = (
            db.session.query(DocumentSequence.prefix, DocumentSequence.current_number)
            .filter_by(document_type=document_type, year=year)
            .one()
        )
        return row.prefix, row.current_number - 1

    def _op() -> str:
        allocated = _increment()
        if allocated is None:
            seq = DocumentSequence(
                document_type=document_type,
                year=year,
                prefix=prefix,
                current_number=2,
            )
            db.session.add(seq)
            try:
                db.session.flush()
                allocated = (prefix, 1)
            except IntegrityError:
                db.session.rollback()
                allocated = _increment()
                if allocated is None:
                    raise

        db.session.commit()
        seq_prefix, number = allocated
        logger.debug("Allocated %s number %s for %s", document_type, number, year)
        return f"{seq_prefix}-{year}-{number:0{pad}d}"

    try:
        return run_with_retry(_op)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Sequence allocation failed for %s/%s: %s", document_type, year, exc)
        raise DocumentSequenceError(
            f"Could not allocate a {document_type.replace('_', ' ')} number"
        ) from exc


def list_sequences() -> list[DocumentSequence]:
    return (
        db.session.query(DocumentSequence)
        .order_by(DocumentSequence.document_type, DocumentSequence.year)
        .all()
    )


# =============================================================================
# Amounts
# =============================================================================

def tax_amount(base_cents: int, tax_rate_bps: int) -> int:
    """Tax on a base amount, rounded half-up to the cent."""
    if base_cents < 0:
        return -tax_amount(-base_cents, tax_rate_bps)
    return (base_cents * tax_rate_bps + 5_000) // 10_000


def line_amounts(quantity: int, unit_price_cents: int, tax_rate_bps: int) -> tuple[int, int]:
    line_total = quantity * unit_price_cents
    return line_total, tax_amount(line_total, tax_rate_bps)


def apply_totals(doc: Document) -> Document:
    """Recompute header totals from the document's lines."""
    subtotal = sum(line.line_total_cents for line in doc.lines)
    tax = sum(line.tax_amount_cents for line in doc.lines)
    doc.subtotal_cents = subtotal
    doc.tax_cents = tax
    doc.total_cents = subtotal + tax
    return doc


# =============================================================================
# Documents
# =============================================================================

def _document_class(document_type: str):
    cls = DOCUMENT_CLASSES.get(document_type)
    if cls is None:
        raise ValidationError(
            f"Invalid document_type. Must be one of: {', '.join(sorted(DOCUMENT_CLASSES))}"
        )
    return cls


def _label(document_type: str) -> str:
    return document_type.replace("_", " ")


def _counterparty_name(header: dict) -> str | None:
    for key in ("counterparty_name", "customer_name", "supplier_name"):
        value = coerce_str(header.get(key), max_length=255)
        if value:
            return value
    return None


def _apply_header(doc: Document, header: dict) -> None:
    """Copy optional header fields present in the payload onto the document."""
    for field, aliases in (
        ("counterparty_email", ("counterparty_email", "customer_email", "supplier_email")),
        ("counterparty_phone", ("counterparty_phone", "customer_phone", "supplier_phone")),
        ("counterparty_address", ("counterparty_address", "customer_address", "supplier_address")),
    ):
        for key in aliases:
            if key in header:
                setattr(doc, field, coerce_str(header.get(key)))
                break

    if "notes" in header:
        doc.notes = coerce_str(header.get("notes"))
    if "reason" in header:
        doc.reason = coerce_str(header.get("reason"))
    if "due_date" in header:
        doc.due_date = coerce_date(header.get("due_date"), "due_date")
    if "expected_date" in header:
        doc.expected_date = coerce_date(header.get("expected_date"), "expected_date")
    for key in ("valid_until", "valid_until_date"):
        if key in header:
            doc.valid_until = coerce_date(header.get(key), key)
            break
    if header.get("related_invoice_id") is not None:
        doc.related_invoice_id = coerce_int(header.get("related_invoice_id"), "related_invoice_id", minimum=1)


def _build_line(position: int, item: dict) -> DocumentLine:
    line_total, tax = line_amounts(item["quantity"], item["unit_price_cents"], item["tax_rate_bps"])
    return DocumentLine(
        position=position,
        product_id=item["product_id"],
        sku=item["sku"],
        name=item["name"],
        quantity=item["quantity"],
        quantity_received=0,
        unit_price_cents=item["unit_price_cents"],
        line_total_cents=line_total,
        tax_rate_bps=item["tax_rate_bps"],
        tax_amount_cents=tax,
    )


def _insert_lines(doc: Document, items: list[dict]) -> None:
    for position, item in enumerate(items, start=1):
        doc.lines.append(_build_line(position, item))
    db.session.flush()


def create_document(
    document_type: str,
    header: dict,
    lines: list[dict],
    *,
    source: str | None = None,
) -> Document:
    """
    Create a numbered document with its line items.

    Args:
        document_type: delivery_note, purchase_order, return_note, invoice, quote, sales_journal
        header: counterparty and optional header fields
        lines: raw line items (name, quantity, unit_price_cents, tax_rate_bps, ...)
        source: invoice origin (manual, delivery_notes, order)

    Returns:
        The created document, status = the type's initial state

    Raises:
        ValidationError: missing counterparty or lines (nothing written)
        PersistenceError: number allocation or insertion failed
    """
    cls = _document_class(document_type)
    header = header or {}

    name = _counterparty_name(header)
    if not name:
        raise ValidationError("Counterparty name is required")
    items = parse_line_items(lines)
    document_date = coerce_date(header.get("document_date"), "document_date") or today()

    number = next_document_number(document_type=document_type, year=document_date.year)

    doc = cls(
        document_number=number,
        counterparty_name=name,
        document_date=document_date,
        status=cls.INITIAL_STATUS,
    )
    _apply_header(doc, header)
    if document_type == INVOICE:
        doc.source = source or coerce_str(header.get("source")) or "manual"

    try:
        db.session.add(doc)
        db.session.flush()
        _insert_lines(doc, items)
        apply_totals(doc)
        db.session.commit()
    except SQLAlchemyError as exc:
        # Header and lines share the transaction: rolling back removes the header too
        db.session.rollback()
        logger.error("Failed to create %s %s: %s", _label(document_type), number, exc)
        raise PersistenceError(f"Failed to create {_label(document_type)} line items") from exc

    logger.info("Created %s %s with %d line(s)", _label(document_type), number, len(items))
    return doc


def get_document(document_id: int, document_type: str | None = None) -> Document:
    query = db.session.query(Document).filter(Document.id == document_id)
    if document_type:
        query = query.filter(Document.document_type == document_type)
    doc = query.first()
    if not doc:
        label = _label(document_type) if document_type else "document"
        raise NotFoundError(f"{label.capitalize()} {document_id} not found")
    return doc


def update_document(
    document_id: int,
    header: dict,
    lines: list[dict],
    *,
    document_type: str | None = None,
) -> Document:
    """
    Replace a document's header fields and its whole line set.

    Raises:
        NotFoundError: unknown document
        InvalidStateError: status is not editable
        ValidationError: bad payload (nothing written)
    """
    doc = get_document(document_id, document_type)
    if not doc.is_editable():
        raise InvalidStateError(
            f"Cannot edit {doc.status} {_label(doc.document_type)} {doc.document_number}"
        )

    header = header or {}
    name = _counterparty_name(header) or doc.counterparty_name
    items = parse_line_items(lines)
    document_date = coerce_date(header.get("document_date"), "document_date")

    try:
        doc.counterparty_name = name
        if document_date:
            doc.document_date = document_date
        _apply_header(doc, header)

        doc.lines.clear()
        db.session.flush()
        _insert_lines(doc, items)
        apply_totals(doc)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to update %s: %s", doc.document_number, exc)
        raise PersistenceError(f"Failed to update {_label(doc.document_type)}") from exc

    return doc


def _release_delivery_notes(invoice: Document) -> list[str]:
    """Clear the invoiced flag of every delivery note billed by this invoice."""
    notes = db.session.query(DeliveryNote).filter(DeliveryNote.invoice_id == invoice.id).all()
    for note in notes:
        note.invoiced = False
        note.invoice_id = None
    return [note.document_number for note in notes]


def delete_document(document_id: int, document_type: str | None = None) -> None:
    """
    Delete a document that is still editable.

    Deleting an invoice hands its delivery notes back: they become editable
    and invoiceable again, in the same transaction as the delete.
    """
    doc = get_document(document_id, document_type)
    if not doc.is_editable():
        raise InvalidStateError(
            f"Cannot delete {doc.status} {_label(doc.document_type)} {doc.document_number}"
        )

    number = doc.document_number
    released: list[str] = []
    try:
        if doc.document_type == INVOICE:
            released = _release_delivery_notes(doc)
        db.session.delete(doc)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to delete %s: %s", number, exc)
        raise PersistenceError(f"Failed to delete {number}") from exc

    if released:
        logger.info("Deleted %s; delivery notes %s released", number, ", ".join(released))


def list_documents(
    document_type: str,
    *,
    status: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Document], int]:
    """
    List documents of one type, newest first.

    Returns:
        Tuple of (list of documents, total count)
    """
    cls = _document_class(document_type)
    query = db.session.query(cls)

    if status:
        query = query.filter(cls.status == status)
    if from_date:
        query = query.filter(cls.document_date >= from_date)
    if to_date:
        query = query.filter(cls.document_date <= to_date)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            db.or_(cls.document_number.ilike(pattern), cls.counterparty_name.ilike(pattern))
        )

    total = query.count()

    if offset < 0:
        offset = 0
    if limit < 1:
        limit = 1
    if limit > 500:
        limit = 500

    docs = (
        query.order_by(cls.document_date.desc(), cls.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return docs, total
