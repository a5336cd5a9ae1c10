from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date


# Document types (discriminator values)
DELIVERY_NOTE = "delivery_note"
PURCHASE_ORDER = "purchase_order"
RETURN_NOTE = "return_note"
INVOICE = "invoice"
QUOTE = "quote"
SALES_JOURNAL = "sales_journal"
CASH_CONTROL = "cash_control"


class DocumentSequence(db.Model):
    """
    Per-type, per-year document counters.

    WHY: Human-readable numbers like "BL-2025-0007" must never be issued twice.
    current_number is the NEXT number to hand out and only ever increases.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "year", name="uq_doc_sequences_type_year"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False)
    prefix = db.Column(db.String(8), nullable=False)
    current_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_type": self.document_type,
            "year": self.year,
            "prefix": self.prefix,
            "current_number": self.current_number,
            "updated_at": to_utc_z(self.updated_at),
        }


class Document(db.Model):
    """
    Numbered commercial document (single table, one row per document).

    Subclasses only differ in their status vocabulary and number prefix;
    columns that only one type uses are nullable.

    INVARIANT: subtotal/tax/total are derived from lines (see
    document_service.apply_totals) and never edited on their own.
    """
    __tablename__ = "documents"
    __table_args__ = (
        db.Index("ix_documents_type_status_date", "document_type", "status", "document_date"),
        {"sqlite_autoincrement": True},
    )

    PREFIX = "DOC"
    INITIAL_STATUS = "pending"
    EDITABLE_STATUSES: frozenset = frozenset()

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)

    # Human-readable number (e.g., "BL-2025-0001")
    document_number = db.Column(db.String(32), nullable=False, unique=True)

    # Counterparty (client for sales documents, supplier for purchase orders)
    counterparty_name = db.Column(db.String(255), nullable=False)
    counterparty_email = db.Column(db.String(255), nullable=True)
    counterparty_phone = db.Column(db.String(64), nullable=True)
    counterparty_address = db.Column(db.Text, nullable=True)

    document_date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    # Invoice payment tracking
    payment_method = db.Column(db.String(16), nullable=True)
    paid_date = db.Column(db.Date, nullable=True, index=True)
    due_date = db.Column(db.Date, nullable=True)
    # manual, delivery_notes, order
    source = db.Column(db.String(32), nullable=True)

    # Delivery note invoicing
    invoiced = db.Column(db.Boolean, nullable=False, default=False)
    invoice_id = db.Column(db.Integer, db.ForeignKey("documents.id"), nullable=True)

    # Return note
    reason = db.Column(db.Text, nullable=True)
    related_invoice_id = db.Column(db.Integer, db.ForeignKey("documents.id"), nullable=True)

    # Purchase order
    expected_date = db.Column(db.Date, nullable=True)

    # Quote
    valid_until = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "DocumentLine",
        back_populates="document",
        order_by="DocumentLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    __mapper_args__ = {
        "polymorphic_on": document_type,
        "polymorphic_identity": "document",
        "version_id_col": version_id,
    }

    def is_editable(self) -> bool:
        return self.status in self.EDITABLE_STATUSES

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "document_type": self.document_type,
            "document_number": self.document_number,
            "counterparty_name": self.counterparty_name,
            "counterparty_email": self.counterparty_email,
            "counterparty_phone": self.counterparty_phone,
            "counterparty_address": self.counterparty_address,
            "document_date": to_iso_date(self.document_date),
            "status": self.status,
            "notes": self.notes,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        data.update(self._extra_fields())
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data

    def _extra_fields(self) -> dict:
        return {}


class DeliveryNote(Document):
    PREFIX = "BL"
    INITIAL_STATUS = "pending"
    EDITABLE_STATUSES = frozenset({"pending"})

    __mapper_args__ = {"polymorphic_identity": DELIVERY_NOTE}

    def is_editable(self) -> bool:
        return super().is_editable() and not self.invoiced

    def _extra_fields(self) -> dict:
        return {"invoiced": bool(self.invoiced), "invoice_id": self.invoice_id}


class PurchaseOrder(Document):
    PREFIX = "BG"
    INITIAL_STATUS = "pending"
    EDITABLE_STATUSES = frozenset({"pending"})

    __mapper_args__ = {"polymorphic_identity": PURCHASE_ORDER}

    def is_editable(self) -> bool:
        # Editing replaces lines, which would drop recorded receipts
        return super().is_editable() and not any(line.quantity_received for line in self.lines)

    def _extra_fields(self) -> dict:
        return {"expected_date": to_iso_date(self.expected_date)}


class ReturnNote(Document):
    PREFIX = "BR"
    INITIAL_STATUS = "pending"
    EDITABLE_STATUSES = frozenset({"pending"})

    __mapper_args__ = {"polymorphic_identity": RETURN_NOTE}

    def _extra_fields(self) -> dict:
        return {"reason": self.reason, "related_invoice_id": self.related_invoice_id}


class Invoice(Document):
    PREFIX = "FA"
    INITIAL_STATUS = "draft"
    EDITABLE_STATUSES = frozenset({"draft"})

    __mapper_args__ = {"polymorphic_identity": INVOICE}

    def _extra_fields(self) -> dict:
        return {
            "payment_method": self.payment_method,
            "paid_date": to_iso_date(self.paid_date),
            "due_date": to_iso_date(self.due_date),
            "source": self.source,
        }


class Quote(Document):
    PREFIX = "DV"
    INITIAL_STATUS = "draft"
    EDITABLE_STATUSES = frozenset({"draft"})

    __mapper_args__ = {"polymorphic_identity": QUOTE}

    def _extra_fields(self) -> dict:
        return {"valid_until": to_iso_date(self.valid_until)}


class SalesJournal(Document):
    PREFIX = "FG"
    INITIAL_STATUS = "finalized"

    __mapper_args__ = {"polymorphic_identity": SALES_JOURNAL}


DOCUMENT_CLASSES = {
    DELIVERY_NOTE: DeliveryNote,
    PURCHASE_ORDER: PurchaseOrder,
    RETURN_NOTE: ReturnNote,
    INVOICE: Invoice,
    QUOTE: Quote,
    SALES_JOURNAL: SalesJournal,
}

# Prefixes for every numbered record, including non-document ones
SEQUENCE_PREFIXES = {
    **{doc_type: cls.PREFIX for doc_type, cls in DOCUMENT_CLASSES.items()},
    CASH_CONTROL: "CC",
}


class DocumentLine(db.Model):
    """
    One product entry on a document.

    quantity is ordered / delivered / returned / invoiced depending on the
    parent type. quantity_received is only used by purchase orders and holds
    the cumulative quantity already applied to the external stock.
    """
    __tablename__ = "document_lines"
    __table_args__ = (
        db.Index("ix_document_lines_document_position", "document_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(db.Integer, db.ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    # External inventory product id (string, the shop's identifier)
    product_id = db.Column(db.String(64), nullable=True, index=True)
    sku = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    quantity_received = db.Column(db.Integer, nullable=False, default=0)

    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)
    line_total_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    document = db.relationship("Document", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_id": self.document_id,
            "position": self.position,
            "product_id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "quantity": self.quantity,
            "quantity_received": self.quantity_received,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_amount_cents": self.tax_amount_cents,
        }
