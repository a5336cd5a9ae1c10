# Overview: Service-layer operations for daily cash controls (till closing) and the journal gate.

"""
Cash Control Service

WHY: The sales journal for a day may only be produced once the day's takings
were counted. Closing a cash control freezes the totals per payment channel.

RULES:
1. At most one control per date (unique constraint on control_date).
2. Closing aggregates:
   - invoices with status paid and paid_date = date, EXCEPT invoices whose
     source is an external order (the order itself is counted)
   - external orders completed on that date
3. Each amount is bucketed by payment channel: transfer, cheque, or cash
   (cash is the default for unrecognised labels).
4. Closing is refused for a date that already holds a control, open or
   closed. An open control only records that the day is still being counted.
5. can_create_journal(date) is true iff exactly one control exists for the
   date and it is closed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime, time, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import ValidationError, NotFoundError, ConflictError, PersistenceError
from ..models import (
    CashControl,
    CASH_CONTROL_OPEN,
    CASH_CONTROL_CLOSED,
    CASH_CONTROL,
    Invoice,
    ExternalOrder,
    ORDER_STATUS_COMPLETED,
)
from ..time_utils import utcnow
from ..validation import (
    coerce_date,
    coerce_str,
    classify_payment_method,
    PAYMENT_CASH,
    PAYMENT_TRANSFER,
    PAYMENT_CHEQUE,
)
from .document_service import next_document_number


logger = logging.getLogger(__name__)

INVOICE_SOURCE_ORDER = "order"


@dataclass
class CashTotals:
    cash_total_cents: int = 0
    transfer_total_cents: int = 0
    cheque_total_cents: int = 0
    invoices_count: int = 0
    orders_count: int = 0

    @property
    def total_cents(self) -> int:
        return self.cash_total_cents + self.transfer_total_cents + self.cheque_total_cents

    def add(self, amount_cents: int, payment_method: str | None) -> None:
        channel = classify_payment_method(payment_method) or PAYMENT_CASH
        if channel == PAYMENT_TRANSFER:
            self.transfer_total_cents += amount_cents
        elif channel == PAYMENT_CHEQUE:
            self.cheque_total_cents += amount_cents
        else:
            self.cash_total_cents += amount_cents

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_cents"] = self.total_cents
        return data


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a business day as naive UTC datetimes."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def paid_invoices_for(day: date) -> list[Invoice]:
    """Paid invoices for a date, order-sourced invoices excluded."""
    return (
        db.session.query(Invoice)
        .filter(
            Invoice.status == "paid",
            Invoice.paid_date == day,
            db.or_(Invoice.source.is_(None), Invoice.source != INVOICE_SOURCE_ORDER),
        )
        .order_by(Invoice.id)
        .all()
    )


def completed_orders_for(day: date) -> list[ExternalOrder]:
    start, end = day_bounds(day)
    return (
        db.session.query(ExternalOrder)
        .filter(
            ExternalOrder.order_status == ORDER_STATUS_COMPLETED,
            ExternalOrder.completed_at >= start,
            ExternalOrder.completed_at < end,
        )
        .order_by(ExternalOrder.id)
        .all()
    )


def compute_totals(day: date) -> CashTotals:
    totals = CashTotals()
    for invoice in paid_invoices_for(day):
        totals.add(invoice.total_cents, invoice.payment_method)
        totals.invoices_count += 1
    for order in completed_orders_for(day):
        totals.add(order.total_cents, order.payment_method)
        totals.orders_count += 1
    return totals


def _require_date(value) -> date:
    control_date = coerce_date(value, "control_date")
    if control_date is None:
        raise ValidationError("control_date is required")
    return control_date


def _controls_for(day: date) -> list[CashControl]:
    return db.session.query(CashControl).filter(CashControl.control_date == day).all()


def _persist(control: CashControl) -> CashControl:
    try:
        db.session.add(control)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError(
            f"A cash control already exists for {control.control_date.isoformat()}"
        ) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to save cash control for %s: %s", control.control_date, exc)
        raise PersistenceError("Failed to save cash control") from exc
    return control


def open_cash_control(control_date, notes: str | None = None) -> CashControl:
    """
    Record an open (not yet counted) control for a date.

    Raises:
        ValidationError: missing/invalid date
        ConflictError: a control already exists for that date
    """
    day = _require_date(control_date)
    if _controls_for(day):
        raise ConflictError(f"A cash control already exists for {day.isoformat()}")

    control = CashControl(control_date=day, status=CASH_CONTROL_OPEN, notes=coerce_str(notes))
    return _persist(control)


def close_cash_control(control_date, notes: str | None = None) -> tuple[CashControl, dict]:
    """
    Aggregate the day's takings and close the control.

    Args:
        control_date: Business date (date or "YYYY-MM-DD")
        notes: Optional operator notes

    Returns:
        (cash_control, stats) where stats carries totals and counts

    Raises:
        ValidationError: missing/invalid date
        ConflictError: a control already exists for that date
        PersistenceError: the control could not be saved
    """
    day = _require_date(control_date)

    existing = _controls_for(day)
    if existing:
        raise ConflictError(
            f"A cash control already exists for {day.isoformat()} ({existing[0].status})"
        )

    totals = compute_totals(day)
    number = next_document_number(document_type=CASH_CONTROL, year=day.year)

    control = CashControl(
        control_date=day,
        control_number=number,
        cash_total_cents=totals.cash_total_cents,
        transfer_total_cents=totals.transfer_total_cents,
        cheque_total_cents=totals.cheque_total_cents,
        total_cents=totals.total_cents,
        invoices_count=totals.invoices_count,
        orders_count=totals.orders_count,
        status=CASH_CONTROL_CLOSED,
        notes=coerce_str(notes),
        closed_at=utcnow(),
    )

    _persist(control)
    logger.info(
        "Closed cash control %s for %s: %s cents (%d invoice(s), %d order(s))",
        number, day, totals.total_cents, totals.invoices_count, totals.orders_count,
    )
    return control, totals.to_dict()


def can_create_journal(journal_date) -> bool:
    day = coerce_date(journal_date, "date")
    if day is None:
        return False
    controls = _controls_for(day)
    return len(controls) == 1 and controls[0].status == CASH_CONTROL_CLOSED


def get_cash_control(control_id: int) -> CashControl:
    control = db.session.get(CashControl, control_id)
    if not control:
        raise NotFoundError(f"Cash control {control_id} not found")
    return control


def get_cash_control_for_date(day: date) -> CashControl | None:
    return db.session.query(CashControl).filter(CashControl.control_date == day).first()


def list_cash_controls(
    *,
    status: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[CashControl], int]:
    query = db.session.query(CashControl)
    if status:
        query = query.filter(CashControl.status == status)
    if from_date:
        query = query.filter(CashControl.control_date >= from_date)
    if to_date:
        query = query.filter(CashControl.control_date <= to_date)

    total = query.count()
    limit = min(max(limit, 1), 500)
    offset = max(offset, 0)
    controls = (
        query.order_by(CashControl.control_date.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return controls, total
