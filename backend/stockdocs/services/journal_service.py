# Overview: Service-layer operations for daily sales journals; line consolidation and VAT summary.

"""
Sales Journal Service

WHY: The accountant wants one document per business day listing what was
sold, product by product, with VAT totals per rate.

SOURCES (for the journal date):
- invoices paid that day, order-sourced invoices excluded
- external shop orders completed that day

CONSOLIDATION:
- Lines are merged by product_id; lines without a product fall back to sku,
  then to name.
- Quantities are summed. Amounts are recomputed from the summed quantity x
  unit price, never by adding line totals (avoids rounding drift).
- The first line seen for a product provides its unit price and tax rate.

PRECONDITIONS:
- The day's cash control exists and is closed (can_create_journal)
- There is something to journal
- No journal exists yet for that date
"""

from __future__ import annotations

import logging
from datetime import date

from ..extensions import db
from ..errors import ValidationError, ConflictError, PreconditionError
from ..models import SalesJournal, SALES_JOURNAL
from ..validation import coerce_date
from .cash_control_service import (
    can_create_journal,
    completed_orders_for,
    paid_invoices_for,
)
from .document_service import create_document, line_amounts


logger = logging.getLogger(__name__)


def _merge_key(item: dict) -> tuple[str, int, int]:
    if item.get("product_id"):
        product = f"product:{item['product_id']}"
    elif item.get("sku"):
        product = f"sku:{item['sku']}"
    else:
        product = f"name:{item.get('name')}"
    # Same product sold at another price or rate stays a separate line
    return product, item.get("unit_price_cents") or 0, item.get("tax_rate_bps") or 0


def merge_line_items(items) -> list[dict]:
    """
    Merge raw line dicts that refer to the same product at the same price.

    Input/output dicts carry product_id, sku, name, quantity,
    unit_price_cents and tax_rate_bps. Order of first appearance is kept.
    A merged line total therefore always equals the sum of its source line totals.
    """
    merged: dict[tuple[str, int, int], dict] = {}
    for item in items:
        key = _merge_key(item)
        if key in merged:
            merged[key]["quantity"] += item["quantity"]
        else:
            merged[key] = {
                "product_id": item.get("product_id"),
                "sku": item.get("sku"),
                "name": item.get("name"),
                "quantity": item["quantity"],
                "unit_price_cents": item.get("unit_price_cents") or 0,
                "tax_rate_bps": item.get("tax_rate_bps") or 0,
            }
    return list(merged.values())


def with_amounts(items: list[dict]) -> list[dict]:
    result = []
    for item in items:
        line_total, tax = line_amounts(item["quantity"], item["unit_price_cents"], item["tax_rate_bps"])
        result.append({**item, "line_total_cents": line_total, "tax_amount_cents": tax})
    return result


def vat_summary(lines) -> list[dict]:
    """
    Group priced lines by tax rate, ascending.

    Accepts dicts or DocumentLine rows.
    """
    groups: dict[int, dict] = {}
    for line in lines:
        get = line.get if isinstance(line, dict) else lambda name: getattr(line, name)
        rate = get("tax_rate_bps") or 0
        group = groups.setdefault(rate, {"tax_rate_bps": rate, "base_cents": 0, "tax_cents": 0})
        group["base_cents"] += get("line_total_cents") or 0
        group["tax_cents"] += get("tax_amount_cents") or 0
    return [groups[rate] for rate in sorted(groups)]


def _line_dict(line) -> dict:
    return {
        "product_id": line.product_id,
        "sku": line.sku,
        "name": line.name,
        "quantity": line.quantity,
        "unit_price_cents": line.unit_price_cents,
        "tax_rate_bps": line.tax_rate_bps,
    }


def _require_date(value) -> date:
    day = coerce_date(value, "journal_date")
    if day is None:
        raise ValidationError("journal_date is required")
    return day


def build_journal(journal_date) -> dict:
    """
    Consolidated content of the sales journal for a date (nothing written).

    Raises:
        ValidationError: missing/invalid date
        PreconditionError: cash control not closed, or nothing to journal
    """
    day = _require_date(journal_date)
    if not can_create_journal(day):
        raise PreconditionError(
            f"Cash control for {day.isoformat()} must be closed before creating the sales journal"
        )

    invoices = paid_invoices_for(day)
    orders = completed_orders_for(day)

    raw: list[dict] = []
    for invoice in invoices:
        raw.extend(_line_dict(line) for line in invoice.lines)
    for order in orders:
        raw.extend(_line_dict(line) for line in order.lines)

    if not raw:
        raise PreconditionError(f"No paid invoices or completed orders for {day.isoformat()}")

    lines = with_amounts(merge_line_items(raw))
    subtotal = sum(line["line_total_cents"] for line in lines)
    tax = sum(line["tax_amount_cents"] for line in lines)

    return {
        "journal_date": day,
        "lines": lines,
        "subtotal_cents": subtotal,
        "tax_cents": tax,
        "total_cents": subtotal + tax,
        "vat_summary": vat_summary(lines),
        "invoices_count": len(invoices),
        "orders_count": len(orders),
        "original_line_items_count": len(raw),
    }


def get_journal_for_date(day: date) -> SalesJournal | None:
    return db.session.query(SalesJournal).filter(SalesJournal.document_date == day).first()


def create_sales_journal(journal_date, notes: str | None = None) -> tuple[SalesJournal, dict]:
    """
    Build, number (FG) and persist the sales journal for a date.

    Returns:
        (journal, stats) with invoices_count, orders_count, line_items_count,
        original_line_items_count and vat_summary

    Raises:
        ValidationError: missing/invalid date
        PreconditionError: cash control not closed, or nothing to journal
        ConflictError: a journal already exists for the date
        PersistenceError: the journal could not be saved
    """
    day = _require_date(journal_date)
    existing = get_journal_for_date(day)
    if existing is not None:
        raise ConflictError(
            f"Sales journal {existing.document_number} already exists for {day.isoformat()}"
        )

    content = build_journal(day)
    header = {
        "counterparty_name": f"Sales journal {day.isoformat()}",
        "document_date": day,
        "notes": notes,
    }
    journal = create_document(SALES_JOURNAL, header, content["lines"])

    stats = {
        "invoices_count": content["invoices_count"],
        "orders_count": content["orders_count"],
        "line_items_count": len(journal.lines),
        "original_line_items_count": content["original_line_items_count"],
        "vat_summary": vat_summary(journal.lines),
    }
    logger.info(
        "Created sales journal %s for %s (%d line(s) from %d)",
        journal.document_number, day, stats["line_items_count"], stats["original_line_items_count"],
    )
    return journal, stats
