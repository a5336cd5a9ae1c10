# Overview: Service-layer operations for mirroring external shop orders locally.

"""
Order Sync Service

WHY: Completed shop orders are takings too. Cash controls and sales
journals read them from the local mirror, never from the shop directly.

RULES:
1. Orders are upserted by external id; a second sync never duplicates.
2. An order's lines are replaced wholesale on every sync.
3. Amounts arrive as decimal strings and are stored as integer cents.
4. Tax rate per line is derived from the shop's tax class.
5. Origin is "pos" when POS markers appear in the order metadata or payment
   title, or when the order was paid in cash; "website" otherwise.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import ExternalSystemError, PersistenceError
from ..models import ExternalOrder, ExternalOrderLine, ORDER_STATUS_COMPLETED
from ..time_utils import parse_iso_datetime
from .inventory_client import InventoryClient
from .inventory_service import inventory_client
from .money import to_cents, tax_rate_from_class


logger = logging.getLogger(__name__)

ORDER_SOURCE_POS = "pos"
ORDER_SOURCE_WEBSITE = "website"

POS_MARKERS = (
    "_pos_",
    "pos_register",
    "square_pos",
    "loyverse_pos",
    "retail_pos",
    "point_of_sale",
    "woocommerce_pos",
)
_POS_CASH_MARKERS = ("cash", "espèces", "especes")


def detect_order_source(payload: dict) -> str:
    meta = json.dumps(payload.get("meta_data") or [], ensure_ascii=False).lower()
    payment = (payload.get("payment_method_title") or "").lower()

    for marker in POS_MARKERS:
        if marker in meta or marker in payment:
            return ORDER_SOURCE_POS
    if any(marker in payment for marker in _POS_CASH_MARKERS):
        return ORDER_SOURCE_POS
    return ORDER_SOURCE_WEBSITE


def _datetime(payload: dict, *keys: str):
    for key in keys:
        value = payload.get(key)
        if value:
            return parse_iso_datetime(str(value))
    return None


def _customer_name(billing: dict) -> str | None:
    name = f"{billing.get('first_name') or ''} {billing.get('last_name') or ''}".strip()
    return name or None


def _build_line(raw: dict) -> ExternalOrderLine:
    tax_class = raw.get("tax_class") or None
    product_id = raw.get("variation_id") or raw.get("product_id")
    return ExternalOrderLine(
        product_id=str(product_id) if product_id else None,
        sku=raw.get("sku") or None,
        name=raw.get("name") or "Unnamed product",
        quantity=int(raw.get("quantity") or 0),
        unit_price_cents=to_cents(raw.get("price")),
        line_total_cents=to_cents(raw.get("total")),
        tax_class=tax_class,
        tax_rate_bps=tax_rate_from_class(tax_class),
        tax_amount_cents=to_cents(raw.get("total_tax")),
    )


def upsert_order(payload: dict) -> ExternalOrder:
    """Create or refresh one mirrored order (caller commits)."""
    external_id = str(payload["id"])
    order = db.session.query(ExternalOrder).filter(ExternalOrder.external_id == external_id).first()
    if order is None:
        order = ExternalOrder(external_id=external_id)
        db.session.add(order)

    billing = payload.get("billing") or {}
    status = payload.get("status") or "pending"

    order.order_number = str(payload.get("number") or external_id)
    order.customer_name = _customer_name(billing)
    order.customer_email = billing.get("email") or None
    order.order_status = status
    order.payment_method = payload.get("payment_method_title") or None
    order.total_cents = to_cents(payload.get("total"))
    order.order_source = detect_order_source(payload)
    order.ordered_at = _datetime(payload, "date_created_gmt", "date_created")

    completed_at = _datetime(payload, "date_completed_gmt", "date_completed")
    if completed_at is None and status == ORDER_STATUS_COMPLETED:
        completed_at = _datetime(payload, "date_modified_gmt", "date_modified") or order.ordered_at
    order.completed_at = completed_at

    order.lines.clear()
    for raw in payload.get("line_items") or []:
        order.lines.append(_build_line(raw))
    return order


def sync_orders(client: InventoryClient | None = None, *, per_page: int = 100) -> int:
    """
    Pull recent orders from the shop and upsert them.

    Returns:
        Number of orders synced

    Raises:
        ExternalSystemError: shop not configured, unreachable, or bad payload
        PersistenceError: orders could not be saved
    """
    with inventory_client(client) as api:
        if api is None:
            raise ExternalSystemError("Inventory API is not configured")
        payloads = api.list_orders(per_page=per_page)

    try:
        for payload in payloads:
            upsert_order(payload)
        db.session.commit()
    except (KeyError, TypeError, ValueError) as exc:
        db.session.rollback()
        raise ExternalSystemError(f"Unexpected order payload: {exc}") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to save synced orders: %s", exc)
        raise PersistenceError("Failed to save synced orders") from exc

    logger.info("Synced %d order(s)", len(payloads))
    return len(payloads)


def list_orders(
    *,
    status: str | None = None,
    source: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[ExternalOrder], int]:
    query = db.session.query(ExternalOrder)
    if status:
        query = query.filter(ExternalOrder.order_status == status)
    if source:
        query = query.filter(ExternalOrder.order_source == source)

    total = query.count()
    limit = min(max(limit, 1), 500)
    offset = max(offset, 0)
    orders = (
        query.order_by(ExternalOrder.ordered_at.desc(), ExternalOrder.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return orders, total
