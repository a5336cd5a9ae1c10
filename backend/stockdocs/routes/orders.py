# Overview: Flask API routes for mirrored shop orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..errors import StockDocsError
from ..services import order_sync_service
from .common import error_response, internal_error


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
def list_orders_route():
    """
    Query parameters:
    - status: order status (completed, processing, ...)
    - source: pos or website
    - limit / offset
    """
    limit = request.args.get("limit", 100, type=int)
    offset = request.args.get("offset", 0, type=int)
    try:
        orders, total = order_sync_service.list_orders(
            status=request.args.get("status") or None,
            source=request.args.get("source") or None,
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "items": [o.to_dict(include_lines=True) for o in orders],
            "count": total,
            "limit": limit,
            "offset": offset,
        })
    except Exception:
        return internal_error("list orders")


@orders_bp.post("/sync")
def sync_orders_route():
    try:
        count = order_sync_service.sync_orders()
        return jsonify({"count": count, "message": f"Synced {count} order(s)"})
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("sync orders")
