# Overview: Flask API routes for purchase orders and their receipts; parses input and returns JSON responses.

"""
Purchase Order Routes

Status is never set directly: it follows the received quantities recorded
through POST /<id>/receive.
"""

from flask import Blueprint, request, jsonify

from ..errors import StockDocsError
from ..models import PURCHASE_ORDER
from ..services import purchase_order_service
from .common import (
    error_response,
    internal_error,
    list_documents_response,
    get_document_response,
    create_document_response,
    update_document_response,
    delete_document_response,
)


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")

LABEL = "purchase order"


@purchase_orders_bp.get("")
def list_purchase_orders_route():
    return list_documents_response(PURCHASE_ORDER, LABEL)


@purchase_orders_bp.post("")
def create_purchase_order_route():
    """
    Create a purchase order (BG-YYYY-NNNN, status pending).

    Accepts "supplier_name" for the counterparty and an optional "expected_date".
    """
    return create_document_response(PURCHASE_ORDER, LABEL)


@purchase_orders_bp.get("/<int:document_id>")
def get_purchase_order_route(document_id: int):
    return get_document_response(PURCHASE_ORDER, document_id, LABEL)


@purchase_orders_bp.put("/<int:document_id>")
def update_purchase_order_route(document_id: int):
    return update_document_response(PURCHASE_ORDER, document_id, LABEL)


@purchase_orders_bp.delete("/<int:document_id>")
def delete_purchase_order_route(document_id: int):
    return delete_document_response(PURCHASE_ORDER, document_id, LABEL)


@purchase_orders_bp.post("/<int:document_id>/receive")
def receive_purchase_order_route(document_id: int):
    """
    Record cumulative received quantities.

    Request body:
    {
        "items": [{"line_item_id": 1, "quantity_received": 5}]
    }

    Returns:
        {purchase_order, status, stock_update_count, stock_update_errors,
         errors, already_completed, message}
    """
    data = request.get_json(silent=True) or {}
    try:
        result = purchase_order_service.receive_purchase_order(
            document_id,
            data.get("items") or data.get("received_items"),
        )
        return jsonify(result)
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("receive purchase order")
