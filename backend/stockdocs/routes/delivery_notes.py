# Overview: Flask API routes for delivery notes; parses input and returns JSON responses.

"""
Delivery Note Routes

Status changes drive stock:
- pending -> delivered reduces external stock by every line
- delivered -> cancelled restores it
Stock failures are reported in the response, the status change stands.
"""

from flask import Blueprint, request, jsonify

from ..errors import StockDocsError
from ..models import DELIVERY_NOTE
from ..services import invoice_service
from .common import (
    error_response,
    internal_error,
    list_documents_response,
    get_document_response,
    create_document_response,
    update_document_response,
    delete_document_response,
    change_status_response,
)


delivery_notes_bp = Blueprint("delivery_notes", __name__, url_prefix="/api/delivery-notes")

LABEL = "delivery note"


@delivery_notes_bp.get("")
def list_delivery_notes_route():
    return list_documents_response(DELIVERY_NOTE, LABEL)


@delivery_notes_bp.post("")
def create_delivery_note_route():
    """
    Create a delivery note.

    Request body:
    {
        "counterparty_name": "Client",   // required (customer_name accepted)
        "document_date": "2025-01-10",   // optional, defaults to today
        "notes": "...",                  // optional
        "lines": [{"product_id": "42", "sku": "A1", "name": "...",
                   "quantity": 2, "unit_price_cents": 100, "tax_rate_bps": 2000}]
    }

    Returns:
        {delivery_note: {...}} with its BL-YYYY-NNNN number, status pending
    """
    return create_document_response(DELIVERY_NOTE, LABEL)


@delivery_notes_bp.get("/<int:document_id>")
def get_delivery_note_route(document_id: int):
    return get_document_response(DELIVERY_NOTE, document_id, LABEL)


@delivery_notes_bp.put("/<int:document_id>")
def update_delivery_note_route(document_id: int):
    return update_document_response(DELIVERY_NOTE, document_id, LABEL)


@delivery_notes_bp.delete("/<int:document_id>")
def delete_delivery_note_route(document_id: int):
    return delete_document_response(DELIVERY_NOTE, document_id, LABEL)


@delivery_notes_bp.post("/<int:document_id>/status")
def change_delivery_note_status_route(document_id: int):
    """
    Request body: {"status": "delivered" | "cancelled"}

    Returns:
        {document, previous_status, changed, inventory, message}
    """
    return change_status_response(DELIVERY_NOTE, document_id, LABEL)


@delivery_notes_bp.post("/invoice")
def invoice_delivery_notes_route():
    """
    Generate one invoice from several delivery notes of the same client.

    Request body: {"delivery_note_ids": [1, 2], "due_date": "..."}
    """
    data = request.get_json(silent=True) or {}
    try:
        invoice = invoice_service.generate_invoice_from_delivery_notes(
            data.get("delivery_note_ids"),
            header=data,
        )
        return jsonify({"invoice": invoice.to_dict()}), 201
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("invoice delivery notes")
