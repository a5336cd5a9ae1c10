# Overview: Flask API routes for quotes; parses input and returns JSON responses.

from flask import Blueprint

from ..models import QUOTE
from .common import (
    list_documents_response,
    get_document_response,
    create_document_response,
    update_document_response,
    delete_document_response,
    change_status_response,
)


quotes_bp = Blueprint("quotes", __name__, url_prefix="/api/quotes")

LABEL = "quote"


@quotes_bp.get("")
def list_quotes_route():
    return list_documents_response(QUOTE, LABEL)


@quotes_bp.post("")
def create_quote_route():
    """
    Create a quote (DV-YYYY-NNNN, status draft).

    Request body:
    {
        "customer_name": "...",           // required
        "document_date": "2025-01-10",    // optional, defaults to today
        "valid_until": "2025-02-10",      // optional
        "notes": "...",
        "lines": [{"product_id", "sku", "name", "quantity", "unit_price_cents", "tax_rate_bps"}]
    }
    """
    return create_document_response(QUOTE, LABEL)


@quotes_bp.get("/<int:document_id>")
def get_quote_route(document_id: int):
    return get_document_response(QUOTE, document_id, LABEL)


@quotes_bp.put("/<int:document_id>")
def update_quote_route(document_id: int):
    return update_document_response(QUOTE, document_id, LABEL)


@quotes_bp.delete("/<int:document_id>")
def delete_quote_route(document_id: int):
    return delete_document_response(QUOTE, document_id, LABEL)


@quotes_bp.post("/<int:document_id>/status")
def change_quote_status_route(document_id: int):
    """Quotes move between draft, sent, accepted and expired; no stock effect."""
    return change_status_response(QUOTE, document_id, LABEL)
