# Overview: Flask API routes for invoices; parses input and returns JSON responses.

from flask import Blueprint

from ..models import INVOICE
from .common import (
    list_documents_response,
    get_document_response,
    create_document_response,
    update_document_response,
    delete_document_response,
    change_status_response,
)


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")

LABEL = "invoice"


@invoices_bp.get("")
def list_invoices_route():
    return list_documents_response(INVOICE, LABEL)


@invoices_bp.post("")
def create_invoice_route():
    return create_document_response(INVOICE, LABEL)


@invoices_bp.get("/<int:document_id>")
def get_invoice_route(document_id: int):
    return get_document_response(INVOICE, document_id, LABEL)


@invoices_bp.put("/<int:document_id>")
def update_invoice_route(document_id: int):
    return update_document_response(INVOICE, document_id, LABEL)


@invoices_bp.delete("/<int:document_id>")
def delete_invoice_route(document_id: int):
    return delete_document_response(INVOICE, document_id, LABEL)


@invoices_bp.post("/<int:document_id>/status")
def change_invoice_status_route(document_id: int):
    """
    Request body:
    {
        "status": "sent" | "paid" | "overdue",
        "payment_method": "cash" | "transfer" | "cheque",  // required for paid
        "paid_date": "2025-01-10"                          // optional, defaults to today
    }
    """
    return change_status_response(INVOICE, document_id, LABEL)
