# Overview: Flask API routes for return notes; parses input and returns JSON responses.

from flask import Blueprint

from ..models import RETURN_NOTE
from .common import (
    list_documents_response,
    get_document_response,
    create_document_response,
    update_document_response,
    delete_document_response,
    change_status_response,
)


return_notes_bp = Blueprint("return_notes", __name__, url_prefix="/api/return-notes")

LABEL = "return note"


@return_notes_bp.get("")
def list_return_notes_route():
    return list_documents_response(RETURN_NOTE, LABEL)


@return_notes_bp.post("")
def create_return_note_route():
    """
    Create a return note (BR-YYYY-NNNN, status pending).

    Accepts the delivery note body plus "reason" and "related_invoice_id".
    """
    return create_document_response(RETURN_NOTE, LABEL)


@return_notes_bp.get("/<int:document_id>")
def get_return_note_route(document_id: int):
    return get_document_response(RETURN_NOTE, document_id, LABEL)


@return_notes_bp.put("/<int:document_id>")
def update_return_note_route(document_id: int):
    return update_document_response(RETURN_NOTE, document_id, LABEL)


@return_notes_bp.delete("/<int:document_id>")
def delete_return_note_route(document_id: int):
    return delete_document_response(RETURN_NOTE, document_id, LABEL)


@return_notes_bp.post("/<int:document_id>/status")
def change_return_note_status_route(document_id: int):
    """Processing a return restores the returned quantities to stock."""
    return change_status_response(RETURN_NOTE, document_id, LABEL)
