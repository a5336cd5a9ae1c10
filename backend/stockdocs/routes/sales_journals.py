# Overview: Flask API routes for daily sales journals; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..errors import StockDocsError
from ..models import SALES_JOURNAL
from ..services import journal_service
from .common import (
    error_response,
    internal_error,
    list_documents_response,
    get_document_response,
)


sales_journals_bp = Blueprint("sales_journals", __name__, url_prefix="/api/sales-journals")

LABEL = "sales journal"


@sales_journals_bp.get("")
def list_sales_journals_route():
    return list_documents_response(SALES_JOURNAL, LABEL)


@sales_journals_bp.post("")
def create_sales_journal_route():
    """
    Consolidate a day's sales into a journal (FG-YYYY-NNNN).

    Request body: {"journal_date": "2025-01-10", "notes": "..."}

    Returns:
        201 {sales_journal, stats}
        422 if the day's cash control is not closed or there is nothing to journal
        409 if a journal already exists for the date
    """
    data = request.get_json(silent=True) or {}
    try:
        journal, stats = journal_service.create_sales_journal(
            data.get("journal_date") or data.get("date"),
            data.get("notes"),
        )
        return jsonify({"sales_journal": journal.to_dict(), "stats": stats}), 201
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("create sales journal")


@sales_journals_bp.get("/<int:document_id>")
def get_sales_journal_route(document_id: int):
    return get_document_response(SALES_JOURNAL, document_id, LABEL)
