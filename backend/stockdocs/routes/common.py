# Overview: Shared request parsing and CRUD handlers used by the document blueprints.

from __future__ import annotations

from flask import request, jsonify, current_app

from ..errors import StockDocsError
from ..services import document_service, lifecycle_service
from ..validation import coerce_date


def error_response(exc: StockDocsError):
    return jsonify(exc.to_dict()), exc.status_code


def internal_error(action: str):
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


def list_args() -> dict:
    """
    Common list query parameters.

    Raises:
        ValidationError: malformed from_date / to_date
    """
    limit = request.args.get("limit", 100, type=int)
    offset = request.args.get("offset", 0, type=int)

    # Clamp limit
    if limit < 1:
        limit = 1
    if limit > 500:
        limit = 500
    if offset < 0:
        offset = 0

    return {
        "status": request.args.get("status") or None,
        "from_date": coerce_date(request.args.get("from_date"), "from_date"),
        "to_date": coerce_date(request.args.get("to_date"), "to_date"),
        "limit": limit,
        "offset": offset,
    }


def list_documents_response(document_type: str, label: str):
    try:
        args = list_args()
        docs, total = document_service.list_documents(
            document_type,
            search=request.args.get("search") or None,
            **args,
        )
        return jsonify({
            "items": [d.to_dict(include_lines=False) for d in docs],
            "count": total,
            "limit": args["limit"],
            "offset": args["offset"],
        })
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error(f"list {label}s")


def get_document_response(document_type: str, document_id: int, label: str):
    try:
        doc = document_service.get_document(document_id, document_type)
        return jsonify({document_type: doc.to_dict()})
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error(f"get {label}")


def create_document_response(document_type: str, label: str):
    data = request.get_json(silent=True) or {}
    try:
        doc = document_service.create_document(document_type, data, data.get("lines") or data.get("items"))
        return jsonify({document_type: doc.to_dict()}), 201
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error(f"create {label}")


def update_document_response(document_type: str, document_id: int, label: str):
    data = request.get_json(silent=True) or {}
    try:
        doc = document_service.update_document(
            document_id,
            data,
            data.get("lines") or data.get("items"),
            document_type=document_type,
        )
        return jsonify({document_type: doc.to_dict()})
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error(f"update {label}")


def delete_document_response(document_type: str, document_id: int, label: str):
    try:
        document_service.delete_document(document_id, document_type)
        return jsonify({"deleted": True, "id": document_id})
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error(f"delete {label}")


def change_status_response(document_type: str, document_id: int, label: str):
    data = request.get_json(silent=True) or {}
    new_status = data.get("status") or data.get("new_status")
    if not new_status:
        return jsonify({"error": "status is required"}), 400

    try:
        result = lifecycle_service.change_status(
            document_id,
            new_status,
            document_type=document_type,
            payment_method=data.get("payment_method"),
            paid_date=data.get("paid_date"),
        )
        return jsonify(result.to_dict())
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error(f"change {label} status")
