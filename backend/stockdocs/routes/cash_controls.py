# Overview: Flask API routes for daily cash controls; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..errors import StockDocsError
from ..services import cash_control_service
from ..validation import coerce_date
from .common import error_response, internal_error, list_args


cash_controls_bp = Blueprint("cash_controls", __name__, url_prefix="/api/cash-controls")


@cash_controls_bp.get("")
def list_cash_controls_route():
    try:
        args = list_args()
        controls, total = cash_control_service.list_cash_controls(**args)
        return jsonify({
            "items": [c.to_dict() for c in controls],
            "count": total,
            "limit": args["limit"],
            "offset": args["offset"],
        })
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("list cash controls")


@cash_controls_bp.post("")
def close_cash_control_route():
    """
    Close the till for a date.

    Request body:
    {
        "control_date": "2025-01-10",  // required
        "notes": "...",                // optional
        "status": "open"               // optional: record an open control instead
    }

    Returns:
        201 {cash_control, stats}
        409 if a control (open or closed) already exists for the date
    """
    data = request.get_json(silent=True) or {}
    try:
        if data.get("status") == "open":
            control = cash_control_service.open_cash_control(data.get("control_date"), data.get("notes"))
            return jsonify({"cash_control": control.to_dict(), "stats": None}), 201

        control, stats = cash_control_service.close_cash_control(data.get("control_date"), data.get("notes"))
        return jsonify({"cash_control": control.to_dict(), "stats": stats}), 201
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("close cash control")


@cash_controls_bp.get("/check")
def check_cash_control_route():
    """
    Whether a sales journal can be created for a date.

    Query parameters:
    - date: YYYY-MM-DD (required)
    """
    raw = request.args.get("date")
    if not raw:
        return jsonify({"error": "date is required"}), 400
    try:
        day = coerce_date(raw, "date")
        control = cash_control_service.get_cash_control_for_date(day)
        return jsonify({
            "date": day.isoformat(),
            "can_create_journal": cash_control_service.can_create_journal(day),
            "cash_control": control.to_dict() if control else None,
        })
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("check cash control")


@cash_controls_bp.get("/<int:control_id>")
def get_cash_control_route(control_id: int):
    try:
        control = cash_control_service.get_cash_control(control_id)
        return jsonify({"cash_control": control.to_dict()})
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("get cash control")
