# Overview: Flask API routes for inventory API connection settings.

from flask import Blueprint, request, jsonify

from ..errors import StockDocsError
from ..services import settings_service
from .common import error_response, internal_error


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/inventory")
def get_inventory_settings_route():
    """Saved settings (secret masked), or whether env config is in use."""
    try:
        row = settings_service.get_settings_row()
        return jsonify({
            "settings": row.to_dict() if row else None,
            "configured": settings_service.get_inventory_settings() is not None,
        })
    except Exception:
        return internal_error("get inventory settings")


@settings_bp.post("/inventory")
def save_inventory_settings_route():
    """
    Request body:
    {
        "api_url": "https://shop.example/wp-json/wc/v3",
        "consumer_key": "ck_...",
        "consumer_secret": "cs_..."
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        row = settings_service.save_inventory_settings(
            api_url=data.get("api_url"),
            consumer_key=data.get("consumer_key"),
            consumer_secret=data.get("consumer_secret"),
        )
        return jsonify({"settings": row.to_dict(), "configured": True})
    except StockDocsError as e:
        return error_response(e)
    except Exception:
        return internal_error("save inventory settings")
