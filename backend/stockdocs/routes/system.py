# backend/stockdocs/routes/system.py
"""
System health endpoint.

Checks the database and reports whether the external inventory API is
configured (it is not called: a slow shop must not fail the health check).
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Document, DocumentSequence
from ..services.settings_service import get_inventory_settings
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        document_count = db.session.query(Document).count()
        sequence_count = db.session.query(DocumentSequence).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "documents": document_count,
                "sequences": sequence_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_inventory_config() -> dict:
    try:
        configured = get_inventory_settings() is not None
    except Exception:
        current_app.logger.exception("Inventory settings check failed")
        return {"status": "unhealthy", "error": "Settings error"}

    if not configured:
        # Documents still work, stock sync does not
        return {"status": "degraded", "warning": "Inventory API not configured"}
    return {"status": "healthy"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    inventory_health = check_inventory_config()

    all_checks = [database_health, inventory_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "inventory_api": inventory_health,
        }
    }
    return response, http_status
