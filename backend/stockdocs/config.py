# backend/stockdocs/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockdocs.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockdocs.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # External inventory API (WooCommerce REST v3 style). A saved
    # InventoryApiSettings row takes precedence over these values.
    INVENTORY_API_URL = os.environ.get("INVENTORY_API_URL", "")
    INVENTORY_CONSUMER_KEY = os.environ.get("INVENTORY_CONSUMER_KEY", "")
    INVENTORY_CONSUMER_SECRET = os.environ.get("INVENTORY_CONSUMER_SECRET", "")
    INVENTORY_TIMEOUT_SECONDS = float(os.environ.get("INVENTORY_TIMEOUT_SECONDS", "15"))

    # Test hook: an httpx transport used instead of the network
    INVENTORY_HTTP_TRANSPORT = None

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Comma-separated browser origins allowed to call the API (none by default)
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", "").split(",")
        if origin.strip()
    ]
