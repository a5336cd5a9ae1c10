# Overview: Service-layer operations for inventory API settings.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import ValidationError
from ..models import InventoryApiSettings
from ..validation import coerce_str


def get_settings_row() -> InventoryApiSettings | None:
    return db.session.query(InventoryApiSettings).order_by(InventoryApiSettings.id).first()


def get_inventory_settings() -> dict | None:
    """
    Effective connection settings: saved row first, then app config.

    Returns None when no complete set of credentials is available.
    """
    row = get_settings_row()
    if row:
        return {
            "api_url": row.api_url,
            "consumer_key": row.consumer_key,
            "consumer_secret": row.consumer_secret,
        }

    cfg = current_app.config
    api_url = cfg.get("INVENTORY_API_URL")
    key = cfg.get("INVENTORY_CONSUMER_KEY")
    secret = cfg.get("INVENTORY_CONSUMER_SECRET")
    if api_url and key and secret:
        return {"api_url": api_url, "consumer_key": key, "consumer_secret": secret}
    return None


def save_inventory_settings(*, api_url, consumer_key, consumer_secret) -> InventoryApiSettings:
    api_url = coerce_str(api_url, max_length=512)
    consumer_key = coerce_str(consumer_key, max_length=255)
    consumer_secret = coerce_str(consumer_secret, max_length=255)

    if not api_url or not consumer_key or not consumer_secret:
        raise ValidationError("api_url, consumer_key and consumer_secret are required")
    if not api_url.startswith(("http://", "https://")):
        raise ValidationError("api_url must be an http(s) URL")

    row = get_settings_row()
    if row is None:
        row = InventoryApiSettings(api_url=api_url, consumer_key=consumer_key, consumer_secret=consumer_secret)
        db.session.add(row)
    else:
        row.api_url = api_url
        row.consumer_key = consumer_key
        row.consumer_secret = consumer_secret

    db.session.commit()
    return row
