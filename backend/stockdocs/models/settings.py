from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class InventoryApiSettings(db.Model):
    """
    Connection settings for the external inventory API.

    Singleton row. When no row exists the application config is used.
    """
    __tablename__ = "inventory_api_settings"

    id = db.Column(db.Integer, primary_key=True)
    api_url = db.Column(db.String(512), nullable=False)
    consumer_key = db.Column(db.String(255), nullable=False)
    consumer_secret = db.Column(db.String(255), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        # Secret is never echoed back
        return {
            "id": self.id,
            "api_url": self.api_url,
            "consumer_key": self.consumer_key,
            "has_consumer_secret": bool(self.consumer_secret),
            "updated_at": to_utc_z(self.updated_at),
        }
