from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ORDER_STATUS_COMPLETED = "completed"


class ExternalOrder(db.Model):
    """
    Order mirrored from the external shop.

    Completed orders feed the daily cash control and the sales journal
    alongside paid invoices.
    """
    __tablename__ = "external_orders"
    __table_args__ = (
        db.Index("ix_external_orders_status_completed", "order_status", "completed_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    external_id = db.Column(db.String(64), nullable=False, unique=True)
    order_number = db.Column(db.String(64), nullable=True)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)

    order_status = db.Column(db.String(32), nullable=False, index=True)
    payment_method = db.Column(db.String(128), nullable=True)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    # pos, website
    order_source = db.Column(db.String(16), nullable=False, default="website")

    ordered_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    lines = db.relationship(
        "ExternalOrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="ExternalOrderLine.id",
        lazy=True,
    )

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "external_id": self.external_id,
            "order_number": self.order_number,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "order_status": self.order_status,
            "payment_method": self.payment_method,
            "total_cents": self.total_cents,
            "order_source": self.order_source,
            "ordered_at": to_utc_z(self.ordered_at),
            "completed_at": to_utc_z(self.completed_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class ExternalOrderLine(db.Model):
    __tablename__ = "external_order_lines"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("external_orders.id", ondelete="CASCADE"), nullable=False, index=True)

    product_id = db.Column(db.String(64), nullable=True, index=True)
    sku = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)
    line_total_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_class = db.Column(db.String(64), nullable=True)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    order = db.relationship("ExternalOrder", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
            "tax_class": self.tax_class,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_amount_cents": self.tax_amount_cents,
        }
