from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date


CASH_CONTROL_OPEN = "open"
CASH_CONTROL_CLOSED = "closed"


class CashControl(db.Model):
    """
    Daily closing of the till.

    WHY: A sales journal for a date is only produced once the day's takings
    were counted and closed. At most one control exists per date.
    """
    __tablename__ = "cash_controls"
    __table_args__ = (
        db.UniqueConstraint("control_date", name="uq_cash_controls_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    control_number = db.Column(db.String(32), nullable=True, unique=True)
    control_date = db.Column(db.Date, nullable=False, index=True)

    # Totals by payment channel
    cash_total_cents = db.Column(db.Integer, nullable=False, default=0)
    transfer_total_cents = db.Column(db.Integer, nullable=False, default=0)
    cheque_total_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    invoices_count = db.Column(db.Integer, nullable=False, default=0)
    orders_count = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=CASH_CONTROL_OPEN)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "control_number": self.control_number,
            "control_date": to_iso_date(self.control_date),
            "cash_total_cents": self.cash_total_cents,
            "transfer_total_cents": self.transfer_total_cents,
            "cheque_total_cents": self.cheque_total_cents,
            "total_cents": self.total_cents,
            "invoices_count": self.invoices_count,
            "orders_count": self.orders_count,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
        }
