from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date
from ..workflow import TRANSFER_STATUS_REQUESTED


class Transfer(db.Model):
    """
    Movement of one SKU between two physical locations via TRANSIT.

    LIFECYCLE (see workflow.TRANSFER_MACHINE):
    1. Requested: intent recorded, no stock moved
    2. In Transit: source debited, TRANSIT credited
    3. Received: TRANSIT debited, destination credited
    4. Cancelled: from Requested (no stock effect) or In Transit (stock returned)

    quantity_received may be lower than quantity. The shortfall stays in
    TRANSIT; nothing reconciles it automatically.
    """
    __tablename__ = "transfers"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_transfers_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), db.ForeignKey("inventory_items.sku"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    from_location = db.Column(db.String(64), db.ForeignKey("locations.location_id"), nullable=False)
    to_location = db.Column(db.String(64), db.ForeignKey("locations.location_id"), nullable=False)

    # Requested, In Transit, Received, Cancelled
    status = db.Column(db.String(16), nullable=False, default=TRANSFER_STATUS_REQUESTED, index=True)

    requested_by = db.Column(db.String(255), nullable=False)
    request_date = db.Column(db.Date, nullable=False)
    shipped_by = db.Column(db.String(255), nullable=True)
    shipped_date = db.Column(db.Date, nullable=True)
    received_by = db.Column(db.String(255), nullable=True)
    received_date = db.Column(db.Date, nullable=True)
    quantity_received = db.Column(db.Integer, nullable=True)
    cancelled_by = db.Column(db.String(255), nullable=True)
    cancelled_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Transfer id={self.id} sku={self.sku!r} qty={self.quantity} "
            f"{self.from_location}->{self.to_location} status={self.status!r}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "quantity": self.quantity,
            "from_location": self.from_location,
            "to_location": self.to_location,
            "status": self.status,
            "requested_by": self.requested_by,
            "request_date": to_iso_date(self.request_date),
            "shipped_by": self.shipped_by,
            "shipped_date": to_iso_date(self.shipped_date),
            "received_by": self.received_by,
            "received_date": to_iso_date(self.received_date),
            "quantity_received": self.quantity_received,
            "cancelled_by": self.cancelled_by,
            "cancelled_date": to_iso_date(self.cancelled_date),
            "notes": self.notes,
        }
