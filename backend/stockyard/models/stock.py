from __future__ import annotations

from sqlalchemy import event

from ..errors import InvalidStateError
from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class StockLevel(db.Model):
    """
    Ledger row: how much of one SKU sits at one location.

    INVARIANTS:
    - quantity >= 0 (also enforced by a CHECK constraint)
    - at most one row per (sku, location_id); writers upsert via stock_service
    """
    __tablename__ = "stock_levels"
    __table_args__ = (
        db.UniqueConstraint("sku", "location_id", name="uq_stock_levels_sku_location"),
        db.CheckConstraint("quantity >= 0", name="ck_stock_levels_quantity_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), db.ForeignKey("inventory_items.sku"), nullable=False, index=True)
    location_id = db.Column(db.String(64), db.ForeignKey("locations.location_id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    last_counted = db.Column(db.Date, nullable=True)
    counted_by = db.Column(db.String(255), nullable=True)

    location = db.relationship("Location", lazy="joined")

    def __repr__(self) -> str:
        return f"<StockLevel sku={self.sku!r} location={self.location_id!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "location_id": self.location_id,
            "quantity": self.quantity,
            "last_counted": to_iso_date(self.last_counted),
            "counted_by": self.counted_by,
        }


class AuditLogEntry(db.Model):
    """
    Append-only record of every quantity-affecting action.

    - Written inside the same DB transaction as the change it records.
    - timestamp is assigned by the server.
    - Rows are never updated or deleted (ORM-level guard below).
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        db.Index("ix_audit_log_sku_timestamp", "sku", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    user_email = db.Column(db.String(255), nullable=False)
    action_type = db.Column(db.String(32), nullable=False, index=True)

    # No FKs: entries outlive the items and locations they mention.
    sku = db.Column(db.String(64), nullable=True)
    location_id = db.Column(db.String(64), nullable=True)

    quantity_before = db.Column(db.Integer, nullable=True)
    quantity_after = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": to_utc_z(self.timestamp),
            "user_email": self.user_email,
            "action_type": self.action_type,
            "sku": self.sku,
            "location_id": self.location_id,
            "quantity_before": self.quantity_before,
            "quantity_after": self.quantity_after,
            "reason": self.reason,
            "notes": self.notes,
        }


@event.listens_for(AuditLogEntry, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise InvalidStateError("Audit log entries are immutable")


@event.listens_for(AuditLogEntry, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise InvalidStateError("Audit log entries cannot be deleted")
