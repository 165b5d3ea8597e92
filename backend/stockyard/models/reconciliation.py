from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class ReconciliationReport(db.Model):
    """
    One physical-count submission for one location.

    applied records whether the counted quantities were written back to
    the ledger when the report was submitted.
    """
    __tablename__ = "reconciliation_reports"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(db.String(64), db.ForeignKey("locations.location_id"), nullable=False, index=True)
    submitted_by = db.Column(db.String(255), nullable=False)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    total_items = db.Column(db.Integer, nullable=False, default=0)
    discrepancy_count = db.Column(db.Integer, nullable=False, default=0)
    applied = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)

    items = db.relationship(
        "ReconciliationReportItem",
        backref="report",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ReconciliationReportItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "location_id": self.location_id,
            "submitted_by": self.submitted_by,
            "submitted_at": to_utc_z(self.submitted_at),
            "total_items": self.total_items,
            "discrepancy_count": self.discrepancy_count,
            "applied": self.applied,
            "notes": self.notes,
        }


class ReconciliationReportItem(db.Model):
    __tablename__ = "reconciliation_report_items"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(db.Integer, db.ForeignKey("reconciliation_reports.id"), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=False)
    system_qty = db.Column(db.Integer, nullable=False)
    counted_qty = db.Column(db.Integer, nullable=False)

    # counted_qty - system_qty
    difference = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "report_id": self.report_id,
            "sku": self.sku,
            "system_qty": self.system_qty,
            "counted_qty": self.counted_qty,
            "difference": self.difference,
        }
