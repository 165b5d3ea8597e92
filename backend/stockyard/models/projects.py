from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z
from ..workflow import ALLOCATION_STATUS_RESERVED, PICK_STATUS_PENDING, PROJECT_STATUS_PLANNING


class Project(db.Model):
    """
    Customer job that reserves and consumes stock.

    project_id is generated as PRJ-NNN (see project_service.next_project_id).
    client is free text; the Clients view groups projects by it.
    """
    __tablename__ = "projects"

    project_id = db.Column(db.String(32), primary_key=True)
    project_name = db.Column(db.String(255), nullable=False)
    catalog_id = db.Column(db.String(64), nullable=True)
    client = db.Column(db.String(255), nullable=False, index=True)

    # Farm or MKE
    assigned_hub = db.Column(db.String(16), nullable=False)

    # Planning, Active, Complete, On Hold
    status = db.Column(db.String(16), nullable=False, default=PROJECT_STATUS_PLANNING, index=True)

    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    project_lead = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Project id={self.project_id!r} client={self.client!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "catalog_id": self.catalog_id,
            "client": self.client,
            "assigned_hub": self.assigned_hub,
            "status": self.status,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "project_lead": self.project_lead,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class Allocation(db.Model):
    """
    Reservation of stock at one source location for one project.

    LIFECYCLE (see workflow.ALLOCATION_MACHINE):
    Reserved -> Pulled (pick confirmed / batch pull) -> Reserved (unpull)
    Reserved -> Cancelled

    A Reserved allocation does not move stock; it only reduces what is
    available to allocate at its source location. quantity_pulled holds what
    was actually debited once Pulled, which a short pick makes smaller than
    quantity.
    """
    __tablename__ = "allocations"
    __table_args__ = (
        db.Index("ix_allocations_sku_source_status", "sku", "source_location", "status"),
        db.CheckConstraint("quantity > 0", name="ck_allocations_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(32), db.ForeignKey("projects.project_id"), nullable=False, index=True)
    sku = db.Column(db.String(64), db.ForeignKey("inventory_items.sku"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    source_location = db.Column(db.String(64), db.ForeignKey("locations.location_id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=ALLOCATION_STATUS_RESERVED)
    # Units actually debited when the allocation was pulled; null while Reserved
    quantity_pulled = db.Column(db.Integer, nullable=True)
    allocated_by = db.Column(db.String(255), nullable=False)
    allocated_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Allocation id={self.id} project={self.project_id!r} sku={self.sku!r} qty={self.quantity} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "sku": self.sku,
            "quantity": self.quantity,
            "source_location": self.source_location,
            "quantity_pulled": self.quantity_pulled,
            "status": self.status,
            "allocated_by": self.allocated_by,
            "allocated_date": to_iso_date(self.allocated_date),
            "notes": self.notes,
        }


class PickList(db.Model):
    """
    Pick task generated 1:1 from a Reserved allocation.

    allocation_id remembers which reservation the task came from so that
    confirming it closes that reservation rather than an arbitrary match.
    """
    __tablename__ = "pick_lists"
    __table_args__ = (
        db.CheckConstraint("quantity_picked >= 0", name="ck_pick_lists_picked_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.String(32), db.ForeignKey("projects.project_id"), nullable=False, index=True)
    allocation_id = db.Column(db.Integer, db.ForeignKey("allocations.id"), nullable=True, index=True)
    sku = db.Column(db.String(64), db.ForeignKey("inventory_items.sku"), nullable=False)
    quantity_requested = db.Column(db.Integer, nullable=False)
    pick_from_location = db.Column(db.String(64), db.ForeignKey("locations.location_id"), nullable=False)
    quantity_picked = db.Column(db.Integer, nullable=False, default=0)

    # Pending, In Progress, Completed, Cancelled
    status = db.Column(db.String(16), nullable=False, default=PICK_STATUS_PENDING, index=True)
    picked_by = db.Column(db.String(255), nullable=True)
    pick_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<PickList id={self.id} sku={self.sku!r} qty={self.quantity_requested} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "allocation_id": self.allocation_id,
            "sku": self.sku,
            "quantity_requested": self.quantity_requested,
            "pick_from_location": self.pick_from_location,
            "quantity_picked": self.quantity_picked,
            "status": self.status,
            "picked_by": self.picked_by,
            "pick_date": to_iso_date(self.pick_date),
            "notes": self.notes,
        }
