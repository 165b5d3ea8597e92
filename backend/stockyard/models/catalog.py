from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..workflow import ZONE_STORAGE, ZONE_VIRTUAL


class InventoryItem(db.Model):
    """
    Catalog entry, keyed by SKU.

    PAR LEVELS:
    farm_par_level and mke_par_level are independent reorder thresholds,
    one per hub. 0 means the hub does not track this SKU for par.

    DELETION:
    Items are only removed through catalog_service.delete_item, which
    clears dependent stock, allocation, pick and transfer rows first.
    """
    __tablename__ = "inventory_items"

    sku = db.Column(db.String(64), primary_key=True)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(32), nullable=False, default="Lumber")

    # Free-text descriptors, e.g. species="Cedar", thickness='2"', length="12'"
    species = db.Column(db.String(64), nullable=True)
    thickness = db.Column(db.String(32), nullable=True)
    width = db.Column(db.String(32), nullable=True)
    length = db.Column(db.String(32), nullable=True)

    farm_par_level = db.Column(db.Integer, nullable=False, default=0)
    mke_par_level = db.Column(db.Integer, nullable=False, default=0)

    # Active, Discontinuing, Discontinued
    status = db.Column(db.String(16), nullable=False, default="Active", index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        db.CheckConstraint("farm_par_level >= 0", name="ck_items_farm_par_nonneg"),
        db.CheckConstraint("mke_par_level >= 0", name="ck_items_mke_par_nonneg"),
    )

    def __repr__(self) -> str:
        return f"<InventoryItem sku={self.sku!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "description": self.description,
            "category": self.category,
            "species": self.species,
            "thickness": self.thickness,
            "width": self.width,
            "length": self.length,
            "farm_par_level": self.farm_par_level,
            "mke_par_level": self.mke_par_level,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Location(db.Model):
    """
    Static reference data: a storage zone inside a hub, or the virtual
    TRANSIT zone that holds quantity for shipped-but-unreceived transfers.

    Virtual zones never count toward par totals or availability.
    """
    __tablename__ = "locations"

    location_id = db.Column(db.String(64), primary_key=True)
    location_name = db.Column(db.String(255), nullable=False)

    # Farm, MKE, Transit
    hub = db.Column(db.String(16), nullable=False, index=True)

    # "Storage Zone" or "Virtual"
    zone_type = db.Column(db.String(32), nullable=False, default=ZONE_STORAGE)
    notes = db.Column(db.Text, nullable=True)

    @property
    def is_virtual(self) -> bool:
        return self.zone_type == ZONE_VIRTUAL

    def __repr__(self) -> str:
        return f"<Location id={self.location_id!r} hub={self.hub!r}>"

    def to_dict(self) -> dict:
        return {
            "location_id": self.location_id,
            "location_name": self.location_name,
            "hub": self.hub,
            "zone_type": self.zone_type,
            "notes": self.notes,
        }
