# Overview: Catalog and location reference data: items, par levels, locations, seeding.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import (
    Allocation,
    InventoryItem,
    Location,
    PickList,
    StockLevel,
    Transfer,
)
from ..errors import NotFoundError
from ..validation import ConflictError, ValidationError, coerce_choice, coerce_int, coerce_str
from ..workflow import (
    ACTION_ITEM_CREATED,
    ACTION_ITEM_DELETED,
    ACTION_ITEM_UPDATED,
    CATEGORIES,
    HUB_FARM,
    HUB_MKE,
    HUB_TRANSIT,
    HUBS,
    ITEM_STATUSES,
    TRANSIT_LOCATION_ID,
    TRANSFER_STATUS_IN_TRANSIT,
    ZONE_STORAGE,
    ZONE_TYPES,
    ZONE_VIRTUAL,
)
from . import audit_service
from .concurrency import lock_for_update, run_in_transaction


DEFAULT_LOCATIONS = (
    {"location_id": "FARM", "location_name": "Farm", "hub": HUB_FARM, "zone_type": ZONE_STORAGE},
    {"location_id": "MKE", "location_name": "MKE", "hub": HUB_MKE, "zone_type": ZONE_STORAGE},
    {"location_id": TRANSIT_LOCATION_ID, "location_name": "In Transit", "hub": HUB_TRANSIT, "zone_type": ZONE_VIRTUAL},
)

_DESCRIPTOR_FIELDS = ("species", "thickness", "width", "length", "notes")


# --- lookups ---------------------------------------------------------------

def get_item(sku: str, *, lock: bool = False) -> InventoryItem:
    query = db.session.query(InventoryItem).filter_by(sku=sku)
    if lock:
        query = lock_for_update(query)
    item = query.first()
    if item is None:
        raise NotFoundError(f"Item {sku} not found", sku=sku)
    return item


def list_items() -> list[InventoryItem]:
    return db.session.query(InventoryItem).order_by(InventoryItem.sku).all()


def get_location(location_id: str) -> Location:
    location = db.session.get(Location, location_id)
    if location is None:
        raise NotFoundError(f"Location {location_id} not found", location_id=location_id)
    return location


def get_physical_location(location_id: str) -> Location:
    location = get_location(location_id)
    if location.is_virtual:
        raise ValidationError(f"Location {location_id} is virtual and cannot hold counted stock")
    return location


def list_locations() -> list[Location]:
    return db.session.query(Location).order_by(Location.hub, Location.location_id).all()


def physical_location_ids(hub: str) -> list[str]:
    rows = (
        db.session.query(Location.location_id)
        .filter(Location.hub == hub, Location.zone_type != ZONE_VIRTUAL)
        .all()
    )
    return [row.location_id for row in rows]


# --- locations -------------------------------------------------------------

def create_location(
    location_id: str,
    location_name: str,
    hub: str,
    zone_type: str = ZONE_STORAGE,
    notes: str | None = None,
) -> Location:
    def _op():
        loc_id = coerce_str(location_id, "location_id", max_length=64)
        coerce_choice(hub, "hub", HUBS)
        coerce_choice(zone_type, "zone_type", ZONE_TYPES)
        if (hub == HUB_TRANSIT) != (zone_type == ZONE_VIRTUAL):
            raise ValidationError("Only the Transit hub holds virtual zones")
        if db.session.get(Location, loc_id) is not None:
            raise ConflictError(f"Location {loc_id} already exists")

        location = Location(
            location_id=loc_id,
            location_name=coerce_str(location_name, "location_name", max_length=255),
            hub=hub,
            zone_type=zone_type,
            notes=notes,
        )
        db.session.add(location)
        db.session.flush()
        return location

    return run_in_transaction(_op)


def seed_reference_data() -> int:
    """Create the default FARM, MKE and TRANSIT locations. Safe to call repeatedly."""
    def _op():
        created = 0
        for defaults in DEFAULT_LOCATIONS:
            if db.session.get(Location, defaults["location_id"]) is None:
                db.session.add(Location(**defaults))
                created += 1
        db.session.flush()
        return created

    created = run_in_transaction(_op)
    if created:
        current_app.logger.info("Seeded %d reference locations", created)
    return created


# --- items -----------------------------------------------------------------

def create_item(actor: str, data: dict) -> InventoryItem:
    """
    Create a catalog item.

    Raises:
        ConflictError: SKU already exists
        ValidationError: malformed fields
    """
    def _op():
        sku = coerce_str(data.get("sku"), "sku", max_length=64)
        if db.session.get(InventoryItem, sku) is not None:
            raise ConflictError(f"SKU {sku} already exists", sku=sku)

        item = InventoryItem(
            sku=sku,
            description=coerce_str(data.get("description"), "description"),
            category=coerce_choice(data.get("category", "Lumber"), "category", CATEGORIES),
            status=coerce_choice(data.get("status", "Active"), "status", ITEM_STATUSES),
            farm_par_level=coerce_int(data.get("farm_par_level", 0), "farm_par_level", minimum=0),
            mke_par_level=coerce_int(data.get("mke_par_level", 0), "mke_par_level", minimum=0),
        )
        for field in _DESCRIPTOR_FIELDS:
            setattr(item, field, coerce_str(data.get(field), field, required=False))

        db.session.add(item)
        db.session.flush()

        audit_service.record(
            actor=actor,
            action_type=ACTION_ITEM_CREATED,
            sku=sku,
            reason=f"Created item {sku}: {item.description}",
        )
        return item

    return run_in_transaction(_op)


def update_item(actor: str, sku: str, data: dict) -> InventoryItem:
    def _op():
        item = get_item(sku, lock=True)
        changed = []

        if "description" in data:
            item.description = coerce_str(data["description"], "description")
            changed.append("description")
        if "category" in data:
            item.category = coerce_choice(data["category"], "category", CATEGORIES)
            changed.append("category")
        if "status" in data:
            item.status = coerce_choice(data["status"], "status", ITEM_STATUSES)
            changed.append("status")
        for field in _DESCRIPTOR_FIELDS:
            if field in data:
                setattr(item, field, coerce_str(data[field], field, required=False))
                changed.append(field)

        if not changed:
            raise ValidationError("No updatable fields supplied")

        audit_service.record(
            actor=actor,
            action_type=ACTION_ITEM_UPDATED,
            sku=sku,
            reason=f"Updated {', '.join(changed)}",
        )
        return item

    return run_in_transaction(_op)


def update_par_levels(actor: str, sku: str, farm_par_level, mke_par_level) -> InventoryItem:
    def _op():
        farm = coerce_int(farm_par_level, "farm_par_level", minimum=0)
        mke = coerce_int(mke_par_level, "mke_par_level", minimum=0)
        item = get_item(sku, lock=True)

        old_farm, old_mke = item.farm_par_level, item.mke_par_level
        item.farm_par_level = farm
        item.mke_par_level = mke

        audit_service.record(
            actor=actor,
            action_type=ACTION_ITEM_UPDATED,
            sku=sku,
            reason=f"Par levels changed: Farm {old_farm} -> {farm}, MKE {old_mke} -> {mke}",
        )
        return item

    return run_in_transaction(_op)


def delete_item(actor: str, sku: str) -> None:
    """
    Remove an item and everything that references it.

    In-transit transfers are purged along with their TRANSIT quantity
    because the TRANSIT stock row for this SKU is deleted too.
    """
    def _op():
        item = get_item(sku, lock=True)

        in_transit = (
            db.session.query(Transfer)
            .filter_by(sku=sku, status=TRANSFER_STATUS_IN_TRANSIT)
            .count()
        )

        db.session.query(PickList).filter_by(sku=sku).delete(synchronize_session=False)
        db.session.query(Allocation).filter_by(sku=sku).delete(synchronize_session=False)
        db.session.query(Transfer).filter_by(sku=sku).delete(synchronize_session=False)
        db.session.query(StockLevel).filter_by(sku=sku).delete(synchronize_session=False)
        db.session.delete(item)
        db.session.flush()

        note = f"{in_transit} in-transit transfer(s) purged" if in_transit else None
        audit_service.record(
            actor=actor,
            action_type=ACTION_ITEM_DELETED,
            sku=sku,
            reason=f"Deleted item {sku} with its stock, allocations, picks and transfers",
            notes=note,
        )

    run_in_transaction(_op)
    current_app.logger.info("Item %s deleted by %s", sku, actor)
