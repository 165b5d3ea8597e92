# Overview: Stock ledger; the single writer of StockLevel rows.

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import func

from ..errors import InvalidStateError
from ..extensions import db
from ..models import Allocation, InventoryItem, Location, StockLevel
from ..time_utils import today
from ..validation import ValidationError, coerce_int, coerce_str
from ..workflow import (
    ACTION_PHYSICAL_COUNT,
    ACTION_STOCK_ADJUSTMENT,
    ALLOCATION_STATUS_RESERVED,
)
from . import audit_service, catalog_service
from .concurrency import lock_for_update, run_in_transaction
"""
Ledger invariants (authoritative)

- StockLevel.quantity >= 0 at all times; set_quantity rejects negatives
  with InvalidStateError before touching the row.
- At most one row per (sku, location_id); writes are upserts.
- Missing row reads as 0.
- The ledger never writes audit entries itself. Callers pair each
  mutation with audit_service.record() inside the same transaction.
- available_to_allocate = on hand - sum(Reserved allocations) at that
  location. Virtual zones are never available.
"""


def get_stock_level(sku: str, location_id: str, *, lock: bool = False) -> StockLevel | None:
    query = db.session.query(StockLevel).filter_by(sku=sku, location_id=location_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def get_quantity(sku: str, location_id: str, *, lock: bool = False) -> int:
    level = get_stock_level(sku, location_id, lock=lock)
    return level.quantity if level else 0


def set_quantity(
    sku: str,
    location_id: str,
    new_quantity: int,
    *,
    last_counted=None,
    counted_by: str | None = None,
) -> StockLevel:
    """Upsert the single row for (sku, location_id)."""
    if new_quantity < 0:
        raise InvalidStateError(
            f"Stock for {sku} at {location_id} cannot go negative ({new_quantity})",
            sku=sku,
            location_id=location_id,
        )

    level = get_stock_level(sku, location_id, lock=True)
    if level is None:
        level = StockLevel(sku=sku, location_id=location_id, quantity=new_quantity)
        db.session.add(level)
    else:
        level.quantity = new_quantity

    if last_counted is not None:
        level.last_counted = last_counted
    if counted_by is not None:
        level.counted_by = counted_by

    db.session.flush()
    return level


def change_quantity(sku: str, location_id: str, delta: int, *, floor_at_zero: bool = False) -> tuple[int, int]:
    """
    Apply ``delta`` to a row and return (before, after).

    floor_at_zero clamps the result instead of failing; only the TRANSIT
    reversal paths use it.
    """
    before = get_quantity(sku, location_id, lock=True)
    after = before + delta
    if floor_at_zero:
        after = max(0, after)
    set_quantity(sku, location_id, after)
    return before, after


def reserved_quantity(sku: str, location_id: str) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(Allocation.quantity), 0))
        .filter(
            Allocation.sku == sku,
            Allocation.source_location == location_id,
            Allocation.status == ALLOCATION_STATUS_RESERVED,
        )
        .scalar()
    )
    return int(total or 0)


def available_to_allocate(sku: str, location_id: str, *, lock: bool = False) -> int:
    location = catalog_service.get_location(location_id)
    if location.is_virtual:
        return 0
    return get_quantity(sku, location_id, lock=lock) - reserved_quantity(sku, location_id)


def adjust_stock(
    actor: str,
    sku: str,
    location_id: str,
    new_quantity,
    reason: str,
    notes: str | None = None,
    action_type: str = ACTION_STOCK_ADJUSTMENT,
) -> StockLevel:
    """
    Manually set the on-hand quantity (cycle counts, corrections).

    Stamps last_counted/counted_by and writes one audit entry with the
    before/after quantities.
    """
    if action_type not in (ACTION_STOCK_ADJUSTMENT, ACTION_PHYSICAL_COUNT):
        raise ValidationError(f"Stock adjustments cannot be recorded as {action_type}")

    def _op():
        new_qty = coerce_int(new_quantity, "new_quantity", minimum=0)
        reason_text = coerce_str(reason, "reason")
        catalog_service.get_item(sku)
        catalog_service.get_physical_location(location_id)

        before = get_quantity(sku, location_id, lock=True)
        level = set_quantity(
            sku,
            location_id,
            new_qty,
            last_counted=today(),
            counted_by=actor,
        )

        audit_service.record(
            actor=actor,
            action_type=action_type,
            sku=sku,
            location_id=location_id,
            before=before,
            after=new_qty,
            reason=reason_text,
            notes=notes,
        )
        return level

    return run_in_transaction(_op)


def inventory_summary() -> list[dict]:
    """
    Per-item stock picture for the inventory screen.

    total_on_hand and available exclude virtual zones; in_transit is
    reported separately.
    """
    locations = {loc.location_id: loc for loc in db.session.query(Location).all()}

    levels_by_sku: dict[str, list[StockLevel]] = defaultdict(list)
    for level in db.session.query(StockLevel).all():
        levels_by_sku[level.sku].append(level)

    reserved_by_sku: dict[str, int] = defaultdict(int)
    reserved_rows = (
        db.session.query(Allocation.sku, func.sum(Allocation.quantity))
        .filter(Allocation.status == ALLOCATION_STATUS_RESERVED)
        .group_by(Allocation.sku)
        .all()
    )
    for sku, qty in reserved_rows:
        reserved_by_sku[sku] = int(qty or 0)

    summary = []
    for item in db.session.query(InventoryItem).order_by(InventoryItem.sku).all():
        rows = []
        on_hand = 0
        in_transit = 0
        for level in levels_by_sku.get(item.sku, []):
            loc = locations.get(level.location_id)
            if loc is not None and loc.is_virtual:
                in_transit += level.quantity
            else:
                on_hand += level.quantity
            rows.append({
                **level.to_dict(),
                "location_name": loc.location_name if loc else level.location_id,
                "hub": loc.hub if loc else "",
            })

        allocated = reserved_by_sku.get(item.sku, 0)
        summary.append({
            **item.to_dict(),
            "total_on_hand": on_hand,
            "in_transit": in_transit,
            "allocated": allocated,
            "available": on_hand - allocated,
            "stock_levels": rows,
        })
    return summary
