# backend/stockyard/services/allocation_service.py
"""
Project material allocation.

WHY: Reserve stock for a project without moving it, so two projects can
not promise the same boards. Physical quantity only moves when the
reservation is pulled (pick confirmation or batch pull).

AVAILABILITY:
    available(sku, loc) = on hand(sku, loc) - sum(Reserved allocations at loc)

LIFECYCLE (workflow.ALLOCATION_MACHINE):
    Reserved -> Pulled -> Reserved (unpull)
    Reserved -> Cancelled
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

from flask import current_app

from ..errors import InsufficientStockError, NotFoundError, StockyardError
from ..extensions import db
from ..models import Allocation
from ..time_utils import today
from ..validation import ValidationError, coerce_int
from ..workflow import (
    ACTION_ALLOCATION,
    ACTION_PICK,
    ACTION_STOCK_RETURN,
    ALLOCATION_MACHINE,
    ALLOCATION_STATUS_CANCELLED,
    ALLOCATION_STATUS_PULLED,
    ALLOCATION_STATUS_RESERVED,
)
from . import audit_service, catalog_service, pick_service, project_service, stock_service
from .concurrency import lock_for_update, run_in_transaction


BULK_IMPORT_NOTE = "Bulk CSV import"


@dataclass(frozen=True)
class BulkRowResult:
    row: int
    sku: str
    status: str
    message: str


def get_allocation(allocation_id: int, *, lock: bool = False) -> Allocation:
    query = db.session.query(Allocation).filter_by(id=allocation_id)
    if lock:
        query = lock_for_update(query)
    allocation = query.first()
    if allocation is None:
        raise NotFoundError(f"Allocation {allocation_id} not found", allocation_id=allocation_id)
    return allocation


def list_allocations(project_id: str) -> list[Allocation]:
    project_service.get_project(project_id)
    return (
        db.session.query(Allocation)
        .filter_by(project_id=project_id)
        .order_by(Allocation.id.desc())
        .all()
    )


def _reserve(actor: str, project_id: str, sku: str, qty: int, source_location: str, *, notes=None, reason_suffix="") -> Allocation:
    # Lock the ledger row so a concurrent reservation sees this one.
    available = stock_service.available_to_allocate(sku, source_location, lock=True)
    if qty > available:
        raise InsufficientStockError(
            f"Insufficient available stock. Available: {available}, Requested: {qty}",
            available=available,
            requested=qty,
        )

    allocation = Allocation(
        project_id=project_id,
        sku=sku,
        quantity=qty,
        source_location=source_location,
        status=ALLOCATION_STATUS_RESERVED,
        allocated_by=actor,
        allocated_date=today(),
        notes=notes,
    )
    db.session.add(allocation)
    db.session.flush()

    audit_service.record(
        actor=actor,
        action_type=ACTION_ALLOCATION,
        sku=sku,
        location_id=source_location,
        reason=f"Reserved {qty} for project {project_id}{reason_suffix}",
    )
    return allocation


def allocate(actor: str, project_id: str, sku: str, quantity, source_location: str, notes: str | None = None) -> Allocation:
    """
    Reserve ``quantity`` of ``sku`` at ``source_location`` for a project.

    Raises:
        NotFoundError: project, SKU or location missing
        ValidationError: bad quantity or virtual location
        InsufficientStockError: quantity > available
    """
    def _op():
        qty = coerce_int(quantity, "quantity", minimum=1)
        project_service.get_project(project_id)
        catalog_service.get_item(sku)
        catalog_service.get_physical_location(source_location)
        return _reserve(actor, project_id, sku, qty, source_location, notes=notes)

    return run_in_transaction(_op)


def bulk_allocate(actor: str, project_id: str, rows: list[dict]) -> dict:
    """
    Reserve many rows for one project, each row on its own.

    Row failures are reported, not raised: a bad row never undoes a good
    one. Only a missing project fails the whole call.

    Returns:
        {"results": [...], "success_count": int, "error_count": int}
    """
    project_service.get_project(project_id)
    if not rows:
        raise ValidationError("At least one allocation row is required")

    results: list[BulkRowResult] = []
    for index, row in enumerate(rows, start=1):
        raw_sku = row.get("sku") if isinstance(row, dict) else None
        sku = raw_sku.strip() if isinstance(raw_sku, str) else ""
        source_location = row.get("source_location") if isinstance(row, dict) else None
        source_location = source_location.strip() if isinstance(source_location, str) else ""

        try:
            qty = coerce_int(row.get("quantity") if isinstance(row, dict) else None, "quantity", minimum=1)
            if not sku or not source_location:
                raise ValidationError("missing sku or location")
        except ValidationError:
            results.append(BulkRowResult(
                index, sku, "error",
                "Invalid data: SKU, quantity (>0), and source location are required",
            ))
            continue

        def _op():
            try:
                catalog_service.get_item(sku)
            except NotFoundError:
                raise NotFoundError(f'SKU "{sku}" not found in inventory')
            try:
                catalog_service.get_physical_location(source_location)
            except NotFoundError:
                raise NotFoundError(f'Location "{source_location}" not found')
            return _reserve(
                actor, project_id, sku, qty, source_location,
                notes=BULK_IMPORT_NOTE, reason_suffix=" (CSV import)",
            )

        try:
            run_in_transaction(_op)
        except StockyardError as exc:
            results.append(BulkRowResult(index, sku, "error", exc.message))
            continue

        results.append(BulkRowResult(index, sku, "success", f"Allocated {qty} from {source_location}"))

    success_count = sum(1 for r in results if r.status == "success")
    current_app.logger.info(
        "Bulk allocation for %s by %s: %d ok, %d failed",
        project_id, actor, success_count, len(results) - success_count,
    )
    return {
        "results": [asdict(r) for r in results],
        "success_count": success_count,
        "error_count": len(results) - success_count,
    }


def cancel_allocation(actor: str, allocation_id: int) -> Allocation:
    def _op():
        allocation = get_allocation(allocation_id, lock=True)
        ALLOCATION_MACHINE.ensure(
            allocation.status,
            ALLOCATION_STATUS_CANCELLED,
            f"Cannot cancel allocation in {allocation.status} status",
        )
        allocation.status = ALLOCATION_STATUS_CANCELLED
        pick_service.cancel_open_picks(allocation.id)

        audit_service.record(
            actor=actor,
            action_type=ACTION_ALLOCATION,
            sku=allocation.sku,
            location_id=allocation.source_location,
            reason=f"Released {allocation.quantity} reserved for project {allocation.project_id}",
        )
        return allocation

    return run_in_transaction(_op)


def _project_allocations(project_id: str, allocation_ids) -> list[Allocation]:
    if not allocation_ids:
        raise ValidationError("allocation_ids must list at least one allocation")
    ids = [coerce_int(a, "allocation_ids", minimum=1) for a in allocation_ids]

    allocations = (
        lock_for_update(
            db.session.query(Allocation).filter(
                Allocation.project_id == project_id,
                Allocation.id.in_(ids),
            )
        )
        .order_by(Allocation.id)
        .all()
    )
    found = {a.id for a in allocations}
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError(
            f"Allocation(s) {', '.join(map(str, missing))} not found on project {project_id}"
        )
    return allocations


def pull_allocations(actor: str, project_id: str, allocation_ids) -> list[Allocation]:
    """
    Pull reserved material straight from stock without a pick list.

    The batch is atomic: one short location fails every row.
    """
    def _op():
        project_service.get_project(project_id)
        allocations = _project_allocations(project_id, allocation_ids)

        for allocation in allocations:
            ALLOCATION_MACHINE.ensure(
                allocation.status,
                ALLOCATION_STATUS_PULLED,
                f"Allocation {allocation.id} is {allocation.status}, not Reserved",
            )
            before = stock_service.get_quantity(allocation.sku, allocation.source_location, lock=True)
            if before < allocation.quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for {allocation.sku} at {allocation.source_location}. "
                    f"Available: {before}, Requested: {allocation.quantity}",
                    available=before,
                    requested=allocation.quantity,
                )
            after = before - allocation.quantity
            stock_service.set_quantity(allocation.sku, allocation.source_location, after)
            allocation.status = ALLOCATION_STATUS_PULLED
            allocation.quantity_pulled = allocation.quantity
            pick_service.cancel_open_picks(allocation.id)

            audit_service.record(
                actor=actor,
                action_type=ACTION_PICK,
                sku=allocation.sku,
                location_id=allocation.source_location,
                before=before,
                after=after,
                reason=f"Pulled {allocation.quantity} for project {project_id}",
            )
        return allocations

    return run_in_transaction(_op)


def unpull_allocations(actor: str, project_id: str, allocation_ids) -> list[Allocation]:
    """
    Return pulled material to its source location; allocations go back to Reserved.

    Credits quantity_pulled, the units that actually left the shelf, which
    is less than the reservation after a short pick.
    """
    def _op():
        project_service.get_project(project_id)
        allocations = _project_allocations(project_id, allocation_ids)

        for allocation in allocations:
            ALLOCATION_MACHINE.ensure(
                allocation.status,
                ALLOCATION_STATUS_RESERVED,
                f"Allocation {allocation.id} is {allocation.status}, not Pulled",
            )
            returned = allocation.quantity_pulled
            if returned is None:
                returned = allocation.quantity
            before, after = stock_service.change_quantity(
                allocation.sku, allocation.source_location, returned
            )
            allocation.status = ALLOCATION_STATUS_RESERVED
            allocation.quantity_pulled = None

            audit_service.record(
                actor=actor,
                action_type=ACTION_STOCK_RETURN,
                sku=allocation.sku,
                location_id=allocation.source_location,
                before=before,
                after=after,
                reason=f"Returned {returned} from project {project_id}",
            )
        return allocations

    return run_in_transaction(_op)
