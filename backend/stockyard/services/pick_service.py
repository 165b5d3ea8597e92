# backend/stockyard/services/pick_service.py
"""
Pick-list generation and fulfillment.

WHY: Turn a project's reservations into concrete tasks for the crew, and
debit the ledger only when a task is confirmed.

MATCHING RULE:
Confirming a pick closes the allocation it was generated from
(PickList.allocation_id) when that allocation is still Reserved, and no
allocation when it is not. A pick with no origin closes the oldest Reserved
allocation (lowest id) of the same project with the same sku and source
location. At most one allocation changes, and its quantity_pulled records
the units actually picked.

Pulling or cancelling an allocation cancels its open picks in the same
transaction, so a pick can not debit material twice.
"""
from __future__ import annotations

from flask import current_app

from ..errors import InsufficientStockError, NoReservationsError, NotFoundError
from ..extensions import db
from ..models import Allocation, PickList
from ..time_utils import today
from ..validation import coerce_int
from ..workflow import (
    ACTION_PICK,
    ALLOCATION_MACHINE,
    ALLOCATION_STATUS_PULLED,
    ALLOCATION_STATUS_RESERVED,
    OPEN_PICK_STATUSES,
    PICK_MACHINE,
    PICK_STATUS_CANCELLED,
    PICK_STATUS_COMPLETED,
    PICK_STATUS_IN_PROGRESS,
    PICK_STATUS_PENDING,
)
from . import audit_service, project_service, stock_service
from .concurrency import lock_for_update, run_in_transaction


def get_pick_list(pick_list_id: int, *, lock: bool = False) -> PickList:
    query = db.session.query(PickList).filter_by(id=pick_list_id)
    if lock:
        query = lock_for_update(query)
    pick = query.first()
    if pick is None:
        raise NotFoundError(f"Pick list {pick_list_id} not found", pick_list_id=pick_list_id)
    return pick


def list_pick_lists(project_id: str) -> list[PickList]:
    project_service.get_project(project_id)
    return (
        db.session.query(PickList)
        .filter_by(project_id=project_id)
        .order_by(PickList.id.desc())
        .all()
    )


def generate_pick_list(actor: str, project_id: str) -> list[PickList]:
    """
    One Pending pick per Reserved allocation of the project.

    Allocations that already have an open (Pending/In Progress) pick are
    skipped, so generating twice does not double the work.

    Raises:
        NoReservationsError: the project has no Reserved allocations
    """
    def _op():
        project_service.get_project(project_id)
        reserved = (
            db.session.query(Allocation)
            .filter_by(project_id=project_id, status=ALLOCATION_STATUS_RESERVED)
            .order_by(Allocation.id)
            .all()
        )
        if not reserved:
            raise NoReservationsError("No reserved allocations to generate pick list from")

        already_open = {
            row.allocation_id
            for row in db.session.query(PickList.allocation_id).filter(
                PickList.project_id == project_id,
                PickList.status.in_(OPEN_PICK_STATUSES),
                PickList.allocation_id.isnot(None),
            )
        }

        created = []
        for allocation in reserved:
            if allocation.id in already_open:
                continue
            pick = PickList(
                project_id=project_id,
                allocation_id=allocation.id,
                sku=allocation.sku,
                quantity_requested=allocation.quantity,
                pick_from_location=allocation.source_location,
                quantity_picked=0,
                status=PICK_STATUS_PENDING,
            )
            db.session.add(pick)
            created.append(pick)

        db.session.flush()
        return created

    created = run_in_transaction(_op)
    current_app.logger.info("Generated %d pick(s) for %s", len(created), project_id)
    return created


def start_pick(actor: str, pick_list_id: int) -> PickList:
    def _op():
        pick = get_pick_list(pick_list_id, lock=True)
        PICK_MACHINE.ensure(pick.status, PICK_STATUS_IN_PROGRESS, f"Cannot start pick in {pick.status} status")
        pick.status = PICK_STATUS_IN_PROGRESS
        pick.picked_by = actor
        return pick

    return run_in_transaction(_op)


def cancel_pick(actor: str, pick_list_id: int) -> PickList:
    """Drop the task; its allocation stays Reserved."""
    def _op():
        pick = get_pick_list(pick_list_id, lock=True)
        PICK_MACHINE.ensure(pick.status, PICK_STATUS_CANCELLED, f"Cannot cancel pick in {pick.status} status")
        pick.status = PICK_STATUS_CANCELLED
        return pick

    return run_in_transaction(_op)


def cancel_open_picks(allocation_id: int) -> int:
    """Cancel Pending/In Progress picks generated from one allocation. Caller owns the transaction."""
    picks = (
        lock_for_update(
            db.session.query(PickList).filter(
                PickList.allocation_id == allocation_id,
                PickList.status.in_(OPEN_PICK_STATUSES),
            )
        )
        .all()
    )
    for pick in picks:
        pick.status = PICK_STATUS_CANCELLED
    return len(picks)


def _matching_allocation(pick: PickList) -> Allocation | None:
    if pick.allocation_id is not None:
        origin = lock_for_update(
            db.session.query(Allocation).filter_by(id=pick.allocation_id)
        ).first()
        if origin is not None:
            return origin if origin.status == ALLOCATION_STATUS_RESERVED else None

    return (
        lock_for_update(
            db.session.query(Allocation).filter_by(
                project_id=pick.project_id,
                sku=pick.sku,
                source_location=pick.pick_from_location,
                status=ALLOCATION_STATUS_RESERVED,
            )
        )
        .order_by(Allocation.id)
        .first()
    )


def confirm_pick(actor: str, pick_list_id: int, quantity_picked) -> PickList:
    """
    Debit the pick location, complete the pick, pull its allocation.

    Raises:
        ValidationError: quantity_picked not a non-negative integer
        InvalidStateError: pick already Completed/Cancelled
        InsufficientStockError: quantity_picked > on hand at pick location
    """
    def _op():
        qty = coerce_int(quantity_picked, "quantity_picked", minimum=0)
        pick = get_pick_list(pick_list_id, lock=True)
        PICK_MACHINE.ensure(pick.status, PICK_STATUS_COMPLETED, f"Cannot confirm pick in {pick.status} status")

        before = stock_service.get_quantity(pick.sku, pick.pick_from_location, lock=True)
        if qty > before:
            raise InsufficientStockError(
                f"Insufficient stock at {pick.pick_from_location}. Available: {before}, Requested: {qty}",
                available=before,
                requested=qty,
            )
        after = before - qty
        stock_service.set_quantity(
            pick.sku, pick.pick_from_location, after, last_counted=today(), counted_by=actor
        )

        pick.quantity_picked = qty
        pick.status = PICK_STATUS_COMPLETED
        pick.picked_by = actor
        pick.pick_date = today()

        allocation = _matching_allocation(pick)
        if allocation is not None:
            ALLOCATION_MACHINE.ensure(allocation.status, ALLOCATION_STATUS_PULLED)
            allocation.status = ALLOCATION_STATUS_PULLED
            allocation.quantity_pulled = qty
            pick.allocation_id = allocation.id

        audit_service.record(
            actor=actor,
            action_type=ACTION_PICK,
            sku=pick.sku,
            location_id=pick.pick_from_location,
            before=before,
            after=after,
            reason=f"Picked {qty} for project {pick.project_id}",
            notes=None if allocation is not None else "No reserved allocation matched",
        )
        return pick

    pick = run_in_transaction(_op)
    current_app.logger.info("Pick %s confirmed by %s", pick.id, actor)
    return pick
