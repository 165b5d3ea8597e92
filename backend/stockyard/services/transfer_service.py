# backend/stockyard/services/transfer_service.py
"""
Inter-location transfer service.

WHY: Move one SKU between two physical locations with a visible in-flight
state. Shipping parks the quantity in the virtual TRANSIT zone; receiving
lands it at the destination.

LIFECYCLE (workflow.TRANSFER_MACHINE):
1. Requested: intent recorded, stock untouched
2. In Transit: source debited, TRANSIT credited
3. Received: TRANSIT debited, destination credited
4. Cancelled: from Requested, or from In Transit with stock returned

Each operation runs in one transaction and writes exactly one audit entry.
"""
from __future__ import annotations

from flask import current_app

from ..errors import InsufficientStockError, NotFoundError
from ..extensions import db
from ..models import Transfer
from ..time_utils import today
from ..validation import ValidationError, coerce_int
from ..workflow import (
    ACTION_TRANSFER,
    ACTION_TRANSFER_DELETED,
    TRANSFER_MACHINE,
    TRANSFER_STATUS_CANCELLED,
    TRANSFER_STATUS_IN_TRANSIT,
    TRANSFER_STATUS_RECEIVED,
    TRANSFER_STATUS_REQUESTED,
    TRANSFER_STATUSES,
    TRANSIT_LOCATION_ID,
)
from . import audit_service, catalog_service, notification_service, stock_service
from .concurrency import lock_for_update, run_in_transaction


def _get_transfer(transfer_id: int, *, lock: bool = False) -> Transfer:
    query = db.session.query(Transfer).filter_by(id=transfer_id)
    if lock:
        query = lock_for_update(query)
    transfer = query.first()
    if transfer is None:
        raise NotFoundError(f"Transfer {transfer_id} not found", transfer_id=transfer_id)
    return transfer


def _require_on_hand(sku: str, location_id: str, quantity: int, *, label: str) -> int:
    on_hand = stock_service.get_quantity(sku, location_id, lock=True)
    if on_hand < quantity:
        raise InsufficientStockError(
            f"Insufficient stock {label}. Available: {on_hand}, Requested: {quantity}",
            available=on_hand,
            requested=quantity,
        )
    return on_hand


def _return_from_transit(transfer: Transfer) -> tuple[int, int]:
    """Undo a ship: TRANSIT down, source up, both floored at zero."""
    stock_service.change_quantity(
        transfer.sku, TRANSIT_LOCATION_ID, -transfer.quantity, floor_at_zero=True
    )
    return stock_service.change_quantity(
        transfer.sku, transfer.from_location, transfer.quantity, floor_at_zero=True
    )


def create_transfer(
    actor: str,
    sku: str,
    quantity,
    from_location: str,
    to_location: str,
    notes: str | None = None,
    *,
    notify: bool = True,
) -> Transfer:
    """
    Record a transfer request (status: Requested). No stock moves.

    Raises:
        ValidationError: bad quantity, same or virtual locations
        NotFoundError: unknown SKU or location
        InsufficientStockError: source holds less than quantity
    """
    def _op():
        qty = coerce_int(quantity, "quantity", minimum=1)
        if from_location == to_location:
            raise ValidationError("Cannot transfer to the same location")

        catalog_service.get_item(sku)
        catalog_service.get_physical_location(from_location)
        catalog_service.get_physical_location(to_location)
        _require_on_hand(sku, from_location, qty, label="at source")

        transfer = Transfer(
            sku=sku,
            quantity=qty,
            from_location=from_location,
            to_location=to_location,
            status=TRANSFER_STATUS_REQUESTED,
            requested_by=actor,
            request_date=today(),
            notes=notes,
        )
        db.session.add(transfer)
        db.session.flush()  # Get ID

        audit_service.record(
            actor=actor,
            action_type=ACTION_TRANSFER,
            sku=sku,
            location_id=from_location,
            reason=f"Transfer requested: {qty} from {from_location} to {to_location}",
            notes=notes,
        )
        return transfer

    transfer = run_in_transaction(_op)
    current_app.logger.info(
        "Transfer %s requested by %s: %d x %s %s -> %s",
        transfer.id, actor, transfer.quantity, sku, from_location, to_location,
    )

    if notify:
        notification_service.send_transfer_notification(transfer)
    return transfer


def ship_transfer(actor: str, transfer_id: int) -> Transfer:
    """
    Requested -> In Transit.

    Re-checks the source quantity (it may have changed since the request),
    then moves quantity from the source into TRANSIT.
    """
    def _op():
        transfer = _get_transfer(transfer_id, lock=True)
        TRANSFER_MACHINE.ensure(
            transfer.status,
            TRANSFER_STATUS_IN_TRANSIT,
            f"Cannot ship transfer in {transfer.status} status",
        )

        before = _require_on_hand(transfer.sku, transfer.from_location, transfer.quantity, label="at source")
        after = before - transfer.quantity
        stock_service.set_quantity(transfer.sku, transfer.from_location, after)
        stock_service.change_quantity(transfer.sku, TRANSIT_LOCATION_ID, transfer.quantity)

        transfer.status = TRANSFER_STATUS_IN_TRANSIT
        transfer.shipped_by = actor
        transfer.shipped_date = today()

        audit_service.record(
            actor=actor,
            action_type=ACTION_TRANSFER,
            sku=transfer.sku,
            location_id=transfer.from_location,
            before=before,
            after=after,
            reason=f"Shipped: {transfer.quantity} from {transfer.from_location} to Transit",
        )
        return transfer

    transfer = run_in_transaction(_op)
    current_app.logger.info("Transfer %s shipped by %s", transfer.id, actor)
    return transfer


def receive_transfer(actor: str, transfer_id: int, quantity_received=None) -> Transfer:
    """
    In Transit -> Received.

    quantity_received defaults to the requested quantity. A smaller value
    is a partial receipt: the shortfall stays in TRANSIT.
    """
    def _op():
        transfer = _get_transfer(transfer_id, lock=True)
        TRANSFER_MACHINE.ensure(
            transfer.status,
            TRANSFER_STATUS_RECEIVED,
            f"Cannot receive transfer in {transfer.status} status",
        )

        if quantity_received is None:
            qty = transfer.quantity
        else:
            qty = coerce_int(quantity_received, "quantity_received", minimum=1)
            if qty > transfer.quantity:
                raise ValidationError(
                    f"Cannot receive {qty}; transfer {transfer.id} shipped {transfer.quantity}"
                )

        _require_on_hand(transfer.sku, TRANSIT_LOCATION_ID, qty, label="in transit")
        stock_service.change_quantity(transfer.sku, TRANSIT_LOCATION_ID, -qty, floor_at_zero=True)
        before, after = stock_service.change_quantity(transfer.sku, transfer.to_location, qty)

        transfer.status = TRANSFER_STATUS_RECEIVED
        transfer.quantity_received = qty
        transfer.received_by = actor
        transfer.received_date = today()

        shortfall = transfer.quantity - qty
        audit_service.record(
            actor=actor,
            action_type=ACTION_TRANSFER,
            sku=transfer.sku,
            location_id=transfer.to_location,
            before=before,
            after=after,
            reason=f"Received: {qty} at {transfer.to_location} from Transit",
            notes=f"Short by {shortfall}; remainder left in Transit" if shortfall else None,
        )
        return transfer

    transfer = run_in_transaction(_op)
    if transfer.quantity_received < transfer.quantity:
        current_app.logger.warning(
            "Transfer %s partially received: %d of %d",
            transfer.id, transfer.quantity_received, transfer.quantity,
        )
    else:
        current_app.logger.info("Transfer %s received by %s", transfer.id, actor)
    return transfer


def cancel_transfer(actor: str, transfer_id: int, reason: str | None = None) -> Transfer:
    """
    Requested/In Transit -> Cancelled.

    Cancelling an In Transit transfer returns its quantity from TRANSIT
    to the source.
    """
    def _op():
        transfer = _get_transfer(transfer_id, lock=True)
        TRANSFER_MACHINE.ensure(
            transfer.status, TRANSFER_STATUS_CANCELLED, "Cannot cancel this transfer"
        )

        returned = transfer.status == TRANSFER_STATUS_IN_TRANSIT
        before = after = None
        if returned:
            before, after = _return_from_transit(transfer)

        transfer.status = TRANSFER_STATUS_CANCELLED
        transfer.cancelled_by = actor
        transfer.cancelled_date = today()

        suffix = "; stock returned from Transit" if returned else ""
        audit_service.record(
            actor=actor,
            action_type=ACTION_TRANSFER,
            sku=transfer.sku,
            location_id=transfer.from_location if returned else None,
            before=before,
            after=after,
            reason=(
                f"Transfer cancelled: {transfer.sku} from {transfer.from_location} "
                f"to {transfer.to_location}{suffix}"
            ),
            notes=reason,
        )
        return transfer

    transfer = run_in_transaction(_op)
    current_app.logger.info("Transfer %s cancelled by %s", transfer.id, actor)
    return transfer


def delete_transfer(actor: str, transfer_id: int) -> None:
    """Administrative purge. In Transit quantity goes back to the source first."""
    def _op():
        transfer = _get_transfer(transfer_id, lock=True)

        returned = transfer.status == TRANSFER_STATUS_IN_TRANSIT
        before = after = None
        if returned:
            before, after = _return_from_transit(transfer)

        audit_service.record(
            actor=actor,
            action_type=ACTION_TRANSFER_DELETED,
            sku=transfer.sku,
            location_id=transfer.from_location if returned else None,
            before=before,
            after=after,
            reason=(
                f"Deleted {transfer.status} transfer {transfer.id}: {transfer.quantity} "
                f"from {transfer.from_location} to {transfer.to_location}"
                + ("; stock returned from Transit" if returned else "")
            ),
        )
        db.session.delete(transfer)
        db.session.flush()

    run_in_transaction(_op)
    current_app.logger.info("Transfer %s deleted by %s", transfer_id, actor)


def get_transfer(transfer_id: int) -> Transfer:
    return _get_transfer(transfer_id)


def list_transfers(status: str | None = None) -> list[Transfer]:
    query = db.session.query(Transfer)
    if status:
        if status not in TRANSFER_STATUSES:
            raise ValidationError(f"Unknown transfer status: {status}")
        query = query.filter_by(status=status)
    return query.order_by(Transfer.id.desc()).all()
