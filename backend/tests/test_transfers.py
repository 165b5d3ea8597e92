# Overview: Pytest coverage for the transfer state machine.

"""
Transfer lifecycle tests.

Requested -> In Transit -> Received, with cancel from either open state.
Stock must be conserved across FARM-WS, TRANSIT and MKE-SHOP at every step.
"""

import pytest

from stockyard.errors import InsufficientStockError, InvalidStateError, NotFoundError
from stockyard.extensions import db
from stockyard.models import AuditLogEntry, Transfer
from stockyard.services import stock_service, transfer_service
from stockyard.validation import ValidationError
from stockyard.workflow import (
    ACTION_TRANSFER,
    ACTION_TRANSFER_DELETED,
    TRANSFER_STATUS_CANCELLED,
    TRANSFER_STATUS_IN_TRANSIT,
    TRANSFER_STATUS_RECEIVED,
    TRANSFER_STATUS_REQUESTED,
)

from conftest import SKU


def _qty(location_id):
    return stock_service.get_quantity(SKU, location_id)


def _audit_count():
    return db.session.query(AuditLogEntry).count()


class TestTransferLifecycle:

    def test_request_ship_receive(self, stocked_item, actor):
        """100 at FARM-WS; move 40 to MKE-SHOP through TRANSIT."""
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        assert transfer.status == TRANSFER_STATUS_REQUESTED
        assert transfer.requested_by == actor
        assert _qty("FARM-WS") == 100

        transfer = transfer_service.ship_transfer(actor, transfer.id)
        assert transfer.status == TRANSFER_STATUS_IN_TRANSIT
        assert transfer.shipped_by == actor
        assert _qty("FARM-WS") == 60
        assert _qty("TRANSIT") == 40

        transfer = transfer_service.receive_transfer(actor, transfer.id)
        assert transfer.status == TRANSFER_STATUS_RECEIVED
        assert transfer.quantity_received == 40
        assert _qty("TRANSIT") == 0
        assert _qty("MKE-SHOP") == 40

    def test_each_step_writes_one_audit_entry(self, stocked_item, actor):
        start = _audit_count()
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        assert _audit_count() == start + 1

        transfer_service.ship_transfer(actor, transfer.id)
        assert _audit_count() == start + 2
        shipped = db.session.query(AuditLogEntry).order_by(AuditLogEntry.id.desc()).first()
        assert shipped.action_type == ACTION_TRANSFER
        assert (shipped.location_id, shipped.quantity_before, shipped.quantity_after) == ("FARM-WS", 100, 60)

        transfer_service.receive_transfer(actor, transfer.id)
        received = db.session.query(AuditLogEntry).order_by(AuditLogEntry.id.desc()).first()
        assert _audit_count() == start + 3
        assert (received.location_id, received.quantity_before, received.quantity_after) == ("MKE-SHOP", 0, 40)

    def test_cancel_in_transit_restores_stock(self, stocked_item, actor):
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        transfer_service.ship_transfer(actor, transfer.id)

        transfer = transfer_service.cancel_transfer(actor, transfer.id, reason="Truck broke down")

        assert transfer.status == TRANSFER_STATUS_CANCELLED
        assert transfer.cancelled_by == actor
        assert _qty("FARM-WS") == 100
        assert _qty("TRANSIT") == 0

    def test_cancel_requested_moves_nothing(self, stocked_item, actor):
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        transfer = transfer_service.cancel_transfer(actor, transfer.id)

        assert transfer.status == TRANSFER_STATUS_CANCELLED
        assert _qty("FARM-WS") == 100
        assert _qty("TRANSIT") == 0


class TestTransferGuards:

    def test_create_requires_stock_at_source(self, stocked_item, actor):
        with pytest.raises(InsufficientStockError) as exc:
            transfer_service.create_transfer(actor, SKU, 150, "FARM-WS", "MKE-SHOP")
        assert exc.value.available == 100
        assert exc.value.requested == 150
        assert db.session.query(Transfer).count() == 0

    @pytest.mark.parametrize("quantity", [0, -5, "4.5", None])
    def test_create_rejects_bad_quantity(self, stocked_item, actor, quantity):
        with pytest.raises(ValidationError):
            transfer_service.create_transfer(actor, SKU, quantity, "FARM-WS", "MKE-SHOP")

    def test_create_rejects_same_or_virtual_locations(self, stocked_item, actor):
        with pytest.raises(ValidationError):
            transfer_service.create_transfer(actor, SKU, 5, "FARM-WS", "FARM-WS")
        with pytest.raises(ValidationError):
            transfer_service.create_transfer(actor, SKU, 5, "FARM-WS", "TRANSIT")

    def test_create_unknown_location(self, stocked_item, actor):
        with pytest.raises(NotFoundError):
            transfer_service.create_transfer(actor, SKU, 5, "FARM-WS", "NOWHERE")

    def test_ship_rechecks_source(self, stocked_item, actor, put_stock):
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        put_stock(SKU, "FARM-WS", 10)

        with pytest.raises(InsufficientStockError):
            transfer_service.ship_transfer(actor, transfer.id)

        assert transfer_service.get_transfer(transfer.id).status == TRANSFER_STATUS_REQUESTED
        assert _qty("FARM-WS") == 10
        assert _qty("TRANSIT") == 0

    def test_illegal_transitions(self, stocked_item, actor):
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")

        with pytest.raises(InvalidStateError):
            transfer_service.receive_transfer(actor, transfer.id)

        transfer_service.ship_transfer(actor, transfer.id)
        with pytest.raises(InvalidStateError):
            transfer_service.ship_transfer(actor, transfer.id)

        transfer_service.receive_transfer(actor, transfer.id)
        with pytest.raises(InvalidStateError):
            transfer_service.cancel_transfer(actor, transfer.id)
        assert _qty("MKE-SHOP") == 40

    def test_unknown_transfer(self, item, actor):
        with pytest.raises(NotFoundError):
            transfer_service.ship_transfer(actor, 9999)


class TestPartialReceipt:

    def test_shortfall_stays_in_transit(self, stocked_item, actor):
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        transfer_service.ship_transfer(actor, transfer.id)

        transfer = transfer_service.receive_transfer(actor, transfer.id, quantity_received=35)

        assert transfer.status == TRANSFER_STATUS_RECEIVED
        assert transfer.quantity_received == 35
        assert _qty("MKE-SHOP") == 35
        assert _qty("TRANSIT") == 5

    def test_over_receipt_rejected(self, stocked_item, actor):
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        transfer_service.ship_transfer(actor, transfer.id)

        with pytest.raises(ValidationError):
            transfer_service.receive_transfer(actor, transfer.id, quantity_received=41)
        with pytest.raises(ValidationError):
            transfer_service.receive_transfer(actor, transfer.id, quantity_received=0)

        assert transfer_service.get_transfer(transfer.id).status == TRANSFER_STATUS_IN_TRANSIT
        assert _qty("TRANSIT") == 40


class TestTransferAdmin:

    def test_list_filters_by_status(self, stocked_item, actor):
        first = transfer_service.create_transfer(actor, SKU, 10, "FARM-WS", "MKE-SHOP")
        second = transfer_service.create_transfer(actor, SKU, 10, "FARM-WS", "FARM-YARD")
        transfer_service.ship_transfer(actor, second.id)

        assert [t.id for t in transfer_service.list_transfers()] == [second.id, first.id]
        assert [t.id for t in transfer_service.list_transfers(TRANSFER_STATUS_IN_TRANSIT)] == [second.id]
        with pytest.raises(ValidationError):
            transfer_service.list_transfers("Lost")

    def test_delete_in_transit_returns_stock(self, stocked_item, actor):
        transfer = transfer_service.create_transfer(actor, SKU, 40, "FARM-WS", "MKE-SHOP")
        transfer_service.ship_transfer(actor, transfer.id)

        transfer_service.delete_transfer(actor, transfer.id)

        assert db.session.get(Transfer, transfer.id) is None
        assert _qty("FARM-WS") == 100
        assert _qty("TRANSIT") == 0
        assert db.session.query(AuditLogEntry).filter_by(action_type=ACTION_TRANSFER_DELETED).count() == 1
