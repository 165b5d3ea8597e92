# Overview: Pytest coverage for pick-list generation and fulfilment.

import pytest

from stockyard.errors import InsufficientStockError, InvalidStateError, NoReservationsError
from stockyard.extensions import db
from stockyard.models import AuditLogEntry, PickList
from stockyard.services import allocation_service, pick_service, stock_service
from stockyard.time_utils import today
from stockyard.validation import ValidationError
from stockyard.workflow import (
    ACTION_PICK,
    ALLOCATION_STATUS_PULLED,
    ALLOCATION_STATUS_RESERVED,
    PICK_STATUS_CANCELLED,
    PICK_STATUS_COMPLETED,
    PICK_STATUS_IN_PROGRESS,
    PICK_STATUS_PENDING,
)

from conftest import SKU


@pytest.fixture
def reserved(stocked_item, project, actor):
    return allocation_service.allocate(actor, project.project_id, SKU, 90, "FARM-WS")


class TestGenerate:

    def test_one_pending_pick_per_reservation(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)

        assert pick.status == PICK_STATUS_PENDING
        assert pick.quantity_requested == 90
        assert pick.pick_from_location == "FARM-WS"
        assert pick.allocation_id == reserved.id
        assert pick.quantity_picked == 0

    def test_generating_twice_does_not_duplicate(self, reserved, project, actor):
        pick_service.generate_pick_list(actor, project.project_id)
        assert pick_service.generate_pick_list(actor, project.project_id) == []
        assert len(pick_service.list_pick_lists(project.project_id)) == 1

    def test_no_reservations(self, stocked_item, project, actor):
        with pytest.raises(NoReservationsError):
            pick_service.generate_pick_list(actor, project.project_id)


class TestConfirm:

    def test_confirm_full_pick(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)

        pick = pick_service.confirm_pick(actor, pick.id, 90)

        assert pick.status == PICK_STATUS_COMPLETED
        assert pick.quantity_picked == 90
        assert pick.picked_by == actor
        assert stock_service.get_quantity(SKU, "FARM-WS") == 10
        assert allocation_service.get_allocation(reserved.id).status == ALLOCATION_STATUS_PULLED

        entry = db.session.query(AuditLogEntry).filter_by(action_type=ACTION_PICK).one()
        assert (entry.quantity_before, entry.quantity_after) == (100, 10)

    def test_confirm_after_start(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        assert pick_service.start_pick(actor, pick.id).status == PICK_STATUS_IN_PROGRESS
        assert pick_service.confirm_pick(actor, pick.id, 90).status == PICK_STATUS_COMPLETED

    def test_short_pick_still_pulls_allocation(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        pick_service.confirm_pick(actor, pick.id, 85)

        assert stock_service.get_quantity(SKU, "FARM-WS") == 15
        assert allocation_service.get_allocation(reserved.id).status == ALLOCATION_STATUS_PULLED

    def test_over_pick_fails_without_mutation(self, reserved, project, actor, put_stock):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        put_stock(SKU, "FARM-WS", 50)

        with pytest.raises(InsufficientStockError):
            pick_service.confirm_pick(actor, pick.id, 90)

        assert stock_service.get_quantity(SKU, "FARM-WS") == 50
        assert pick_service.get_pick_list(pick.id).status == PICK_STATUS_PENDING
        assert allocation_service.get_allocation(reserved.id).status == ALLOCATION_STATUS_RESERVED

    def test_confirm_twice_is_rejected(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        pick_service.confirm_pick(actor, pick.id, 90)
        with pytest.raises(InvalidStateError):
            pick_service.confirm_pick(actor, pick.id, 0)

    def test_negative_quantity(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        with pytest.raises(ValidationError):
            pick_service.confirm_pick(actor, pick.id, -1)

    def test_pick_without_origin_closes_oldest_matching_reservation(self, stocked_item, project, actor):
        first = allocation_service.allocate(actor, project.project_id, SKU, 10, "FARM-WS")
        second = allocation_service.allocate(actor, project.project_id, SKU, 10, "FARM-WS")
        pick = PickList(
            project_id=project.project_id,
            sku=SKU,
            quantity_requested=10,
            pick_from_location="FARM-WS",
            quantity_picked=0,
            status=PICK_STATUS_PENDING,
        )
        db.session.add(pick)
        db.session.commit()

        pick = pick_service.confirm_pick(actor, pick.id, 10)

        assert pick.allocation_id == first.id
        assert allocation_service.get_allocation(first.id).status == ALLOCATION_STATUS_PULLED
        assert allocation_service.get_allocation(second.id).status == ALLOCATION_STATUS_RESERVED

    def test_pick_whose_origin_is_closed_pulls_nothing_else(self, stocked_item, project, actor):
        first = allocation_service.allocate(actor, project.project_id, SKU, 10, "FARM-WS")
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        second = allocation_service.allocate(actor, project.project_id, SKU, 10, "FARM-WS")

        # Origin closed behind the pick's back
        allocation_service.get_allocation(first.id).status = ALLOCATION_STATUS_PULLED
        db.session.commit()

        pick_service.confirm_pick(actor, pick.id, 10)

        assert allocation_service.get_allocation(second.id).status == ALLOCATION_STATUS_RESERVED
        entry = db.session.query(AuditLogEntry).filter_by(action_type=ACTION_PICK).one()
        assert entry.notes == "No reserved allocation matched"

    def test_confirm_stamps_stock_row(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        pick_service.confirm_pick(actor, pick.id, 30)

        level = stock_service.get_stock_level(SKU, "FARM-WS")
        assert level.counted_by == actor
        assert level.last_counted == today()
        assert allocation_service.get_allocation(reserved.id).quantity_pulled == 30


class TestCancel:

    def test_cancel_keeps_reservation(self, reserved, project, actor):
        [pick] = pick_service.generate_pick_list(actor, project.project_id)
        pick = pick_service.cancel_pick(actor, pick.id)

        assert pick.status == PICK_STATUS_CANCELLED
        assert allocation_service.get_allocation(reserved.id).status == ALLOCATION_STATUS_RESERVED
        assert stock_service.get_quantity(SKU, "FARM-WS") == 100

        # A cancelled pick no longer blocks regeneration
        assert len(pick_service.generate_pick_list(actor, project.project_id)) == 1
