# Overview: Pytest coverage for the stock ledger and the audit recorder.

import pytest

from stockyard.errors import InvalidStateError, NotFoundError
from stockyard.extensions import db
from stockyard.models import AuditLogEntry
from stockyard.services import allocation_service, audit_service, stock_service
from stockyard.services.concurrency import run_in_transaction
from stockyard.validation import ValidationError
from stockyard.workflow import ACTION_PHYSICAL_COUNT, ACTION_STOCK_ADJUSTMENT, ACTION_TRANSFER

from conftest import SKU


class TestLedger:

    def test_missing_row_reads_as_zero(self, item):
        assert stock_service.get_quantity(SKU, "FARM-WS") == 0

    def test_set_quantity_upserts_single_row(self, item, put_stock):
        put_stock(SKU, "FARM-WS", 10)
        put_stock(SKU, "FARM-WS", 25)

        assert stock_service.get_quantity(SKU, "FARM-WS") == 25
        assert stock_service.get_stock_level(SKU, "FARM-WS").quantity == 25

    def test_negative_write_fails_before_mutating(self, stocked_item):
        with pytest.raises(InvalidStateError):
            run_in_transaction(lambda: stock_service.set_quantity(SKU, "FARM-WS", -1))

        assert stock_service.get_quantity(SKU, "FARM-WS") == 100

    def test_change_quantity_returns_before_and_after(self, stocked_item):
        before, after = run_in_transaction(lambda: stock_service.change_quantity(SKU, "FARM-WS", -30))
        assert (before, after) == (100, 70)

    def test_change_quantity_can_floor_at_zero(self, item, put_stock):
        put_stock(SKU, "TRANSIT", 5)
        before, after = run_in_transaction(
            lambda: stock_service.change_quantity(SKU, "TRANSIT", -8, floor_at_zero=True)
        )
        assert (before, after) == (5, 0)

    def test_change_quantity_rejects_overdraw(self, stocked_item):
        with pytest.raises(InvalidStateError):
            run_in_transaction(lambda: stock_service.change_quantity(SKU, "FARM-WS", -101))
        assert stock_service.get_quantity(SKU, "FARM-WS") == 100

    def test_virtual_location_is_never_available(self, item, put_stock):
        put_stock(SKU, "TRANSIT", 40)
        assert stock_service.available_to_allocate(SKU, "TRANSIT") == 0


class TestAdjustStock:

    def test_adjust_writes_one_audit_row_matching_ledger(self, stocked_item, actor):
        level = stock_service.adjust_stock(actor, SKU, "FARM-WS", 80, "Water damage")

        assert level.quantity == 80
        assert level.counted_by == actor
        assert level.last_counted is not None

        entries = db.session.query(AuditLogEntry).filter_by(action_type=ACTION_STOCK_ADJUSTMENT).all()
        assert len(entries) == 1
        assert entries[0].quantity_before == 100
        assert entries[0].quantity_after == 80
        assert entries[0].user_email == actor

    def test_adjust_as_physical_count(self, stocked_item, actor):
        stock_service.adjust_stock(actor, SKU, "FARM-WS", 97, "Cycle count", action_type=ACTION_PHYSICAL_COUNT)
        assert db.session.query(AuditLogEntry).filter_by(action_type=ACTION_PHYSICAL_COUNT).count() == 1

    def test_adjust_rejects_other_action_types(self, stocked_item, actor):
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(actor, SKU, "FARM-WS", 1, "x", action_type=ACTION_TRANSFER)

    def test_adjust_rejects_negative_and_virtual(self, stocked_item, actor):
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(actor, SKU, "FARM-WS", -5, "typo")
        with pytest.raises(ValidationError):
            stock_service.adjust_stock(actor, SKU, "TRANSIT", 5, "not allowed")
        assert stock_service.get_quantity(SKU, "FARM-WS") == 100

    def test_adjust_unknown_sku(self, item, actor):
        with pytest.raises(NotFoundError):
            stock_service.adjust_stock(actor, "NOPE", "FARM-WS", 5, "x")


class TestInventorySummary:

    def test_summary_splits_on_hand_transit_and_allocated(self, stocked_item, put_stock, project, actor):
        put_stock(SKU, "TRANSIT", 15)
        allocation_service.allocate(actor, project.project_id, SKU, 30, "FARM-WS")

        [row] = stock_service.inventory_summary()
        assert row["sku"] == SKU
        assert row["total_on_hand"] == 100
        assert row["in_transit"] == 15
        assert row["allocated"] == 30
        assert row["available"] == 70
        assert {s["location_id"] for s in row["stock_levels"]} == {"FARM-WS", "TRANSIT"}


class TestAuditRecorder:

    def test_record_requires_known_action_type(self, item, actor):
        with pytest.raises(ValidationError):
            run_in_transaction(lambda: audit_service.record(actor=actor, action_type="Teleport", reason="x"))

    def test_entries_are_immutable(self, item, actor):
        entry = db.session.query(AuditLogEntry).first()
        entry.reason = "rewritten"
        with pytest.raises(InvalidStateError):
            db.session.flush()
        db.session.rollback()

        entry = db.session.query(AuditLogEntry).first()
        db.session.delete(entry)
        with pytest.raises(InvalidStateError):
            db.session.flush()
        db.session.rollback()

    def test_list_is_newest_first_and_limited(self, stocked_item, actor):
        for qty in (90, 80, 70):
            stock_service.adjust_stock(actor, SKU, "FARM-WS", qty, f"set {qty}")

        entries = audit_service.list_audit_log(limit=2)
        assert [e.quantity_after for e in entries] == [70, 80]
