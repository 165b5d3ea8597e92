# Overview: Pytest coverage for par-level alerts and physical-count reconciliation.

import pytest

from stockyard.errors import NotFoundError
from stockyard.extensions import db
from stockyard.models import AuditLogEntry, ReconciliationReport
from stockyard.services import catalog_service, reconciliation_service, stock_service
from stockyard.validation import ValidationError
from stockyard.workflow import ACTION_PHYSICAL_COUNT, HUB_FARM, HUB_MKE

from conftest import SKU


class TestBelowParAlerts:

    def test_farm_total_below_par(self, item, put_stock):
        """Par 50 at Farm, 30 spread across two Farm zones."""
        put_stock(SKU, "FARM-WS", 20)
        put_stock(SKU, "FARM-YARD", 10)

        alerts = reconciliation_service.below_par_alerts()

        assert alerts == [{
            "sku": SKU,
            "description": "Cedar 2x6 12ft",
            "hub": HUB_FARM,
            "current_total": 30,
            "par_level": 50,
            "deficit": 20,
        }]

    def test_zero_par_never_alerts(self, item, actor):
        # mke_par_level is 0 and MKE holds nothing
        catalog_service.update_par_levels(actor, SKU, 0, 0)
        assert reconciliation_service.below_par_alerts() == []

    def test_transit_does_not_count(self, item, put_stock):
        put_stock(SKU, "FARM-WS", 45)
        put_stock(SKU, "TRANSIT", 500)
        [alert] = reconciliation_service.below_par_alerts()
        assert alert["current_total"] == 45

    def test_at_par_is_not_below(self, item, put_stock):
        put_stock(SKU, "FARM-WS", 50)
        assert reconciliation_service.below_par_alerts() == []

    def test_sorted_by_deficit(self, item, actor, put_stock):
        catalog_service.create_item(actor, {
            "sku": "WO-8/4", "description": "White Oak 8/4", "farm_par_level": 10, "mke_par_level": 100,
        })
        put_stock(SKU, "FARM-WS", 40)

        alerts = reconciliation_service.below_par_alerts()
        assert [(a["sku"], a["hub"], a["deficit"]) for a in alerts] == [
            ("WO-8/4", HUB_MKE, 100),
            (SKU, HUB_FARM, 10),
            ("WO-8/4", HUB_FARM, 10),
        ]


class TestSubmitReconciliation:

    def test_observational_report(self, item, put_stock, actor):
        put_stock(SKU, "FARM-WS", 10)

        report = reconciliation_service.submit_reconciliation(
            actor, "FARM-WS", [{"sku": SKU, "system_qty": 10, "counted_qty": 8}],
        )

        assert report.discrepancy_count == 1
        assert report.total_items == 1
        assert report.applied is False
        assert report.items[0].difference == -2
        # Ledger untouched
        assert stock_service.get_quantity(SKU, "FARM-WS") == 10
        assert db.session.query(AuditLogEntry).filter_by(action_type=ACTION_PHYSICAL_COUNT).count() == 1

    def test_apply_adjustments_writes_ledger(self, item, put_stock, actor):
        put_stock(SKU, "FARM-WS", 10)
        catalog_service.create_item(actor, {"sku": "HW-1", "description": "Lag screws", "category": "Hardware"})
        put_stock("HW-1", "FARM-WS", 4)

        report = reconciliation_service.submit_reconciliation(
            actor,
            "FARM-WS",
            [
                {"sku": SKU, "system_qty": 10, "counted_qty": 8},
                {"sku": "HW-1", "system_qty": 4, "counted_qty": 4},
            ],
            apply_adjustments=True,
        )

        assert report.applied is True
        assert report.discrepancy_count == 1
        assert stock_service.get_quantity(SKU, "FARM-WS") == 8
        level = stock_service.get_stock_level(SKU, "FARM-WS")
        assert level.counted_by == actor

        [entry] = db.session.query(AuditLogEntry).filter_by(action_type=ACTION_PHYSICAL_COUNT).all()
        assert (entry.sku, entry.quantity_before, entry.quantity_after) == (SKU, 10, 8)

    def test_rejects_bad_rows(self, item, actor):
        with pytest.raises(ValidationError):
            reconciliation_service.submit_reconciliation(actor, "FARM-WS", [])
        with pytest.raises(ValidationError):
            reconciliation_service.submit_reconciliation(
                actor, "FARM-WS", [{"sku": SKU, "system_qty": 1, "counted_qty": -1}],
            )
        with pytest.raises(ValidationError):
            reconciliation_service.submit_reconciliation(
                actor, "TRANSIT", [{"sku": SKU, "system_qty": 1, "counted_qty": 1}],
            )
        with pytest.raises(NotFoundError):
            reconciliation_service.submit_reconciliation(
                actor, "FARM-WS", [{"sku": "GHOST", "system_qty": 1, "counted_qty": 1}],
            )
        assert db.session.query(ReconciliationReport).count() == 0

    def test_reports_are_listed_and_fetched(self, item, actor):
        report = reconciliation_service.submit_reconciliation(
            actor, "FARM-WS", [{"sku": SKU, "system_qty": 0, "counted_qty": 3}], notes="Spring count",
        )

        assert [r.id for r in reconciliation_service.list_reports()] == [report.id]
        summary = reconciliation_service.get_report_summary(report.id)
        assert summary["notes"] == "Spring count"
        assert summary["items"][0]["difference"] == 3

        with pytest.raises(NotFoundError):
            reconciliation_service.get_report(report.id + 1)
