# backend/stockyard/services/reconciliation_service.py
"""
Par-level alerts and physical-count reconciliation.

PAR LEVELS:
For each hub (Farm, MKE) an item with a non-zero par level alerts when
the sum of its stock across that hub's physical locations is below par.
Virtual zones (TRANSIT) never count. Par 0 means "not tracked".

RECONCILIATION:
A submission compares counted vs. system quantities for one location and
persists a report. It is observational by default. With
apply_adjustments=True every discrepancy is written to the ledger as a
"Physical Count" adjustment in the same transaction as the report.
"""
from __future__ import annotations

from collections import defaultdict

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import InventoryItem, ReconciliationReport, ReconciliationReportItem, StockLevel
from ..time_utils import today
from ..validation import ValidationError, coerce_int, coerce_str
from ..workflow import ACTION_PHYSICAL_COUNT, HUB_FARM, HUB_MKE
from . import audit_service, catalog_service, notification_service, stock_service
from .concurrency import run_in_transaction


def _hub_totals(hub: str) -> dict[str, int]:
    location_ids = catalog_service.physical_location_ids(hub)
    totals: dict[str, int] = defaultdict(int)
    if not location_ids:
        return totals
    rows = db.session.query(StockLevel).filter(StockLevel.location_id.in_(location_ids)).all()
    for level in rows:
        totals[level.sku] += level.quantity
    return totals


def below_par_alerts() -> list[dict]:
    """Alerts sorted by descending deficit."""
    farm_totals = _hub_totals(HUB_FARM)
    mke_totals = _hub_totals(HUB_MKE)

    alerts = []
    for item in db.session.query(InventoryItem).order_by(InventoryItem.sku).all():
        for hub, par_level, totals in (
            (HUB_FARM, item.farm_par_level, farm_totals),
            (HUB_MKE, item.mke_par_level, mke_totals),
        ):
            if par_level <= 0:
                continue
            current_total = totals.get(item.sku, 0)
            if current_total < par_level:
                alerts.append({
                    "sku": item.sku,
                    "description": item.description,
                    "hub": hub,
                    "current_total": current_total,
                    "par_level": par_level,
                    "deficit": par_level - current_total,
                })

    # Stable sort keeps SKU order within equal deficits
    alerts.sort(key=lambda a: a["deficit"], reverse=True)
    return alerts


def _normalize_count_rows(items) -> list[dict]:
    if not items:
        raise ValidationError("At least one counted item is required")

    rows = []
    seen = set()
    for index, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index} must be an object")
        sku = coerce_str(raw.get("sku"), f"items[{index}].sku")
        if sku in seen:
            raise ValidationError(f"SKU {sku} counted twice")
        seen.add(sku)
        system_qty = coerce_int(raw.get("system_qty"), f"items[{index}].system_qty", minimum=0)
        counted_qty = coerce_int(raw.get("counted_qty"), f"items[{index}].counted_qty", minimum=0)
        rows.append({
            "sku": sku,
            "system_qty": system_qty,
            "counted_qty": counted_qty,
            "difference": counted_qty - system_qty,
        })
    return rows


def submit_reconciliation(
    actor: str,
    location_id: str,
    items,
    *,
    apply_adjustments: bool = False,
    notes: str | None = None,
    notify: bool = True,
) -> ReconciliationReport:
    """
    Persist a count report for one location.

    Args:
        items: [{"sku", "system_qty", "counted_qty"}, ...]
        apply_adjustments: write counted quantities into the ledger

    Raises:
        NotFoundError: location or SKU missing
        ValidationError: malformed rows or a virtual location
    """
    def _op():
        catalog_service.get_physical_location(location_id)
        rows = _normalize_count_rows(items)
        for row in rows:
            catalog_service.get_item(row["sku"])

        discrepancies = [row for row in rows if row["difference"] != 0]
        report = ReconciliationReport(
            location_id=location_id,
            submitted_by=actor,
            total_items=len(rows),
            discrepancy_count=len(discrepancies),
            applied=apply_adjustments,
            notes=notes,
        )
        report.items = [ReconciliationReportItem(**row) for row in rows]
        db.session.add(report)
        db.session.flush()

        if apply_adjustments:
            for row in discrepancies:
                before = stock_service.get_quantity(row["sku"], location_id, lock=True)
                stock_service.set_quantity(
                    row["sku"],
                    location_id,
                    row["counted_qty"],
                    last_counted=today(),
                    counted_by=actor,
                )
                audit_service.record(
                    actor=actor,
                    action_type=ACTION_PHYSICAL_COUNT,
                    sku=row["sku"],
                    location_id=location_id,
                    before=before,
                    after=row["counted_qty"],
                    reason="Physical Count",
                    notes=(
                        f"Reconciliation report {report.id}: "
                        f"{row['system_qty']} -> {row['counted_qty']}"
                    ),
                )
        else:
            audit_service.record(
                actor=actor,
                action_type=ACTION_PHYSICAL_COUNT,
                location_id=location_id,
                reason=(
                    f"Reconciliation report {report.id} submitted: "
                    f"{len(rows)} item(s), {len(discrepancies)} discrepanc"
                    f"{'y' if len(discrepancies) == 1 else 'ies'}"
                ),
            )
        return report

    report = run_in_transaction(_op)
    current_app.logger.info(
        "Reconciliation %s at %s by %s: %d discrepancies (applied=%s)",
        report.id, location_id, actor, report.discrepancy_count, report.applied,
    )

    if notify:
        notification_service.send_reconciliation_notification(report)
    return report


def list_reports() -> list[ReconciliationReport]:
    return (
        db.session.query(ReconciliationReport)
        .order_by(ReconciliationReport.submitted_at.desc(), ReconciliationReport.id.desc())
        .all()
    )


def get_report(report_id: int) -> ReconciliationReport:
    report = db.session.get(ReconciliationReport, report_id)
    if report is None:
        raise NotFoundError(f"Reconciliation report {report_id} not found", report_id=report_id)
    return report


def get_report_summary(report_id: int) -> dict:
    report = get_report(report_id)
    return {
        **report.to_dict(),
        "items": [item.to_dict() for item in report.items],
    }
