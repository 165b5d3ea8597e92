# Overview: Read-only dashboard aggregates.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import InventoryItem, PickList, Project, Transfer
from ..workflow import ACTIVE_TRANSFER_STATUSES, OPEN_PICK_STATUSES
from . import audit_service, project_service, reconciliation_service


def dashboard_summary() -> dict:
    clients = project_service.client_summaries()
    recent_limit = current_app.config.get("RECENT_ACTIVITY_LIMIT", 10)

    return {
        "total_skus": db.session.query(InventoryItem).count(),
        "below_par_items": reconciliation_service.below_par_alerts(),
        "recent_activity": [e.to_dict() for e in audit_service.list_audit_log(limit=recent_limit)],
        "active_transfers": (
            db.session.query(Transfer)
            .filter(Transfer.status.in_(ACTIVE_TRANSFER_STATUSES))
            .count()
        ),
        "active_projects": (
            db.session.query(Project)
            .filter(Project.status.in_(project_service.OPEN_PROJECT_STATUSES))
            .count()
        ),
        "pending_pick_lists": (
            db.session.query(PickList)
            .filter(PickList.status.in_(OPEN_PICK_STATUSES))
            .count()
        ),
        "total_clients": len(clients),
        "active_clients": sum(1 for c in clients if c["active_count"] > 0),
    }
