# Overview: Projects (customer jobs) and the derived Clients view.

from __future__ import annotations

import re
from collections import OrderedDict
from datetime import date

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Allocation, PickList, Project
from ..time_utils import to_iso_date
from ..validation import ValidationError, coerce_choice, coerce_str
from ..workflow import (
    ACTION_PRODUCT_DELETED,
    ALLOCATION_STATUS_RESERVED,
    PHYSICAL_HUBS,
    PROJECT_STATUS_ACTIVE,
    PROJECT_STATUS_COMPLETE,
    PROJECT_STATUS_PLANNING,
    PROJECT_STATUSES,
)
from . import audit_service
from .concurrency import lock_for_update, run_in_transaction


PROJECT_ID_PATTERN = re.compile(r"^PRJ-(\d+)$")
OPEN_PROJECT_STATUSES = (PROJECT_STATUS_PLANNING, PROJECT_STATUS_ACTIVE)

_OPTIONAL_TEXT_FIELDS = ("project_lead", "notes", "catalog_id")


def _parse_date(value, field: str) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)")


def next_project_id() -> str:
    """
    PRJ-NNN, one past the highest existing number.

    Compared numerically so PRJ-1000 follows PRJ-999.
    """
    highest = 0
    for (project_id,) in db.session.query(Project.project_id).all():
        match = PROJECT_ID_PATTERN.match(project_id)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"PRJ-{highest + 1:03d}"


def get_project(project_id: str, *, lock: bool = False) -> Project:
    query = db.session.query(Project).filter_by(project_id=project_id)
    if lock:
        query = lock_for_update(query)
    project = query.first()
    if project is None:
        raise NotFoundError(f"Project {project_id} not found", project_id=project_id)
    return project


def list_projects() -> list[Project]:
    return db.session.query(Project).order_by(Project.created_at.desc(), Project.project_id.desc()).all()


def create_project(actor: str, data: dict) -> Project:
    def _op():
        project = Project(
            project_id=next_project_id(),
            project_name=coerce_str(data.get("project_name"), "project_name", max_length=255),
            client=coerce_str(data.get("client"), "client", max_length=255),
            assigned_hub=coerce_choice(data.get("assigned_hub"), "assigned_hub", PHYSICAL_HUBS),
            status=PROJECT_STATUS_PLANNING,
            start_date=_parse_date(data.get("start_date"), "start_date"),
            end_date=_parse_date(data.get("end_date"), "end_date"),
        )
        for field in _OPTIONAL_TEXT_FIELDS:
            setattr(project, field, coerce_str(data.get(field), field, required=False))

        db.session.add(project)
        db.session.flush()
        return project

    project = run_in_transaction(_op)
    current_app.logger.info("Project %s created by %s", project.project_id, actor)
    return project


def update_project(actor: str, project_id: str, data: dict) -> Project:
    def _op():
        project = get_project(project_id, lock=True)

        if "project_name" in data:
            project.project_name = coerce_str(data["project_name"], "project_name", max_length=255)
        if "client" in data:
            project.client = coerce_str(data["client"], "client", max_length=255)
        if "assigned_hub" in data:
            project.assigned_hub = coerce_choice(data["assigned_hub"], "assigned_hub", PHYSICAL_HUBS)
        if "status" in data:
            project.status = coerce_choice(data["status"], "status", PROJECT_STATUSES)
        for field in ("start_date", "end_date"):
            if field in data:
                setattr(project, field, _parse_date(data[field], field))
        for field in _OPTIONAL_TEXT_FIELDS:
            if field in data:
                setattr(project, field, coerce_str(data[field], field, required=False))

        db.session.flush()
        return project

    return run_in_transaction(_op)


def delete_project(actor: str, project_id: str) -> None:
    """
    Remove a project with its allocations and pick lists.

    Reserved allocations simply disappear (they never moved stock).
    Pulled stock stays consumed.
    """
    def _op():
        project = get_project(project_id, lock=True)

        reserved = (
            db.session.query(Allocation)
            .filter_by(project_id=project_id, status=ALLOCATION_STATUS_RESERVED)
            .count()
        )

        label = f"{project.project_name} for {project.client}"

        db.session.query(PickList).filter_by(project_id=project_id).delete(synchronize_session=False)
        db.session.query(Allocation).filter_by(project_id=project_id).delete(synchronize_session=False)
        db.session.delete(project)
        db.session.flush()

        audit_service.record(
            actor=actor,
            action_type=ACTION_PRODUCT_DELETED,
            reason=f"Deleted project {project_id} ({label})",
            notes=f"{reserved} reservation(s) released" if reserved else None,
        )

    run_in_transaction(_op)
    current_app.logger.info("Project %s deleted by %s", project_id, actor)


def client_summaries() -> list[dict]:
    """Group projects by client name, busiest clients first."""
    allocation_counts = dict(
        db.session.query(Allocation.project_id, db.func.count(Allocation.id))
        .group_by(Allocation.project_id)
        .all()
    )

    clients: "OrderedDict[str, dict]" = OrderedDict()
    for project in db.session.query(Project).order_by(Project.client, Project.project_id).all():
        summary = clients.setdefault(project.client, {
            "name": project.client,
            "product_count": 0,
            "active_count": 0,
            "completed_count": 0,
            "total_allocations": 0,
            "products": [],
        })
        summary["product_count"] += 1
        if project.status in OPEN_PROJECT_STATUSES:
            summary["active_count"] += 1
        elif project.status == PROJECT_STATUS_COMPLETE:
            summary["completed_count"] += 1
        summary["total_allocations"] += allocation_counts.get(project.project_id, 0)
        summary["products"].append({
            "project_id": project.project_id,
            "project_name": project.project_name,
            "status": project.status,
            "assigned_hub": project.assigned_hub,
            "start_date": to_iso_date(project.start_date),
            "end_date": to_iso_date(project.end_date),
            "project_lead": project.project_lead,
        })

    return sorted(clients.values(), key=lambda c: (-c["product_count"], c["name"]))
