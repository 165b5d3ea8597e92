# Overview: Append-only audit recorder; every ledger mutation pairs with one entry.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import AuditLogEntry
from ..validation import ValidationError
from ..workflow import ACTION_TYPES
"""
Audit invariants (authoritative)

- One entry per quantity-affecting action, written inside the same DB
  transaction as the change. If the insert fails the caller's transaction
  rolls back, so no ledger mutation commits without its entry.
- quantity_before / quantity_after mirror the ledger row the action touched.
- timestamp is system time (DB default); entries are never updated/deleted.
"""


def record(
    *,
    actor: str,
    action_type: str,
    reason: str,
    sku: str | None = None,
    location_id: str | None = None,
    before: int | None = None,
    after: int | None = None,
    notes: str | None = None,
) -> AuditLogEntry:
    if not actor:
        raise ValidationError("Audit entries require an actor")
    if action_type not in ACTION_TYPES:
        raise ValidationError(f"Unknown audit action type: {action_type}")
    if not reason or not reason.strip():
        raise ValidationError("Audit entries require a reason")

    entry = AuditLogEntry(
        user_email=actor,
        action_type=action_type,
        sku=sku,
        location_id=location_id,
        quantity_before=before,
        quantity_after=after,
        reason=reason,
        notes=notes,
    )
    db.session.add(entry)
    db.session.flush()  # surface insert failures inside the caller's transaction
    return entry


def list_audit_log(limit: int | None = None) -> list[AuditLogEntry]:
    """Newest first, capped at AUDIT_LOG_LIMIT unless a limit is given."""
    if limit is None:
        limit = current_app.config.get("AUDIT_LOG_LIMIT", 500)
    return (
        db.session.query(AuditLogEntry)
        .order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc())
        .limit(limit)
        .all()
    )
