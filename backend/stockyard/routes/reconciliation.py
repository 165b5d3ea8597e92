# backend/stockyard/routes/reconciliation.py
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StockyardError
from ..services import reconciliation_service


reconciliation_bp = Blueprint("reconciliation", __name__, url_prefix="/api/reconciliation-reports")


@reconciliation_bp.route("", methods=["GET"])
def list_reports_route():
    try:
        return jsonify([r.to_dict() for r in reconciliation_service.list_reports()]), 200
    except Exception:
        current_app.logger.exception("Failed to list reconciliation reports")
        return jsonify({"error": "Failed to list reconciliation reports"}), 500


@reconciliation_bp.route("", methods=["POST"])
@require_actor
def submit_report_route():
    """
    Submit a physical count for one location.

    Request body:
    {
        "location_id": str,
        "items": [{"sku": str, "system_qty": int, "counted_qty": int}, ...],
        "apply_adjustments": bool (optional, default false),
        "notes": str (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    apply_adjustments = data.get("apply_adjustments", False)
    if not isinstance(apply_adjustments, bool):
        return jsonify({"error": "apply_adjustments must be true or false", "kind": "validation_error"}), 400

    try:
        report = reconciliation_service.submit_reconciliation(
            g.actor_email,
            data.get("location_id"),
            data.get("items"),
            apply_adjustments=apply_adjustments,
            notes=data.get("notes"),
        )
        return jsonify(reconciliation_service.get_report_summary(report.id)), 201
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to submit reconciliation report")
        return jsonify({"error": "Failed to submit reconciliation report"}), 500


@reconciliation_bp.route("/<int:report_id>", methods=["GET"])
def get_report_route(report_id: int):
    try:
        return jsonify(reconciliation_service.get_report_summary(report_id)), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load reconciliation report %s", report_id)
        return jsonify({"error": "Failed to load reconciliation report"}), 500
