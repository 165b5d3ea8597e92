# backend/stockyard/routes/reports.py
from flask import Blueprint, current_app, jsonify

from ..services import reconciliation_service, reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/reports/par-levels")
def par_level_report():
    """Items below par at Farm or MKE, largest deficit first."""
    try:
        return jsonify(reconciliation_service.below_par_alerts()), 200
    except Exception:
        current_app.logger.exception("Failed to build par level report")
        return jsonify({"error": "Failed to build par level report"}), 500


@reports_bp.get("/dashboard")
def dashboard():
    try:
        return jsonify(reporting_service.dashboard_summary()), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Failed to build dashboard"}), 500
