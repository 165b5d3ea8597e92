# backend/stockyard/routes/notifications.py
from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_actor
from ..errors import StockyardError
from ..services import notification_service


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("/recipients")
def list_recipients_route():
    try:
        return jsonify([r.to_dict() for r in notification_service.list_recipients()]), 200
    except Exception:
        current_app.logger.exception("Failed to list notification recipients")
        return jsonify({"error": "Failed to list recipients"}), 500


@notifications_bp.post("/recipients")
@require_actor
def create_recipient_route():
    data = request.get_json(silent=True) or {}
    try:
        recipient = notification_service.create_recipient(data.get("email"), data.get("name"))
        return jsonify(recipient.to_dict()), 201
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create notification recipient")
        return jsonify({"error": "Failed to create recipient"}), 500


@notifications_bp.patch("/recipients/<int:recipient_id>")
@require_actor
def update_recipient_route(recipient_id: int):
    data = request.get_json(silent=True) or {}
    try:
        recipient = notification_service.set_recipient_active(recipient_id, data.get("active"))
        return jsonify(recipient.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update notification recipient %s", recipient_id)
        return jsonify({"error": "Failed to update recipient"}), 500


@notifications_bp.delete("/recipients/<int:recipient_id>")
@require_actor
def delete_recipient_route(recipient_id: int):
    try:
        notification_service.delete_recipient(recipient_id)
        return jsonify({"deleted": recipient_id}), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete notification recipient %s", recipient_id)
        return jsonify({"error": "Failed to delete recipient"}), 500
