# backend/stockyard/routes/picks.py
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StockyardError
from ..services import pick_service


picks_bp = Blueprint("picks", __name__, url_prefix="/api/pick-lists")


@picks_bp.get("/<int:pick_list_id>")
def get_pick_list_route(pick_list_id: int):
    try:
        return jsonify(pick_service.get_pick_list(pick_list_id).to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load pick %s", pick_list_id)
        return jsonify({"error": "Failed to load pick"}), 500


@picks_bp.post("/<int:pick_list_id>/start")
@require_actor
def start_pick_route(pick_list_id: int):
    try:
        pick = pick_service.start_pick(g.actor_email, pick_list_id)
        return jsonify(pick.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to start pick %s", pick_list_id)
        return jsonify({"error": "Failed to start pick"}), 500


@picks_bp.post("/<int:pick_list_id>/confirm")
@require_actor
def confirm_pick_route(pick_list_id: int):
    """
    Request body: {"quantity_picked": int}

    Returns:
        200: Pick completed, stock debited, allocation pulled
        400: Quantity invalid or exceeds on-hand
        409: Pick already completed or cancelled
    """
    data = request.get_json(silent=True) or {}
    try:
        pick = pick_service.confirm_pick(g.actor_email, pick_list_id, data.get("quantity_picked"))
        return jsonify(pick.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to confirm pick %s", pick_list_id)
        return jsonify({"error": "Failed to confirm pick"}), 500


@picks_bp.post("/<int:pick_list_id>/cancel")
@require_actor
def cancel_pick_route(pick_list_id: int):
    try:
        pick = pick_service.cancel_pick(g.actor_email, pick_list_id)
        return jsonify(pick.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel pick %s", pick_list_id)
        return jsonify({"error": "Failed to cancel pick"}), 500
