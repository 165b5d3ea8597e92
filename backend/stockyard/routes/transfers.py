# backend/stockyard/routes/transfers.py
"""
Inter-hub transfer API routes.

Requested -> In Transit -> Received, or Cancelled from either open state.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StockyardError
from ..services import transfer_service


transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


@transfers_bp.route("", methods=["GET"])
def list_transfers_route():
    try:
        transfers = transfer_service.list_transfers(status=request.args.get("status"))
        return jsonify([t.to_dict() for t in transfers]), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list transfers")
        return jsonify({"error": "Failed to list transfers"}), 500


@transfers_bp.route("", methods=["POST"])
@require_actor
def create_transfer_route():
    """
    Create a transfer request.

    Request body:
    {
        "sku": str,
        "quantity": int,
        "from_location": str,
        "to_location": str,
        "notes": str (optional)
    }

    Returns:
        201: Transfer requested
        400: Invalid request or insufficient stock at source
        404: SKU or location not found
    """
    data = request.get_json(silent=True) or {}

    try:
        transfer = transfer_service.create_transfer(
            g.actor_email,
            data.get("sku"),
            data.get("quantity"),
            data.get("from_location"),
            data.get("to_location"),
            notes=data.get("notes"),
        )
        return jsonify(transfer.to_dict()), 201

    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create transfer")
        return jsonify({"error": "Failed to create transfer"}), 500


@transfers_bp.route("/<int:transfer_id>", methods=["GET"])
def get_transfer_route(transfer_id: int):
    try:
        return jsonify(transfer_service.get_transfer(transfer_id).to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to load transfer %s", transfer_id)
        return jsonify({"error": "Failed to load transfer"}), 500


@transfers_bp.route("/<int:transfer_id>", methods=["DELETE"])
@require_actor
def delete_transfer_route(transfer_id: int):
    try:
        transfer_service.delete_transfer(g.actor_email, transfer_id)
        return jsonify({"deleted": transfer_id}), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete transfer %s", transfer_id)
        return jsonify({"error": "Failed to delete transfer"}), 500


@transfers_bp.route("/<int:transfer_id>/ship", methods=["POST"])
@require_actor
def ship_transfer_route(transfer_id: int):
    """
    Ship transfer (Requested -> In Transit).
    Moves quantity from the source location into TRANSIT.
    """
    try:
        transfer = transfer_service.ship_transfer(g.actor_email, transfer_id)
        return jsonify(transfer.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to ship transfer %s", transfer_id)
        return jsonify({"error": "Failed to ship transfer"}), 500


@transfers_bp.route("/<int:transfer_id>/receive", methods=["POST"])
@require_actor
def receive_transfer_route(transfer_id: int):
    """
    Receive transfer (In Transit -> Received).

    Request body (optional): {"quantity_received": int}
    Defaults to the full shipped quantity.
    """
    data = request.get_json(silent=True) or {}
    try:
        transfer = transfer_service.receive_transfer(
            g.actor_email,
            transfer_id,
            quantity_received=data.get("quantity_received"),
        )
        return jsonify(transfer.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to receive transfer %s", transfer_id)
        return jsonify({"error": "Failed to receive transfer"}), 500


@transfers_bp.route("/<int:transfer_id>/cancel", methods=["POST"])
@require_actor
def cancel_transfer_route(transfer_id: int):
    """
    Cancel transfer.

    Request body (optional): {"reason": str}
    An In Transit transfer returns its quantity to the source.
    """
    data = request.get_json(silent=True) or {}
    try:
        transfer = transfer_service.cancel_transfer(g.actor_email, transfer_id, reason=data.get("reason"))
        return jsonify(transfer.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel transfer %s", transfer_id)
        return jsonify({"error": "Failed to cancel transfer"}), 500
