# backend/stockyard/routes/inventory.py
"""
Catalog, locations, stock adjustments and the audit log.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StockyardError
from ..services import audit_service, catalog_service, stock_service
from ..validation import ValidationError, coerce_int
from ..workflow import ACTION_STOCK_ADJUSTMENT, ZONE_STORAGE


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


# --- locations -------------------------------------------------------------

@inventory_bp.get("/locations")
def list_locations_route():
    try:
        return jsonify([loc.to_dict() for loc in catalog_service.list_locations()]), 200
    except Exception:
        current_app.logger.exception("Failed to list locations")
        return jsonify({"error": "Failed to list locations"}), 500


@inventory_bp.post("/locations")
@require_actor
def create_location_route():
    data = request.get_json(silent=True) or {}
    try:
        location = catalog_service.create_location(
            location_id=data.get("location_id"),
            location_name=data.get("location_name"),
            hub=data.get("hub"),
            zone_type=data.get("zone_type") or ZONE_STORAGE,
            notes=data.get("notes"),
        )
        return jsonify(location.to_dict()), 201
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create location")
        return jsonify({"error": "Failed to create location"}), 500


# --- items -----------------------------------------------------------------

@inventory_bp.get("/inventory")
def inventory_summary_route():
    """Per-item stock rows plus on-hand / in-transit / allocated / available totals."""
    try:
        return jsonify(stock_service.inventory_summary()), 200
    except Exception:
        current_app.logger.exception("Failed to build inventory summary")
        return jsonify({"error": "Failed to load inventory"}), 500


@inventory_bp.get("/inventory/items")
def list_items_route():
    try:
        return jsonify([item.to_dict() for item in catalog_service.list_items()]), 200
    except Exception:
        current_app.logger.exception("Failed to list items")
        return jsonify({"error": "Failed to list items"}), 500


@inventory_bp.post("/inventory")
@require_actor
def create_item_route():
    data = request.get_json(silent=True) or {}
    try:
        item = catalog_service.create_item(g.actor_email, data)
        return jsonify(item.to_dict()), 201
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create item")
        return jsonify({"error": "Failed to create item"}), 500


@inventory_bp.patch("/inventory/<sku>")
@require_actor
def update_item_route(sku: str):
    data = request.get_json(silent=True) or {}
    try:
        item = catalog_service.update_item(g.actor_email, sku, data)
        return jsonify(item.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update item %s", sku)
        return jsonify({"error": "Failed to update item"}), 500


@inventory_bp.delete("/inventory/<sku>")
@require_actor
def delete_item_route(sku: str):
    try:
        catalog_service.delete_item(g.actor_email, sku)
        return jsonify({"deleted": sku}), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete item %s", sku)
        return jsonify({"error": "Failed to delete item"}), 500


@inventory_bp.patch("/inventory/<sku>/par-levels")
@require_actor
def update_par_levels_route(sku: str):
    data = request.get_json(silent=True) or {}
    try:
        item = catalog_service.update_par_levels(
            g.actor_email,
            sku,
            data.get("farm_par_level"),
            data.get("mke_par_level"),
        )
        return jsonify(item.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update par levels for %s", sku)
        return jsonify({"error": "Failed to update par levels"}), 500


# --- stock -----------------------------------------------------------------

@inventory_bp.post("/stock/adjust")
@require_actor
def adjust_stock_route():
    """
    Request body:
    {
        "sku": str,
        "location_id": str,
        "new_quantity": int,
        "reason": str,
        "notes": str (optional),
        "action_type": "Stock Adjustment" | "Physical Count" (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        level = stock_service.adjust_stock(
            g.actor_email,
            data.get("sku"),
            data.get("location_id"),
            data.get("new_quantity"),
            data.get("reason"),
            notes=data.get("notes"),
            action_type=data.get("action_type") or ACTION_STOCK_ADJUSTMENT,
        )
        return jsonify(level.to_dict()), 200
    except StockyardError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Failed to adjust stock"}), 500


# --- audit -----------------------------------------------------------------

@inventory_bp.get("/audit-log")
def audit_log_route():
    limit_param = request.args.get("limit")
    try:
        limit = coerce_int(limit_param, "limit", minimum=1) if limit_param else None
    except ValidationError as e:
        return jsonify(e.to_dict()), e.status_code

    try:
        entries = audit_service.list_audit_log(limit=limit)
        return jsonify([entry.to_dict() for entry in entries]), 200
    except Exception:
        current_app.logger.exception("Failed to read audit log")
        return jsonify({"error": "Failed to read audit log"}), 500
