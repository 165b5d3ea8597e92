# backend/stockyard/routes/projects.py
"""
Projects, client rollups, allocations and pick-list generation.
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor
from ..errors import StockyardError
from ..services import allocation_service, pick_service, project_service


projects_bp = Blueprint("projects", __name__, url_prefix="/api")


def _error(e: StockyardError):
    return jsonify(e.to_dict()), e.status_code


# --- projects --------------------------------------------------------------

@projects_bp.get("/projects")
def list_projects_route():
    try:
        return jsonify([p.to_dict() for p in project_service.list_projects()]), 200
    except Exception:
        current_app.logger.exception("Failed to list projects")
        return jsonify({"error": "Failed to list projects"}), 500


@projects_bp.post("/projects")
@require_actor
def create_project_route():
    data = request.get_json(silent=True) or {}
    try:
        project = project_service.create_project(g.actor_email, data)
        return jsonify(project.to_dict()), 201
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create project")
        return jsonify({"error": "Failed to create project"}), 500


@projects_bp.get("/projects/<project_id>")
def get_project_route(project_id: str):
    try:
        project = project_service.get_project(project_id)
        return jsonify(project.to_dict()), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to load project %s", project_id)
        return jsonify({"error": "Failed to load project"}), 500


@projects_bp.patch("/projects/<project_id>")
@require_actor
def update_project_route(project_id: str):
    data = request.get_json(silent=True) or {}
    try:
        project = project_service.update_project(g.actor_email, project_id, data)
        return jsonify(project.to_dict()), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to update project %s", project_id)
        return jsonify({"error": "Failed to update project"}), 500


@projects_bp.delete("/projects/<project_id>")
@require_actor
def delete_project_route(project_id: str):
    try:
        project_service.delete_project(g.actor_email, project_id)
        return jsonify({"deleted": project_id}), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to delete project %s", project_id)
        return jsonify({"error": "Failed to delete project"}), 500


@projects_bp.get("/clients")
def client_summaries_route():
    try:
        return jsonify(project_service.client_summaries()), 200
    except Exception:
        current_app.logger.exception("Failed to build client summaries")
        return jsonify({"error": "Failed to load clients"}), 500


# --- allocations -----------------------------------------------------------

@projects_bp.get("/projects/<project_id>/allocations")
def list_allocations_route(project_id: str):
    try:
        allocations = allocation_service.list_allocations(project_id)
        return jsonify([a.to_dict() for a in allocations]), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to list allocations for project %s", project_id)
        return jsonify({"error": "Failed to list allocations"}), 500


@projects_bp.post("/projects/<project_id>/allocations")
@require_actor
def allocate_route(project_id: str):
    """
    Request body:
    {
        "sku": str,
        "quantity": int,
        "source_location": str,
        "notes": str (optional)
    }

    Returns:
        201: Allocation reserved
        400: Invalid request or insufficient available stock
        404: Project, SKU or location not found
    """
    data = request.get_json(silent=True) or {}
    try:
        allocation = allocation_service.allocate(
            g.actor_email,
            project_id,
            data.get("sku"),
            data.get("quantity"),
            data.get("source_location"),
            notes=data.get("notes"),
        )
        return jsonify(allocation.to_dict()), 201
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to allocate for project %s", project_id)
        return jsonify({"error": "Failed to create allocation"}), 500


@projects_bp.post("/projects/<project_id>/allocations/bulk")
@require_actor
def bulk_allocate_route(project_id: str):
    """
    Request body: {"allocations": [{"sku", "quantity", "source_location"}, ...]}

    Always 200 once the project exists; per-row outcomes are in "results".
    """
    data = request.get_json(silent=True) or {}
    rows = data.get("allocations")
    if not isinstance(rows, list):
        return jsonify({"error": "allocations must be a list", "kind": "validation_error"}), 400
    try:
        result = allocation_service.bulk_allocate(g.actor_email, project_id, rows)
        return jsonify(result), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed bulk allocation for project %s", project_id)
        return jsonify({"error": "Failed to create allocations"}), 500


def _allocation_ids(data: dict):
    ids = data.get("allocation_ids")
    if not isinstance(ids, list) or not ids:
        return None
    return ids


@projects_bp.post("/projects/<project_id>/allocations/pull-batch")
@require_actor
def pull_allocations_route(project_id: str):
    ids = _allocation_ids(request.get_json(silent=True) or {})
    if ids is None:
        return jsonify({"error": "allocation_ids must be a non-empty list", "kind": "validation_error"}), 400
    try:
        allocations = allocation_service.pull_allocations(g.actor_email, project_id, ids)
        return jsonify([a.to_dict() for a in allocations]), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to pull allocations for project %s", project_id)
        return jsonify({"error": "Failed to pull allocations"}), 500


@projects_bp.post("/projects/<project_id>/allocations/unpull-batch")
@require_actor
def unpull_allocations_route(project_id: str):
    ids = _allocation_ids(request.get_json(silent=True) or {})
    if ids is None:
        return jsonify({"error": "allocation_ids must be a non-empty list", "kind": "validation_error"}), 400
    try:
        allocations = allocation_service.unpull_allocations(g.actor_email, project_id, ids)
        return jsonify([a.to_dict() for a in allocations]), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to unpull allocations for project %s", project_id)
        return jsonify({"error": "Failed to return allocations"}), 500


@projects_bp.post("/allocations/<int:allocation_id>/cancel")
@require_actor
def cancel_allocation_route(allocation_id: int):
    try:
        allocation = allocation_service.cancel_allocation(g.actor_email, allocation_id)
        return jsonify(allocation.to_dict()), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to cancel allocation %s", allocation_id)
        return jsonify({"error": "Failed to cancel allocation"}), 500


# --- pick lists ------------------------------------------------------------

@projects_bp.post("/projects/<project_id>/generate-pick-list")
@require_actor
def generate_pick_list_route(project_id: str):
    try:
        picks = pick_service.generate_pick_list(g.actor_email, project_id)
        return jsonify([p.to_dict() for p in picks]), 201
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to generate pick list for project %s", project_id)
        return jsonify({"error": "Failed to generate pick list"}), 500


@projects_bp.get("/projects/<project_id>/pick-lists")
def list_pick_lists_route(project_id: str):
    try:
        picks = pick_service.list_pick_lists(project_id)
        return jsonify([p.to_dict() for p in picks]), 200
    except StockyardError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to list pick lists for project %s", project_id)
        return jsonify({"error": "Failed to list pick lists"}), 500
