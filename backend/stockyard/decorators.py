# Overview: Request decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request


def require_actor(f):
    """
    Require the authenticated actor's email.

    Authentication happens upstream; the proxy forwards the verified address
    in ``ACTOR_HEADER``. Sets ``g.actor_email``. Returns 401 when absent.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config.get("ACTOR_HEADER", "X-Authenticated-Email")
        email = (request.headers.get(header) or "").strip()
        if not email:
            return jsonify({"error": "Authentication required", "kind": "unauthenticated"}), 401

        g.actor_email = email.lower()
        return f(*args, **kwargs)

    return decorated_function
