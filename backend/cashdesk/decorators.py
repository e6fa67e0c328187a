# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, request, jsonify, g

MANAGER_ROLES = {"admin", "manager"}


def _load_identity() -> None:
    header = current_app.config.get("USER_ID_HEADER", "X-User-Id")
    g.current_user_id = (request.headers.get(header) or "").strip() or None
    roles = request.headers.get("X-User-Roles", "")
    g.current_user_roles = {r.strip().lower() for r in roles.split(",") if r.strip()}


def require_user(f):
    """
    Require an acting user.

    Authentication happens upstream; the auth provider's gateway forwards
    the verified user id in USER_ID_HEADER and the role list in
    X-User-Roles. Sets:
    - g.current_user_id
    - g.current_user_roles
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _load_identity()
        if not g.current_user_id:
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function


def is_manager() -> bool:
    return bool(getattr(g, "current_user_roles", set()) & MANAGER_ROLES)
