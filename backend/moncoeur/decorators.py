# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .constants import ROLE_ADMIN
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets g.current_user. Returns 401 when the header is missing, the token is
    unknown, expired, idle or revoked, or the user has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Non autorise"}), 401

        user = session_service.validate_session(token)
        if not user:
            return jsonify({"error": "Non autorise"}), 401

        g.current_user = user
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated user to hold one of `roles` (403 otherwise)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Non autorise"}), 401
            if g.current_user.role not in roles:
                return jsonify({"error": "Acces reserve aux administrateurs"}), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator


require_admin = require_role(ROLE_ADMIN)
