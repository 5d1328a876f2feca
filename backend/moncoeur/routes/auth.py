# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/moncoeur/routes/auth.py
"""
Authentication API routes

Credentials login issues a bearer token valid 24 hours (2 hours idle).
Accounts are created by administrators only (POST /api/users or
`flask users create`).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import bearer_token, require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with email/password and create a session token.

    Token must be sent as `Authorization: Bearer <token>` afterwards.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "Email et mot de passe requis"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Email ou mot de passe incorrect"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "expiresAt": session.to_dict()["expiresAt"],
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the bearer token."""
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Non autorise"}), 401

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Non autorise"}), 401

        return jsonify({"message": "Deconnexion reussie"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
