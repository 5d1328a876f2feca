# Overview: Flask API routes for user management (admin only); parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import user_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_auth, require_admin


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_admin
def list_users_route():
    return jsonify([u.to_dict() for u in user_service.list_users()]), 200


@users_bp.post("")
@require_auth
@require_admin
def create_user_route():
    payload = request.get_json(silent=True) or {}
    try:
        user = user_service.create_user(payload)
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Erreur lors de la creation de l'utilisateur"}), 500
    return jsonify(user.to_dict()), 201


@users_bp.get("/<int:user_id>")
@require_auth
@require_admin
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(user.to_dict()), 200


@users_bp.put("/<int:user_id>")
@require_auth
@require_admin
def update_user_route(user_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        user = user_service.update_user(user_id, payload, g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Erreur lors de la mise a jour de l'utilisateur"}), 500
    return jsonify(user.to_dict()), 200


@users_bp.delete("/<int:user_id>")
@require_auth
@require_admin
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(user_id, g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Erreur lors de la suppression de l'utilisateur"}), 500
    return jsonify({"message": "Utilisateur supprime avec succes"}), 200
