# Overview: Flask API routes for bank accounts; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import bank_account_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_auth, require_admin


bank_accounts_bp = Blueprint("bank_accounts", __name__, url_prefix="/api/bank-accounts")


@bank_accounts_bp.get("")
@require_auth
def list_bank_accounts_route():
    active_only = request.args.get("active") in ("1", "true")
    accounts = bank_account_service.list_bank_accounts(active_only=active_only)
    return jsonify([a.to_dict() for a in accounts]), 200


@bank_accounts_bp.post("")
@require_auth
@require_admin
def create_bank_account_route():
    payload = request.get_json(silent=True) or {}
    try:
        account = bank_account_service.create_bank_account(payload, g.current_user.id)
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create bank account")
        return jsonify({"error": "Erreur lors de la creation du compte"}), 500
    return jsonify(account.to_dict()), 201


@bank_accounts_bp.get("/<int:account_id>")
@require_auth
def get_bank_account_route(account_id: int):
    try:
        account = bank_account_service.get_bank_account(account_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(account.to_dict()), 200


@bank_accounts_bp.put("/<int:account_id>")
@require_auth
@require_admin
def update_bank_account_route(account_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        account = bank_account_service.update_bank_account(account_id, payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update bank account")
        return jsonify({"error": "Erreur lors de la mise a jour du compte"}), 500
    return jsonify(account.to_dict()), 200


@bank_accounts_bp.delete("/<int:account_id>")
@require_auth
@require_admin
def delete_bank_account_route(account_id: int):
    """Refused (400) while bags or sales reference the account."""
    try:
        bank_account_service.delete_bank_account(account_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete bank account")
        return jsonify({"error": "Erreur lors de la suppression du compte"}), 500
    return jsonify({"message": "Compte supprime avec succes"}), 200
