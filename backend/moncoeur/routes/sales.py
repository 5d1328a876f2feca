# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/moncoeur/routes/sales.py
"""Sales API routes. Deleting a sale is reserved to admins."""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service, notification_service
from ..validation import ConflictError, ValidationError, NotFoundError
from ..decorators import require_auth, require_role


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Query params: bankAccountId, platform, brand, startDate, endDate
    (inclusive, ISO dates), page, limit. Newest sale date first.
    """
    try:
        result = sales_service.list_sales(
            bank_account_id=request.args.get("bankAccountId", type=int),
            platform=request.args.get("platform"),
            brand=request.args.get("brand"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 200


@sales_bp.post("")
@require_auth
def create_sale_route():
    """Record the sale of a bag; the bag becomes "vendu"."""
    payload = request.get_json(silent=True) or {}

    try:
        sale = sales_service.create_sale(payload, g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Erreur lors de la creation de la vente"}), 500

    notification_service.notify_sale(sale, g.current_user)
    return jsonify(sale.to_dict()), 201


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(sale.to_dict()), 200


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_role("admin")
def delete_sale_route(sale_id: int):
    """Delete a sale and put its bag back to "en_vente"."""
    try:
        sales_service.delete_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Erreur lors de la suppression de la vente"}), 500

    return jsonify({"message": "Vente supprimee avec succes"}), 200
