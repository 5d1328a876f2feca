# Overview: Flask API routes for bag (stock) operations; parses input and returns JSON responses.

# backend/moncoeur/routes/bags.py
"""
Bag API routes

All routes require authentication. A status change to or from "vendu"
creates or deletes the bag's sale in the same transaction.
"""

from flask import Blueprint, Response, request, jsonify, g, current_app

from ..services import bag_service, notification_service, qr_service
from ..validation import ValidationError, ConflictError, NotFoundError
from ..decorators import require_auth


bags_bp = Blueprint("bags", __name__, url_prefix="/api/bags")


@bags_bp.get("")
@require_auth
def list_bags_route():
    """
    Query params:
    - status, brand: exact filters ("all" = no filter)
    - search: substring over reference, brand, model and description
    - page (default 1), limit (default 20)
    """
    result = bag_service.list_bags(
        status=request.args.get("status"),
        brand=request.args.get("brand"),
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )
    return jsonify(result), 200


@bags_bp.post("")
@require_auth
def create_bag_route():
    payload = request.get_json(silent=True) or {}

    try:
        bag, sale = bag_service.create_bag(payload, g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create bag")
        return jsonify({"error": "Erreur lors de la creation du sac"}), 500

    notification_service.notify_new_bag(bag, g.current_user)
    if sale is not None:
        notification_service.notify_sale(sale, g.current_user)

    return jsonify(bag.to_dict()), 201


@bags_bp.get("/scan")
@require_auth
def scan_bag_route():
    """Resolve a scanned QR payload (stock URL, id or reference) to a bag."""
    try:
        bag = bag_service.find_bag_by_code(request.args.get("code"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(bag.to_dict()), 200


@bags_bp.get("/<int:bag_id>")
@require_auth
def get_bag_route(bag_id: int):
    try:
        bag = bag_service.get_bag(bag_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(bag.to_dict()), 200


@bags_bp.put("/<int:bag_id>")
@require_auth
def update_bag_route(bag_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        bag, sale = bag_service.update_bag(bag_id, payload, g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update bag")
        return jsonify({"error": "Erreur lors de la mise a jour du sac"}), 500

    if sale is not None:
        notification_service.notify_sale(sale, g.current_user)

    return jsonify(bag.to_dict()), 200


@bags_bp.delete("/<int:bag_id>")
@require_auth
def delete_bag_route(bag_id: int):
    try:
        bag_service.delete_bag(bag_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete bag")
        return jsonify({"error": "Erreur lors de la suppression du sac"}), 500

    return jsonify({"message": "Sac supprime avec succes"}), 200


@bags_bp.get("/<int:bag_id>/qr")
@require_auth
def bag_qr_route(bag_id: int):
    """PNG QR code encoding the bag's stock page URL."""
    try:
        bag = bag_service.get_bag(bag_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    png = qr_service.bag_qr_png(bag, request.args.get("baseUrl"))
    return Response(
        png,
        mimetype="image/png",
        headers={"Content-Disposition": f'inline; filename="{bag.reference}.png"'},
    )
