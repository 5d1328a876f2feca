# Overview: Flask routes for photo uploads and serving stored files.

from flask import Blueprint, abort, request, jsonify, send_from_directory, current_app

from ..decorators import require_auth
from ..services import upload_service
from ..validation import ValidationError, NotFoundError


uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.post("/api/upload")
@require_auth
def upload_route():
    """multipart `file` (jpeg, png, webp or gif, 5MB max) -> {url, filename}"""
    try:
        stored = upload_service.save_upload(request.files.get("file"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except OSError:
        current_app.logger.exception("Failed to store upload")
        return jsonify({"error": "Erreur lors de l'upload du fichier"}), 500
    return jsonify(stored), 200


@uploads_bp.delete("/api/upload")
@require_auth
def delete_upload_route():
    try:
        upload_service.delete_upload(request.args.get("url"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"message": "Fichier supprime"}), 200


@uploads_bp.get("/uploads/<path:filename>")
def serve_upload(filename: str):
    if filename.rsplit(".", 1)[-1].lower() not in upload_service.ALLOWED_CONTENT_TYPES.values():
        abort(404)
    return send_from_directory(upload_service.upload_root(), filename)
