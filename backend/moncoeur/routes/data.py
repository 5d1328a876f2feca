# Overview: Flask API routes for workbook import and CSV export; parses input and returns responses.

"""
Data exchange routes

- POST /api/import: .xlsx ledger upload (admin), failing rows are reported, not fatal
- GET /api/export?type=sales|stock&format=csv
"""

from flask import Blueprint, Response, request, jsonify, g, current_app

from ..decorators import require_auth, require_admin
from ..services import export_service, import_service
from ..services.import_service import WorkbookImportError
from ..validation import ValidationError


data_bp = Blueprint("data", __name__, url_prefix="/api")


@data_bp.post("/import")
@require_auth
@require_admin
def import_route():
    file = request.files.get("file")
    if file is None or not file.filename:
        return jsonify({"error": "Fichier requis"}), 400

    try:
        result = import_service.import_workbook(
            file.stream,
            g.current_user.id,
            seller_sheets=current_app.config["IMPORT_SELLER_SHEETS"],
        )
    except WorkbookImportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Workbook import failed")
        return jsonify({"error": "Erreur lors de l'import"}), 500

    current_app.logger.info(
        "Import by user %s: %s bags, %s sales, %s accounts, %s errors",
        g.current_user.id,
        result.bags_created,
        result.sales_created,
        result.bank_accounts_created,
        len(result.errors),
    )
    return jsonify(result.to_dict()), 200


@data_bp.get("/export")
@require_auth
def export_route():
    try:
        filename, content = export_service.build_export(
            request.args.get("type"),
            request.args.get("format"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return Response(
        content,
        content_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
