# Overview: Flask API routes for CSV export and import of record collections.

from flask import Blueprint, Response, request, jsonify, current_app

from ..context import current_store, with_messages
from ..decorators import require_auth
from ..services import export_service
from ..services.export_service import ExportError
from ..services.storage_service import ENTITY_TYPES, PersistenceError


exports_bp = Blueprint("exports", __name__, url_prefix="/api")


def _entity_type(slug: str) -> str | None:
    entity_type = slug.replace("-", "_")
    return entity_type if entity_type in ENTITY_TYPES else None


@exports_bp.get("/exports/<slug>.csv")
@require_auth
def export_route(slug: str):
    entity_type = _entity_type(slug)
    if not entity_type:
        return jsonify({"error": f"Unknown collection: {slug}"}), 404

    try:
        records = current_store().list(entity_type)
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    text = export_service.export_csv(entity_type, records)
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={slug}.csv"},
    )


@exports_bp.post("/imports/<slug>")
@require_auth
def import_route(slug: str):
    """
    Import CSV rows (request body, or a multipart "file" field).

    Returns:
        {imported: int, errors: [{row, field, error}]}
    """
    entity_type = _entity_type(slug)
    if not entity_type:
        return jsonify({"error": f"Unknown collection: {slug}"}), 404

    if "file" in request.files:
        text = request.files["file"].stream.read().decode("utf-8")
    else:
        text = request.get_data(as_text=True)

    try:
        result = export_service.import_csv(current_store(), entity_type, text)
    except ExportError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to import %s", entity_type)
        return jsonify({"error": "Internal server error"}), 500

    # Per-row notices are too noisy to echo back; the counts say it all
    current_store().notifier.drain()
    return jsonify(result)
