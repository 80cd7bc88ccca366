# Overview: Flask API routes for vendor records; parses input and returns JSON responses.

"""
Vendor Routes

All routes require authentication and only ever see the signed-in owner's
vendors. Deleting a vendor does not touch invoices that name it.
"""

from flask import Blueprint, request, jsonify, current_app

from ..context import current_store, item_response, list_response, with_messages
from ..decorators import require_auth
from ..services.record_store import RecordNotFoundError
from ..services.storage_service import PersistenceError
from ..validation import ValidationError, validate_vendor


vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")


@vendors_bp.get("")
@require_auth
def list_vendors_route():
    """
    List vendors.

    Query parameters:
    - search: case-insensitive match on name, contact person or email

    Returns:
        {items: Vendor[], count: int}
    """
    search = (request.args.get("search") or "").strip().lower()
    try:
        vendors = current_store().list_vendors()
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    if search:
        vendors = [
            v for v in vendors
            if any(search in (v.get(k) or "").lower() for k in ("name", "contact_person", "email"))
        ]
    return jsonify(list_response(vendors))


@vendors_bp.post("")
@require_auth
def create_vendor_route():
    """
    Create a vendor.

    Request body:
    {
        "name": "Tech Solutions Ltd",   // required
        "contact_person": "...",        // optional
        "email": "...",                 // optional
        "phone": "...",                 // optional
        "tax_id": "...",                // optional (GST number)
        "payment_terms_days": 30        // optional
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_vendor(data)
        vendor = current_store().add_vendor(fields)
        return jsonify(item_response(vendor)), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to create vendor")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.get("/<vendor_id>")
@require_auth
def get_vendor_route(vendor_id: str):
    try:
        return jsonify(item_response(current_store().get_vendor(vendor_id)))
    except RecordNotFoundError:
        return jsonify({"error": "Vendor not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@vendors_bp.put("/<vendor_id>")
@require_auth
def update_vendor_route(vendor_id: str):
    """Update a vendor; every field is optional."""
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_vendor(data, partial=True)
        vendor = current_store().update_vendor(vendor_id, fields)
        return jsonify(item_response(vendor))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except RecordNotFoundError:
        return jsonify({"error": "Vendor not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to update vendor")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.delete("/<vendor_id>")
@require_auth
def delete_vendor_route(vendor_id: str):
    try:
        current_store().delete_vendor(vendor_id)
        return jsonify(with_messages({"deleted": True, "id": vendor_id}))
    except RecordNotFoundError:
        return jsonify({"error": "Vendor not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to delete vendor")
        return jsonify({"error": "Internal server error"}), 500
