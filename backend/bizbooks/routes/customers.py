# Overview: Flask API routes for customer records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..context import current_store, item_response, list_response, with_messages
from ..decorators import require_auth
from ..services.record_store import RecordNotFoundError
from ..services.storage_service import PersistenceError
from ..validation import ValidationError, validate_customer


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    search = (request.args.get("search") or "").strip().lower()
    try:
        customers = current_store().list_customers()
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    if search:
        customers = [
            c for c in customers
            if any(search in (c.get(k) or "").lower() for k in ("name", "contact_person", "email"))
        ]
    return jsonify(list_response(customers))


@customers_bp.post("")
@require_auth
def create_customer_route():
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_customer(data)
        customer = current_store().add_customer(fields)
        return jsonify(item_response(customer)), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<customer_id>")
@require_auth
def get_customer_route(customer_id: str):
    try:
        return jsonify(item_response(current_store().get_customer(customer_id)))
    except RecordNotFoundError:
        return jsonify({"error": "Customer not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@customers_bp.put("/<customer_id>")
@require_auth
def update_customer_route(customer_id: str):
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_customer(data, partial=True)
        customer = current_store().update_customer(customer_id, fields)
        return jsonify(item_response(customer))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except RecordNotFoundError:
        return jsonify({"error": "Customer not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to update customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.delete("/<customer_id>")
@require_auth
def delete_customer_route(customer_id: str):
    try:
        current_store().delete_customer(customer_id)
        return jsonify(with_messages({"deleted": True, "id": customer_id}))
    except RecordNotFoundError:
        return jsonify({"error": "Customer not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to delete customer")
        return jsonify({"error": "Internal server error"}), 500
