# Overview: Flask API routes for sale orders; parses input and returns JSON responses.

"""
Sale Order Routes

Order numbers (SO-YYYY-NNN), balance quantities, line tax, line totals and
the order total are assigned server-side. Any of those sent by the client
are ignored.
"""

from flask import Blueprint, request, jsonify, current_app

from ..context import current_store, item_response, list_response, with_messages
from ..decorators import require_auth
from ..services.record_store import RecordNotFoundError
from ..services.storage_service import PersistenceError
from ..validation import SALE_ORDER_STATUSES, ValidationError, validate_sale_order


sale_orders_bp = Blueprint("sale_orders", __name__, url_prefix="/api/sale-orders")


@sale_orders_bp.get("")
@require_auth
def list_sale_orders_route():
    """
    List sale orders.

    Query parameters:
    - status: one of Draft, Confirmed, Dispatched, Delivered, Completed
    - customer_id: only orders for this customer
    """
    status = request.args.get("status")
    customer_id = request.args.get("customer_id")
    if status and status not in SALE_ORDER_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(SALE_ORDER_STATUSES)}"}), 400

    try:
        orders = current_store().list_sale_orders()
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    if status:
        orders = [o for o in orders if o.get("status") == status]
    if customer_id:
        orders = [o for o in orders if o.get("customer_id") == customer_id]
    return jsonify(list_response(orders))


@sale_orders_bp.post("")
@require_auth
def create_sale_order_route():
    """
    Create a sale order.

    Request body:
    {
        "customer_id": "...",          // optional, fills customer_name
        "customer_name": "...",        // required
        "order_date": "2025-01-15",    // required
        "po_number": "...", "po_date": "...",
        "status": "Draft",
        "notes": "...",
        "line_items": [
            {"particulars": "...", "ordered_qty": 100, "dispatched_qty": 60,
             "basic_amount_cents": 25000000, "tax_rate_bps": 1800}
        ]
    }
    """
    data = request.get_json(silent=True) or {}

    store = current_store()
    try:
        if data.get("customer_id") and not data.get("customer_name"):
            data = dict(data, customer_name=store.get_customer(data["customer_id"])["name"])
    except RecordNotFoundError:
        return jsonify({"error": "Customer not found", "field": "customer_id"}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    try:
        fields = validate_sale_order(data)
        order = store.add_sale_order(fields)
        return jsonify(item_response(order)), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to create sale order")
        return jsonify({"error": "Internal server error"}), 500


@sale_orders_bp.get("/<order_id>")
@require_auth
def get_sale_order_route(order_id: str):
    try:
        return jsonify(item_response(current_store().get_sale_order(order_id)))
    except RecordNotFoundError:
        return jsonify({"error": "Sale order not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@sale_orders_bp.put("/<order_id>")
@require_auth
def update_sale_order_route(order_id: str):
    """Partial update; sending line_items replaces the whole list."""
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_sale_order(data, partial=True)
        order = current_store().update_sale_order(order_id, fields)
        return jsonify(item_response(order))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except RecordNotFoundError:
        return jsonify({"error": "Sale order not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to update sale order")
        return jsonify({"error": "Internal server error"}), 500


@sale_orders_bp.delete("/<order_id>")
@require_auth
def delete_sale_order_route(order_id: str):
    try:
        current_store().delete_sale_order(order_id)
        return jsonify(with_messages({"deleted": True, "id": order_id}))
    except RecordNotFoundError:
        return jsonify({"error": "Sale order not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to delete sale order")
        return jsonify({"error": "Internal server error"}), 500
