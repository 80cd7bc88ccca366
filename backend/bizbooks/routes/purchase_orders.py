# Overview: Flask API routes for purchase orders placed with vendors.

"""
Purchase Order Routes

PO numbers (PO-YYYY-NNN), line tax, line totals, the order total and the
balance after advance are assigned server-side. Invoices point back at a
purchase order through po_id.
"""

from flask import Blueprint, request, jsonify, current_app

from ..context import current_store, item_response, list_response, with_messages
from ..decorators import require_auth
from ..services.record_store import RecordNotFoundError
from ..services.storage_service import PersistenceError
from ..validation import PURCHASE_ORDER_STATUSES, ValidationError, validate_purchase_order


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


@purchase_orders_bp.get("")
@require_auth
def list_purchase_orders_route():
    """
    List purchase orders.

    Query parameters:
    - status: one of Created, Ordered, Received, Paid, Completed
    - vendor_id: only orders placed with this vendor
    """
    status = request.args.get("status")
    vendor_id = request.args.get("vendor_id")
    if status and status not in PURCHASE_ORDER_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(PURCHASE_ORDER_STATUSES)}"}), 400

    try:
        orders = current_store().list_purchase_orders()
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    if status:
        orders = [o for o in orders if o.get("status") == status]
    if vendor_id:
        orders = [o for o in orders if o.get("vendor_id") == vendor_id]
    return jsonify(list_response(orders))


@purchase_orders_bp.post("")
@require_auth
def create_purchase_order_route():
    """
    Create a purchase order.

    Request body:
    {
        "vendor_id": "...",            // optional, fills vendor_name
        "vendor_name": "...",          // required
        "po_date": "2025-01-05",       // required
        "due_date": "2025-02-04",
        "advance_paid_cents": 0,
        "status": "Created",
        "notes": "...",
        "line_items": [                // at least one
            {"particulars": "...", "ordered_qty": 100, "dispatched_qty": 0,
             "basic_amount_cents": 25000000, "tax_rate_bps": 1800}
        ]
    }
    """
    data = request.get_json(silent=True) or {}

    store = current_store()
    try:
        if data.get("vendor_id") and not data.get("vendor_name"):
            data = dict(data, vendor_name=store.get_vendor(data["vendor_id"])["name"])
    except RecordNotFoundError:
        return jsonify({"error": "Vendor not found", "field": "vendor_id"}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    try:
        fields = validate_purchase_order(data)
        order = store.add_purchase_order(fields)
        return jsonify(item_response(order)), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchase_orders_bp.get("/<order_id>")
@require_auth
def get_purchase_order_route(order_id: str):
    try:
        return jsonify(item_response(current_store().get_purchase_order(order_id)))
    except RecordNotFoundError:
        return jsonify({"error": "Purchase order not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@purchase_orders_bp.get("/<order_id>/invoices")
@require_auth
def purchase_order_invoices_route(order_id: str):
    """Invoices raised against this purchase order."""
    try:
        store = current_store()
        store.get_purchase_order(order_id)
        invoices = [i for i in store.list_invoices() if i.get("po_id") == order_id]
    except RecordNotFoundError:
        return jsonify({"error": "Purchase order not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    return jsonify(list_response(invoices))


@purchase_orders_bp.put("/<order_id>")
@require_auth
def update_purchase_order_route(order_id: str):
    """Partial update; sending line_items replaces the whole list."""
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_purchase_order(data, partial=True)
        order = current_store().update_purchase_order(order_id, fields)
        return jsonify(item_response(order))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except RecordNotFoundError:
        return jsonify({"error": "Purchase order not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to update purchase order")
        return jsonify({"error": "Internal server error"}), 500


@purchase_orders_bp.delete("/<order_id>")
@require_auth
def delete_purchase_order_route(order_id: str):
    try:
        current_store().delete_purchase_order(order_id)
        return jsonify(with_messages({"deleted": True, "id": order_id}))
    except RecordNotFoundError:
        return jsonify({"error": "Purchase order not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to delete purchase order")
        return jsonify({"error": "Internal server error"}), 500
