# Overview: Flask API routes for invoices and their printable snapshot.

"""
Invoice Routes

Invoice numbers (INV-YYYY-NNN), line tax and totals, the invoice total,
pending amount, status and days delayed are all server-side. Status and
days delayed are recomputed against today's date on every read.
"""

from flask import Blueprint, request, jsonify, current_app

from ..context import current_store, item_response, list_response, serialize, with_messages
from ..decorators import require_auth
from ..services import invoice_document_service
from ..services.derivation_service import INVOICE_STATUSES
from ..services.record_store import RecordNotFoundError
from ..services.storage_service import PersistenceError
from ..validation import ValidationError, validate_invoice


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """
    List invoices.

    Query parameters:
    - status: Paid, Partial, Overdue or Unpaid (as derived today)
    - vendor_id: only invoices for this vendor
    """
    status = request.args.get("status")
    vendor_id = request.args.get("vendor_id")
    if status and status not in INVOICE_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(INVOICE_STATUSES)}"}), 400

    try:
        invoices = current_store().list_invoices()
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    if status:
        invoices = [i for i in invoices if i.get("status") == status]
    if vendor_id:
        invoices = [i for i in invoices if i.get("vendor_id") == vendor_id]
    return jsonify(list_response(invoices))


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    """
    Create an invoice.

    Request body:
    {
        "vendor_id": "...",              // optional, fills vendor_name
        "vendor_name": "...",            // required
        "invoice_date": "2025-01-20",    // required
        "due_date": "2025-02-19",        // required
        "po_id": "...",                  // optional, fills po_number, po_date, vendor
        "po_number": "...", "po_date": "...",
        "transportation_cents": 500000,
        "discount_cents": 0,
        "amount_received_cents": 0,
        "line_items": [...]              // at least one
    }
    """
    data = request.get_json(silent=True) or {}

    store = current_store()
    try:
        if data.get("po_id"):
            po = store.get_purchase_order(data["po_id"])
            if not data.get("vendor_name"):
                data = dict(data, vendor_id=data.get("vendor_id") or po.get("vendor_id"), vendor_name=po["vendor_name"])
    except RecordNotFoundError:
        return jsonify({"error": "Purchase order not found", "field": "po_id"}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    try:
        if data.get("vendor_id") and not data.get("vendor_name"):
            data = dict(data, vendor_name=store.get_vendor(data["vendor_id"])["name"])
    except RecordNotFoundError:
        return jsonify({"error": "Vendor not found", "field": "vendor_id"}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    try:
        fields = validate_invoice(data)
        invoice = store.add_invoice(fields)
        return jsonify(item_response(invoice)), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.get("/<invoice_id>")
@require_auth
def get_invoice_route(invoice_id: str):
    try:
        return jsonify(item_response(current_store().get_invoice(invoice_id)))
    except RecordNotFoundError:
        return jsonify({"error": "Invoice not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@invoices_bp.get("/<invoice_id>/document")
@require_auth
def invoice_document_route(invoice_id: str):
    """Printable snapshot: per-unit rates, totals and amount in words."""
    try:
        invoice = current_store().get_invoice(invoice_id)
    except RecordNotFoundError:
        return jsonify({"error": "Invoice not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    return jsonify({"document": serialize(invoice_document_service.render_invoice(invoice))})


@invoices_bp.put("/<invoice_id>")
@require_auth
def update_invoice_route(invoice_id: str):
    """
    Partial update. Sending line_items replaces the whole list; sending
    amount_received_cents sets the received amount directly.
    """
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_invoice(data, partial=True)
        store = current_store()
        if "invoice_date" in fields or "due_date" in fields:
            current = store.get_invoice(invoice_id)
            invoice_date = fields.get("invoice_date", current.get("invoice_date"))
            due_date = fields.get("due_date", current.get("due_date"))
            if invoice_date and due_date and due_date < invoice_date:
                raise ValidationError("due_date cannot be before invoice_date", "due_date")
        invoice = store.update_invoice(invoice_id, fields)
        return jsonify(item_response(invoice))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except RecordNotFoundError:
        return jsonify({"error": "Invoice not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to update invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.delete("/<invoice_id>")
@require_auth
def delete_invoice_route(invoice_id: str):
    try:
        current_store().delete_invoice(invoice_id)
        return jsonify(with_messages({"deleted": True, "id": invoice_id}))
    except RecordNotFoundError:
        return jsonify({"error": "Invoice not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to delete invoice")
        return jsonify({"error": "Internal server error"}), 500
