# Overview: Flask API routes for payments received against invoices.

"""
Payment Routes

Creating, editing or deleting a payment moves the linked invoice's
amount_received_cents by the same amount; the response carries the payment,
and the updated invoice when there is one.
"""

from flask import Blueprint, request, jsonify, current_app

from ..context import current_store, item_response, list_response, serialize, with_messages
from ..decorators import require_auth
from ..services.record_store import RecordNotFoundError
from ..services.storage_service import PersistenceError
from ..validation import ValidationError, validate_payment


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _with_invoice(payload: dict, store, invoice_id: str | None) -> dict:
    if not invoice_id:
        return payload
    try:
        payload["invoice"] = serialize(store.get_invoice(invoice_id))
    except RecordNotFoundError:
        payload["invoice"] = None
    return payload


@payments_bp.get("")
@require_auth
def list_payments_route():
    """
    Query parameters:
    - invoice_id: only payments against this invoice
    """
    invoice_id = request.args.get("invoice_id")
    try:
        store = current_store()
        payments = store.payments_for_invoice(invoice_id) if invoice_id else store.list_payments()
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    return jsonify(list_response(payments))


@payments_bp.post("")
@require_auth
def create_payment_route():
    """
    Record a payment.

    Request body:
    {
        "invoice_id": "...",            // required
        "payment_date": "2025-02-01",   // required
        "amount_cents": 15000000,       // required, > 0
        "method": "Bank Transfer",      // Cash, Bank Transfer, Check, Credit Card, UPI
        "reference_number": "...",
        "remarks": "..."
    }

    A payment against an unknown invoice is still recorded; no invoice moves.
    """
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_payment(data)
        store = current_store()
        payment = store.add_payment(fields)
        payload = _with_invoice(item_response(payment), store, payment["invoice_id"])
        return jsonify(payload), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/<payment_id>")
@require_auth
def get_payment_route(payment_id: str):
    try:
        return jsonify(item_response(current_store().get_payment(payment_id)))
    except RecordNotFoundError:
        return jsonify({"error": "Payment not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@payments_bp.put("/<payment_id>")
@require_auth
def update_payment_route(payment_id: str):
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_payment(data, partial=True)
        store = current_store()
        payment = store.update_payment(payment_id, fields)
        return jsonify(_with_invoice(item_response(payment), store, payment["invoice_id"]))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except RecordNotFoundError:
        return jsonify({"error": "Payment not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to update payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.delete("/<payment_id>")
@require_auth
def delete_payment_route(payment_id: str):
    try:
        store = current_store()
        invoice_id = store.get_payment(payment_id).get("invoice_id")
        store.delete_payment(payment_id)
        payload = with_messages({"deleted": True, "id": payment_id})
        return jsonify(_with_invoice(payload, store, invoice_id))
    except RecordNotFoundError:
        return jsonify({"error": "Payment not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to delete payment")
        return jsonify({"error": "Internal server error"}), 500
