# Overview: Flask API routes for daily expenses; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..context import current_store, item_response, list_response, with_messages
from ..decorators import require_auth
from ..services.record_store import RecordNotFoundError
from ..services.storage_service import PersistenceError
from ..time_utils import parse_iso_date
from ..validation import EXPENSE_CATEGORIES, ValidationError, validate_expense


expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.get("")
@require_auth
def list_expenses_route():
    """
    List expenses.

    Query parameters:
    - category: Travel, Rent, Utilities, Supplies or Misc
    - start / end: inclusive YYYY-MM-DD bounds on expense_date
    """
    category = request.args.get("category")
    if category and category not in EXPENSE_CATEGORIES:
        return jsonify({"error": f"category must be one of: {', '.join(EXPENSE_CATEGORIES)}"}), 400
    try:
        start = parse_iso_date(request.args.get("start"))
        end = parse_iso_date(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be YYYY-MM-DD"}), 400

    try:
        expenses = current_store().list_expenses()
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503

    if category:
        expenses = [e for e in expenses if e.get("category") == category]
    if start:
        expenses = [e for e in expenses if e.get("expense_date") and e["expense_date"] >= start]
    if end:
        expenses = [e for e in expenses if e.get("expense_date") and e["expense_date"] <= end]
    return jsonify(list_response(expenses))


@expenses_bp.post("")
@require_auth
def create_expense_route():
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_expense(data)
        expense = current_store().add_expense(fields)
        return jsonify(item_response(expense)), 201
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to create expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.get("/<expense_id>")
@require_auth
def get_expense_route(expense_id: str):
    try:
        return jsonify(item_response(current_store().get_expense(expense_id)))
    except RecordNotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@expenses_bp.put("/<expense_id>")
@require_auth
def update_expense_route(expense_id: str):
    data = request.get_json(silent=True) or {}

    try:
        fields = validate_expense(data, partial=True)
        expense = current_store().update_expense(expense_id, fields)
        return jsonify(item_response(expense))
    except ValidationError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except RecordNotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to update expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.delete("/<expense_id>")
@require_auth
def delete_expense_route(expense_id: str):
    try:
        current_store().delete_expense(expense_id)
        return jsonify(with_messages({"deleted": True, "id": expense_id}))
    except RecordNotFoundError:
        return jsonify({"error": "Expense not found"}), 404
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
    except Exception:
        current_app.logger.exception("Failed to delete expense")
        return jsonify({"error": "Internal server error"}), 500
