# Overview: Flask API routes for dashboard and summary reports.

from flask import Blueprint, request, jsonify

from ..context import current_store, serialize, with_messages
from ..decorators import require_auth
from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..services.storage_service import PersistenceError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
def dashboard_route():
    """
    Headline stats plus the longest-overdue invoices.

    Query parameters:
    - overdue_limit: how many overdue invoices to list (default: 5)
    """
    limit = request.args.get("overdue_limit", 5, type=int)
    try:
        store = current_store()
        sale_orders = store.list_sale_orders()
        invoices = store.list_invoices()
        purchase_orders = store.list_purchase_orders()
        return jsonify({
            "stats": reporting_service.dashboard_stats(sale_orders, invoices, purchase_orders),
            "overdue_invoices": serialize(reporting_service.overdue_invoices(invoices, limit=limit)),
        })
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@reports_bp.get("/expenses")
@require_auth
def expense_summary_route():
    try:
        store = current_store()
        return jsonify(reporting_service.expense_summary(store.list_expenses(), store.today()))
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@reports_bp.get("/sale-orders")
@require_auth
def sale_order_summary_route():
    try:
        return jsonify(reporting_service.sale_order_summary(current_store().list_sale_orders()))
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503


@reports_bp.get("/monthly")
@require_auth
def monthly_totals_route():
    """
    Query parameters:
    - year: calendar year (default: current year)
    """
    store = current_store()
    year = request.args.get("year", store.today().year, type=int)
    try:
        months = reporting_service.monthly_totals(store.list_sale_orders(), store.list_invoices(), year)
        return jsonify({"year": year, "months": months})
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except PersistenceError:
        return jsonify(with_messages({"error": "Storage unavailable"})), 503
