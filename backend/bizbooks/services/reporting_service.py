# Overview: Read-only rollups for the dashboard, expense and sale order views.

"""
Reporting

Every function here is a pure projection over record lists already loaded
(and already derived) by the RecordStore. Nothing is cached or stored; a
report is recomputed in full on every request.

Money stays in integer cents throughout, so the rollups are exact.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Iterable

from ..time_utils import as_calendar_date
from .derivation_service import INVOICE_STATUS_OVERDUE, div_round_half_up


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


MONTH_LABELS = [calendar.month_abbr[m] for m in range(1, 13)]


def _cents(record: dict, key: str) -> int:
    return record.get(key) or 0


def dashboard_stats(
    sale_orders: Iterable[dict],
    invoices: Iterable[dict],
    purchase_orders: Iterable[dict] = (),
) -> dict:
    """
    Headline figures:

    - total_order_value_cents  = sum of sale order totals
    - total_po_value_cents     = sum of purchase order totals
    - total_invoiced_cents     = sum of invoice totals
    - total_paid_cents         = sum of amount received
    - total_outstanding_cents  = sum of pending (overpayments reduce it)
    - overdue_count / overdue_amount_cents over invoices whose status is Overdue
    """
    invoices = list(invoices)
    overdue = [inv for inv in invoices if inv.get("status") == INVOICE_STATUS_OVERDUE]

    return {
        "total_order_value_cents": sum(_cents(so, "total_cents") for so in sale_orders),
        "total_po_value_cents": sum(_cents(po, "total_cents") for po in purchase_orders),
        "total_invoiced_cents": sum(_cents(inv, "total_cents") for inv in invoices),
        "total_paid_cents": sum(_cents(inv, "amount_received_cents") for inv in invoices),
        "total_outstanding_cents": sum(_cents(inv, "pending_cents") for inv in invoices),
        "overdue_count": len(overdue),
        "overdue_amount_cents": sum(_cents(inv, "pending_cents") for inv in overdue),
    }


def overdue_invoices(invoices: Iterable[dict], limit: int = 5) -> list[dict]:
    """Overdue invoices, longest delayed first."""
    if limit < 0:
        raise ReportError("limit must be >= 0")
    overdue = [inv for inv in invoices if inv.get("status") == INVOICE_STATUS_OVERDUE]
    overdue.sort(key=lambda inv: inv.get("days_delayed") or 0, reverse=True)
    return overdue[:limit]


def expense_summary(expenses: Iterable[dict], today: date) -> dict:
    today = as_calendar_date(today)
    expenses = list(expenses)

    def _in_month(expense: dict) -> bool:
        d = as_calendar_date(expense.get("expense_date"))
        return d is not None and d.year == today.year and d.month == today.month

    this_month = [e for e in expenses if _in_month(e)]
    todays = [e for e in expenses if as_calendar_date(e.get("expense_date")) == today]

    category_totals: dict[str, int] = {}
    for expense in expenses:
        category = expense.get("category") or "Misc"
        category_totals[category] = category_totals.get(category, 0) + _cents(expense, "amount_cents")

    top_category = None
    if category_totals:
        name, amount = max(category_totals.items(), key=lambda item: item[1])
        top_category = {"category": name, "amount_cents": amount}

    month_total = sum(_cents(e, "amount_cents") for e in this_month)
    days_in_month = calendar.monthrange(today.year, today.month)[1]

    return {
        "month_total_cents": month_total,
        "month_count": len(this_month),
        "today_total_cents": sum(_cents(e, "amount_cents") for e in todays),
        "today_count": len(todays),
        "category_totals": category_totals,
        "top_category": top_category,
        "average_daily_cents": div_round_half_up(month_total, days_in_month),
    }


def sale_order_summary(sale_orders: Iterable[dict]) -> dict:
    """Counts per status; "delivered" includes completed orders."""
    sale_orders = list(sale_orders)
    by_status: dict[str, int] = {}
    for so in sale_orders:
        status = so.get("status") or "Draft"
        by_status[status] = by_status.get(status, 0) + 1

    return {
        "count": len(sale_orders),
        "by_status": by_status,
        "confirmed_count": by_status.get("Confirmed", 0),
        "dispatched_count": by_status.get("Dispatched", 0),
        "delivered_count": by_status.get("Delivered", 0) + by_status.get("Completed", 0),
        "total_value_cents": sum(_cents(so, "total_cents") for so in sale_orders),
    }


def monthly_totals(sale_orders: Iterable[dict], invoices: Iterable[dict], year: int) -> list[dict]:
    """
    Per calendar month of `year`: sale order value (by order date) and amount
    received on invoices (by invoice date).
    """
    if year < 1 or year > 9999:
        raise ReportError("year is out of range")

    order_value = [0] * 12
    received = [0] * 12

    for so in sale_orders:
        d = as_calendar_date(so.get("order_date"))
        if d and d.year == year:
            order_value[d.month - 1] += _cents(so, "total_cents")

    for inv in invoices:
        d = as_calendar_date(inv.get("invoice_date"))
        if d and d.year == year:
            received[d.month - 1] += _cents(inv, "amount_received_cents")

    return [
        {
            "month": index + 1,
            "label": MONTH_LABELS[index],
            "order_value_cents": order_value[index],
            "received_cents": received[index],
        }
        for index in range(12)
    ]
