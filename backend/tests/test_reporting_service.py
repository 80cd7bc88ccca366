"""
Reporting tests.

Verifies the dashboard rollups against hand-computed figures and that the
aggregate invariant (outstanding == invoiced - paid) holds exactly.
"""

from datetime import date

import pytest

from bizbooks.services import reporting_service
from bizbooks.services.derivation_service import derive_invoice, derive_purchase_order, derive_sale_order
from bizbooks.services.reporting_service import ReportError
from conftest import TODAY, invoice_fields, laptop_line


@pytest.fixture
def invoices():
    return [
        # Partial: 300000.00 total, 150000.00 received, not yet due
        derive_invoice(invoice_fields(amount_received_cents=15000000, due_date=date(2025, 4, 1)), TODAY),
        # Overdue 24 days
        derive_invoice(invoice_fields(invoice_date=date(2025, 2, 1)), TODAY),
        # Overdue 5 days, smaller
        derive_invoice(invoice_fields(
            due_date=date(2025, 3, 10), transportation_cents=0,
            line_items=[laptop_line(basic_amount_cents=1000000, tax_rate_bps=0)],
        ), TODAY),
        # Overpaid
        derive_invoice(invoice_fields(
            transportation_cents=0, amount_received_cents=2000,
            line_items=[laptop_line(basic_amount_cents=1000, tax_rate_bps=0)],
        ), TODAY),
    ]


@pytest.fixture
def sale_orders():
    return [
        derive_sale_order({"order_date": date(2025, 1, 5), "status": "Confirmed", "line_items": [laptop_line()]}),
        derive_sale_order({"order_date": date(2025, 3, 2), "status": "Delivered", "line_items": [
            laptop_line(basic_amount_cents=100000, tax_rate_bps=0),
        ]}),
        derive_sale_order({"order_date": date(2024, 12, 31), "status": "Completed", "line_items": []}),
    ]


def test_dashboard_stats(sale_orders, invoices):
    stats = reporting_service.dashboard_stats(sale_orders, invoices)

    assert stats["total_order_value_cents"] == 29500000 + 100000
    assert stats["total_invoiced_cents"] == 30000000 + 30000000 + 1000000 + 1000
    assert stats["total_paid_cents"] == 15000000 + 2000
    assert stats["total_outstanding_cents"] == stats["total_invoiced_cents"] - stats["total_paid_cents"]
    assert stats["overdue_count"] == 2
    assert stats["overdue_amount_cents"] == 30000000 + 1000000


def test_dashboard_stats_purchase_order_value(sale_orders, invoices):
    purchase_orders = [
        derive_purchase_order({"status": "Ordered", "advance_paid_cents": 5000000, "line_items": [laptop_line()]}),
        derive_purchase_order({"status": "Received", "line_items": [
            laptop_line(basic_amount_cents=100000, tax_rate_bps=1200),
        ]}),
    ]

    stats = reporting_service.dashboard_stats(sale_orders, invoices, purchase_orders)

    assert stats["total_po_value_cents"] == 29500000 + 112000
    # purchase orders never touch the receivable side
    assert stats["total_invoiced_cents"] == 30000000 + 30000000 + 1000000 + 1000


def test_dashboard_stats_empty():
    stats = reporting_service.dashboard_stats([], [])
    assert stats == {
        "total_order_value_cents": 0,
        "total_po_value_cents": 0,
        "total_invoiced_cents": 0,
        "total_paid_cents": 0,
        "total_outstanding_cents": 0,
        "overdue_count": 0,
        "overdue_amount_cents": 0,
    }


def test_overdue_invoices_longest_first(invoices):
    overdue = reporting_service.overdue_invoices(invoices)
    assert [inv["days_delayed"] for inv in overdue] == [24, 5]

    assert len(reporting_service.overdue_invoices(invoices, limit=1)) == 1
    with pytest.raises(ReportError):
        reporting_service.overdue_invoices(invoices, limit=-1)


def test_expense_summary():
    expenses = [
        {"expense_date": date(2025, 3, 15), "category": "Travel", "amount_cents": 185000},
        {"expense_date": date(2025, 3, 15), "category": "Misc", "amount_cents": 15000},
        {"expense_date": date(2025, 3, 1), "category": "Rent", "amount_cents": 4500000},
        {"expense_date": date(2025, 2, 28), "category": "Rent", "amount_cents": 4500000},
    ]

    summary = reporting_service.expense_summary(expenses, TODAY)

    assert summary["month_total_cents"] == 4700000
    assert summary["month_count"] == 3
    assert summary["today_total_cents"] == 200000
    assert summary["today_count"] == 2
    assert summary["category_totals"] == {"Travel": 185000, "Misc": 15000, "Rent": 9000000}
    assert summary["top_category"] == {"category": "Rent", "amount_cents": 9000000}
    # 47,000.00 over the 31 days of March, half-up
    assert summary["average_daily_cents"] == 151613


def test_expense_summary_empty():
    summary = reporting_service.expense_summary([], TODAY)
    assert summary["top_category"] is None
    assert summary["average_daily_cents"] == 0


def test_sale_order_summary(sale_orders):
    summary = reporting_service.sale_order_summary(sale_orders)

    assert summary["count"] == 3
    assert summary["by_status"] == {"Confirmed": 1, "Delivered": 1, "Completed": 1}
    assert summary["confirmed_count"] == 1
    assert summary["dispatched_count"] == 0
    assert summary["delivered_count"] == 2
    assert summary["total_value_cents"] == 29600000


def test_monthly_totals(sale_orders, invoices):
    months = reporting_service.monthly_totals(sale_orders, invoices, 2025)

    assert len(months) == 12
    assert months[0] == {"month": 1, "label": "Jan", "order_value_cents": 29500000, "received_cents": 15002000}
    assert months[1]["received_cents"] == 0
    assert months[2]["order_value_cents"] == 100000
    assert sum(m["order_value_cents"] for m in months) == 29600000


def test_monthly_totals_rejects_bad_year():
    with pytest.raises(ReportError):
        reporting_service.monthly_totals([], [], 0)
