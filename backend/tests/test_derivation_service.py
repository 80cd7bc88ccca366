"""
Derivation engine tests.

Verifies:
- The worked example (line tax, invoice total, pending, status, balance)
- Status precedence: Paid > Partial > Overdue > Unpaid
- Delinquency boundary at midnight of the due date
- Idempotence, and that stored derived values are never trusted
- Half-up rounding, symmetric for negatives
- Purchase order balance = total - advance, unclamped
"""

from datetime import date, datetime, timedelta

import pytest

from bizbooks.services.derivation_service import (
    derive_invoice,
    derive_line_item,
    derive_purchase_order,
    derive_sale_order,
    days_delayed,
    format_amount,
    format_document_number,
    invoice_status,
    line_tax_cents,
    unit_price_cents,
)
from conftest import invoice_fields, laptop_line


TODAY = date(2025, 3, 15)


# =============================================================================
# WORKED EXAMPLE
# =============================================================================


def test_worked_example_line():
    line = derive_line_item(laptop_line())

    assert line["balance_qty"] == 40
    assert line["tax_cents"] == 4500000
    assert line["line_total_cents"] == 29500000


def test_worked_example_invoice():
    invoice = derive_invoice(
        invoice_fields(amount_received_cents=15000000, due_date=date(2025, 4, 1)),
        TODAY,
    )

    assert invoice["total_cents"] == 30000000
    assert invoice["pending_cents"] == 15000000
    assert invoice["status"] == "Partial"
    assert invoice["days_delayed"] == 0


def test_total_is_lines_plus_transport_minus_discount():
    fields = invoice_fields(
        transportation_cents=250000,
        discount_cents=100000,
        line_items=[
            laptop_line(),
            laptop_line(particulars="Docking stations", basic_amount_cents=1000000, tax_rate_bps=1200),
        ],
    )
    invoice = derive_invoice(fields, TODAY)

    line_sum = sum(line["line_total_cents"] for line in invoice["line_items"])
    assert line_sum == 29500000 + 1120000
    assert invoice["total_cents"] == line_sum + 250000 - 100000
    assert invoice["pending_cents"] == invoice["total_cents"] - invoice["amount_received_cents"]


def test_sale_order_total_is_sum_of_lines():
    order = derive_sale_order({
        "line_items": [
            laptop_line(),
            laptop_line(basic_amount_cents=100, tax_rate_bps=0),
        ],
    })
    assert order["total_cents"] == 29500000 + 100


def test_purchase_order_balance_after_advance():
    order = derive_purchase_order({
        "advance_paid_cents": 5000000,
        "total_cents": 1,
        "balance_cents": 1,
        "line_items": [
            laptop_line(),
            laptop_line(basic_amount_cents=7500000, tax_rate_bps=1200),
        ],
    })
    assert order["total_cents"] == 29500000 + 8400000
    assert order["balance_cents"] == order["total_cents"] - 5000000
    assert order["line_items"][1]["tax_cents"] == 900000


def test_purchase_order_advance_defaults_to_zero():
    order = derive_purchase_order({"line_items": [laptop_line()], "advance_paid_cents": None})
    assert order["advance_paid_cents"] == 0
    assert order["balance_cents"] == order["total_cents"] == 29500000


def test_purchase_order_overpaid_advance_is_negative():
    order = derive_purchase_order({"line_items": [], "advance_paid_cents": 100})
    assert order["balance_cents"] == -100


def test_empty_invoice_is_paid():
    invoice = derive_invoice({"due_date": date(2025, 1, 1), "line_items": []}, TODAY)
    assert invoice["total_cents"] == 0
    assert invoice["status"] == "Paid"


# =============================================================================
# STATUS PRECEDENCE
# =============================================================================


@pytest.mark.parametrize(
    "received,due,expected",
    [
        (300, date(2025, 1, 1), "Paid"),      # paid beats overdue
        (400, date(2025, 1, 1), "Paid"),      # overpaid
        (1, date(2025, 1, 1), "Partial"),     # partial beats overdue
        (0, date(2025, 1, 1), "Overdue"),
        (0, date(2025, 3, 14), "Overdue"),    # one day late is already overdue
        (0, date(2025, 4, 1), "Unpaid"),
        (0, None, "Unpaid"),
    ],
)
def test_status_precedence(received, due, expected):
    assert invoice_status(received, 300, due, TODAY) == expected


# =============================================================================
# DELINQUENCY
# =============================================================================


def test_due_today_is_not_delayed():
    assert days_delayed(TODAY, TODAY) == 0
    assert invoice_status(0, 100, TODAY, TODAY) == "Unpaid"


def test_due_yesterday_is_one_day_overdue():
    assert days_delayed(TODAY - timedelta(days=1), TODAY) == 1
    assert invoice_status(0, 100, TODAY - timedelta(days=1), TODAY) == "Overdue"


def test_delay_counts_calendar_days_not_hours():
    due = datetime(2025, 3, 14, 23, 59)
    now = datetime(2025, 3, 15, 0, 1)
    assert days_delayed(due, now) == 1


def test_future_due_date_is_zero():
    assert days_delayed(date(2025, 12, 31), TODAY) == 0
    assert days_delayed(None, TODAY) == 0


# =============================================================================
# IDEMPOTENCE AND TRUST
# =============================================================================


def test_derive_invoice_is_idempotent():
    once = derive_invoice(invoice_fields(amount_received_cents=100), TODAY)
    twice = derive_invoice(once, TODAY)
    assert once == twice


def test_stale_derived_values_are_ignored():
    fields = invoice_fields(total_cents=1, pending_cents=-5, status="Paid", days_delayed=999)
    fields["line_items"] = [laptop_line(tax_cents=7, line_total_cents=7, balance_qty=0)]

    invoice = derive_invoice(fields, TODAY)

    assert invoice["total_cents"] == 30000000
    assert invoice["line_items"][0]["line_total_cents"] == 29500000
    assert invoice["line_items"][0]["balance_qty"] == 40
    assert invoice["status"] == "Overdue"
    assert invoice["days_delayed"] == 24


def test_input_is_not_mutated():
    fields = invoice_fields()
    before = {**fields, "line_items": [dict(line) for line in fields["line_items"]]}
    derive_invoice(fields, TODAY)
    assert fields == before


# =============================================================================
# NO CLAMPING
# =============================================================================


def test_over_dispatch_gives_negative_balance():
    line = derive_line_item(laptop_line(ordered_qty=10, dispatched_qty=12))
    assert line["balance_qty"] == -2


def test_overpayment_gives_negative_pending():
    invoice = derive_invoice(invoice_fields(amount_received_cents=31000000), TODAY)
    assert invoice["pending_cents"] == -1000000
    assert invoice["status"] == "Paid"


def test_missing_numbers_are_zero():
    line = derive_line_item({"particulars": "Blank"})
    assert line == {"particulars": "Blank", "balance_qty": 0, "tax_cents": 0, "line_total_cents": 0}


# =============================================================================
# ROUNDING AND FORMATTING
# =============================================================================


@pytest.mark.parametrize(
    "basic,bps,expected",
    [
        (1, 5000, 1),       # 0.5 -> 1
        (3, 5000, 2),       # 1.5 -> 2
        (1, 4999, 0),
        (-1, 5000, -1),     # half-up is symmetric
        (-3, 5000, -2),
        (0, 1800, 0),
    ],
)
def test_line_tax_rounds_half_up(basic, bps, expected):
    assert line_tax_cents(basic, bps) == expected


def test_unit_price():
    assert unit_price_cents(laptop_line()) == 416667
    assert unit_price_cents(laptop_line(dispatched_qty=0)) is None


def test_format_document_number():
    assert format_document_number("SO", 2025, 3) == "SO-2025-003"
    assert format_document_number("INV", 2025, 1234) == "INV-2025-1234"


def test_format_amount():
    assert format_amount(150000) == "1,500.00"
    assert format_amount(30000000) == "300,000.00"
    assert format_amount(-5) == "-0.05"
    assert format_amount(0) == "0.00"
