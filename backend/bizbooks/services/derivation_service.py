# Overview: Pure derivation engine; recomputes every derived money, quantity and status field.

"""
Derivation Engine

WHY: Balances, tax, totals, payment status and delinquency are never typed in
by a user and never trusted from storage. They are recomputed from the
editable inputs on every mutation (and on every invoice read, since status
depends on today's date).

DESIGN:
- Pure functions over plain dict records; inputs are never mutated.
- No clock access: callers pass `today`.
- Money is integer cents, tax rates are integer basis points (1800 = 18%).
  Rounding happens exactly once per line (tax) and is half-up, symmetric for
  negative values.
- Nothing here raises for numeric input, negative values included. Rejecting
  bad input is the job of bizbooks.validation at the request boundary.
- Negative balance quantities (over-dispatch) and negative pending amounts
  (overpayment) are valid results and are NOT clamped.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from ..time_utils import as_calendar_date


INVOICE_STATUS_PAID = "Paid"
INVOICE_STATUS_PARTIAL = "Partial"
INVOICE_STATUS_OVERDUE = "Overdue"
INVOICE_STATUS_UNPAID = "Unpaid"

INVOICE_STATUSES = [
    INVOICE_STATUS_PAID,
    INVOICE_STATUS_PARTIAL,
    INVOICE_STATUS_OVERDUE,
    INVOICE_STATUS_UNPAID,
]

BPS_DENOMINATOR = 10_000

LINE_DERIVED_FIELDS = ("balance_qty", "tax_cents", "line_total_cents")
INVOICE_DERIVED_FIELDS = ("total_cents", "pending_cents", "status", "days_delayed")
SALE_ORDER_DERIVED_FIELDS = ("total_cents",)
PURCHASE_ORDER_DERIVED_FIELDS = ("total_cents", "balance_cents")


def _as_int(value) -> int:
    if value is None or value == "":
        return 0
    return int(value)


def div_round_half_up(numerator: int, denominator: int) -> int:
    quotient = Decimal(numerator) / Decimal(denominator)
    return int(quotient.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# LINE ITEMS
# =============================================================================

def line_tax_cents(basic_amount_cents: int, tax_rate_bps: int) -> int:
    """Tax on one line: basic x rate / 100%, rounded half-up to a whole cent."""
    return div_round_half_up(
        _as_int(basic_amount_cents) * _as_int(tax_rate_bps),
        BPS_DENOMINATOR,
    )


def derive_line_item(line: dict) -> dict:
    """Return a copy of `line` with balance_qty, tax_cents and line_total_cents recomputed."""
    basic = _as_int(line.get("basic_amount_cents"))
    tax = line_tax_cents(basic, line.get("tax_rate_bps"))

    derived = dict(line)
    derived["balance_qty"] = _as_int(line.get("ordered_qty")) - _as_int(line.get("dispatched_qty"))
    derived["tax_cents"] = tax
    derived["line_total_cents"] = basic + tax
    return derived


def derive_line_items(lines: Iterable[dict] | None) -> list[dict]:
    return [derive_line_item(line) for line in (lines or [])]


def unit_price_cents(line: dict) -> int | None:
    """
    Per-unit price shown on printed invoices: basic amount / dispatched quantity.

    Returns None when nothing was dispatched; there is no meaningful rate.
    """
    dispatched = _as_int(line.get("dispatched_qty"))
    if dispatched == 0:
        return None
    return div_round_half_up(_as_int(line.get("basic_amount_cents")), dispatched)


# =============================================================================
# DOCUMENT TOTALS
# =============================================================================

def order_total_cents(lines: Iterable[dict]) -> int:
    return sum(_as_int(line.get("line_total_cents")) for line in lines)


def invoice_total_cents(lines: Iterable[dict], transportation_cents: int, discount_cents: int) -> int:
    """Invoice total = sum of line totals + header transportation - header discount."""
    return order_total_cents(lines) + _as_int(transportation_cents) - _as_int(discount_cents)


def pending_cents(total_cents: int, amount_received_cents: int) -> int:
    return _as_int(total_cents) - _as_int(amount_received_cents)


# =============================================================================
# DELINQUENCY AND STATUS
# =============================================================================

def days_delayed(due_date: date | datetime | None, today: date | datetime) -> int:
    """Whole days between midnight of the due date and midnight of today; 0 unless past due."""
    due = as_calendar_date(due_date)
    if due is None:
        return 0
    delta = (as_calendar_date(today) - due).days
    return delta if delta > 0 else 0


def invoice_status(
    amount_received_cents: int,
    total_cents: int,
    due_date: date | datetime | None,
    today: date | datetime,
) -> str:
    """
    Payment status, first match wins:

    1. received >= total           -> Paid (full payment beats delinquency)
    2. received > 0                -> Partial
    3. past due date               -> Overdue
    4. otherwise                   -> Unpaid
    """
    received = _as_int(amount_received_cents)
    if received >= _as_int(total_cents):
        return INVOICE_STATUS_PAID
    if received > 0:
        return INVOICE_STATUS_PARTIAL
    if days_delayed(due_date, today) > 0:
        return INVOICE_STATUS_OVERDUE
    return INVOICE_STATUS_UNPAID


# =============================================================================
# WHOLE RECORDS
# =============================================================================

def derive_invoice(record: dict, today: date | datetime) -> dict:
    """
    Recompute every derived field of an invoice from its editable inputs.

    Any derived values already present on `record` are ignored.
    """
    lines = derive_line_items(record.get("line_items"))
    total = invoice_total_cents(
        lines,
        record.get("transportation_cents"),
        record.get("discount_cents"),
    )
    received = _as_int(record.get("amount_received_cents"))
    due = record.get("due_date")

    derived = dict(record)
    derived["line_items"] = lines
    derived["transportation_cents"] = _as_int(record.get("transportation_cents"))
    derived["discount_cents"] = _as_int(record.get("discount_cents"))
    derived["amount_received_cents"] = received
    derived["total_cents"] = total
    derived["pending_cents"] = pending_cents(total, received)
    derived["days_delayed"] = days_delayed(due, today)
    derived["status"] = invoice_status(received, total, due, today)
    return derived


def derive_sale_order(record: dict) -> dict:
    lines = derive_line_items(record.get("line_items"))
    derived = dict(record)
    derived["line_items"] = lines
    derived["total_cents"] = order_total_cents(lines)
    return derived


def derive_purchase_order(record: dict) -> dict:
    """
    Purchase order totals:

    - total_cents   = sum of line totals (no transport or discount on a PO)
    - balance_cents = total_cents - advance_paid_cents, negative when the
      advance exceeds the order
    """
    lines = derive_line_items(record.get("line_items"))
    total = order_total_cents(lines)
    advance = _as_int(record.get("advance_paid_cents"))

    derived = dict(record)
    derived["line_items"] = lines
    derived["advance_paid_cents"] = advance
    derived["total_cents"] = total
    derived["balance_cents"] = total - advance
    return derived


def format_document_number(prefix: str, year: int, sequence: int) -> str:
    """e.g. ("SO", 2025, 3) -> "SO-2025-003"."""
    return f"{prefix}-{year}-{sequence:03d}"


def format_amount(cents: int) -> str:
    """Display form of a money value: 150000 -> "1,500.00"."""
    cents = _as_int(cents)
    sign = "-" if cents < 0 else ""
    whole, fraction = divmod(abs(cents), 100)
    return f"{sign}{whole:,}.{fraction:02d}"
