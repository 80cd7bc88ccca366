# Overview: Printable invoice snapshot (per-unit rates, totals, amount in words).

"""
Invoice Document

Builds the read-only data a printed / PDF invoice is rendered from. Layout
and PDF generation belong to the client; this module only fixes the numbers
and the wording so every client prints the same thing.

Amounts in words follow the Indian numbering system (Crore, Lakh, Thousand,
Hundred), e.g. 300000.50 -> "Three Lakh Rupees and Fifty Paise Only".
"""

from __future__ import annotations

from ..time_utils import to_iso_date
from .derivation_service import format_amount, unit_price_cents


_ONES = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
_TEENS = ["Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen",
          "Sixteen", "Seventeen", "Eighteen", "Nineteen"]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

# (divisor, word), largest first
_INDIAN_GROUPS = [
    (10_000_000, "Crore"),
    (100_000, "Lakh"),
    (1_000, "Thousand"),
]


def _below_thousand(n: int) -> str:
    if n == 0:
        return ""
    if n < 10:
        return _ONES[n]
    if n < 20:
        return _TEENS[n - 10]
    if n < 100:
        tens, ones = divmod(n, 10)
        return _TENS[tens] + (" " + _ONES[ones] if ones else "")
    hundreds, rest = divmod(n, 100)
    return _ONES[hundreds] + " Hundred" + (" " + _below_thousand(rest) if rest else "")


def _integer_words(n: int) -> str:
    parts = []
    for divisor, word in _INDIAN_GROUPS:
        count, n = divmod(n, divisor)
        if count:
            # Counts of crores can exceed 999 for very large amounts
            parts.append(f"{_integer_words(count) if count >= 1000 else _below_thousand(count)} {word}")
    if n:
        parts.append(_below_thousand(n))
    return " ".join(parts)


def amount_in_words(cents: int) -> str:
    """Spell out a money amount in the Indian system; zero is "Zero"."""
    cents = cents or 0
    negative = cents < 0
    rupees, paise = divmod(abs(cents), 100)

    if rupees == 0 and paise == 0:
        return "Zero"

    parts = []
    if rupees:
        parts.append(_integer_words(rupees) + " Rupees")
    if paise:
        parts.append(_below_thousand(paise) + " Paise")
    words = " and ".join(parts) + " Only"
    return ("Minus " + words) if negative else words


def render_invoice(invoice: dict) -> dict:
    """
    Snapshot of an already-derived invoice for printing.

    Each line carries its per-unit rate (basic amount / dispatched quantity);
    the rate is None when nothing was dispatched.
    """
    lines = []
    for index, line in enumerate(invoice.get("line_items") or [], start=1):
        lines.append({
            "sl_no": index,
            "particulars": line.get("particulars"),
            "ordered_qty": line.get("ordered_qty", 0),
            "dispatched_qty": line.get("dispatched_qty", 0),
            "balance_qty": line.get("balance_qty", 0),
            "unit_price_cents": unit_price_cents(line),
            "basic_amount_cents": line.get("basic_amount_cents", 0),
            "tax_rate_bps": line.get("tax_rate_bps", 0),
            "tax_cents": line.get("tax_cents", 0),
            "line_total_cents": line.get("line_total_cents", 0),
        })

    total = invoice.get("total_cents") or 0
    return {
        "invoice_number": invoice.get("invoice_number"),
        "invoice_date": to_iso_date(invoice.get("invoice_date")),
        "due_date": to_iso_date(invoice.get("due_date")),
        "vendor_name": invoice.get("vendor_name"),
        "po_number": invoice.get("po_number"),
        "po_date": to_iso_date(invoice.get("po_date")),
        "lines": lines,
        "subtotal_cents": sum(line["line_total_cents"] or 0 for line in lines),
        "tax_total_cents": sum(line["tax_cents"] or 0 for line in lines),
        "transportation_cents": invoice.get("transportation_cents") or 0,
        "discount_cents": invoice.get("discount_cents") or 0,
        "total_cents": total,
        "total_display": format_amount(total),
        "amount_received_cents": invoice.get("amount_received_cents") or 0,
        "pending_cents": invoice.get("pending_cents") or 0,
        "status": invoice.get("status"),
        "amount_in_words": amount_in_words(total),
    }
