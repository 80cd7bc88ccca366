from datetime import date

import pytest

from bizbooks.services.derivation_service import derive_invoice
from bizbooks.services.invoice_document_service import amount_in_words, render_invoice
from conftest import TODAY, invoice_fields, laptop_line


@pytest.mark.parametrize(
    "cents,expected",
    [
        (0, "Zero"),
        (100, "One Rupees Only"),
        (50, "Fifty Paise Only"),
        (150, "One Rupees and Fifty Paise Only"),
        (30000000, "Three Lakh Rupees Only"),
        (30000050, "Three Lakh Rupees and Fifty Paise Only"),
        (11500000, "One Lakh Fifteen Thousand Rupees Only"),
        (1234567, "Twelve Thousand Three Hundred Forty Five Rupees and Sixty Seven Paise Only"),
        (
            12345678900,
            "Twelve Crore Thirty Four Lakh Fifty Six Thousand Seven Hundred Eighty Nine Rupees Only",
        ),
        (-100, "Minus One Rupees Only"),
    ],
)
def test_amount_in_words(cents, expected):
    assert amount_in_words(cents) == expected


def test_amount_in_words_beyond_thousand_crore():
    # 1,234 crore rupees
    assert amount_in_words(1234 * 10_000_000 * 100) == "One Thousand Two Hundred Thirty Four Crore Rupees Only"


def test_render_worked_example():
    invoice = derive_invoice(
        dict(invoice_fields(amount_received_cents=15000000), invoice_number="INV-2025-001"),
        TODAY,
    )

    doc = render_invoice(invoice)

    assert doc["invoice_number"] == "INV-2025-001"
    assert doc["invoice_date"] == "2025-01-20"
    assert doc["po_date"] is None
    assert doc["lines"] == [{
        "sl_no": 1,
        "particulars": "Dell Latitude 5420 Laptops",
        "ordered_qty": 100,
        "dispatched_qty": 60,
        "balance_qty": 40,
        "unit_price_cents": 416667,
        "basic_amount_cents": 25000000,
        "tax_rate_bps": 1800,
        "tax_cents": 4500000,
        "line_total_cents": 29500000,
    }]
    assert doc["subtotal_cents"] == 29500000
    assert doc["tax_total_cents"] == 4500000
    assert doc["transportation_cents"] == 500000
    assert doc["total_cents"] == 30000000
    assert doc["total_display"] == "300,000.00"
    assert doc["pending_cents"] == 15000000
    assert doc["status"] == "Partial"
    assert doc["amount_in_words"] == "Three Lakh Rupees Only"


def test_render_undispatched_line_has_no_rate():
    invoice = derive_invoice(
        invoice_fields(po_date=date(2025, 1, 2), line_items=[laptop_line(dispatched_qty=0)]),
        TODAY,
    )

    doc = render_invoice(invoice)

    assert doc["lines"][0]["unit_price_cents"] is None
    assert doc["lines"][0]["balance_qty"] == 100
    assert doc["po_date"] == "2025-01-02"
