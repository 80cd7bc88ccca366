# Overview: Demo records for a fresh account, loaded through the RecordStore.

"""
Demo Data

Dates are relative to the store's today so a freshly seeded account always
shows a mix of paid, partial, overdue and unpaid invoices. Each demo
invoice is raised against one of the demo purchase orders.
"""

from __future__ import annotations

from datetime import timedelta

from .record_store import RecordStore


DEMO_VENDORS = [
    {"name": "Tech Solutions Ltd", "contact_person": "John Smith", "email": "john@techsolutions.com",
     "phone": "+1-555-0101", "tax_id": "TAX-001", "payment_terms_days": 30},
    {"name": "Office Supplies Co", "contact_person": "Sarah Johnson", "email": "sarah@officesupplies.com",
     "phone": "+1-555-0102", "tax_id": "TAX-002", "payment_terms_days": 15},
    {"name": "Cloud Services Inc", "contact_person": "Michael Chen", "email": "michael@cloudservices.com",
     "phone": "+1-555-0103", "tax_id": "TAX-003", "payment_terms_days": 30},
]

DEMO_CUSTOMERS = [
    {"name": "Acme Retail Pvt Ltd", "contact_person": "Priya Sharma", "email": "priya@acmeretail.in",
     "phone": "+91-98450-11111", "tax_id": "29ABCDE1234F1Z5", "address": "12 MG Road, Bengaluru",
     "payment_terms_days": 30},
    {"name": "Northwind Traders", "contact_person": "Arjun Mehta", "email": "arjun@northwind.in",
     "phone": "+91-98450-22222", "tax_id": "27FGHIJ5678K1Z2", "address": "44 Linking Road, Mumbai",
     "payment_terms_days": 45},
]

DEMO_EXPENSES = [
    ("Travel", "Client visit cab fare", 185000, "UPI"),
    ("Rent", "Office rent", 4500000, "Bank Transfer"),
    ("Utilities", "Electricity bill", 642000, "Bank Transfer"),
    ("Supplies", "Printer paper A4 (10 reams)", 275000, "Card"),
    ("Misc", "Team lunch", 320000, "Cash"),
]


def seed_demo(store: RecordStore) -> dict:
    """Create demo vendors, customers, purchase orders, sale orders, invoices, payments and expenses."""
    today = store.today()

    vendors = [store.add_vendor(v) for v in DEMO_VENDORS]
    customers = [store.add_customer(c) for c in DEMO_CUSTOMERS]

    laptops_po = store.add_purchase_order({
        "vendor_id": vendors[0]["id"],
        "po_date": today - timedelta(days=25),
        "due_date": today + timedelta(days=10),
        "status": "Ordered",
        "advance_paid_cents": 5000000,
        "line_items": [
            {"particulars": "Dell Latitude 5420 Laptops", "ordered_qty": 100, "dispatched_qty": 60,
             "basic_amount_cents": 25000000, "tax_rate_bps": 1800},
        ],
    })
    chairs_po = store.add_purchase_order({
        "vendor_id": vendors[1]["id"],
        "po_date": today - timedelta(days=60),
        "due_date": today - timedelta(days=35),
        "status": "Received",
        "line_items": [
            {"particulars": "Ergonomic Office Chairs", "ordered_qty": 50, "dispatched_qty": 50,
             "basic_amount_cents": 7500000, "tax_rate_bps": 1200},
        ],
    })
    cloud_po = store.add_purchase_order({
        "vendor_id": vendors[2]["id"],
        "po_date": today - timedelta(days=50),
        "due_date": today - timedelta(days=15),
        "status": "Paid",
        "advance_paid_cents": 2000000,
        "line_items": [
            {"particulars": "Cloud Hosting - Premium Package", "ordered_qty": 1, "dispatched_qty": 1,
             "basic_amount_cents": 12000000, "tax_rate_bps": 1800},
        ],
    })
    licenses_po = store.add_purchase_order({
        "vendor_id": vendors[2]["id"],
        "po_date": today - timedelta(days=8),
        "due_date": today + timedelta(days=25),
        "status": "Ordered",
        "line_items": [
            {"particulars": "Microsoft 365 Business Premium Licenses", "ordered_qty": 150, "dispatched_qty": 150,
             "basic_amount_cents": 48000000, "tax_rate_bps": 1800},
        ],
    })

    store.add_sale_order({
        "customer_id": customers[0]["id"],
        "customer_name": customers[0]["name"],
        "order_date": today - timedelta(days=40),
        "po_number": "ACME-PO-7781",
        "po_date": today - timedelta(days=42),
        "status": "Dispatched",
        "line_items": [
            {"particulars": "Dell Latitude 5420 Laptops", "ordered_qty": 100, "dispatched_qty": 60,
             "basic_amount_cents": 25000000, "tax_rate_bps": 1800},
        ],
    })
    store.add_sale_order({
        "customer_id": customers[1]["id"],
        "customer_name": customers[1]["name"],
        "order_date": today - timedelta(days=10),
        "status": "Confirmed",
        "line_items": [
            {"particulars": "Ergonomic Office Chairs", "ordered_qty": 50, "dispatched_qty": 0,
             "basic_amount_cents": 7500000, "tax_rate_bps": 1200},
            {"particulars": "Standing Desks", "ordered_qty": 20, "dispatched_qty": 0,
             "basic_amount_cents": 6000000, "tax_rate_bps": 1800},
        ],
    })

    paid = store.add_invoice({
        "vendor_id": vendors[1]["id"],
        "vendor_name": vendors[1]["name"],
        "invoice_date": today - timedelta(days=50),
        "due_date": today - timedelta(days=35),
        "po_id": chairs_po["id"],
        "line_items": [
            {"particulars": "Ergonomic Office Chairs", "ordered_qty": 50, "dispatched_qty": 50,
             "basic_amount_cents": 7500000, "tax_rate_bps": 1200},
        ],
    })
    partial = store.add_invoice({
        "vendor_id": vendors[0]["id"],
        "vendor_name": vendors[0]["name"],
        "invoice_date": today - timedelta(days=20),
        "due_date": today + timedelta(days=10),
        "po_id": laptops_po["id"],
        "transportation_cents": 500000,
        "line_items": [
            {"particulars": "Dell Latitude 5420 Laptops", "ordered_qty": 100, "dispatched_qty": 60,
             "basic_amount_cents": 25000000, "tax_rate_bps": 1800},
        ],
    })
    store.add_invoice({
        "vendor_id": vendors[2]["id"],
        "vendor_name": vendors[2]["name"],
        "invoice_date": today - timedelta(days=45),
        "due_date": today - timedelta(days=15),
        "po_id": cloud_po["id"],
        "line_items": [
            {"particulars": "Cloud Hosting - Premium Package", "ordered_qty": 1, "dispatched_qty": 1,
             "basic_amount_cents": 12000000, "tax_rate_bps": 1800},
        ],
    })
    store.add_invoice({
        "vendor_id": vendors[2]["id"],
        "vendor_name": vendors[2]["name"],
        "invoice_date": today - timedelta(days=5),
        "due_date": today + timedelta(days=25),
        "po_id": licenses_po["id"],
        "line_items": [
            {"particulars": "Microsoft 365 Business Premium Licenses", "ordered_qty": 150, "dispatched_qty": 150,
             "basic_amount_cents": 48000000, "tax_rate_bps": 1800},
        ],
    })

    store.add_payment({
        "invoice_id": paid["id"],
        "payment_date": today - timedelta(days=36),
        "amount_cents": paid["total_cents"],
        "method": "Bank Transfer",
        "reference_number": "NEFT-000123",
    })
    store.add_payment({
        "invoice_id": partial["id"],
        "payment_date": today - timedelta(days=3),
        "amount_cents": 15000000,
        "method": "Check",
        "reference_number": "CHQ-4471",
    })

    for offset, (category, description, amount, mode) in enumerate(DEMO_EXPENSES):
        store.add_expense({
            "expense_date": today - timedelta(days=offset),
            "category": category,
            "description": description,
            "amount_cents": amount,
            "payment_mode": mode,
            "status": "Paid",
        })

    return {
        "vendors": len(DEMO_VENDORS),
        "customers": len(DEMO_CUSTOMERS),
        "purchase_orders": 4,
        "sale_orders": 2,
        "invoices": 4,
        "payments": 2,
        "expenses": len(DEMO_EXPENSES),
    }
