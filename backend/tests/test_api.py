"""
HTTP API tests (SQL storage, in-memory SQLite).

Verifies:
- Unauthenticated requests return 401
- CRUD round-trips for records, with notifier messages in the body
- Server-side numbering and derivation on create
- Payments move the linked invoice and return it
- Owners never see each other's records
- Validation (400), not-found (404) and storage failures (503)
"""

import pytest

from bizbooks.services.sql_storage import SqlAlchemyAdapter
from bizbooks.services.storage_service import PersistenceError


LAPTOP_LINE = {
    "particulars": "Dell Latitude 5420 Laptops",
    "ordered_qty": 100,
    "dispatched_qty": 60,
    "basic_amount_cents": 25000000,
    "tax_rate_bps": 1800,
}

INVOICE_BODY = {
    "vendor_name": "Tech Solutions Ltd",
    "invoice_date": "2025-01-20",
    "due_date": "2025-02-19",
    "po_number": "PO-2025-001",
    "transportation_cents": 500000,
    "line_items": [LAPTOP_LINE],
}


def _create_invoice(client, headers, **overrides) -> dict:
    resp = client.post("/api/invoices", json={**INVOICE_BODY, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.json
    return resp.json["item"]


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/vendors"),
            ("POST", "/api/vendors"),
            ("GET", "/api/customers"),
            ("GET", "/api/sale-orders"),
            ("GET", "/api/purchase-orders"),
            ("GET", "/api/invoices"),
            ("GET", "/api/invoices/abc/document"),
            ("GET", "/api/payments"),
            ("GET", "/api/expenses"),
            ("GET", "/api/reports/dashboard"),
            ("GET", "/api/exports/vendors.csv"),
            ("POST", "/api/imports/vendors"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_bogus_token(self, client, db_session):
        resp = client.get("/api/vendors", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


# =============================================================================
# AUTH AND HEALTH
# =============================================================================


class TestAuth:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["storage"] == "sql"

    def test_login_me_logout(self, client, owner, owner_headers):
        me = client.get("/api/auth/me", headers=owner_headers)
        assert me.status_code == 200
        assert me.json["user"]["username"] == "owner"

        assert client.post("/api/auth/logout", headers=owner_headers).status_code == 200
        assert client.get("/api/auth/me", headers=owner_headers).status_code == 401

    def test_login_by_email(self, client, owner):
        resp = client.post("/api/auth/login", json={"email": "owner@bizbooks.test", "password": "Password123!"})
        assert resp.status_code == 200
        assert len(resp.json["token"]) == 64

    def test_bad_credentials(self, client, owner):
        resp = client.post("/api/auth/login", json={"username": "owner", "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_missing_credentials(self, client, db_session):
        assert client.post("/api/auth/login", json={"username": "owner"}).status_code == 400


# =============================================================================
# VENDORS / CUSTOMERS
# =============================================================================


class TestVendors:

    def test_crud(self, client, owner_headers):
        resp = client.post("/api/vendors", json={
            "name": "Tech Solutions Ltd", "email": "john@techsolutions.com", "payment_terms_days": "30",
        }, headers=owner_headers)
        assert resp.status_code == 201
        vendor = resp.json["item"]
        assert vendor["payment_terms_days"] == 30
        assert resp.json["messages"] == [{"level": "success", "message": "Vendor Tech Solutions Ltd created"}]

        listed = client.get("/api/vendors?search=techsol", headers=owner_headers).json
        assert listed["count"] == 1

        resp = client.put(f"/api/vendors/{vendor['id']}", json={"phone": "+1-555-0101"}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["item"]["phone"] == "+1-555-0101"
        assert resp.json["item"]["name"] == "Tech Solutions Ltd"

        resp = client.delete(f"/api/vendors/{vendor['id']}", headers=owner_headers)
        assert resp.json["deleted"] is True
        assert client.get(f"/api/vendors/{vendor['id']}", headers=owner_headers).status_code == 404

    def test_validation(self, client, owner_headers):
        resp = client.post("/api/vendors", json={"email": "x@example.com"}, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "name"

        resp = client.post("/api/vendors", json={"name": "X", "payment_terms_days": 1.5}, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "payment_terms_days"

    def test_owner_isolation(self, client, owner_headers, other_headers):
        vendor = client.post("/api/vendors", json={"name": "Mine"}, headers=owner_headers).json["item"]

        assert client.get("/api/vendors", headers=other_headers).json["count"] == 0
        assert client.get(f"/api/vendors/{vendor['id']}", headers=other_headers).status_code == 404
        assert client.delete(f"/api/vendors/{vendor['id']}", headers=other_headers).status_code == 404

    def test_customer_with_address(self, client, owner_headers):
        resp = client.post("/api/customers", json={
            "name": "Acme Retail Pvt Ltd", "address": "12 MG Road, Bengaluru",
        }, headers=owner_headers)
        assert resp.status_code == 201
        assert resp.json["item"]["address"] == "12 MG Road, Bengaluru"


# =============================================================================
# SALE ORDERS / INVOICES / PAYMENTS
# =============================================================================


class TestSaleOrders:

    def test_create_numbers_and_totals(self, client, owner_headers):
        customer = client.post("/api/customers", json={"name": "Acme"}, headers=owner_headers).json["item"]

        resp = client.post("/api/sale-orders", json={
            "customer_id": customer["id"],
            "order_date": "2025-03-01",
            "line_items": [LAPTOP_LINE],
        }, headers=owner_headers)

        assert resp.status_code == 201
        order = resp.json["item"]
        assert order["order_number"].startswith("SO-")
        assert order["order_number"].endswith("-001")
        assert order["customer_name"] == "Acme"
        assert order["status"] == "Draft"
        assert order["total_cents"] == 29500000
        assert order["order_date"] == "2025-03-01"

    def test_bad_status(self, client, owner_headers):
        resp = client.post("/api/sale-orders", json={
            "customer_name": "Acme", "order_date": "2025-03-01", "status": "Shipped",
        }, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "status"


class TestPurchaseOrders:

    def _create(self, client, headers, **overrides) -> dict:
        body = {
            "vendor_name": "Tech Solutions Ltd",
            "po_date": "2025-01-05",
            "due_date": "2025-02-04",
            "advance_paid_cents": 5000000,
            "line_items": [LAPTOP_LINE],
        }
        body.update(overrides)
        resp = client.post("/api/purchase-orders", json=body, headers=headers)
        assert resp.status_code == 201, resp.json
        return resp.json["item"]

    def test_create_numbers_and_balance(self, client, owner_headers):
        vendor = client.post("/api/vendors", json={"name": "Cloud Services Inc"}, headers=owner_headers).json["item"]

        order = self._create(client, owner_headers, vendor_name=None, vendor_id=vendor["id"], balance_cents=1)

        assert order["po_number"].startswith("PO-")
        assert order["po_number"].endswith("-001")
        assert order["vendor_name"] == "Cloud Services Inc"
        assert order["status"] == "Created"
        assert order["total_cents"] == 29500000
        assert order["balance_cents"] == 24500000
        assert order["po_date"] == "2025-01-05"

    def test_validation(self, client, owner_headers):
        resp = client.post("/api/purchase-orders", json={
            "vendor_name": "Tech Solutions Ltd", "po_date": "2025-01-05", "line_items": [],
        }, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "line_items"

        resp = client.post("/api/purchase-orders", json={
            "vendor_name": "Tech Solutions Ltd", "po_date": "2025-01-05",
            "status": "Shipped", "line_items": [LAPTOP_LINE],
        }, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "status"

        resp = client.post("/api/purchase-orders", json={
            "vendor_id": "missing", "po_date": "2025-01-05", "line_items": [LAPTOP_LINE],
        }, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "vendor_id"

    def test_update_filter_and_delete(self, client, owner_headers):
        order = self._create(client, owner_headers)
        self._create(client, owner_headers, status="Ordered")

        resp = client.put(f"/api/purchase-orders/{order['id']}", json={
            "advance_paid_cents": 29500000, "status": "Paid",
        }, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["item"]["balance_cents"] == 0

        assert client.get("/api/purchase-orders?status=Paid", headers=owner_headers).json["count"] == 1
        assert client.get("/api/purchase-orders?status=Late", headers=owner_headers).status_code == 400

        assert client.delete(f"/api/purchase-orders/{order['id']}", headers=owner_headers).status_code == 200
        assert client.get(f"/api/purchase-orders/{order['id']}", headers=owner_headers).status_code == 404
        assert client.put("/api/purchase-orders/missing", json={"status": "Paid"}, headers=owner_headers).status_code == 404

    def test_invoice_raised_against_purchase_order(self, client, owner_headers):
        order = self._create(client, owner_headers)
        body = {k: v for k, v in INVOICE_BODY.items() if k not in ("vendor_name", "po_number")}

        resp = client.post("/api/invoices", json={**body, "po_id": order["id"]}, headers=owner_headers)

        assert resp.status_code == 201, resp.json
        invoice = resp.json["item"]
        assert invoice["po_number"] == order["po_number"]
        assert invoice["po_date"] == "2025-01-05"
        assert invoice["vendor_name"] == "Tech Solutions Ltd"

        linked = client.get(f"/api/purchase-orders/{order['id']}/invoices", headers=owner_headers).json
        assert [i["id"] for i in linked["items"]] == [invoice["id"]]

        resp = client.post("/api/invoices", json={**body, "po_id": "missing"}, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "po_id"

    def test_dashboard_po_value(self, client, owner_headers):
        self._create(client, owner_headers)

        stats = client.get("/api/reports/dashboard", headers=owner_headers).json["stats"]
        assert stats["total_po_value_cents"] == 29500000
        assert stats["total_invoiced_cents"] == 0


class TestInvoices:

    def test_create_derives_everything(self, client, owner_headers):
        invoice = _create_invoice(client, owner_headers, total_cents=1, status="Paid")

        assert invoice["invoice_number"].startswith("INV-")
        assert invoice["total_cents"] == 30000000
        assert invoice["pending_cents"] == 30000000
        assert invoice["status"] == "Overdue"
        assert invoice["days_delayed"] > 0
        assert invoice["line_items"][0]["tax_cents"] == 4500000
        assert invoice["due_date"] == "2025-02-19"

    def test_due_before_invoice_date(self, client, owner_headers):
        resp = client.post("/api/invoices", json={**INVOICE_BODY, "due_date": "2025-01-01"}, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "due_date"

    def test_requires_a_line(self, client, owner_headers):
        resp = client.post("/api/invoices", json={**INVOICE_BODY, "line_items": []}, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "line_items"

    def test_over_dispatch_rejected(self, client, owner_headers):
        line = {**LAPTOP_LINE, "dispatched_qty": 101}
        resp = client.post("/api/invoices", json={**INVOICE_BODY, "line_items": [line]}, headers=owner_headers)
        assert resp.status_code == 400

    def test_status_filter_and_document(self, client, owner_headers):
        invoice = _create_invoice(client, owner_headers)

        overdue = client.get("/api/invoices?status=Overdue", headers=owner_headers).json
        assert overdue["count"] == 1
        assert client.get("/api/invoices?status=Paid", headers=owner_headers).json["count"] == 0
        assert client.get("/api/invoices?status=Late", headers=owner_headers).status_code == 400

        doc = client.get(f"/api/invoices/{invoice['id']}/document", headers=owner_headers).json["document"]
        assert doc["amount_in_words"] == "Three Lakh Rupees Only"
        assert doc["lines"][0]["unit_price_cents"] == 416667

    def test_update_missing(self, client, owner_headers):
        resp = client.put("/api/invoices/missing", json={"discount_cents": 1}, headers=owner_headers)
        assert resp.status_code == 404


class TestPayments:

    def test_payment_moves_invoice(self, client, owner_headers):
        invoice = _create_invoice(client, owner_headers)

        resp = client.post("/api/payments", json={
            "invoice_id": invoice["id"],
            "payment_date": "2025-03-10",
            "amount_cents": 15000000,
            "method": "Check",
        }, headers=owner_headers)

        assert resp.status_code == 201
        payment = resp.json["item"]
        assert payment["invoice_number"] == invoice["invoice_number"]
        assert resp.json["invoice"]["amount_received_cents"] == 15000000
        assert resp.json["invoice"]["status"] == "Partial"

        listed = client.get(f"/api/payments?invoice_id={invoice['id']}", headers=owner_headers).json
        assert listed["count"] == 1

        resp = client.delete(f"/api/payments/{payment['id']}", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["invoice"]["amount_received_cents"] == 0
        assert resp.json["invoice"]["status"] == "Overdue"

    def test_zero_amount_rejected(self, client, owner_headers):
        resp = client.post("/api/payments", json={
            "invoice_id": "x", "payment_date": "2025-03-10", "amount_cents": 0, "method": "Cash",
        }, headers=owner_headers)
        assert resp.status_code == 400
        assert resp.json["field"] == "amount_cents"


# =============================================================================
# EXPENSES / REPORTS / CSV
# =============================================================================


class TestExpensesAndReports:

    def test_expense_filters(self, client, owner_headers):
        for date_str, category in (("2025-03-01", "Rent"), ("2025-03-15", "Travel")):
            resp = client.post("/api/expenses", json={
                "expense_date": date_str, "category": category, "description": "x",
                "amount_cents": 1000, "payment_mode": "Cash",
            }, headers=owner_headers)
            assert resp.status_code == 201

        assert client.get("/api/expenses?category=Rent", headers=owner_headers).json["count"] == 1
        assert client.get("/api/expenses?start=2025-03-10", headers=owner_headers).json["count"] == 1
        assert client.get("/api/expenses?start=march", headers=owner_headers).status_code == 400

    def test_dashboard(self, client, owner_headers):
        _create_invoice(client, owner_headers)
        _create_invoice(client, owner_headers, amount_received_cents=30000000)

        body = client.get("/api/reports/dashboard", headers=owner_headers).json
        stats = body["stats"]
        assert stats["total_invoiced_cents"] == 60000000
        assert stats["total_paid_cents"] == 30000000
        assert stats["total_outstanding_cents"] == 30000000
        assert stats["overdue_count"] == 1
        assert len(body["overdue_invoices"]) == 1

    def test_monthly(self, client, owner_headers):
        _create_invoice(client, owner_headers, amount_received_cents=100)
        body = client.get("/api/reports/monthly?year=2025", headers=owner_headers).json
        assert body["year"] == 2025
        assert body["months"][0]["received_cents"] == 100

    def test_summaries(self, client, owner_headers):
        assert client.get("/api/reports/expenses", headers=owner_headers).json["month_total_cents"] == 0
        assert client.get("/api/reports/sale-orders", headers=owner_headers).json["count"] == 0


class TestCsv:

    def test_export_and_import(self, client, owner_headers):
        resp = client.post(
            "/api/imports/vendors",
            data="name,email\nTech Solutions Ltd,john@techsolutions.com\n,missing@example.com\n",
            headers={**owner_headers, "Content-Type": "text/csv"},
        )
        assert resp.status_code == 200
        assert resp.json["imported"] == 1
        assert resp.json["errors"][0]["field"] == "name"

        resp = client.get("/api/exports/vendors.csv", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        lines = resp.get_data(as_text=True).splitlines()
        assert len(lines) == 2
        assert "Tech Solutions Ltd" in lines[1]

    def test_unknown_collection(self, client, owner_headers):
        assert client.get("/api/exports/widgets.csv", headers=owner_headers).status_code == 404

    def test_import_not_supported(self, client, owner_headers):
        resp = client.post("/api/imports/invoices", data="vendor_name\nX\n", headers=owner_headers)
        assert resp.status_code == 400


# =============================================================================
# STORAGE FAILURE (503)
# =============================================================================


class TestStorageFailure:

    def test_failed_write_returns_503_with_message(self, client, owner_headers, monkeypatch):
        def broken_insert(self, entity_type, record):
            raise PersistenceError("database unavailable")

        monkeypatch.setattr(SqlAlchemyAdapter, "insert", broken_insert)

        resp = client.post("/api/vendors", json={"name": "Tech Solutions Ltd"}, headers=owner_headers)

        assert resp.status_code == 503
        assert resp.json["messages"] == [{"level": "error", "message": "Failed to create vendor"}]

        monkeypatch.undo()
        assert client.get("/api/vendors", headers=owner_headers).json["count"] == 0
