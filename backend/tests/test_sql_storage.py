import unittest
from datetime import date

from bizbooks import create_app
from bizbooks.extensions import db
from bizbooks.models import DocumentSequence, Invoice, PurchaseOrder, User
from bizbooks.services.json_storage import JsonFileAdapter
from bizbooks.services.record_store import RecordStore
from bizbooks.services.sql_storage import SqlAlchemyAdapter
from bizbooks.services.storage_service import CHANGE_INSERT, CHANGE_UPDATE, get_adapter


TODAY = date(2025, 3, 15)


def _laptop_invoice(**overrides) -> dict:
    fields = {
        "vendor_name": "Tech Solutions Ltd",
        "invoice_date": date(2025, 1, 20),
        "due_date": date(2025, 2, 19),
        "transportation_cents": 500000,
        "line_items": [{
            "particulars": "Dell Latitude 5420 Laptops",
            "ordered_qty": 100,
            "dispatched_qty": 60,
            "basic_amount_cents": 25000000,
            "tax_rate_bps": 1800,
        }],
    }
    fields.update(overrides)
    return fields


class SqlAdapterTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "TESTING": True,
            "BIZBOOKS_STORAGE": "sql",
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        # Password hashes are irrelevant here; skip bcrypt.
        self.owner = User(username="owner", email="owner@bizbooks.test", password_hash="x")
        self.other = User(username="other", email="other@bizbooks.test", password_hash="x")
        db.session.add_all([self.owner, self.other])
        db.session.commit()

        self.adapter = SqlAlchemyAdapter(owner_id=self.owner.id)
        self.store = RecordStore(self.adapter, today=lambda: TODAY)

    def test_get_adapter_selects_backend(self):
        self.assertIsInstance(get_adapter(self.owner.id), SqlAlchemyAdapter)

        try:
            self.app.config["BIZBOOKS_STORAGE"] = "json"
            adapter = get_adapter(self.owner.id)
            self.assertIsInstance(adapter, JsonFileAdapter)
            self.assertTrue(adapter.path.endswith(f"owner_{self.owner.id}.json"))

            self.app.config["BIZBOOKS_STORAGE"] = "mongo"
            with self.assertRaises(ValueError):
                get_adapter(self.owner.id)
        finally:
            self.app.config["BIZBOOKS_STORAGE"] = "sql"

    def test_insert_list_get_update_delete(self):
        record = {"id": "v1", "name": "Tech Solutions Ltd", "payment_terms_days": 30, "ignored": "x"}
        self.assertEqual(self.adapter.insert("vendors", record), "v1")

        listed = self.adapter.list("vendors")
        self.assertEqual([r["id"] for r in listed], ["v1"])
        self.assertEqual(listed[0]["owner_id"], self.owner.id)
        self.assertNotIn("ignored", listed[0])

        self.assertTrue(self.adapter.update("vendors", "v1", {"name": "Tech Solutions Pvt Ltd"}))
        self.assertEqual(self.adapter.get("vendors", "v1")["name"], "Tech Solutions Pvt Ltd")

        self.assertTrue(self.adapter.delete("vendors", "v1"))
        self.assertIsNone(self.adapter.get("vendors", "v1"))
        self.assertFalse(self.adapter.update("vendors", "v1", {"name": "x"}))
        self.assertFalse(self.adapter.delete("vendors", "v1"))

    def test_rows_are_owner_scoped(self):
        self.adapter.insert("vendors", {"id": "v1", "name": "Mine"})
        theirs = SqlAlchemyAdapter(owner_id=self.other.id)

        self.assertEqual(theirs.list("vendors"), [])
        self.assertIsNone(theirs.get("vendors", "v1"))
        self.assertFalse(theirs.update("vendors", "v1", {"name": "Stolen"}))
        self.assertFalse(theirs.delete("vendors", "v1"))
        self.assertEqual(self.adapter.get("vendors", "v1")["name"], "Mine")

    def test_allocate_number_is_sequential_and_seeded(self):
        self.assertEqual(self.adapter.allocate_number("INVOICE", 2025, seed=3), 4)
        self.assertEqual(self.adapter.allocate_number("INVOICE", 2025, seed=3), 5)
        self.assertEqual(self.adapter.allocate_number("INVOICE", 2026), 1)
        self.assertEqual(SqlAlchemyAdapter(self.other.id).allocate_number("INVOICE", 2025), 1)

        seq = db.session.query(DocumentSequence).filter_by(
            owner_id=self.owner.id, document_type="INVOICE", year=2025,
        ).one()
        self.assertEqual(seq.next_number, 6)

    def test_change_events_published_after_commit(self):
        events = []
        self.adapter.subscribe(events.append)

        self.adapter.insert("vendors", {"id": "v1", "name": "Tech Solutions Ltd"})
        self.adapter.update("vendors", "v1", {"phone": "+1-555-0101"})

        self.assertEqual([e.action for e in events], [CHANGE_INSERT, CHANGE_UPDATE])
        self.assertEqual(events[-1].record["phone"], "+1-555-0101")

        self.adapter.unsubscribe(events.append)
        self.adapter.delete("vendors", "v1")
        self.assertEqual(len(events), 2)

    def test_store_invoice_and_payment_over_sql(self):
        invoice = self.store.add_invoice(_laptop_invoice())
        self.assertEqual(invoice["invoice_number"], "INV-2025-001")

        self.store.add_payment({
            "invoice_id": invoice["id"],
            "payment_date": date(2025, 3, 10),
            "amount_cents": 15000000,
            "method": "Bank Transfer",
        })

        row = db.session.get(Invoice, invoice["id"])
        self.assertEqual(row.amount_received_cents, 15000000)
        self.assertEqual(row.total_cents, 30000000)
        self.assertEqual(row.pending_cents, 15000000)
        self.assertEqual(row.status, "Partial")
        self.assertEqual(row.line_items[0]["line_total_cents"], 29500000)

        fresh = RecordStore(SqlAlchemyAdapter(self.owner.id), today=lambda: TODAY)
        loaded = fresh.get_invoice(invoice["id"])
        self.assertEqual(loaded["status"], "Partial")
        self.assertEqual(loaded["invoice_date"], date(2025, 1, 20))
        self.assertEqual(len(fresh.payments_for_invoice(invoice["id"])), 1)

    def test_line_item_edits_are_persisted(self):
        invoice = self.store.add_invoice(_laptop_invoice())
        lines = invoice["line_items"]
        lines[0]["dispatched_qty"] = 100

        self.store.update_invoice(invoice["id"], {"line_items": lines})

        row = db.session.get(Invoice, invoice["id"])
        self.assertEqual(row.line_items[0]["balance_qty"], 0)
        self.assertEqual(row.line_items[0]["id"], lines[0]["id"])

    def test_purchase_order_over_sql(self):
        order = self.store.add_purchase_order({
            "vendor_name": "Tech Solutions Ltd",
            "po_date": date(2025, 1, 5),
            "advance_paid_cents": 5000000,
            "line_items": _laptop_invoice()["line_items"],
        })

        row = db.session.get(PurchaseOrder, order["id"])
        self.assertEqual(row.po_number, "PO-2025-001")
        self.assertEqual(row.status, "Created")
        self.assertEqual(row.total_cents, 29500000)
        self.assertEqual(row.balance_cents, 24500000)

        seq = db.session.query(DocumentSequence).filter_by(
            owner_id=self.owner.id, document_type="PURCHASE_ORDER", year=2025,
        ).one()
        self.assertEqual(seq.next_number, 2)

        invoice = self.store.add_invoice(_laptop_invoice(po_id=order["id"]))
        self.assertEqual(db.session.get(Invoice, invoice["id"]).po_number, "PO-2025-001")

        self.store.delete_purchase_order(order["id"])
        self.assertIsNone(db.session.get(PurchaseOrder, order["id"]))

    def test_recompute_repairs_stale_rows(self):
        invoice = self.store.add_invoice(_laptop_invoice())
        row = db.session.get(Invoice, invoice["id"])
        row.total_cents = 1
        row.status = "Paid"
        db.session.commit()

        count = RecordStore(SqlAlchemyAdapter(self.owner.id), today=lambda: TODAY).recompute_derived()

        self.assertEqual(count, 1)
        row = db.session.get(Invoice, invoice["id"])
        self.assertEqual(row.total_cents, 30000000)
        self.assertEqual(row.status, "Overdue")


if __name__ == "__main__":
    unittest.main()
