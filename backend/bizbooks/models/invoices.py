from __future__ import annotations

from ..extensions import db
from .mixins import OwnedRecordMixin


class Invoice(OwnedRecordMixin, db.Model):
    """
    Purchase-linked vendor invoice.

    DERIVED COLUMNS (rewritten on every save, recomputed again on read):
    - total_cents     = sum(line totals) + transportation_cents - discount_cents
    - pending_cents   = total_cents - amount_received_cents (may go negative)
    - status          = Paid | Partial | Overdue | Unpaid
    - days_delayed    = whole days past due_date

    amount_received_cents is the only money column users change after
    creation, directly or through payments.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_owner_number", "owner_id", "invoice_number"),
        db.Index("ix_invoices_owner_status", "owner_id", "status"),
        db.Index("ix_invoices_owner_due", "owner_id", "due_date"),
    )

    RECORD_FIELDS = (
        "invoice_number",
        "vendor_id",
        "vendor_name",
        "invoice_date",
        "po_id",
        "po_number",
        "po_date",
        "line_items",
        "transportation_cents",
        "discount_cents",
        "total_cents",
        "amount_received_cents",
        "pending_cents",
        "status",
        "due_date",
        "days_delayed",
    )

    # Human-readable document number (e.g., "INV-2025-007")
    invoice_number = db.Column(db.String(64), nullable=False)

    vendor_id = db.Column(db.String(32), nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=False)

    invoice_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)

    # Source purchase order reference
    po_id = db.Column(db.String(64), nullable=True)
    po_number = db.Column(db.String(64), nullable=True)
    po_date = db.Column(db.Date, nullable=True)

    line_items = db.Column(db.JSON, nullable=False, default=list)

    transportation_cents = db.Column(db.BigInteger, nullable=False, default=0)
    discount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    total_cents = db.Column(db.BigInteger, nullable=False, default=0)
    amount_received_cents = db.Column(db.BigInteger, nullable=False, default=0)
    pending_cents = db.Column(db.BigInteger, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="Unpaid")
    days_delayed = db.Column(db.Integer, nullable=False, default=0)


class Payment(OwnedRecordMixin, db.Model):
    """
    Money received against one invoice.

    WHY: Recording or removing a payment is the one mutation that changes
    another record; the linked invoice's amount_received_cents moves by the
    payment amount.

    invoice_id is deliberately not a foreign key: a payment whose invoice was
    deleted stays on file, readable through its snapshots.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_owner_invoice", "owner_id", "invoice_id"),
    )

    RECORD_FIELDS = (
        "invoice_id",
        "invoice_number",
        "vendor_name",
        "payment_date",
        "amount_cents",
        "method",
        "reference_number",
        "remarks",
    )

    invoice_id = db.Column(db.String(32), nullable=False)
    invoice_number = db.Column(db.String(64), nullable=True)
    vendor_name = db.Column(db.String(255), nullable=True)

    payment_date = db.Column(db.Date, nullable=False)
    amount_cents = db.Column(db.BigInteger, nullable=False)

    # Cash, Bank Transfer, Check, Credit Card, UPI
    method = db.Column(db.String(32), nullable=False)
    reference_number = db.Column(db.String(128), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
