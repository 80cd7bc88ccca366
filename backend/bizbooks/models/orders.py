from __future__ import annotations

from ..extensions import db
from .mixins import OwnedRecordMixin


class SaleOrder(OwnedRecordMixin, db.Model):
    """
    Customer sale order with its line items.

    LIFECYCLE: Draft -> Confirmed -> Dispatched -> Delivered -> Completed
    (status is user-set; nothing is derived from it).

    DESIGN:
    - line_items is a JSON list of line dicts; each line carries its own
      ordered/dispatched quantities, basic amount and tax rate.
    - total_cents always equals the sum of line totals; it is rewritten on
      every save, never edited directly.
    - customer_id is not a foreign key: deleting a customer leaves the order
      readable through customer_name.
    """
    __tablename__ = "sale_orders"
    __table_args__ = (
        db.Index("ix_sale_orders_owner_number", "owner_id", "order_number"),
        db.Index("ix_sale_orders_owner_status", "owner_id", "status"),
    )

    RECORD_FIELDS = (
        "order_number",
        "customer_id",
        "customer_name",
        "order_date",
        "po_number",
        "po_date",
        "line_items",
        "total_cents",
        "status",
        "notes",
    )

    # Human-readable document number (e.g., "SO-2025-003")
    order_number = db.Column(db.String(64), nullable=False)

    customer_id = db.Column(db.String(32), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)

    order_date = db.Column(db.Date, nullable=False)

    # Buyer's purchase order reference
    po_number = db.Column(db.String(64), nullable=True)
    po_date = db.Column(db.Date, nullable=True)

    line_items = db.Column(db.JSON, nullable=False, default=list)
    total_cents = db.Column(db.BigInteger, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="Draft")
    notes = db.Column(db.Text, nullable=True)


class PurchaseOrder(OwnedRecordMixin, db.Model):
    """
    Order placed with a vendor; invoices link back to it through po_id.

    LIFECYCLE: Created -> Ordered -> Received -> Paid -> Completed
    (status is user-set, like sale orders).

    DESIGN:
    - Lines have the same shape as sale order lines; dispatched_qty is the
      quantity received so far.
    - total_cents and balance_cents (total minus advance_paid_cents) are
      rewritten on every save.
    - vendor_id is not a foreign key; vendor_name is the snapshot.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_owner_number", "owner_id", "po_number"),
        db.Index("ix_purchase_orders_owner_status", "owner_id", "status"),
    )

    RECORD_FIELDS = (
        "po_number",
        "vendor_id",
        "vendor_name",
        "po_date",
        "due_date",
        "line_items",
        "total_cents",
        "advance_paid_cents",
        "balance_cents",
        "status",
        "notes",
    )

    # Human-readable document number (e.g., "PO-2025-002")
    po_number = db.Column(db.String(64), nullable=False)

    vendor_id = db.Column(db.String(32), nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=False)

    po_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=True)

    line_items = db.Column(db.JSON, nullable=False, default=list)
    total_cents = db.Column(db.BigInteger, nullable=False, default=0)
    advance_paid_cents = db.Column(db.BigInteger, nullable=False, default=0)
    balance_cents = db.Column(db.BigInteger, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="Created")
    notes = db.Column(db.Text, nullable=True)
