from __future__ import annotations

from ..extensions import db
from .mixins import OwnedRecordMixin


class Vendor(OwnedRecordMixin, db.Model):
    """
    Supplier billed through purchase-linked invoices.

    DESIGN:
    - Invoices keep a denormalized vendor_name snapshot, so renaming or
      deleting a vendor never rewrites past invoices.
    - Deletion is not blocked while invoices still reference the vendor.
    """
    __tablename__ = "vendors"
    __table_args__ = (
        db.Index("ix_vendors_owner_name", "owner_id", "name"),
    )

    RECORD_FIELDS = (
        "name",
        "contact_person",
        "email",
        "phone",
        "tax_id",
        "payment_terms_days",
    )

    name = db.Column(db.String(255), nullable=False)

    # Contact information
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)

    # GST / TIN or other tax registration number
    tax_id = db.Column(db.String(64), nullable=True)
    payment_terms_days = db.Column(db.Integer, nullable=False, default=30)

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} name={self.name!r} owner_id={self.owner_id}>"


class Customer(OwnedRecordMixin, db.Model):
    """Buyer referenced by sale orders (customer_name is snapshotted on the order)."""
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_owner_name", "owner_id", "name"),
    )

    RECORD_FIELDS = (
        "name",
        "contact_person",
        "email",
        "phone",
        "tax_id",
        "address",
        "payment_terms_days",
    )

    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    tax_id = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    payment_terms_days = db.Column(db.Integer, nullable=False, default=30)

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r} owner_id={self.owner_id}>"
