from __future__ import annotations

from ..extensions import db
from .mixins import OwnedRecordMixin


class Expense(OwnedRecordMixin, db.Model):
    """Daily operating expense. No derived fields, no links to other records."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_owner_date", "owner_id", "expense_date"),
    )

    RECORD_FIELDS = (
        "expense_date",
        "category",
        "description",
        "amount_cents",
        "payment_mode",
        "status",
        "attachment",
    )

    expense_date = db.Column(db.Date, nullable=False)
    category = db.Column(db.String(32), nullable=False)  # Travel, Rent, Utilities, Supplies, Misc
    description = db.Column(db.Text, nullable=False)
    amount_cents = db.Column(db.BigInteger, nullable=False, default=0)
    payment_mode = db.Column(db.String(32), nullable=False)  # Cash, UPI, Bank Transfer, Card
    status = db.Column(db.String(16), nullable=False, default="Paid")  # Paid, Pending
    attachment = db.Column(db.String(512), nullable=True)
