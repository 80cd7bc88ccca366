# Overview: Relational record adapter; owner-scoped rows through Flask-SQLAlchemy.

"""
SQL Record Store

WHY: The hosted mode keeps every record as a row scoped to its owning user,
the equivalent of row-level security: every query filters on owner_id, so an
adapter can never read or touch another user's rows.

DESIGN:
- Record dicts map to model columns through FIELD_MAPS (record key -> column
  attribute). Keys outside the map are ignored on write.
- line_items is stored whole in a JSON column; a fresh list is assigned on
  every write so the change is always flushed.
- Every write commits immediately; any SQLAlchemyError is rolled back and
  re-raised as PersistenceError.
- ChangeEvents are published only after the commit succeeds.
- Document counters live in DocumentSequence rows and are bumped with an
  atomic UPDATE ... SET next_number = next_number + 1.
"""

from __future__ import annotations

import copy
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import Customer, DocumentSequence, Expense, Invoice, Payment, PurchaseOrder, SaleOrder, Vendor
from .concurrency import run_with_retry
from .storage_service import (
    CHANGE_DELETE,
    CHANGE_INSERT,
    CHANGE_UPDATE,
    ENTITY_CUSTOMERS,
    ENTITY_EXPENSES,
    ENTITY_INVOICES,
    ENTITY_PAYMENTS,
    ENTITY_PURCHASE_ORDERS,
    ENTITY_SALE_ORDERS,
    ENTITY_VENDORS,
    ChangeEvent,
    PersistenceError,
    RecordAdapter,
    check_entity_type,
)


logger = logging.getLogger(__name__)


ENTITY_MODELS = {
    ENTITY_VENDORS: Vendor,
    ENTITY_CUSTOMERS: Customer,
    ENTITY_PURCHASE_ORDERS: PurchaseOrder,
    ENTITY_SALE_ORDERS: SaleOrder,
    ENTITY_INVOICES: Invoice,
    ENTITY_EXPENSES: Expense,
    ENTITY_PAYMENTS: Payment,
}

# record key -> column attribute, per entity type
FIELD_MAPS = {
    entity_type: {field: field for field in model.RECORD_FIELDS}
    for entity_type, model in ENTITY_MODELS.items()
}


class SqlAlchemyAdapter(RecordAdapter):
    """Owner-scoped adapter over the shared SQLAlchemy session."""

    def _query(self, entity_type: str):
        model = ENTITY_MODELS[check_entity_type(entity_type)]
        return db.session.query(model).filter(model.owner_id == self.owner_id)

    def _to_record(self, entity_type: str, row) -> dict:
        record = row.to_record()
        if "line_items" in record:
            record["line_items"] = copy.deepcopy(record["line_items"] or [])
        return record

    def _apply_fields(self, entity_type: str, row, fields: dict) -> None:
        field_map = FIELD_MAPS[entity_type]
        for key, value in fields.items():
            column = field_map.get(key)
            if column is None:
                continue
            if column == "line_items":
                value = copy.deepcopy(value or [])
            setattr(row, column, value)

    def _commit(self, action: str, entity_type: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Failed to %s %s for owner %s: %s", action, entity_type, self.owner_id, exc)
            raise PersistenceError(f"Failed to {action} {entity_type}") from exc

    # -------------------------------------------------------------------------
    # RecordAdapter
    # -------------------------------------------------------------------------

    def list(self, entity_type: str) -> list[dict]:
        model = ENTITY_MODELS[check_entity_type(entity_type)]
        try:
            rows = self._query(entity_type).order_by(model.created_at.asc(), model.id.asc()).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Failed to load {entity_type}") from exc
        return [self._to_record(entity_type, row) for row in rows]

    def get(self, entity_type: str, record_id: str) -> dict | None:
        model = ENTITY_MODELS[check_entity_type(entity_type)]
        try:
            row = self._query(entity_type).filter(model.id == record_id).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Failed to load {entity_type} {record_id}") from exc
        return self._to_record(entity_type, row) if row else None

    def insert(self, entity_type: str, record: dict) -> str:
        model = ENTITY_MODELS[check_entity_type(entity_type)]
        row = model(id=record["id"], owner_id=self.owner_id)
        if record.get("created_at") is not None:
            row.created_at = record["created_at"]
        self._apply_fields(entity_type, row, record)

        db.session.add(row)
        self._commit("insert", entity_type)

        self.publish(ChangeEvent(entity_type, CHANGE_INSERT, row.id, self._to_record(entity_type, row)))
        return row.id

    def update(self, entity_type: str, record_id: str, fields: dict) -> bool:
        model = ENTITY_MODELS[check_entity_type(entity_type)]
        try:
            row = self._query(entity_type).filter(model.id == record_id).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Failed to load {entity_type} {record_id}") from exc
        if not row:
            return False

        self._apply_fields(entity_type, row, fields)
        self._commit("update", entity_type)

        self.publish(ChangeEvent(entity_type, CHANGE_UPDATE, record_id, self._to_record(entity_type, row)))
        return True

    def delete(self, entity_type: str, record_id: str) -> bool:
        model = ENTITY_MODELS[check_entity_type(entity_type)]
        try:
            deleted = self._query(entity_type).filter(model.id == record_id).delete(synchronize_session=False)
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"Failed to delete {entity_type} {record_id}") from exc
        if not deleted:
            db.session.rollback()
            return False

        self._commit("delete", entity_type)
        self.publish(ChangeEvent(entity_type, CHANGE_DELETE, record_id))
        return True

    def allocate_number(self, document_type: str, year: int, seed: int = 0) -> int:
        """
        Atomically allocate the next number for (owner, document_type, year).

        First use inserts the counter at seed + 2 and hands out seed + 1. A
        concurrent first use loses on the unique constraint and falls back to
        the UPDATE path.
        """
        owner_id = self.owner_id

        stmt = (
            update(DocumentSequence)
            .where(
                DocumentSequence.owner_id == owner_id,
                DocumentSequence.document_type == document_type,
                DocumentSequence.year == year,
            )
            .values(next_number=DocumentSequence.next_number + 1)
        )

        def _current() -> int:
            return (
                db.session.query(DocumentSequence.next_number)
                .filter_by(owner_id=owner_id, document_type=document_type, year=year)
                .scalar()
            )

        def _op() -> int:
            result = db.session.execute(stmt)
            if result.rowcount:
                db.session.flush()
                number = _current() - 1
            else:
                seq = DocumentSequence(
                    owner_id=owner_id,
                    document_type=document_type,
                    year=year,
                    next_number=seed + 2,
                )
                db.session.add(seq)
                try:
                    db.session.flush()
                    number = seed + 1
                except IntegrityError:
                    db.session.rollback()
                    result = db.session.execute(stmt)
                    if not result.rowcount:
                        raise
                    db.session.flush()
                    number = _current() - 1
            db.session.commit()
            return number

        try:
            return run_with_retry(_op)
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Failed to allocate %s number for owner %s: %s", document_type, owner_id, exc)
            raise PersistenceError(f"Failed to allocate {document_type} number") from exc
