# Overview: Persistence adapter contract shared by the JSON-file and SQL record stores.

"""
Record Persistence Contract

WHY: The record store must not care where records live. The offline mode
keeps one JSON document per user; the hosted mode keeps owner-scoped rows.
Both speak the same small interface over plain dict records.

DESIGN:
- An adapter is bound to exactly one owner at construction. It never sees
  another owner's records.
- Failures of the backing store surface as PersistenceError; the adapter
  never retries on its own.
- Adapters publish ChangeEvents to registered listeners after a successful
  write, so a long-lived store can apply remote deltas instead of reloading.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from flask import current_app


logger = logging.getLogger(__name__)


ENTITY_VENDORS = "vendors"
ENTITY_CUSTOMERS = "customers"
ENTITY_PURCHASE_ORDERS = "purchase_orders"
ENTITY_SALE_ORDERS = "sale_orders"
ENTITY_INVOICES = "invoices"
ENTITY_EXPENSES = "expenses"
ENTITY_PAYMENTS = "payments"

ENTITY_TYPES = [
    ENTITY_VENDORS,
    ENTITY_CUSTOMERS,
    ENTITY_PURCHASE_ORDERS,
    ENTITY_SALE_ORDERS,
    ENTITY_INVOICES,
    ENTITY_EXPENSES,
    ENTITY_PAYMENTS,
]

# Calendar-date fields per entity type; stored as ISO strings where the
# backend has no native date type and re-parsed on load.
DATE_FIELDS = {
    ENTITY_VENDORS: (),
    ENTITY_CUSTOMERS: (),
    ENTITY_PURCHASE_ORDERS: ("po_date", "due_date"),
    ENTITY_SALE_ORDERS: ("order_date", "po_date"),
    ENTITY_INVOICES: ("invoice_date", "due_date", "po_date"),
    ENTITY_EXPENSES: ("expense_date",),
    ENTITY_PAYMENTS: ("payment_date",),
}

TIMESTAMP_FIELDS = ("created_at",)

CHANGE_INSERT = "insert"
CHANGE_UPDATE = "update"
CHANGE_DELETE = "delete"


class PersistenceError(Exception):
    """Raised when the backing store fails to read or write."""
    pass


class UnknownEntityTypeError(ValueError):
    """Raised for an entity type name outside ENTITY_TYPES."""
    pass


def check_entity_type(entity_type: str) -> str:
    if entity_type not in ENTITY_TYPES:
        raise UnknownEntityTypeError(f"Unknown entity type: {entity_type}")
    return entity_type


@dataclass
class ChangeEvent:
    """
    One committed change to one record.

    `record` is the full stored record for insert/update and None for delete.
    """
    entity_type: str
    action: str
    record_id: str
    record: dict | None = None


class RecordAdapter(ABC):
    """
    Owner-scoped persistence for the six record collections.

    Subclasses implement the storage operations; listener bookkeeping lives
    here.
    """

    def __init__(self, owner_id: int):
        self.owner_id = owner_id
        self._listeners: list[Callable[[ChangeEvent], None]] = []

    @abstractmethod
    def list(self, entity_type: str) -> list[dict]:
        ...

    @abstractmethod
    def get(self, entity_type: str, record_id: str) -> dict | None:
        ...

    @abstractmethod
    def insert(self, entity_type: str, record: dict) -> str:
        """Store a complete record (id included) and return its id."""

    @abstractmethod
    def update(self, entity_type: str, record_id: str, fields: dict) -> bool:
        """Overwrite the given fields. Returns False if the id is unknown."""

    @abstractmethod
    def delete(self, entity_type: str, record_id: str) -> bool:
        """Remove the record. Returns False if the id is unknown."""

    @abstractmethod
    def allocate_number(self, document_type: str, year: int, seed: int = 0) -> int:
        """
        Atomically hand out the next sequence number for (owner, type, year).

        `seed` is the count of documents that existed before the counter; the
        first allocation returns seed + 1.
        """

    def subscribe(self, listener: Callable[[ChangeEvent], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[ChangeEvent], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: ChangeEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # A failing listener must not undo a committed write
                logger.exception(
                    "Change listener failed for %s %s %s",
                    event.action, event.entity_type, event.record_id,
                )


def get_adapter(owner_id: int) -> RecordAdapter:
    """Build the adapter selected by BIZBOOKS_STORAGE for this owner."""
    backend = current_app.config.get("BIZBOOKS_STORAGE", "sql")

    if backend == "json":
        from .json_storage import JsonFileAdapter
        return JsonFileAdapter(
            owner_id=owner_id,
            base_path=current_app.config["BIZBOOKS_JSON_PATH"],
        )
    if backend == "sql":
        from .sql_storage import SqlAlchemyAdapter
        return SqlAlchemyAdapter(owner_id=owner_id)

    raise ValueError(f"Unsupported BIZBOOKS_STORAGE: {backend}")
