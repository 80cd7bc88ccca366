# Overview: Orchestration layer for record mutations; derive, persist, then update memory and notify.

"""
Record Store

WHY: Every mutation follows the same sequence, and the order matters:

    clean input -> assign id / number -> derive -> persist -> memory -> notify

Memory is only touched after the adapter accepted the write, so a failed
write never leaves the in-memory view ahead of storage.

DESIGN:
- One explicit RecordStore per owner (per request in the API, per command in
  the CLI). Nothing here is a module-level singleton.
- Collections are loaded lazily, one entity type at a time.
- Invoice status and days_delayed depend on today's date, so invoices are
  re-derived on every read. A stored status is never trusted.
- Recording a payment is the only cross-record effect: the linked invoice's
  amount_received_cents moves by the payment amount, through update_invoice,
  so the invoice is re-derived like any other edit.
- Payment + invoice adjustment is two writes, not one transaction. If the
  second write fails the first is undone before the error propagates, so a
  retry never counts the same money twice.
- An invoice linked to a purchase order (po_id) takes its po_number and
  po_date from that order unless the caller sent them.
- A store built without an adapter (no signed-in owner) reads as empty and
  ignores writes.
"""

from __future__ import annotations

import copy
import logging
import uuid
from datetime import date
from typing import Callable

from ..time_utils import local_today, utcnow
from .derivation_service import (
    INVOICE_DERIVED_FIELDS,
    PURCHASE_ORDER_DERIVED_FIELDS,
    SALE_ORDER_DERIVED_FIELDS,
    derive_invoice,
    derive_purchase_order,
    derive_sale_order,
    format_amount,
)
from .document_service import NUMBERED_DOCUMENTS, next_document_number, number_field
from .notification_service import LoggingNotifier, Notifier
from .storage_service import (
    CHANGE_DELETE,
    ENTITY_CUSTOMERS,
    ENTITY_EXPENSES,
    ENTITY_INVOICES,
    ENTITY_PAYMENTS,
    ENTITY_PURCHASE_ORDERS,
    ENTITY_SALE_ORDERS,
    ENTITY_TYPES,
    ENTITY_VENDORS,
    ChangeEvent,
    PersistenceError,
    RecordAdapter,
    check_entity_type,
)


logger = logging.getLogger(__name__)


ENTITY_LABELS = {
    ENTITY_VENDORS: "Vendor",
    ENTITY_CUSTOMERS: "Customer",
    ENTITY_PURCHASE_ORDERS: "Purchase order",
    ENTITY_SALE_ORDERS: "Sale order",
    ENTITY_INVOICES: "Invoice",
    ENTITY_EXPENSES: "Expense",
    ENTITY_PAYMENTS: "Payment",
}

DERIVED_FIELDS = {
    ENTITY_PURCHASE_ORDERS: PURCHASE_ORDER_DERIVED_FIELDS,
    ENTITY_SALE_ORDERS: SALE_ORDER_DERIVED_FIELDS,
    ENTITY_INVOICES: INVOICE_DERIVED_FIELDS,
}

IMMUTABLE_FIELDS = ("id", "owner_id", "created_at")


class RecordNotFoundError(Exception):
    """Raised when an update, delete or get names an id the owner does not have."""

    def __init__(self, entity_type: str, record_id: str):
        super().__init__(f"{ENTITY_LABELS.get(entity_type, entity_type)} {record_id} not found")
        self.entity_type = entity_type
        self.record_id = record_id


class RecordStore:
    """
    In-memory view of one owner's records over a persistence adapter.

    Args:
        adapter: Owner-bound adapter, or None when nobody is signed in
        notifier: Receives one success or error message per mutation
        today: Callable returning today's calendar date (injected for tests)
    """

    def __init__(
        self,
        adapter: RecordAdapter | None,
        notifier: Notifier | None = None,
        today: Callable[[], date] = local_today,
    ):
        self.adapter = adapter
        self.notifier = notifier or LoggingNotifier()
        self.today = today
        self._collections: dict[str, list[dict]] = {}

    @property
    def owner_id(self) -> int | None:
        return self.adapter.owner_id if self.adapter is not None else None

    # =========================================================================
    # Internals
    # =========================================================================

    def _derive(self, entity_type: str, record: dict) -> dict:
        if entity_type == ENTITY_INVOICES:
            return derive_invoice(record, self.today())
        if entity_type == ENTITY_SALE_ORDERS:
            return derive_sale_order(record)
        if entity_type == ENTITY_PURCHASE_ORDERS:
            return derive_purchase_order(record)
        return dict(record)

    def _collection(self, entity_type: str) -> list[dict]:
        check_entity_type(entity_type)
        if self.adapter is None:
            return []
        if entity_type not in self._collections:
            try:
                loaded = self.adapter.list(entity_type)
            except PersistenceError:
                self.notifier.notify_error(f"Failed to load {entity_type.replace('_', ' ')}")
                raise
            self._collections[entity_type] = [self._derive(entity_type, r) for r in loaded]
        return self._collections[entity_type]

    def _index_of(self, entity_type: str, record_id: str) -> int | None:
        for index, record in enumerate(self._collection(entity_type)):
            if record.get("id") == record_id:
                return index
        return None

    def _peek(self, entity_type: str, record_id: str | None) -> dict | None:
        if not record_id:
            return None
        index = self._index_of(entity_type, record_id)
        if index is None:
            return None
        return self._collection(entity_type)[index]

    def _find(self, entity_type: str, record_id: str) -> dict:
        record = self._peek(entity_type, record_id)
        if record is None:
            raise RecordNotFoundError(entity_type, record_id)
        return record

    def _upsert(self, entity_type: str, record: dict) -> None:
        collection = self._collection(entity_type)
        index = self._index_of(entity_type, record["id"])
        if index is None:
            collection.append(record)
        else:
            collection[index] = record

    def _remove(self, entity_type: str, record_id: str) -> None:
        index = self._index_of(entity_type, record_id)
        if index is not None:
            del self._collection(entity_type)[index]

    def _clean_input(self, entity_type: str, fields: dict) -> dict:
        dropped = set(IMMUTABLE_FIELDS) | set(DERIVED_FIELDS.get(entity_type, ()))
        numbered = number_field(entity_type)
        if numbered:
            dropped.add(numbered)
        cleaned = {k: copy.deepcopy(v) for k, v in (fields or {}).items() if k not in dropped}
        for line in cleaned.get("line_items") or []:
            if not line.get("id"):
                line["id"] = uuid.uuid4().hex
        return cleaned

    def _read_view(self, entity_type: str, record: dict) -> dict:
        # Status and delinquency move with the calendar.
        if entity_type == ENTITY_INVOICES:
            return copy.deepcopy(derive_invoice(record, self.today()))
        return copy.deepcopy(record)

    def _describe(self, entity_type: str, record: dict) -> str:
        label = ENTITY_LABELS[entity_type]
        numbered = number_field(entity_type)
        if numbered and record.get(numbered):
            return f"{label} {record[numbered]}"
        if record.get("name"):
            return f"{label} {record['name']}"
        return label

    # =========================================================================
    # Generic mutations
    # =========================================================================

    def _add(self, entity_type: str, fields: dict, *, quiet: bool = False) -> dict | None:
        check_entity_type(entity_type)
        if self.adapter is None:
            logger.warning("Ignoring %s create without a signed-in owner", entity_type)
            return None

        record = self._clean_input(entity_type, fields)
        record["id"] = uuid.uuid4().hex
        record["owner_id"] = self.adapter.owner_id
        record["created_at"] = utcnow()

        try:
            if entity_type in NUMBERED_DOCUMENTS:
                record[number_field(entity_type)] = next_document_number(
                    self.adapter,
                    entity_type=entity_type,
                    year=self.today().year,
                    existing_count=len(self._collection(entity_type)),
                )
            record = self._derive(entity_type, record)
            self.adapter.insert(entity_type, record)
        except PersistenceError:
            self.notifier.notify_error(f"Failed to create {ENTITY_LABELS[entity_type].lower()}")
            raise

        self._upsert(entity_type, record)
        if not quiet:
            self.notifier.notify_success(f"{self._describe(entity_type, record)} created")
        return self._read_view(entity_type, record)

    def _update(self, entity_type: str, record_id: str, fields: dict, *, quiet: bool = False) -> dict | None:
        check_entity_type(entity_type)
        if self.adapter is None:
            logger.warning("Ignoring %s update without a signed-in owner", entity_type)
            return None

        current = self._find(entity_type, record_id)
        merged = dict(current)
        merged.update(self._clean_input(entity_type, fields))
        merged = self._derive(entity_type, merged)

        persisted = {k: v for k, v in merged.items() if k not in IMMUTABLE_FIELDS}
        try:
            found = self.adapter.update(entity_type, record_id, persisted)
        except PersistenceError:
            self.notifier.notify_error(f"Failed to update {self._describe(entity_type, current).lower()}")
            raise
        if not found:
            # Removed behind our back (another session); resync memory.
            self._remove(entity_type, record_id)
            raise RecordNotFoundError(entity_type, record_id)

        self._upsert(entity_type, merged)
        if not quiet:
            self.notifier.notify_success(f"{self._describe(entity_type, merged)} updated")
        return self._read_view(entity_type, merged)

    def _delete(self, entity_type: str, record_id: str, *, quiet: bool = False) -> bool:
        check_entity_type(entity_type)
        if self.adapter is None:
            logger.warning("Ignoring %s delete without a signed-in owner", entity_type)
            return False

        current = self._find(entity_type, record_id)
        try:
            found = self.adapter.delete(entity_type, record_id)
        except PersistenceError:
            self.notifier.notify_error(f"Failed to delete {self._describe(entity_type, current).lower()}")
            raise

        self._remove(entity_type, record_id)
        if not found:
            raise RecordNotFoundError(entity_type, record_id)

        if not quiet:
            self.notifier.notify_success(f"{self._describe(entity_type, current)} deleted")
        return True

    def _get(self, entity_type: str, record_id: str) -> dict:
        return self._read_view(entity_type, self._find(entity_type, record_id))

    def _list(self, entity_type: str) -> list[dict]:
        return [self._read_view(entity_type, r) for r in self._collection(entity_type)]

    # Public generic entry points (used by the CSV importer and the API)

    def add(self, entity_type: str, fields: dict) -> dict | None:
        return getattr(self, f"add_{_singular(entity_type)}")(fields)

    def update(self, entity_type: str, record_id: str, fields: dict) -> dict | None:
        return getattr(self, f"update_{_singular(entity_type)}")(record_id, fields)

    def delete(self, entity_type: str, record_id: str) -> bool:
        return getattr(self, f"delete_{_singular(entity_type)}")(record_id)

    def get(self, entity_type: str, record_id: str) -> dict:
        return self._get(entity_type, record_id)

    def list(self, entity_type: str) -> list[dict]:
        return self._list(entity_type)

    # =========================================================================
    # Vendors
    # =========================================================================

    def add_vendor(self, fields: dict) -> dict | None:
        return self._add(ENTITY_VENDORS, fields)

    def update_vendor(self, record_id: str, fields: dict) -> dict | None:
        return self._update(ENTITY_VENDORS, record_id, fields)

    def delete_vendor(self, record_id: str) -> bool:
        # Invoices keep their vendor_name snapshot; references are not checked.
        return self._delete(ENTITY_VENDORS, record_id)

    def get_vendor(self, record_id: str) -> dict:
        return self._get(ENTITY_VENDORS, record_id)

    def list_vendors(self) -> list[dict]:
        return self._list(ENTITY_VENDORS)

    # =========================================================================
    # Customers
    # =========================================================================

    def add_customer(self, fields: dict) -> dict | None:
        return self._add(ENTITY_CUSTOMERS, fields)

    def update_customer(self, record_id: str, fields: dict) -> dict | None:
        return self._update(ENTITY_CUSTOMERS, record_id, fields)

    def delete_customer(self, record_id: str) -> bool:
        return self._delete(ENTITY_CUSTOMERS, record_id)

    def get_customer(self, record_id: str) -> dict:
        return self._get(ENTITY_CUSTOMERS, record_id)

    def list_customers(self) -> list[dict]:
        return self._list(ENTITY_CUSTOMERS)

    # =========================================================================
    # Purchase orders
    # =========================================================================

    def add_purchase_order(self, fields: dict) -> dict | None:
        fields = dict(fields or {})
        fields.setdefault("status", "Created")
        fields.setdefault("advance_paid_cents", 0)
        vendor = self._peek(ENTITY_VENDORS, fields.get("vendor_id"))
        if vendor and not fields.get("vendor_name"):
            fields["vendor_name"] = vendor["name"]
        return self._add(ENTITY_PURCHASE_ORDERS, fields)

    def update_purchase_order(self, record_id: str, fields: dict) -> dict | None:
        return self._update(ENTITY_PURCHASE_ORDERS, record_id, fields)

    def delete_purchase_order(self, record_id: str) -> bool:
        # Linked invoices keep their po_number / po_date snapshot.
        return self._delete(ENTITY_PURCHASE_ORDERS, record_id)

    def get_purchase_order(self, record_id: str) -> dict:
        return self._get(ENTITY_PURCHASE_ORDERS, record_id)

    def list_purchase_orders(self) -> list[dict]:
        return self._list(ENTITY_PURCHASE_ORDERS)

    # =========================================================================
    # Sale orders
    # =========================================================================

    def add_sale_order(self, fields: dict) -> dict | None:
        fields = dict(fields or {})
        fields.setdefault("status", "Draft")
        customer = self._peek(ENTITY_CUSTOMERS, fields.get("customer_id"))
        if customer and not fields.get("customer_name"):
            fields["customer_name"] = customer["name"]
        return self._add(ENTITY_SALE_ORDERS, fields)

    def update_sale_order(self, record_id: str, fields: dict) -> dict | None:
        return self._update(ENTITY_SALE_ORDERS, record_id, fields)

    def delete_sale_order(self, record_id: str) -> bool:
        return self._delete(ENTITY_SALE_ORDERS, record_id)

    def get_sale_order(self, record_id: str) -> dict:
        return self._get(ENTITY_SALE_ORDERS, record_id)

    def list_sale_orders(self) -> list[dict]:
        return self._list(ENTITY_SALE_ORDERS)

    # =========================================================================
    # Invoices
    # =========================================================================

    def _link_purchase_order(self, fields: dict, keys=("po_number", "po_date", "vendor_id", "vendor_name")) -> dict:
        po = self._peek(ENTITY_PURCHASE_ORDERS, fields.get("po_id"))
        if po is None:
            return fields
        for key in keys:
            if not fields.get(key):
                fields[key] = po.get(key)
        return fields

    def add_invoice(self, fields: dict) -> dict | None:
        fields = self._link_purchase_order(dict(fields or {}))
        fields.setdefault("amount_received_cents", 0)
        vendor = self._peek(ENTITY_VENDORS, fields.get("vendor_id"))
        if vendor and not fields.get("vendor_name"):
            fields["vendor_name"] = vendor["name"]
        return self._add(ENTITY_INVOICES, fields)

    def update_invoice(self, record_id: str, fields: dict) -> dict | None:
        fields = dict(fields or {})
        if fields.get("po_id"):
            fields = self._link_purchase_order(fields, keys=("po_number", "po_date"))
        return self._update(ENTITY_INVOICES, record_id, fields)

    def delete_invoice(self, record_id: str) -> bool:
        # Payments against it stay on file as orphans.
        return self._delete(ENTITY_INVOICES, record_id)

    def get_invoice(self, record_id: str) -> dict:
        return self._get(ENTITY_INVOICES, record_id)

    def list_invoices(self) -> list[dict]:
        return self._list(ENTITY_INVOICES)

    # =========================================================================
    # Expenses
    # =========================================================================

    def add_expense(self, fields: dict) -> dict | None:
        fields = dict(fields or {})
        fields.setdefault("status", "Paid")
        return self._add(ENTITY_EXPENSES, fields)

    def update_expense(self, record_id: str, fields: dict) -> dict | None:
        return self._update(ENTITY_EXPENSES, record_id, fields)

    def delete_expense(self, record_id: str) -> bool:
        return self._delete(ENTITY_EXPENSES, record_id)

    def get_expense(self, record_id: str) -> dict:
        return self._get(ENTITY_EXPENSES, record_id)

    def list_expenses(self) -> list[dict]:
        return self._list(ENTITY_EXPENSES)

    # =========================================================================
    # Payments
    # =========================================================================

    def _adjust_received(self, invoice_id: str | None, delta_cents: int) -> bool:
        """Move an invoice's amount received; False when nothing was written."""
        if not delta_cents:
            return False
        invoice = self._peek(ENTITY_INVOICES, invoice_id)
        if invoice is None:
            logger.warning("Payment references missing invoice %s; no balance adjusted", invoice_id)
            return False
        self._update(
            ENTITY_INVOICES,
            invoice_id,
            {"amount_received_cents": (invoice.get("amount_received_cents") or 0) + delta_cents},
            quiet=True,
        )
        return True

    def _apply_adjustments(self, adjustments: list[tuple[str | None, int]]) -> None:
        """Apply balance moves in order. If one fails, the ones already applied are reversed."""
        applied = []
        try:
            for invoice_id, delta in adjustments:
                if self._adjust_received(invoice_id, delta):
                    applied.append((invoice_id, delta))
        except PersistenceError:
            for invoice_id, delta in reversed(applied):
                self._compensate(f"balance move on invoice {invoice_id}", self._adjust_received, invoice_id, -delta)
            raise

    def _compensate(self, action: str, undo: Callable, *args, **kwargs) -> None:
        # Runs while the original PersistenceError is propagating; that error wins.
        try:
            undo(*args, **kwargs)
        except (PersistenceError, RecordNotFoundError):
            logger.exception("Could not undo %s; payment and invoice balances may disagree", action)

    def _snapshot_invoice(self, fields: dict, *, clear_missing: bool = False) -> dict:
        invoice = self._peek(ENTITY_INVOICES, fields.get("invoice_id"))
        if invoice is not None:
            fields["invoice_number"] = invoice.get("invoice_number")
            fields["vendor_name"] = invoice.get("vendor_name")
        elif clear_missing:
            fields["invoice_number"] = None
            fields["vendor_name"] = None
        return fields

    def add_payment(self, fields: dict) -> dict | None:
        """
        Record a payment and add its amount to the linked invoice.

        A payment naming an unknown invoice is still recorded (an orphan);
        nothing else changes. If the invoice cannot be updated the payment
        is removed again and the error propagates.
        """
        if self.adapter is None:
            return self._add(ENTITY_PAYMENTS, fields)

        fields = self._snapshot_invoice(dict(fields or {}))
        payment = self._add(ENTITY_PAYMENTS, fields, quiet=True)
        try:
            self._adjust_received(payment["invoice_id"], payment.get("amount_cents") or 0)
        except PersistenceError:
            self._compensate(f"payment {payment['id']}", self._delete, ENTITY_PAYMENTS, payment["id"], quiet=True)
            raise

        logger.info(
            "Payment %s of %s recorded against invoice %s",
            payment["id"], format_amount(payment.get("amount_cents") or 0), payment["invoice_id"],
        )
        self.notifier.notify_success(f"{self._describe(ENTITY_PAYMENTS, payment)} created")
        return payment

    def update_payment(self, record_id: str, fields: dict) -> dict | None:
        """
        Edit a payment. The invoice balance moves by the amount delta; when
        the payment is re-pointed at another invoice the old amount leaves the
        old invoice and the new amount lands on the new one. Re-pointing at an
        unknown invoice clears the invoice snapshots.

        If a balance move fails, the payment edit is reverted.
        """
        if self.adapter is None:
            return self._update(ENTITY_PAYMENTS, record_id, fields)

        old = copy.deepcopy(self._find(ENTITY_PAYMENTS, record_id))
        fields = dict(fields or {})
        if fields.get("invoice_id") and fields["invoice_id"] != old.get("invoice_id"):
            fields = self._snapshot_invoice(fields, clear_missing=True)

        payment = self._update(ENTITY_PAYMENTS, record_id, fields, quiet=True)

        old_amount = old.get("amount_cents") or 0
        new_amount = payment.get("amount_cents") or 0
        if payment["invoice_id"] == old.get("invoice_id"):
            adjustments = [(payment["invoice_id"], new_amount - old_amount)]
        else:
            adjustments = [(old.get("invoice_id"), -old_amount), (payment["invoice_id"], new_amount)]

        try:
            self._apply_adjustments(adjustments)
        except PersistenceError:
            restore = {k: old.get(k) for k in payment if k not in IMMUTABLE_FIELDS}
            self._compensate(f"payment {record_id} edit", self._update, ENTITY_PAYMENTS, record_id, restore, quiet=True)
            raise

        self.notifier.notify_success(f"{self._describe(ENTITY_PAYMENTS, payment)} updated")
        return payment

    def delete_payment(self, record_id: str) -> bool:
        """
        Subtract the payment from its invoice, then remove the payment.

        If the payment cannot be removed the invoice gets its amount back, so
        retrying a failed delete never subtracts twice.
        """
        if self.adapter is None:
            return self._delete(ENTITY_PAYMENTS, record_id)

        payment = self._find(ENTITY_PAYMENTS, record_id)
        invoice_id = payment.get("invoice_id")
        amount = payment.get("amount_cents") or 0

        adjusted = self._adjust_received(invoice_id, -amount)
        try:
            return self._delete(ENTITY_PAYMENTS, record_id)
        except PersistenceError:
            if adjusted:
                self._compensate(f"balance move on invoice {invoice_id}", self._adjust_received, invoice_id, amount)
            raise

    def get_payment(self, record_id: str) -> dict:
        return self._get(ENTITY_PAYMENTS, record_id)

    def list_payments(self) -> list[dict]:
        return self._list(ENTITY_PAYMENTS)

    def payments_for_invoice(self, invoice_id: str) -> list[dict]:
        return [p for p in self._list(ENTITY_PAYMENTS) if p.get("invoice_id") == invoice_id]

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def apply_change(self, event: ChangeEvent) -> None:
        """
        Apply a pushed delta to the matching collection.

        Collections that were never loaded are left alone; they will pick the
        change up from storage on first read.
        """
        if event.entity_type not in self._collections:
            return
        if event.action == CHANGE_DELETE:
            self._remove(event.entity_type, event.record_id)
            return
        if event.record is None:
            logger.warning("Ignoring %s event for %s without a record", event.action, event.record_id)
            return
        self._upsert(event.entity_type, self._derive(event.entity_type, copy.deepcopy(event.record)))

    def follow_changes(self) -> None:
        """
        Subscribe to the adapter's change events.

        For embedders that keep one store alive across many writers (a desktop
        shell or a worker sharing one adapter). The API and the CLI build a
        fresh store per request or command and never call this; they read
        current storage on first access instead.
        """
        if self.adapter is not None:
            self.adapter.subscribe(self.apply_change)

    def refresh(self, entity_type: str | None = None) -> None:
        """Re-pull one entity type (or all) from storage."""
        for name in ([entity_type] if entity_type else ENTITY_TYPES):
            self._collections.pop(check_entity_type(name), None)
            self._collection(name)

    def recompute_derived(self) -> int:
        """
        Re-derive every purchase order, sale order and invoice and write the result back.

        Returns the number of records rewritten.
        """
        count = 0
        for entity_type in (ENTITY_PURCHASE_ORDERS, ENTITY_SALE_ORDERS, ENTITY_INVOICES):
            self.refresh(entity_type)
            for record in list(self._collection(entity_type)):
                self._update(entity_type, record["id"], {}, quiet=True)
                count += 1
        if count:
            self.notifier.notify_success(f"Recomputed {count} records")
        return count


def _singular(entity_type: str) -> str:
    check_entity_type(entity_type)
    return entity_type[:-1]
