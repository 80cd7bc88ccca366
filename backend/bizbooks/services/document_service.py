# Overview: Human-readable document numbers for purchase orders, sale orders and invoices.

from __future__ import annotations

from .derivation_service import format_document_number
from .storage_service import ENTITY_INVOICES, ENTITY_PURCHASE_ORDERS, ENTITY_SALE_ORDERS, RecordAdapter


class DocumentSequenceError(Exception):
    """Raised when a document number is requested for an unnumbered entity type."""
    pass


# entity type -> (counter document_type, number prefix, record field)
NUMBERED_DOCUMENTS = {
    ENTITY_PURCHASE_ORDERS: ("PURCHASE_ORDER", "PO", "po_number"),
    ENTITY_SALE_ORDERS: ("SALE_ORDER", "SO", "order_number"),
    ENTITY_INVOICES: ("INVOICE", "INV", "invoice_number"),
}


def number_field(entity_type: str) -> str | None:
    entry = NUMBERED_DOCUMENTS.get(entity_type)
    return entry[2] if entry else None


def next_document_number(
    adapter: RecordAdapter,
    *,
    entity_type: str,
    year: int,
    existing_count: int,
) -> str:
    """
    Allocate the next number, e.g. "SO-2025-004".

    The counter is seeded from `existing_count` on first use in a year, so an
    owner with three orders and no deletions gets sequence 4. After that the
    counter only moves forward: deleting a document never frees its number.
    """
    entry = NUMBERED_DOCUMENTS.get(entity_type)
    if entry is None:
        raise DocumentSequenceError(f"{entity_type} has no document numbers")
    document_type, prefix, _field = entry

    sequence = adapter.allocate_number(document_type, year, seed=existing_count)
    return format_document_number(prefix, year, sequence)
