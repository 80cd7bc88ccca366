# Overview: CSV export of record collections and CSV import of vendors, customers and expenses.

"""
Spreadsheet Exchange

Export writes one collection with its derived fields exactly as computed;
nothing is recalculated on the way out. Import accepts the flat entity types
only (vendors, customers, expenses): each row is validated like an API body
and added through the RecordStore, so numbering, notifications and
persistence behave exactly as for a manual create. A bad row is reported and
skipped; it never aborts the rest of the file.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import date, datetime

from ..time_utils import to_iso_date, to_utc_z
from ..validation import VALIDATORS, ValidationError
from .document_service import number_field
from .record_store import RecordStore
from .sql_storage import ENTITY_MODELS
from .storage_service import (
    ENTITY_CUSTOMERS,
    ENTITY_EXPENSES,
    ENTITY_VENDORS,
    PersistenceError,
    check_entity_type,
)


logger = logging.getLogger(__name__)

IMPORTABLE_TYPES = [ENTITY_VENDORS, ENTITY_CUSTOMERS, ENTITY_EXPENSES]


class ExportError(Exception):
    """Raised for an export or import request that cannot be served."""
    pass


def export_columns(entity_type: str) -> list[str]:
    check_entity_type(entity_type)
    columns = ["id"]
    numbered = number_field(entity_type)
    columns += [f for f in ENTITY_MODELS[entity_type].RECORD_FIELDS if f != numbered]
    if numbered:
        columns.insert(1, numbered)
    columns.append("created_at")
    return columns


def _cell(value):
    if value is None:
        return ""
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return to_iso_date(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True)
    return value


def export_csv(entity_type: str, records: list[dict]) -> str:
    columns = export_columns(entity_type)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow({column: _cell(record.get(column)) for column in columns})
    return buffer.getvalue()


def import_csv(store: RecordStore, entity_type: str, text: str) -> dict:
    """
    Add every valid row; returns {"imported": n, "errors": [{row, field, error}]}.

    Row numbers are 1-based data rows (the header is row 0).
    """
    if entity_type not in IMPORTABLE_TYPES:
        raise ExportError(f"Import is not supported for {entity_type}")
    if not text or not text.strip():
        raise ExportError("CSV body is empty")

    validate = VALIDATORS[entity_type]
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames:
        raise ExportError("CSV header row is missing")

    imported = 0
    errors: list[dict] = []

    for row_number, row in enumerate(reader, start=1):
        payload = {
            (key or "").strip(): value
            for key, value in row.items()
            if key and value is not None and value != ""
        }
        try:
            fields = validate(payload, partial=False)
        except ValidationError as e:
            errors.append({"row": row_number, "field": e.field, "error": str(e)})
            continue

        try:
            store.add(entity_type, fields)
        except PersistenceError:
            logger.exception("Import of %s row %s failed", entity_type, row_number)
            errors.append({"row": row_number, "field": None, "error": "Failed to save row"})
            # Storage is down; the remaining rows would fail the same way
            break
        imported += 1

    logger.info("Imported %s %s (%s rejected)", imported, entity_type, len(errors))
    return {"imported": imported, "errors": errors}
