# Overview: Local JSON-file record adapter (offline mode); one document per owning user.

"""
JSON File Record Store

Layout of <base_path>/owner_<id>.json:

    {
      "vendors": [...], "customers": [...], "purchase_orders": [...], "sale_orders": [...],
      "invoices": [...], "expenses": [...], "payments": [...],
      "_sequences": {"PURCHASE_ORDER:2025": 2, "SALE_ORDER:2025": 4, "INVOICE:2025": 9}
    }

Every write replaces the whole file: the new document is written to a temp
file in the same directory and renamed over the old one, so a crash leaves
either the old or the new file, never a torn one.

Dates are written as ISO strings and re-parsed into date / datetime objects
on load, per the DATE_FIELDS declaration.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import date, datetime

from ..time_utils import parse_iso_date, parse_iso_datetime, to_iso_date, to_utc_z, utcnow
from .storage_service import (
    CHANGE_DELETE,
    CHANGE_INSERT,
    CHANGE_UPDATE,
    DATE_FIELDS,
    TIMESTAMP_FIELDS,
    ChangeEvent,
    PersistenceError,
    RecordAdapter,
    check_entity_type,
)


logger = logging.getLogger(__name__)

SEQUENCES_KEY = "_sequences"

# One lock per file path; adapters for the same owner share it.
_file_locks: dict[str, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: str) -> threading.Lock:
    with _file_locks_guard:
        lock = _file_locks.get(path)
        if lock is None:
            lock = threading.Lock()
            _file_locks[path] = lock
        return lock


def _encode_record(entity_type: str, record: dict) -> dict:
    encoded = dict(record)
    for key in DATE_FIELDS[entity_type]:
        value = encoded.get(key)
        if isinstance(value, (date, datetime)):
            encoded[key] = to_iso_date(value)
    for key in TIMESTAMP_FIELDS:
        value = encoded.get(key)
        if isinstance(value, datetime):
            encoded[key] = to_utc_z(value)
    return encoded


def _decode_record(entity_type: str, record: dict) -> dict:
    decoded = dict(record)
    for key in DATE_FIELDS[entity_type]:
        value = decoded.get(key)
        if isinstance(value, str):
            decoded[key] = parse_iso_date(value)
    for key in TIMESTAMP_FIELDS:
        value = decoded.get(key)
        if isinstance(value, str):
            decoded[key] = parse_iso_datetime(value)
    return decoded


class JsonFileAdapter(RecordAdapter):
    """Owner-scoped adapter over a single local JSON document."""

    def __init__(self, owner_id: int, base_path: str):
        super().__init__(owner_id)
        self.base_path = base_path
        self.path = os.path.join(base_path, f"owner_{owner_id}.json")
        self._lock = _lock_for(os.path.abspath(self.path))

    # -------------------------------------------------------------------------
    # File I/O
    # -------------------------------------------------------------------------

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error("Unreadable record file %s: %s", self.path, exc)
            raise PersistenceError(f"Failed to read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"Corrupt record file {self.path}: top level is not an object")
        return data

    def _write(self, data: dict) -> None:
        try:
            os.makedirs(self.base_path, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".owner_", suffix=".tmp", dir=self.base_path)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, indent=2, sort_keys=True)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as exc:
            raise PersistenceError(f"Failed to write {self.path}: {exc}") from exc

    def _collection(self, data: dict, entity_type: str) -> list[dict]:
        collection = data.setdefault(entity_type, [])
        if not isinstance(collection, list):
            raise PersistenceError(f"Corrupt record file {self.path}: {entity_type} is not a list")
        return collection

    # -------------------------------------------------------------------------
    # RecordAdapter
    # -------------------------------------------------------------------------

    def list(self, entity_type: str) -> list[dict]:
        check_entity_type(entity_type)
        with self._lock:
            data = self._read()
        return [_decode_record(entity_type, r) for r in self._collection(data, entity_type)]

    def get(self, entity_type: str, record_id: str) -> dict | None:
        for record in self.list(entity_type):
            if record.get("id") == record_id:
                return record
        return None

    def insert(self, entity_type: str, record: dict) -> str:
        check_entity_type(entity_type)
        stored = dict(record)
        stored["owner_id"] = self.owner_id
        stored.setdefault("created_at", utcnow())

        with self._lock:
            data = self._read()
            collection = self._collection(data, entity_type)
            if any(r.get("id") == stored["id"] for r in collection):
                raise PersistenceError(f"Duplicate {entity_type} id {stored['id']}")
            collection.append(_encode_record(entity_type, stored))
            self._write(data)

        self.publish(ChangeEvent(entity_type, CHANGE_INSERT, stored["id"], stored))
        return stored["id"]

    def update(self, entity_type: str, record_id: str, fields: dict) -> bool:
        check_entity_type(entity_type)
        changes = {k: v for k, v in fields.items() if k not in ("id", "owner_id", "created_at")}

        with self._lock:
            data = self._read()
            collection = self._collection(data, entity_type)
            for index, existing in enumerate(collection):
                if existing.get("id") == record_id:
                    merged = _decode_record(entity_type, existing)
                    merged.update(changes)
                    collection[index] = _encode_record(entity_type, merged)
                    break
            else:
                return False
            self._write(data)

        self.publish(ChangeEvent(entity_type, CHANGE_UPDATE, record_id, merged))
        return True

    def delete(self, entity_type: str, record_id: str) -> bool:
        check_entity_type(entity_type)
        with self._lock:
            data = self._read()
            collection = self._collection(data, entity_type)
            remaining = [r for r in collection if r.get("id") != record_id]
            if len(remaining) == len(collection):
                return False
            data[entity_type] = remaining
            self._write(data)

        self.publish(ChangeEvent(entity_type, CHANGE_DELETE, record_id))
        return True

    def allocate_number(self, document_type: str, year: int, seed: int = 0) -> int:
        key = f"{document_type}:{year}"
        with self._lock:
            data = self._read()
            sequences = data.setdefault(SEQUENCES_KEY, {})
            number = sequences.get(key, seed + 1)
            sequences[key] = number + 1
            self._write(data)
        return number

