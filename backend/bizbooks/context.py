# Overview: Per-request record store and JSON shaping shared by the record routes.

from __future__ import annotations

from datetime import date, datetime

from flask import g

from .services.notification_service import CollectingNotifier
from .services.record_store import RecordStore
from .services.storage_service import get_adapter
from .time_utils import to_iso_date, to_utc_z


def current_store() -> RecordStore:
    """The signed-in owner's RecordStore, built once per request."""
    store = g.get("record_store")
    if store is None:
        user_id = g.get("user_id")
        adapter = get_adapter(user_id) if user_id is not None else None
        store = RecordStore(adapter, CollectingNotifier())
        g.record_store = store
    return store


def serialize(value):
    """Dates as YYYY-MM-DD, timestamps with a Z suffix, containers recursively."""
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return to_iso_date(value)
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


def with_messages(payload: dict) -> dict:
    """Attach (and drain) the notices raised while serving this request."""
    store = g.get("record_store")
    if store is not None and isinstance(store.notifier, CollectingNotifier):
        messages = store.notifier.drain()
        if messages:
            payload["messages"] = messages
    return payload


def item_response(record: dict) -> dict:
    return with_messages({"item": serialize(record)})


def list_response(records: list[dict]) -> dict:
    return with_messages({"items": serialize(records), "count": len(records)})
