"""
Boundary validation for record payloads.

Every create/update intent coming from an HTTP body or an imported CSV row is
checked here before it reaches the record store. The store itself trusts its
input; the derivation engine never rejects numbers.
"""

from __future__ import annotations
from datetime import date, datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_date, parse_iso_datetime
from .models import Customer, Expense, Invoice, Payment, PurchaseOrder, SaleOrder, Vendor


# Upper bound for any single money field: 99,99,99,999.99 (9,999,999,999 cents)
MAX_AMOUNT_CENTS = 9_999_999_999

MAX_TAX_RATE_BPS = 10_000

PURCHASE_ORDER_STATUSES = ["Created", "Ordered", "Received", "Paid", "Completed"]
SALE_ORDER_STATUSES = ["Draft", "Confirmed", "Dispatched", "Delivered", "Completed"]
EXPENSE_CATEGORIES = ["Travel", "Rent", "Utilities", "Supplies", "Misc"]
EXPENSE_PAYMENT_MODES = ["Cash", "UPI", "Bank Transfer", "Card"]
EXPENSE_STATUSES = ["Paid", "Pending"]
PAYMENT_METHODS = ["Cash", "Bank Transfer", "Check", "Credit Card", "UPI"]


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Per-entity policy:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: frozenset[str] = frozenset()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer", key)
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)", key)
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)", key)
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer", key)
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal", key)
    raise ValidationError(f"{key} must be an integer", key)


def coerce_date(key: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 date (YYYY-MM-DD)", key)
        if parsed is None:
            raise ValidationError(f"{key} must be an ISO-8601 date (YYYY-MM-DD)", key)
        return parsed
    raise ValidationError(f"{key} must be a date", key)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, Date):
        return coerce_date(col.key, value)

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime", col.key)
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime", col.key)
            return dt
        raise ValidationError(f"{col.key} must be a datetime", col.key)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # JSON columns (line_items) are checked by their own rules
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    Keys outside the allowlist (ids, document numbers, derived totals) are
    dropped silently; clients routinely echo back whole records.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", missing[0])

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        if raw is None or (isinstance(raw, str) and not raw.strip() and not isinstance(col.type, (String, Text))):
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", k)
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank", k)

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}", k)

        patch[k] = val

    return patch


# =============================================================================
# BUSINESS RULES
# =============================================================================

def _require_amount(patch: dict, key: str) -> None:
    if key not in patch or patch[key] is None:
        return
    amount = patch[key]
    if amount < 0:
        raise ValidationError(f"{key} must be >= 0", key)
    if amount > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT_CENTS}", key)


def _require_choice(patch: dict, key: str, choices: list[str]) -> None:
    if key in patch and patch[key] is not None and patch[key] not in choices:
        raise ValidationError(f"{key} must be one of: {', '.join(choices)}", key)


def validate_line_item(raw: Any, index: int) -> dict:
    """
    One PO / SO / invoice line. Only inputs are kept: balance, tax and line
    total are derived downstream.
    """
    prefix = f"line_items[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"{prefix} must be an object", "line_items")

    particulars = str(raw.get("particulars") or "").strip()
    if not particulars:
        raise ValidationError(f"{prefix}.particulars is required", "line_items")

    line = {"particulars": particulars}
    if raw.get("id"):
        line["id"] = str(raw["id"])

    for key in ("ordered_qty", "dispatched_qty", "basic_amount_cents", "tax_rate_bps"):
        value = raw.get(key)
        line[key] = 0 if value is None or value == "" else coerce_int(f"{prefix}.{key}", value)
        if line[key] < 0:
            raise ValidationError(f"{prefix}.{key} must be >= 0", "line_items")

    if line["basic_amount_cents"] > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{prefix}.basic_amount_cents cannot exceed {MAX_AMOUNT_CENTS}", "line_items")
    if line["tax_rate_bps"] > MAX_TAX_RATE_BPS:
        raise ValidationError(f"{prefix}.tax_rate_bps must be between 0 and {MAX_TAX_RATE_BPS}", "line_items")
    if line["dispatched_qty"] > line["ordered_qty"]:
        raise ValidationError(f"{prefix}.dispatched_qty cannot exceed ordered_qty", "line_items")

    return line


def validate_line_items(raw: Any, *, require_one: bool) -> list[dict]:
    if raw is None:
        raw = []
    if not isinstance(raw, list):
        raise ValidationError("line_items must be a list", "line_items")
    if require_one and not raw:
        raise ValidationError("At least one line item is required", "line_items")
    return [validate_line_item(item, i) for i, item in enumerate(raw)]


# =============================================================================
# PER-ENTITY ENTRY POINTS
# =============================================================================

PARTY_FIELDS = {"name", "contact_person", "email", "phone", "tax_id", "payment_terms_days"}

VENDOR_POLICY = ModelValidationPolicy(
    writable_fields=PARTY_FIELDS,
    required_on_create={"name"},
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields=PARTY_FIELDS | {"address"},
    required_on_create={"name"},
)

PURCHASE_ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "vendor_id", "vendor_name", "po_date", "due_date",
        "line_items", "advance_paid_cents", "status", "notes",
    },
    required_on_create={"vendor_name", "po_date"},
)

SALE_ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "customer_name", "order_date",
        "po_number", "po_date", "line_items", "status", "notes",
    },
    required_on_create={"customer_name", "order_date"},
)

INVOICE_POLICY = ModelValidationPolicy(
    writable_fields={
        "vendor_id", "vendor_name", "invoice_date", "due_date",
        "po_id", "po_number", "po_date", "line_items",
        "transportation_cents", "discount_cents", "amount_received_cents",
    },
    required_on_create={"vendor_name", "invoice_date", "due_date"},
)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={
        "expense_date", "category", "description", "amount_cents",
        "payment_mode", "status", "attachment",
    },
    required_on_create={"expense_date", "category", "description", "amount_cents", "payment_mode"},
)

PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "invoice_id", "payment_date", "amount_cents", "method",
        "reference_number", "remarks",
    },
    required_on_create={"invoice_id", "payment_date", "amount_cents", "method"},
)


def _validate_party(model, policy, payload: dict, partial: bool) -> dict:
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=partial)
    if patch.get("payment_terms_days") is not None and patch["payment_terms_days"] < 0:
        raise ValidationError("payment_terms_days must be >= 0", "payment_terms_days")
    if "email" in patch and patch["email"] and "@" not in patch["email"]:
        raise ValidationError("email is not a valid address", "email")
    return patch


def validate_vendor(payload: dict, *, partial: bool = False) -> dict:
    return _validate_party(Vendor, VENDOR_POLICY, payload, partial)


def validate_customer(payload: dict, *, partial: bool = False) -> dict:
    return _validate_party(Customer, CUSTOMER_POLICY, payload, partial)


def validate_purchase_order(payload: dict, *, partial: bool = False) -> dict:
    patch = validate_payload(model=PurchaseOrder, payload=payload, policy=PURCHASE_ORDER_POLICY, partial=partial)
    if "line_items" in payload or not partial:
        patch["line_items"] = validate_line_items(payload.get("line_items"), require_one=True)
    _require_amount(patch, "advance_paid_cents")
    _require_choice(patch, "status", PURCHASE_ORDER_STATUSES)
    po_date = patch.get("po_date")
    due_date = patch.get("due_date")
    if po_date and due_date and due_date < po_date:
        raise ValidationError("due_date cannot be before po_date", "due_date")
    return patch


def validate_sale_order(payload: dict, *, partial: bool = False) -> dict:
    patch = validate_payload(model=SaleOrder, payload=payload, policy=SALE_ORDER_POLICY, partial=partial)
    if "line_items" in payload or not partial:
        patch["line_items"] = validate_line_items(payload.get("line_items"), require_one=False)
    _require_choice(patch, "status", SALE_ORDER_STATUSES)
    return patch


def validate_invoice(payload: dict, *, partial: bool = False) -> dict:
    patch = validate_payload(model=Invoice, payload=payload, policy=INVOICE_POLICY, partial=partial)
    if "line_items" in payload or not partial:
        patch["line_items"] = validate_line_items(payload.get("line_items"), require_one=True)
    for key in ("transportation_cents", "discount_cents", "amount_received_cents"):
        _require_amount(patch, key)
    invoice_date = patch.get("invoice_date")
    due_date = patch.get("due_date")
    if invoice_date and due_date and due_date < invoice_date:
        raise ValidationError("due_date cannot be before invoice_date", "due_date")
    return patch


def validate_expense(payload: dict, *, partial: bool = False) -> dict:
    patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=partial)
    _require_amount(patch, "amount_cents")
    _require_choice(patch, "category", EXPENSE_CATEGORIES)
    _require_choice(patch, "payment_mode", EXPENSE_PAYMENT_MODES)
    _require_choice(patch, "status", EXPENSE_STATUSES)
    return patch


def validate_payment(payload: dict, *, partial: bool = False) -> dict:
    patch = validate_payload(model=Payment, payload=payload, policy=PAYMENT_POLICY, partial=partial)
    _require_amount(patch, "amount_cents")
    if patch.get("amount_cents") == 0:
        raise ValidationError("amount_cents must be > 0", "amount_cents")
    _require_choice(patch, "method", PAYMENT_METHODS)
    return patch


VALIDATORS = {
    "vendors": validate_vendor,
    "customers": validate_customer,
    "purchase_orders": validate_purchase_order,
    "sale_orders": validate_sale_order,
    "invoices": validate_invoice,
    "expenses": validate_expense,
    "payments": validate_payment,
}
