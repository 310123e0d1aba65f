from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable
from flask import request

from storefront.app.common.errors import abort_json
from storefront.core.cart import CENTS


def get_json() -> Dict[str, Any]:
    if not request.is_json:
        abort_json(400, "invalid_json", "Request must be application/json")
    data = request.get_json(silent=True)
    if data is None or not isinstance(data, dict):
        abort_json(400, "invalid_json", "Malformed JSON body")
    return data


def require_fields(data: Dict[str, Any], fields: Iterable[str]) -> None:
    missing = [f for f in fields if data.get(f) in (None, "")]
    if missing:
        abort_json(400, "validation_error", "Missing required fields", {"missing": missing})


def get_int(data: Dict[str, Any], key: str, minimum: int | None = None) -> int:
    try:
        value = int(data[key])
    except (KeyError, TypeError, ValueError):
        abort_json(400, "validation_error", f"{key} must be an integer", {"field": key})
    if minimum is not None and value < minimum:
        abort_json(400, "validation_error", f"{key} must be >= {minimum}", {"field": key})
    return value


def parse_price_cents(raw: Any) -> int:
    """Accept 12.5, "12.50" or "12"; half-cents round up like cart totals."""
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError, ValueError):
        abort_json(400, "validation_error", "price must be a number", {"field": "price"})
    if not amount.is_finite():
        abort_json(400, "validation_error", "price must be a number", {"field": "price"})
    return int(amount.quantize(CENTS, rounding=ROUND_HALF_UP) * 100)


def get_str(data: Dict[str, Any], key: str, required: bool = False) -> str | None:
    """Stripped string value; blank counts as absent."""
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        abort_json(400, "validation_error", f"{key} must be a string", {"field": key})
    value = (value or "").strip() or None
    if required and value is None:
        abort_json(400, "validation_error", f"{key} cannot be empty", {"field": key})
    return value


def get_bool(data: Dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if not isinstance(value, bool):
        abort_json(400, "validation_error", f"{key} must be true or false", {"field": key})
    return value
