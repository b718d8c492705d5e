from __future__ import annotations

from typing import Any, Iterable


class ValidationError(ValueError):
    """400-level input problem."""


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for ids and thresholds.

    Rejects bools, floats, decimals and scientific notation the same way
    for JSON numbers and query-string values.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


MAX_ID = 2**63 - 1


def coerce_id(value: Any, field: str) -> int:
    """Positive integer id that fits a 64-bit signed column."""
    pid = coerce_int(value, field)
    if pid <= 0:
        raise ValidationError(f"{field} must be positive")
    if pid > MAX_ID:
        raise ValidationError(f"{field} is out of range")
    return pid


def require_reason(reason: Any) -> str:
    """Archive reasons are mandatory free text."""
    if reason is None or not isinstance(reason, str) or not reason.strip():
        raise ValidationError("reason is required")
    return reason.strip()


def normalize_actor(actor: Any, default: str = "System") -> str:
    if actor is None:
        return default
    actor = str(actor).strip()
    return actor or default


def parse_product_ids(raw: Any) -> list[int]:
    """
    Validate a product id list for bulk operations.

    Returns the ids in request order with duplicates collapsed.
    """
    if raw is None or isinstance(raw, (str, bytes, dict)) or not isinstance(raw, Iterable):
        raise ValidationError("product_ids must be a list of integers")

    ids: list[int] = []
    seen: set[int] = set()
    for value in raw:
        pid = coerce_id(value, "product_ids")
        if pid in seen:
            continue
        seen.add(pid)
        ids.append(pid)

    if not ids:
        raise ValidationError("product_ids must not be empty")
    return ids
