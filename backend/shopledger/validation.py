from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

# Maximum amount: 999,999,999,999 VND
# This prevents sheet overflow issues and nonsensical prices
MAX_AMOUNT = 999_999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product code, stale row position)."""


class NotFoundError(LookupError):
    """404-level missing record or partition."""


def require_text(value: Any, field: str) -> str:
    """Return the stripped text, rejecting None and blanks."""
    if value is None:
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for request payloads.

    Rejects floats, decimals, scientific notation and booleans.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_amount(value: Any, field: str) -> int:
    """Validate a money amount from a request (whole đồng, 0..MAX_AMOUNT)."""
    amount = coerce_int(value, field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT}")
    return amount


def coerce_positive_amount(value: Any, field: str) -> int:
    amount = coerce_amount(value, field)
    if amount == 0:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def cell_number(value: Any) -> int:
    """
    Lenient numeric read of a stored cell.

    Cells may hold ints, floats or rendered text ("2000", "2000.0"); anything
    unreadable counts as 0, which is how the ledgers have always been read.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        parsed = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        return 0
    if not parsed.is_finite():
        return 0
    return int(parsed.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def cell_text(row: list, index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index])
