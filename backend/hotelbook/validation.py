from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from hotelbook.time_utils import parse_iso_date


# Maximum base price: 99,999,999.99 (Numeric(10, 2))
MAX_PRICE = Decimal("99999999.99")

# Signed 64-bit INTEGER, the widest key SQLite and PostgreSQL BIGINT accept
MAX_INT = 2**63 - 1

# "[2024-01-01,2025-01-01)" as rendered by PostgreSQL daterange and the admin console
_RANGE_RE = re.compile(r"^\s*\[\s*([0-9-]+)\s*,\s*([0-9-]+)\s*\)\s*$")


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field

    @property
    def code(self) -> str:
        return type(self).__name__


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate username)."""


class PermissionDenied(Exception):
    """403-level: the caller lacks the capability for this operation."""


@dataclass(frozen=True)
class DateRange:
    """Half-open calendar range [start, end): start <= day < end."""
    start: date
    end: date

    def __str__(self) -> str:
        return f"[{self.start.isoformat()},{self.end.isoformat()})"


def require_text(payload: dict, key: str, *, max_length: int | None = None) -> str:
    """Required, non-blank string field (stripped)."""
    raw = payload.get(key)
    if raw is None:
        raise ValidationError(f"{key} is required", field=key)
    if not isinstance(raw, str):
        raise ValidationError(f"{key} must be a string", field=key)
    value = raw.strip()
    if not value:
        raise ValidationError(f"{key} cannot be blank", field=key)
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}", field=key)
    return value


def optional_text(payload: dict, key: str) -> str | None:
    raw = payload.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"{key} must be a string", field=key)
    value = raw.strip()
    return value or None


def coerce_int(value: Any, key: str) -> int:
    """
    Strict integer coercion.

    Accepts ints (not bools) and plain digit strings with an optional sign.
    Floats, decimals and scientific notation are rejected, as is anything
    outside the signed 64-bit range the store can hold.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer", field=key)
    number = None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        stripped = value.strip()
        if re.fullmatch(r"[+-]?\d+", stripped):
            if len(stripped.lstrip("+-").lstrip("0")) > 19:
                raise ValidationError(f"{key} is out of range", field=key)
            number = int(stripped)
    if number is None:
        raise ValidationError(f"{key} must be an integer", field=key)
    if not -MAX_INT - 1 <= number <= MAX_INT:
        raise ValidationError(f"{key} is out of range", field=key)
    return number


def is_storable_id(value: int) -> bool:
    """True when ``value`` could be a primary key; anything else matches no row."""
    return 0 < value <= MAX_INT


def optional_star_rating(payload: dict, key: str = "star_rating") -> int | None:
    raw = payload.get(key)
    if raw is None or raw == "":
        return None
    stars = coerce_int(raw, key)
    if not 1 <= stars <= 5:
        raise ValidationError(f"{key} must be between 1 and 5", field=key)
    return stars


def coerce_price(value: Any, key: str) -> Decimal:
    """Currency amount with at most two decimal places, 0 <= value <= MAX_PRICE."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} is required", field=key)
    try:
        # str() first so 0.1 arrives as Decimal("0.1"), not its binary expansion
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{key} must be a decimal amount", field=key)
    if not amount.is_finite():
        raise ValidationError(f"{key} must be a decimal amount", field=key)
    if amount < 0:
        raise ValidationError(f"{key} must be >= 0", field=key)
    if amount > MAX_PRICE:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE}", field=key)
    if amount.as_tuple().exponent < -2:
        raise ValidationError(f"{key} allows at most 2 decimal places", field=key)
    return amount


def parse_date_range(value: Any, key: str = "operating_period") -> DateRange:
    """
    Parse an operating period.

    Accepted shapes:
    - "[YYYY-MM-DD,YYYY-MM-DD)" (half-open, PostgreSQL daterange text form)
    - {"start": "YYYY-MM-DD", "end": "YYYY-MM-DD"}

    The range must be non-empty (start < end).
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{key} is required", field=key)

    if isinstance(value, dict):
        raw_start, raw_end = value.get("start"), value.get("end")
    elif isinstance(value, str):
        match = _RANGE_RE.match(value)
        if not match:
            raise ValidationError(f"{key} must look like [YYYY-MM-DD,YYYY-MM-DD)", field=key)
        raw_start, raw_end = match.group(1), match.group(2)
    else:
        raise ValidationError(f"{key} must be a date range", field=key)

    if not isinstance(raw_start, str) or not isinstance(raw_end, str):
        raise ValidationError(f"{key} needs both start and end dates", field=key)

    try:
        start = parse_iso_date(raw_start)
        end = parse_iso_date(raw_end)
    except ValueError:
        raise ValidationError(f"{key} contains an invalid date", field=key)

    if start is None or end is None:
        raise ValidationError(f"{key} needs both start and end dates", field=key)
    if end <= start:
        raise ValidationError(f"{key} must end after it starts", field=key)

    return DateRange(start=start, end=end)
