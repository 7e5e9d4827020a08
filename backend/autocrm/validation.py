from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from autocrm.time_utils import parse_iso_date


# Maximum amount: 99,999,999.99 (9,999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_CENTS = 9_999_999_999
# Integer digits of the largest amount; larger magnitudes are rejected before any arithmetic
MAX_AMOUNT_DIGITS = 7

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., renting a dismantled car)."""


class NotFoundError(LookupError):
    """
    404-level: entity absent OR outside the caller's access scope.

    Both cases share one error and one message.
    """


class AuthError(Exception):
    """401-level: missing, invalid or expired credentials."""


class ForbiddenError(Exception):
    """403-level: authenticated but the role is insufficient."""


def require_payload(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def require_text(value: Any, field: str, *, max_length: int | None = None) -> str:
    """Mandatory, non-blank string field (stripped)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def optional_text(value: Any, field: str, *, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def parse_int(value: Any, field: str, *, required: bool = False) -> int | None:
    """
    Strict integer parsing - rejects floats, decimals and scientific notation.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def parse_amount_cents(value: Any, field: str, *, required: bool = True) -> int | None:
    """
    Convert a decimal amount (number or numeric string) to integer cents.

    At most two fractional digits are accepted; the sign is NOT checked here
    (callers decide whether zero/negative amounts are an error or a warning).
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount.adjusted() > MAX_AMOUNT_DIGITS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS / 100:,.2f}")
    if amount.as_tuple().exponent < -2 and amount != amount.quantize(Decimal("0.01")):
        raise ValidationError(f"{field} cannot have more than 2 decimal places")
    cents = int((amount * 100).to_integral_value())
    if abs(cents) > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS / 100:,.2f}")
    return cents


def parse_positive_amount_cents(value: Any, field: str) -> int:
    cents = parse_amount_cents(value, field)
    if cents <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return cents


def parse_currency(value: Any, field: str = "currency", *, required: bool = True) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    code = str(value).strip().upper()
    if not _CURRENCY_RE.match(code):
        raise ValidationError(f"{field} must be a 3-letter currency code")
    return code


def parse_choice(value: Any, field: str, choices: Iterable[str], *, required: bool = True) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    allowed = tuple(choices)
    choice = str(value).strip()
    if choice not in allowed:
        raise ValidationError(f"Invalid {field} '{choice}'. Must be one of: {', '.join(allowed)}")
    return choice


def parse_date(value: Any, field: str) -> date:
    try:
        parsed = parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO-8601 date (YYYY-MM-DD)")
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed
