"""
Field validation utilities.

Business-rule validation not covered by the Pydantic request models:
normalisation of emails and identifiers, numeric ranges, date parsing
and bounded strings. Every helper raises ValidationError with the
message returned to the client.

Dependencies: bson, debrid_proxy.core.time_utils
System role: Shared input validation for users, transactions and gift cards
"""

import math
from typing import Any

from bson import ObjectId

from debrid_proxy.core.exceptions import ValidationError
from debrid_proxy.core.time_utils import parse_timestamp, to_china_iso, to_utc_iso

MIN_PASSWORD_LENGTH = 6
_TRUE_STRINGS = {"true", "1"}
_FALSE_STRINGS = {"false", "0"}


def normalize_email(value: Any, label: str = "Email") -> str:
    """
    Trim and lower-case an email address.

    Args:
        value: Raw input
        label: Name used in error messages ("Email", "user_email", ...)

    Raises:
        ValidationError: If empty or obviously not an address
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required", field=label.lower())

    normalized = value.strip().lower()
    if "@" not in normalized or normalized.startswith("@"):
        raise ValidationError(f"{label} must be a valid address", field=label.lower())
    return normalized


def parse_password(value: Any) -> str:
    if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field="password",
        )
    return value


def parse_required_token(value: Any, label: str) -> str:
    """Trimmed token string, e.g. label="Reset token" or "Verification token"."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required", field="token")
    return value.strip()


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def parse_non_negative_number(value: Any, field: str) -> float:
    """Finite number >= 0, used for storage quotas and order amounts."""
    parsed = _to_number(value)
    if parsed is None or parsed < 0:
        raise ValidationError(f"{field} must be a positive number", field=field)
    return parsed


def parse_positive_number(value: Any, field: str) -> float:
    """Finite number > 0, used for gift card storage and value."""
    parsed = _to_number(value)
    if parsed is None or parsed <= 0:
        raise ValidationError(f"{field} must be a positive number", field=field)
    return parsed


def parse_bool(value: Any, fallback: bool | None = False) -> bool | None:
    """
    Lenient boolean parsing for bodies and query strings.

    Accepts bools, "true"/"false"/"1"/"0" (any case) and 1/0; anything
    else yields the fallback.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
    return fallback


def parse_nullable_china_date(value: Any, field: str) -> str | None:
    """Parse an optional date into a China Standard Time ISO string."""
    if value is None or value == "":
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValidationError(f"{field} must be a valid date string", field=field)
    return to_china_iso(parsed)


def parse_required_utc_date(value: Any, field: str) -> str:
    """Parse a required date into a UTC ISO string."""
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValidationError(f"{field} must be a valid date", field=field)
    return to_utc_iso(parsed)


def ensure_object_id(value: Any, message: str, field: str = "id") -> ObjectId:
    """
    Coerce a value into an ObjectId.

    Raises:
        ValidationError: With the given message if the value is not a valid id
    """
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        raise ValidationError(message, field=field)
    return ObjectId(value)


def parse_non_empty_string(value: Any, field: str, max_length: int | None = 512) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)

    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty", field=field)
    if max_length and len(trimmed) > max_length:
        raise ValidationError(f"{field} is too long (>{max_length} chars)", field=field)
    return trimmed


def parse_optional_string(
    value: Any,
    field: str,
    fallback: str | None = None,
    max_length: int | None = 256,
) -> str | None:
    """Trimmed string, or the fallback when missing or blank."""
    if value is None:
        return fallback

    normalized = str(value).strip()
    if not normalized:
        return fallback
    if max_length and len(normalized) > max_length:
        raise ValidationError(f"{field} is too long (>{max_length} chars)", field=field)
    return normalized


def parse_metadata(value: Any, message: str = "metadata must be an object") -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(message, field="metadata")
    return dict(value)


def enforce_storage_invariant(storage_all: float, storage_used: float) -> None:
    if storage_used > storage_all:
        raise ValidationError("storage_used cannot exceed storage_all", field="storage_used")
