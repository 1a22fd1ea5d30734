"""
Timestamp helpers.

User, gift card and redeem documents carry ISO-8601 strings in China
Standard Time; transactions carry UTC strings. Both parse back into
aware datetimes for comparisons.

Dependencies: datetime (stdlib)
System role: Consistent timestamp formatting for stored documents
"""

from datetime import datetime, timedelta, timezone

CHINA_TZ = timezone(timedelta(hours=8), name="CST")


def china_now() -> datetime:
    """Current time as an aware datetime at UTC+08:00."""
    return datetime.now(CHINA_TZ)


def to_china_iso(value: datetime | None = None) -> str:
    """
    Format a datetime as a China Standard Time ISO-8601 string.

    Args:
        value: Datetime to format (naive values are treated as UTC); now if None

    Returns:
        str: e.g. "2025-01-01T08:00:00.000+08:00"
    """
    if value is None:
        value = china_now()
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(CHINA_TZ).isoformat(timespec="milliseconds")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a Z suffix."""
    return to_utc_iso(datetime.now(timezone.utc))


def to_utc_iso(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def parse_timestamp(value: object) -> datetime | None:
    """
    Parse a stored timestamp into an aware datetime.

    Accepts datetimes and ISO-8601 strings (a trailing Z is understood).
    Naive values are assumed to be UTC.

    Returns:
        datetime | None: Parsed value, None if missing or unparseable
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_past(value: object, now: datetime | None = None) -> bool | None:
    """
    Check whether a stored timestamp is at or before now.

    Returns:
        bool | None: None when the value cannot be parsed
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed <= (now or china_now())
