import logging
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

_RESOLUTION = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(dt_value, default_now: bool = True) -> datetime | None:
    """
    Parse a datetime value to an aware UTC datetime.

    Handles:
    - ISO string with timezone (e.g., "2024-01-01T00:00:00Z") -> aware UTC datetime
    - ISO string without timezone -> assumed UTC
    - datetime object -> converted to (or assumed) UTC
    - None or invalid -> current UTC time (if default_now=True) or None

    Args:
        dt_value: The datetime value to parse (str, datetime, or None)
        default_now: If True, return current UTC time for None/invalid values.
                     If False, return None for None/invalid values.
    """
    if dt_value is None:
        return utc_now() if default_now else None

    if isinstance(dt_value, str):
        try:
            dt = datetime.fromisoformat(dt_value.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            logger.warning(f"Failed to parse datetime string: {dt_value}")
            return utc_now() if default_now else None
        return ensure_aware_utc(dt)

    if isinstance(dt_value, datetime):
        return ensure_aware_utc(dt_value)

    logger.warning(f"Unexpected datetime type: {type(dt_value)}")
    return utc_now() if default_now else None


def ensure_aware_utc(dt_value: datetime | None) -> datetime | None:
    """
    Ensure a datetime is timezone-aware UTC.

    Naive values are assumed to already be in UTC.
    """
    if dt_value is None:
        return None
    if dt_value.tzinfo is None:
        return dt_value.replace(tzinfo=timezone.utc)
    return dt_value.astimezone(timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """
    Current UTC time, nudged forward so it is strictly after ``previous``.

    Two stamps taken in quick succession can read the same clock value; update
    operations rely on updated_at increasing on every write.
    """
    now = utc_now()
    previous = ensure_aware_utc(previous)
    if previous is not None and now <= previous:
        return previous + _RESOLUTION
    return now
