"""
Conversions between in-memory dates and the document store's timestamps.

Firestore stores timestamps as UTC instants and returns them as aware
datetimes. Records written by older clients may hold ISO strings instead;
those are parsed tolerantly.
"""
import datetime as dt
import logging
from typing import Any, Optional

# Set up logging
logger = logging.getLogger(__name__)


def to_timestamp(value: Any) -> dt.datetime:
    """
    Convert a date or datetime into the UTC instant written to the store.

    Calendar dates are stored as UTC midnight so they read back as the same day.
    Naive datetimes are taken as UTC.
    """
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc)
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)
    raise TypeError(f"Cannot store {type(value).__name__} as a timestamp")


def _parse_iso(value: str) -> dt.datetime:
    return dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


def appointment_datetime_from_store(value: Any, tz: dt.tzinfo) -> Optional[dt.datetime]:
    """
    Read an appointment date-time, expressed in the clinic timezone.

    Returns:
        datetime, or None when the stored value is not a timestamp or a parseable string
    """
    if isinstance(value, str):
        try:
            value = _parse_iso(value)
        except ValueError:
            logger.warning(f"Unparseable appointment date {value!r}")
            return None
    if not isinstance(value, dt.datetime):
        logger.warning(f"Unexpected appointment date value {value!r}")
        return None
    return to_timestamp(value).astimezone(tz)


def entry_date_from_store(value: Any, record_id: str = "") -> dt.date:
    """
    Read a medical entry date.

    Timestamps give their UTC calendar day; strings may be "YYYY-MM-DD" or a
    full ISO date-time. Anything else falls back to today, with a warning.
    """
    if isinstance(value, dt.datetime):
        return to_timestamp(value).date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            parsed = _parse_iso(value)
        except ValueError:
            logger.warning(f"Medical entry {record_id} has an unparseable date {value!r}")
        else:
            return to_timestamp(parsed).date() if parsed.tzinfo else parsed.date()
    else:
        logger.warning(f"Medical entry {record_id} has an unexpected date format: {value!r}")
    return dt.datetime.now(dt.timezone.utc).date()
