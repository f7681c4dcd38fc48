"""
Tests for timestamp conversions of the remote backend.
"""
import datetime as dt
from zoneinfo import ZoneInfo

import pytest

from clinic_agenda.remote.timestamps import appointment_datetime_from_store, entry_date_from_store, to_timestamp


def test_date_is_stored_as_utc_midnight():
    assert to_timestamp(dt.date(2024, 5, 1)) == dt.datetime(2024, 5, 1, tzinfo=dt.timezone.utc)


def test_aware_datetime_is_converted_to_utc():
    when = dt.datetime(2024, 7, 18, 10, 0, tzinfo=ZoneInfo("America/Argentina/Buenos_Aires"))
    stored = to_timestamp(when)
    assert stored.tzinfo == dt.timezone.utc
    assert stored == when


def test_unsupported_value_is_rejected():
    with pytest.raises(TypeError):
        to_timestamp("2024-05-01")


def test_appointment_string_dates_are_parsed():
    tz = ZoneInfo("America/Argentina/Buenos_Aires")
    when = appointment_datetime_from_store("2024-07-18T13:00:00Z", tz)
    assert when == dt.datetime(2024, 7, 18, 10, 0, tzinfo=tz)
    assert when.utcoffset() == dt.timedelta(hours=-3)


def test_unreadable_appointment_date_is_none():
    assert appointment_datetime_from_store("mañana", dt.timezone.utc) is None
    assert appointment_datetime_from_store(None, dt.timezone.utc) is None


def test_entry_dates_from_timestamps_and_strings():
    assert entry_date_from_store(dt.datetime(2024, 5, 1, tzinfo=dt.timezone.utc)) == dt.date(2024, 5, 1)
    assert entry_date_from_store("2024-05-01") == dt.date(2024, 5, 1)
    assert entry_date_from_store("2024-05-01T00:00:00Z") == dt.date(2024, 5, 1)


def test_unreadable_entry_date_falls_back_to_today():
    today = dt.datetime.now(dt.timezone.utc).date()
    assert entry_date_from_store("ayer", "e1") == today
    assert entry_date_from_store(12345, "e2") == today
