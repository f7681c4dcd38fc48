"""
Tests for the local entity store.
"""
import datetime as dt

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinic_agenda.appointments.schemas import Appointment, AppointmentStatus
from clinic_agenda.core.entity_store import CollectionCodec, EntityStore
from clinic_agenda.core.models import KeyValueEntry
from clinic_agenda.database import create_session_factory
from clinic_agenda.exceptions import ConcurrentModificationError, StorageUnavailableError


def test_load_persists_default_when_absent(store):
    snapshot = store.load("patients", [])
    assert snapshot.value == []
    assert snapshot.version == 1
    assert store.get("patients").value == []


def test_get_absent_key_returns_none(store):
    assert store.get("missing") is None


def test_save_overwrites_and_bumps_version(store):
    first = store.save("counter", 1)
    second = store.save("counter", 2)
    assert (first, second) == (1, 2)
    assert store.get("counter").value == 2


def test_corrupt_snapshot_is_reset_to_default(engine, store):
    session_factory = create_session_factory(engine)
    with session_factory() as session:
        session.add(KeyValueEntry(key="patients", value="{not json", version=3))
        session.commit()

    snapshot = store.load("patients", [])
    assert snapshot.value == []
    assert snapshot.version == 4
    assert store.get("patients").value == []


def test_stale_version_is_rejected(store):
    snapshot = store.load("appointments", [])
    store.save("appointments", [{"id": "1"}], expected_version=snapshot.version)

    with pytest.raises(ConcurrentModificationError):
        store.save("appointments", [{"id": "2"}], expected_version=snapshot.version)
    assert store.get("appointments").value == [{"id": "1"}]


def test_create_only_write_fails_when_key_exists(store):
    store.save("users", [])
    with pytest.raises(ConcurrentModificationError):
        store.save("users", [{"id": "user-001"}], expected_version=0)


def test_save_many_is_all_or_nothing(store):
    store.save("a", "old")
    store.save("b", "old")
    stale = store.get("b").version - 1

    with pytest.raises(ConcurrentModificationError):
        store.save_many([
            store.pending("a", "new"),
            store.pending("b", "new", expected_version=stale),
        ])
    assert store.get("a").value == "old"
    assert store.get("b").value == "old"


def test_delete_is_idempotent(store):
    store.save("current_user", {"id": "user-001", "username": "admin"})
    store.delete("current_user")
    store.delete("current_user")
    assert store.get("current_user") is None


def test_codec_round_trips_datetimes(store):
    codec = CollectionCodec(Appointment)
    when = dt.datetime(2024, 7, 18, 10, 0, tzinfo=dt.timezone(dt.timedelta(hours=-3)))
    appointment = Appointment(
        id="1", patient_id="1", patient_name="Ana Pérez", date=when,
        reason="Control anual", status=AppointmentStatus.SCHEDULED,
    )
    store.save("appointments", [appointment], codec.replace)

    revived = store.load("appointments", [], codec.revive, codec.replace).value
    assert revived[0].date == when
    assert revived[0].date.tzinfo is not None


def test_unreachable_database_raises_storage_unavailable():
    broken = EntityStore(sessionmaker(bind=create_engine("sqlite:////nonexistent-dir/clinic.db")))
    with pytest.raises(StorageUnavailableError) as exc_info:
        broken.load("patients", [])
    assert exc_info.value.retryable is True
