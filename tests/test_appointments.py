"""
Tests for the local appointment service.
"""
import datetime as dt
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from clinic_agenda.appointments.schemas import AppointmentCreate, AppointmentStatus, AppointmentUpdate
from clinic_agenda.appointments.service import combine_date_time
from clinic_agenda.core.backend import build_local_backend
from clinic_agenda.patients.schemas import PatientCreate, PatientUpdate

from fakes import patient_payload


@pytest.fixture
def patient(backend):
    return backend.patients.add(PatientCreate(**patient_payload()))


def schedule(backend, patient_id, day, time, reason="Control anual"):
    return backend.appointments.add(AppointmentCreate(patient_id=patient_id, date=day, time=time, reason=reason))


def test_combine_date_time_uses_clinic_timezone():
    tz = ZoneInfo("America/Argentina/Buenos_Aires")
    when = combine_date_time(dt.date(2024, 7, 18), "10:30", tz)
    assert when.astimezone(dt.timezone.utc) == dt.datetime(2024, 7, 18, 13, 30, tzinfo=dt.timezone.utc)


def test_list_is_in_ascending_date_time_order(backend, patient):
    schedule(backend, patient.id, dt.date(2024, 7, 25), "14:00")
    schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")

    appointments = backend.appointments.list()
    assert [a.date.date() for a in appointments] == [dt.date(2024, 7, 18), dt.date(2024, 7, 25)]


def test_add_copies_patient_name(backend, patient):
    appointment = schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")
    assert appointment.patient_name == "Ana Pérez"
    assert appointment.status == AppointmentStatus.SCHEDULED


def test_unknown_patient_name_is_desconocido(backend):
    appointment = schedule(backend, "404", dt.date(2024, 7, 18), "10:00")
    assert appointment.patient_name == "Desconocido"


def test_status_update_keeps_date_and_patient(backend, patient):
    created = schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")

    backend.appointments.update(created.id, AppointmentUpdate(status=AppointmentStatus.CANCELLED))

    stored = backend.appointments.get(created.id)
    assert stored.status == AppointmentStatus.CANCELLED
    assert stored.date == created.date
    assert stored.patient_id == patient.id


def test_update_recomputes_patient_name(backend, patient):
    created = schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")
    backend.patients.update(patient.id, PatientUpdate(lastName="Gómez"))

    # Renaming alone leaves the copy untouched
    assert backend.appointments.get(created.id).patient_name == "Ana Pérez"

    backend.appointments.update(created.id, AppointmentUpdate(reason="Control de asma"))
    assert backend.appointments.get(created.id).patient_name == "Ana Gómez"


def test_reschedule_keeps_order(backend, patient):
    early = schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")
    schedule(backend, patient.id, dt.date(2024, 7, 20), "09:00")

    backend.appointments.update(early.id, AppointmentUpdate(date=dt.date(2024, 7, 22)))

    appointments = backend.appointments.list()
    assert appointments[-1].id == early.id
    assert appointments[-1].date == dt.datetime(2024, 7, 22, 10, 0, tzinfo=dt.timezone.utc)


def test_time_only_update_keeps_day(backend, patient):
    created = schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")
    backend.appointments.update(created.id, AppointmentUpdate(time="16:45"))
    assert backend.appointments.get(created.id).date == dt.datetime(2024, 7, 18, 16, 45, tzinfo=dt.timezone.utc)


def test_patient_cannot_be_reassigned():
    with pytest.raises(ValidationError):
        AppointmentUpdate(patientId="2")


def test_list_for_day(backend, patient):
    schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")
    schedule(backend, patient.id, dt.date(2024, 7, 18), "08:00")
    schedule(backend, patient.id, dt.date(2024, 7, 19), "10:00")

    day = backend.appointments.list_for_day(dt.date(2024, 7, 18))
    assert [a.date.hour for a in day] == [8, 10]


def test_date_time_round_trip_in_other_timezone(store):
    tz = ZoneInfo("America/Argentina/Buenos_Aires")
    backend = build_local_backend(store, tz)
    created = backend.appointments.add(
        AppointmentCreate(patient_id="1", date=dt.date(2024, 7, 18), time="23:30", reason="Guardia nocturna")
    )

    stored = backend.appointments.get(created.id)
    assert stored.date == created.date
    assert backend.appointments.list_for_day(dt.date(2024, 7, 18))[0].id == created.id


def test_delete_unknown_appointment_is_a_no_op(backend, patient):
    schedule(backend, patient.id, dt.date(2024, 7, 18), "10:00")
    backend.appointments.delete("99")
    assert len(backend.appointments.list()) == 1


@pytest.mark.parametrize("time", ["24:00", "9:00", "10:60", "noon"])
def test_invalid_time_is_rejected(time):
    with pytest.raises(ValidationError):
        AppointmentCreate(patient_id="1", date=dt.date(2024, 7, 18), time=time, reason="Control anual")
