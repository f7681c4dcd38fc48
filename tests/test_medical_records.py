"""
Tests for the local medical history service.
"""
import datetime as dt

import pytest
from pydantic import ValidationError

from clinic_agenda.medical_records.schemas import MedicalEntryCreate, MedicalEntryUpdate


def add_entry(backend, patient_id, day, notes="Consulta de control general"):
    return backend.medical_entries.add(MedicalEntryCreate(patient_id=patient_id, date=day, notes=notes))


def test_entries_are_newest_first(backend):
    add_entry(backend, "1", dt.date(2024, 1, 10))
    add_entry(backend, "1", dt.date(2024, 3, 5))
    add_entry(backend, "1", dt.date(2023, 12, 1))

    dates = [e.date for e in backend.medical_entries.list()]
    assert dates == sorted(dates, reverse=True)


def test_newest_entry_of_same_day_comes_first(backend):
    first = add_entry(backend, "1", dt.date(2024, 1, 10))
    second = add_entry(backend, "1", dt.date(2024, 1, 10))
    assert [e.id for e in backend.medical_entries.list()] == [second.id, first.id]


def test_filter_by_patient(backend):
    add_entry(backend, "1", dt.date(2024, 1, 10))
    add_entry(backend, "2", dt.date(2024, 1, 11))

    entries = backend.medical_entries.list("2")
    assert [e.patient_id for e in entries] == ["2"]


def test_update_resorts(backend):
    older = add_entry(backend, "1", dt.date(2024, 1, 10))
    add_entry(backend, "1", dt.date(2024, 2, 10))

    backend.medical_entries.update(older.id, MedicalEntryUpdate(date=dt.date(2024, 3, 1)))

    entries = backend.medical_entries.list()
    assert entries[0].id == older.id
    assert entries[0].notes == "Consulta de control general"


def test_update_and_delete_unknown_entry_are_no_ops(backend):
    add_entry(backend, "1", dt.date(2024, 1, 10))
    assert backend.medical_entries.update("99", MedicalEntryUpdate(notes="Nota que no se guarda")) is None
    backend.medical_entries.delete("99")
    assert len(backend.medical_entries.list()) == 1


def test_short_notes_are_rejected():
    with pytest.raises(ValidationError):
        MedicalEntryCreate(patient_id="1", date=dt.date(2024, 1, 10), notes="corta")
