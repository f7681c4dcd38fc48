"""
Tests for sequential id allocation.
"""
import pytest

from clinic_agenda.core.identity import IdentityAllocator, format_user_id, numeric_part
from clinic_agenda.exceptions import ConcurrentModificationError


def allocate(store, counter_key, existing_ids, **kwargs):
    """Reserve an id and commit the advanced counter, as the services do."""
    new_id, write = IdentityAllocator(store).reserve(counter_key, existing_ids, **kwargs)
    store.save_many([write])
    return new_id


def test_numeric_part():
    assert numeric_part("17") == 17
    assert numeric_part("user-004") == 4
    assert numeric_part("abc") is None


def test_first_id_on_empty_collection_is_one(store):
    assert allocate(store, "next_patient_id", []) == "1"
    assert allocate(store, "next_patient_id", ["1"]) == "2"


def test_missing_counter_is_reseeded_from_existing_ids(store):
    assert allocate(store, "next_patient_id", ["3", "41", "7"]) == "42"


def test_counter_behind_data_is_advanced(store):
    store.save("next_appointment_id", 2)
    assert allocate(store, "next_appointment_id", ["5"]) == "6"


def test_unreadable_counter_is_reseeded(store):
    store.save("next_appointment_id", "seven")
    assert allocate(store, "next_appointment_id", ["2"]) == "3"


def test_ids_are_never_reused_after_deletion(store):
    first = allocate(store, "next_medical_entry_id", [])
    second = allocate(store, "next_medical_entry_id", [first])
    # The collection lost its entries, the counter still moves forward
    third = allocate(store, "next_medical_entry_id", [])
    assert len({first, second, third}) == 3


def test_user_ids_are_zero_padded(store):
    assert allocate(store, "next_user_id", ["user-001"], fmt=format_user_id) == "user-002"
    assert format_user_id(12) == "user-012"


def test_reserve_does_not_persist_until_committed(store):
    allocator = IdentityAllocator(store)
    new_id, write = allocator.reserve("next_patient_id", [])
    assert new_id == "1"
    assert store.get("next_patient_id") is None

    store.save_many([write])
    assert store.get("next_patient_id").value == 2


def test_interleaved_reservations_conflict(store):
    allocator = IdentityAllocator(store)
    first_id, first_write = allocator.reserve("next_patient_id", [])
    second_id, second_write = allocator.reserve("next_patient_id", [])
    assert first_id == second_id

    store.save_many([first_write])
    with pytest.raises(ConcurrentModificationError):
        store.save_many([second_write])
