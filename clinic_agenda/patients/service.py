"""
Patient Service - collection contract and local-store implementation.

The local implementation keeps the whole patient list under one key and
rewrites it on every mutation. Deleting a patient also removes the patient's
medical entries and appointments in the same transaction.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.entity_store import CollectionCodec, EntityStore
from ..core.identity import IdentityAllocator
from ..core.keys import APPOINTMENTS_KEY, MEDICAL_HISTORY_KEY, NEXT_PATIENT_ID_KEY, PATIENTS_KEY
from .schemas import Patient, PatientCreate, PatientUpdate

# Set up logging
logger = logging.getLogger(__name__)


def sort_patients(patients: List[Patient]) -> List[Patient]:
    """Order patients by last name, then first name."""
    return sorted(patients, key=lambda p: (p.last_name.casefold(), p.first_name.casefold()))


class PatientService(ABC):
    """Operations every patient backend provides."""

    @abstractmethod
    def list(self) -> List[Patient]:
        """Return all patients ordered by last name, then first name."""

    @abstractmethod
    def get(self, patient_id: str) -> Optional[Patient]:
        """Return one patient, or None when the id is unknown."""

    @abstractmethod
    def add(self, data: PatientCreate) -> Patient:
        """Store a new patient under a freshly allocated id."""

    @abstractmethod
    def update(self, patient_id: str, data: PatientUpdate) -> Optional[Patient]:
        """Apply the sent fields; an unknown id is a no-op returning None."""

    @abstractmethod
    def delete(self, patient_id: str) -> None:
        """Remove a patient with its medical entries and appointments; unknown ids are ignored."""


class LocalPatientService(PatientService):
    """
    Patient collection kept in the local entity store.

    Args:
        store: Entity store holding the snapshots
        allocator: Id allocator sharing the same store
    """

    def __init__(self, store: EntityStore, allocator: IdentityAllocator):
        self._store = store
        self._allocator = allocator
        self._codec = CollectionCodec(Patient)

    def _snapshot(self):
        return self._store.load(PATIENTS_KEY, [], self._codec.revive, self._codec.replace)

    def list(self) -> List[Patient]:
        return sort_patients(self._snapshot().value)

    def get(self, patient_id: str) -> Optional[Patient]:
        return next((p for p in self._snapshot().value if p.id == patient_id), None)

    def add(self, data: PatientCreate) -> Patient:
        snapshot = self._snapshot()
        new_id, counter_write = self._allocator.reserve(NEXT_PATIENT_ID_KEY, [p.id for p in snapshot.value])

        patient = Patient(id=new_id, **data.model_dump())
        patients = sort_patients([*snapshot.value, patient])

        self._store.save_many([
            counter_write,
            self._store.pending(PATIENTS_KEY, patients, self._codec.replace, snapshot.version),
        ])
        logger.info(f"Patient {new_id} created")
        return patient

    def update(self, patient_id: str, data: PatientUpdate) -> Optional[Patient]:
        snapshot = self._snapshot()
        patients = list(snapshot.value)
        index = next((i for i, p in enumerate(patients) if p.id == patient_id), None)
        if index is None:
            logger.info(f"Update of unknown patient {patient_id} ignored")
            return None

        updated = patients[index].model_copy(update=data.changes())
        patients[index] = updated
        self._store.save(PATIENTS_KEY, sort_patients(patients), self._codec.replace, snapshot.version)
        logger.info(f"Patient {patient_id} updated")
        return updated

    def delete(self, patient_id: str) -> None:
        snapshot = self._snapshot()
        remaining = [p for p in snapshot.value if p.id != patient_id]
        if len(remaining) == len(snapshot.value):
            logger.info(f"Delete of unknown patient {patient_id} ignored")
            return

        # Dependents are filtered as raw records; only patientId is inspected
        entries = self._store.load(MEDICAL_HISTORY_KEY, [])
        appointments = self._store.load(APPOINTMENTS_KEY, [])
        kept_entries = [e for e in entries.value if e.get("patientId") != patient_id]
        kept_appointments = [a for a in appointments.value if a.get("patientId") != patient_id]

        self._store.save_many([
            self._store.pending(PATIENTS_KEY, remaining, self._codec.replace, snapshot.version),
            self._store.pending(MEDICAL_HISTORY_KEY, kept_entries, expected_version=entries.version),
            self._store.pending(APPOINTMENTS_KEY, kept_appointments, expected_version=appointments.version),
        ])
        logger.info(
            f"Patient {patient_id} deleted with {len(entries.value) - len(kept_entries)} medical entries "
            f"and {len(appointments.value) - len(kept_appointments)} appointments"
        )
