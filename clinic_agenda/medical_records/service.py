"""
Medical Entry Service - collection contract and local-store implementation.

Entries are presented newest-first. Entries sharing a date keep the order in
which they were stored, so a new entry appears before older ones of the same day.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.entity_store import CollectionCodec, EntityStore
from ..core.identity import IdentityAllocator
from ..core.keys import MEDICAL_HISTORY_KEY, NEXT_MEDICAL_ENTRY_ID_KEY
from .schemas import MedicalEntry, MedicalEntryCreate, MedicalEntryUpdate

# Set up logging
logger = logging.getLogger(__name__)


def sort_entries(entries: List[MedicalEntry]) -> List[MedicalEntry]:
    """Order entries by date, newest first (stable for equal dates)."""
    return sorted(entries, key=lambda e: e.date, reverse=True)


class MedicalEntryService(ABC):
    """Operations every medical history backend provides."""

    @abstractmethod
    def list(self, patient_id: Optional[str] = None) -> List[MedicalEntry]:
        """Return entries newest-first, optionally only those of one patient."""

    @abstractmethod
    def add(self, data: MedicalEntryCreate) -> MedicalEntry:
        """Store a new entry under a freshly allocated id."""

    @abstractmethod
    def update(self, entry_id: str, data: MedicalEntryUpdate) -> Optional[MedicalEntry]:
        """Apply the sent fields; an unknown id is a no-op returning None."""

    @abstractmethod
    def delete(self, entry_id: str) -> None:
        """Remove an entry; unknown ids are ignored."""


class LocalMedicalEntryService(MedicalEntryService):
    """
    Medical history kept in the local entity store.

    Args:
        store: Entity store holding the snapshots
        allocator: Id allocator sharing the same store
    """

    def __init__(self, store: EntityStore, allocator: IdentityAllocator):
        self._store = store
        self._allocator = allocator
        self._codec = CollectionCodec(MedicalEntry)

    def _snapshot(self):
        return self._store.load(MEDICAL_HISTORY_KEY, [], self._codec.revive, self._codec.replace)

    def list(self, patient_id: Optional[str] = None) -> List[MedicalEntry]:
        entries = sort_entries(self._snapshot().value)
        if patient_id is not None:
            entries = [e for e in entries if e.patient_id == patient_id]
        return entries

    def add(self, data: MedicalEntryCreate) -> MedicalEntry:
        snapshot = self._snapshot()
        new_id, counter_write = self._allocator.reserve(NEXT_MEDICAL_ENTRY_ID_KEY, [e.id for e in snapshot.value])

        entry = MedicalEntry(id=new_id, **data.model_dump())
        entries = sort_entries([entry, *snapshot.value])

        self._store.save_many([
            counter_write,
            self._store.pending(MEDICAL_HISTORY_KEY, entries, self._codec.replace, snapshot.version),
        ])
        logger.info(f"Medical entry {new_id} created for patient {data.patient_id}")
        return entry

    def update(self, entry_id: str, data: MedicalEntryUpdate) -> Optional[MedicalEntry]:
        snapshot = self._snapshot()
        entries = list(snapshot.value)
        index = next((i for i, e in enumerate(entries) if e.id == entry_id), None)
        if index is None:
            logger.info(f"Update of unknown medical entry {entry_id} ignored")
            return None

        updated = entries[index].model_copy(update=data.model_dump(exclude_none=True))
        entries[index] = updated
        self._store.save(MEDICAL_HISTORY_KEY, sort_entries(entries), self._codec.replace, snapshot.version)
        logger.info(f"Medical entry {entry_id} updated")
        return updated

    def delete(self, entry_id: str) -> None:
        snapshot = self._snapshot()
        remaining = [e for e in snapshot.value if e.id != entry_id]
        if len(remaining) == len(snapshot.value):
            logger.info(f"Delete of unknown medical entry {entry_id} ignored")
            return
        self._store.save(MEDICAL_HISTORY_KEY, remaining, self._codec.replace, snapshot.version)
        logger.info(f"Medical entry {entry_id} deleted")
