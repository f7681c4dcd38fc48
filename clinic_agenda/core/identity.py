"""
Identity Allocator - sequential string ids per collection.

Counters live in the entity store under `next_<entity>_id` and always hold the
next id to hand out. A missing or unreadable counter is reseeded from the
highest numeric id already present in the collection, so clearing the counter
key never causes ids to be reused.
"""
import logging
import re
from typing import Callable, Iterable, Optional, Tuple

from .entity_store import EntityStore, PendingWrite

# Set up logging
logger = logging.getLogger(__name__)

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def numeric_part(identifier: str) -> Optional[int]:
    """Return the trailing number of an id ("17" -> 17, "user-004" -> 4), or None."""
    match = _TRAILING_DIGITS.search(str(identifier))
    return int(match.group(1)) if match else None


def format_user_id(number: int) -> str:
    """Format a user counter value as `user-NNN`."""
    return f"user-{number:03d}"


class IdentityAllocator:
    """
    Produces unique ids for the collections of one entity store.

    Single-writer per store is assumed for the counter itself; the version
    check on the pending write turns an interleaved allocation into a
    ConcurrentModificationError rather than a duplicate id.
    """

    def __init__(self, store: EntityStore):
        self._store = store

    def reserve(
        self,
        counter_key: str,
        existing_ids: Iterable[str],
        fmt: Callable[[int], str] = str,
    ) -> Tuple[str, PendingWrite]:
        """
        Pick the next id without persisting the counter yet.

        Args:
            counter_key: Key of the persisted counter (e.g. "next_patient_id")
            existing_ids: Ids currently present in the collection
            fmt: Formatter turning the counter value into an id string

        Returns:
            Tuple of the new id and the counter write to commit with the collection
        """
        existing = [n for n in (numeric_part(i) for i in existing_ids) if n is not None]
        highest = max(existing, default=0)

        snapshot = self._store.get(counter_key)
        counter = snapshot.value if snapshot is not None else None
        if not isinstance(counter, int) or isinstance(counter, bool):
            counter = highest + 1
            logger.info(f"Seeded counter '{counter_key}' at {counter}")
        elif counter <= highest:
            logger.warning(f"Counter '{counter_key}' at {counter} is behind existing id {highest}, advancing")
            counter = highest + 1

        expected_version = snapshot.version if snapshot is not None else 0
        write = self._store.pending(counter_key, counter + 1, expected_version=expected_version)
        return fmt(counter), write
