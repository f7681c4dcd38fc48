"""
Versioned migrations of the local store's persisted shapes.

The store records the shape version it holds under `schema_version`. A store
without that key predates versioning and is treated as version 1. Each step
runs once, in order, and is logged.
"""
import logging

from ..patients.schemas import split_conditions
from .entity_store import EntityStore
from .keys import PATIENTS_KEY, SCHEMA_VERSION_KEY

# Set up logging
logger = logging.getLogger(__name__)


def _chronic_diseases_as_lists(store: EntityStore) -> None:
    """Version 2: chronic conditions stored as a comma-separated string become a list."""
    snapshot = store.get(PATIENTS_KEY)
    if snapshot is None or not isinstance(snapshot.value, list):
        return

    converted = 0
    for record in snapshot.value:
        if not isinstance(record, dict):
            continue
        value = record.get("chronicDiseases")
        if isinstance(value, str) or (value is None and "chronicDiseases" in record):
            record["chronicDiseases"] = split_conditions(value)
            converted += 1

    if converted:
        store.save(PATIENTS_KEY, snapshot.value, expected_version=snapshot.version)
    logger.info(f"Migrated chronic diseases of {converted} patient records to lists")


MIGRATIONS = [
    (2, _chronic_diseases_as_lists),
]

CURRENT_SCHEMA_VERSION = MIGRATIONS[-1][0]


def migrate_local_store(store: EntityStore) -> int:
    """
    Bring the store up to CURRENT_SCHEMA_VERSION.

    Args:
        store: Local entity store

    Returns:
        int: Schema version after migration
    """
    snapshot = store.get(SCHEMA_VERSION_KEY)
    version = snapshot.value if snapshot is not None and isinstance(snapshot.value, int) else 1

    for target, step in MIGRATIONS:
        if version >= target:
            continue
        logger.info(f"Migrating local store from schema version {version} to {target}")
        step(store)
        store.save(SCHEMA_VERSION_KEY, target)
        version = target

    return version
