"""
Entity Store - whole-collection snapshot persistence over a key-value table.

Every collection (patients, appointments, ...) and every id counter lives under
one key as a JSON document. Reads return a `Snapshot` carrying the stored
version; writes may pass that version back as `expected_version` so a write
based on an outdated read fails with ConcurrentModificationError instead of
silently replacing someone else's snapshot.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, TypeAdapter
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..exceptions import AppException, ConcurrentModificationError, StorageUnavailableError
from .models import KeyValueEntry

# Set up logging
logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Snapshot:
    """A decoded value together with the version it was read at (0 = absent)."""
    value: Any
    version: int


@dataclass(frozen=True)
class PendingWrite:
    """An encoded write waiting to be committed by `EntityStore.save_many`."""
    key: str
    payload: str
    expected_version: Optional[int] = None


class CollectionCodec(Generic[ModelT]):
    """
    Reviver/replacer pair for a collection of pydantic models.

    The JSON layout has no native date type, so typed fields are revived by
    pydantic validation and written back with `mode="json"` (ISO-8601 strings).
    """

    def __init__(self, model: Type[ModelT]):
        self._adapter = TypeAdapter(List[model])

    def revive(self, data: Any) -> List[ModelT]:
        return self._adapter.validate_python(data)

    def replace(self, items: Sequence[ModelT]) -> Any:
        return self._adapter.dump_python(list(items), mode="json", by_alias=True)


class EntityStore:
    """
    Durable key-value persistence of whole-collection snapshots.

    Args:
        session_factory: SQLAlchemy session factory bound to the substrate database
        latency_seconds: Artificial delay applied before each `load`
    """

    def __init__(self, session_factory: sessionmaker, latency_seconds: float = 0.0):
        self._session_factory = session_factory
        self._latency_seconds = latency_seconds

    def get(self, key: str, reviver: Optional[Callable[[Any], Any]] = None) -> Optional[Snapshot]:
        """
        Read a key without persisting anything.

        Args:
            key: Storage key
            reviver: Optional callable turning the parsed JSON into typed values

        Returns:
            Snapshot or None when the key is absent. A stored document that
            cannot be parsed is logged and returned with value None.
        """
        text, version = self._fetch(key)
        if text is None:
            return None
        try:
            return Snapshot(self._decode(text, reviver), version)
        except ValueError as e:
            logger.error(f"Stored value for '{key}' is unreadable: {str(e)}")
            return Snapshot(None, version)

    def load(
        self,
        key: str,
        default: Any,
        reviver: Optional[Callable[[Any], Any]] = None,
        replacer: Optional[Callable[[Any], Any]] = None,
    ) -> Snapshot:
        """
        Read a key, persisting `default` when it is absent.

        A document that fails to parse is replaced by `default`; the previous
        contents are lost (logged at error level).

        Args:
            key: Storage key
            default: Value persisted and returned when the key is absent or corrupt
            reviver: Optional callable turning the parsed JSON into typed values
            replacer: Optional callable turning typed values into JSON-ready data

        Returns:
            Snapshot: Value and the version it was read at

        Raises:
            StorageUnavailableError: If the substrate cannot be reached
        """
        self._pause()
        text, version = self._fetch(key)

        if text is None:
            try:
                version = self.save(key, default, replacer, expected_version=0)
            except ConcurrentModificationError:
                # Another writer created the key first; read theirs
                return self.load(key, default, reviver, replacer)
            logger.info(f"Initialized '{key}' with its default value")
            return Snapshot(default, version)

        try:
            return Snapshot(self._decode(text, reviver), version)
        except ValueError as e:
            logger.error(f"Corrupt snapshot for '{key}', resetting to default: {str(e)}")
            version = self.save(key, default, replacer, expected_version=version)
            return Snapshot(default, version)

    def pending(
        self,
        key: str,
        value: Any,
        replacer: Optional[Callable[[Any], Any]] = None,
        expected_version: Optional[int] = None,
    ) -> PendingWrite:
        """
        Encode a value for a later `save_many` call.

        Raises:
            AppException: If the value cannot be serialized
        """
        try:
            payload = json.dumps(replacer(value) if replacer else value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize value for '{key}': {str(e)}")
            raise AppException(f"Could not serialize '{key}'", status_code=500)
        return PendingWrite(key=key, payload=payload, expected_version=expected_version)

    def save(
        self,
        key: str,
        value: Any,
        replacer: Optional[Callable[[Any], Any]] = None,
        expected_version: Optional[int] = None,
    ) -> int:
        """
        Serialize and persist a full value, overwriting any prior one.

        Args:
            key: Storage key
            value: Value to store
            replacer: Optional callable turning typed values into JSON-ready data
            expected_version: Version the caller read; None skips the check,
                0 requires the key to be absent

        Returns:
            int: New version of the key

        Raises:
            ConcurrentModificationError: If the stored version differs from expected_version
            StorageUnavailableError: If the substrate cannot be written
        """
        return self.save_many([self.pending(key, value, replacer, expected_version)])[0]

    def save_many(self, writes: Sequence[PendingWrite]) -> List[int]:
        """
        Commit several writes in a single transaction: all are applied or none.

        Returns:
            List[int]: New version of each key, in the order given
        """
        with self._session_factory() as session:
            try:
                versions = [self._apply(session, write) for write in writes]
                session.commit()
            except ConcurrentModificationError:
                session.rollback()
                raise
            except IntegrityError:
                session.rollback()
                keys = ", ".join(write.key for write in writes)
                logger.warning(f"Concurrent creation detected while writing {keys}")
                raise ConcurrentModificationError(f"Data for {keys} was created concurrently, reload and retry")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Storage write failed: {str(e)}")
                raise StorageUnavailableError("Local storage is unavailable, changes were not saved")
        return versions

    def delete(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is a no-op.

        Raises:
            StorageUnavailableError: If the substrate cannot be written
        """
        with self._session_factory() as session:
            try:
                session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Storage delete of '{key}' failed: {str(e)}")
                raise StorageUnavailableError("Local storage is unavailable, changes were not saved")

    def _pause(self) -> None:
        if self._latency_seconds > 0:
            time.sleep(self._latency_seconds)

    def _fetch(self, key: str) -> Tuple[Optional[str], int]:
        try:
            with self._session_factory() as session:
                entry = session.get(KeyValueEntry, key)
                if entry is None:
                    return None, 0
                return entry.value, entry.version
        except SQLAlchemyError as e:
            logger.error(f"Storage read of '{key}' failed: {str(e)}")
            raise StorageUnavailableError("Local storage is unavailable, please retry")

    @staticmethod
    def _decode(text: str, reviver: Optional[Callable[[Any], Any]]) -> Any:
        data = json.loads(text)
        return reviver(data) if reviver else data

    @staticmethod
    def _apply(session, write: PendingWrite) -> int:
        if write.expected_version is None:
            entry = session.get(KeyValueEntry, write.key)
            if entry is None:
                session.add(KeyValueEntry(key=write.key, value=write.payload, version=1))
                session.flush()
                return 1
            entry.value = write.payload
            entry.version = entry.version + 1
            session.flush()
            return entry.version

        if write.expected_version == 0:
            session.add(KeyValueEntry(key=write.key, value=write.payload, version=1))
            session.flush()
            return 1

        result = session.execute(
            update(KeyValueEntry)
            .where(KeyValueEntry.key == write.key, KeyValueEntry.version == write.expected_version)
            .values(value=write.payload, version=write.expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Version check failed for '{write.key}' (expected {write.expected_version})")
            raise ConcurrentModificationError(f"'{write.key}' was modified by another writer, reload and retry")
        return write.expected_version + 1
