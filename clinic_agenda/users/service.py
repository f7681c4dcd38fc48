"""
User Service - collection contract and local-store implementation.

Account policies are enforced here for every backend:
- exactly one account is named "admin"; it cannot be deleted, renamed, or have
  its password changed through `update`
- nobody can delete the account they are logged in with
- usernames are unique
"""
import logging
import secrets
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.entity_store import CollectionCodec, EntityStore
from ..core.identity import IdentityAllocator, format_user_id
from ..core.keys import NEXT_USER_ID_KEY, USERS_KEY
from ..exceptions import DuplicateUsernameError, PolicyViolationError
from .schemas import ADMIN_USERNAME, LocalUserRecord, User, UserCreate, UserUpdate

# Set up logging
logger = logging.getLogger(__name__)


class UserService(ABC):
    """Operations every user backend provides."""

    @abstractmethod
    def list(self) -> List[User]:
        """Return all users."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        """Return one user, or None when the id is unknown."""

    @abstractmethod
    def get_by_username(self, username: str) -> Optional[User]:
        """Return the user with this username, or None."""

    @abstractmethod
    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the user when the password matches, otherwise None."""

    @abstractmethod
    def add(self, data: UserCreate) -> User:
        """Create a user; raises DuplicateUsernameError for a taken username."""

    @abstractmethod
    def update(self, user_id: str, data: UserUpdate) -> Optional[User]:
        """Apply the sent fields; an unknown id is a no-op returning None."""

    @abstractmethod
    def delete(self, user_id: str, current_user_id: Optional[str] = None) -> None:
        """Remove a user; unknown ids are ignored."""

    @abstractmethod
    def ensure_admin(self) -> User:
        """Create the admin account if it does not exist and return it."""

    @staticmethod
    def check_update_policy(target: User, data: UserUpdate) -> None:
        """
        Reject edits of the admin account that touch its credential or name.

        Raises:
            PolicyViolationError: Nothing of the edit is applied
        """
        if not target.is_admin:
            return
        if data.password:
            logger.warning("Attempt to change admin password was blocked")
            raise PolicyViolationError("The admin password cannot be changed")
        if data.username is not None and data.username != ADMIN_USERNAME:
            logger.warning("Attempt to rename admin user was blocked")
            raise PolicyViolationError("The admin user cannot be renamed")

    @staticmethod
    def check_delete_policy(target: User, current_user_id: Optional[str]) -> None:
        """
        Reject deleting the admin account or the caller's own account.

        Raises:
            PolicyViolationError: The user is left untouched
        """
        if target.is_admin:
            logger.warning("Attempt to delete admin user was blocked")
            raise PolicyViolationError("Admin user cannot be deleted")
        if current_user_id is not None and target.id == current_user_id:
            logger.warning(f"User {target.id} attempted to delete their own account")
            raise PolicyViolationError("You cannot delete your own account")


class LocalUserService(UserService):
    """
    Users kept in the local entity store.

    Ids are `user-NNN`; the admin account starts as `user-001`. Passwords are
    stored in plain text, as this backend is meant for single-machine use.

    Args:
        store: Entity store holding the snapshots
        allocator: Id allocator sharing the same store
        admin_password: Password given to the admin account when it is created
    """

    def __init__(self, store: EntityStore, allocator: IdentityAllocator, admin_password: str = "password"):
        self._store = store
        self._allocator = allocator
        self._admin_password = admin_password
        self._codec = CollectionCodec(LocalUserRecord)

    def _snapshot(self):
        default = [LocalUserRecord(id=format_user_id(1), username=ADMIN_USERNAME, password_plaintext=self._admin_password)]
        return self._store.load(USERS_KEY, default, self._codec.revive, self._codec.replace)

    @staticmethod
    def _find(records: List[LocalUserRecord], username: str) -> Optional[LocalUserRecord]:
        return next((r for r in records if r.username == username), None)

    def list(self) -> List[User]:
        return [r.public() for r in self._snapshot().value]

    def get(self, user_id: str) -> Optional[User]:
        record = next((r for r in self._snapshot().value if r.id == user_id), None)
        return record.public() if record else None

    def get_by_username(self, username: str) -> Optional[User]:
        record = self._find(self._snapshot().value, username)
        return record.public() if record else None

    def authenticate(self, username: str, password: str) -> Optional[User]:
        record = self._find(self._snapshot().value, username)
        if record is None:
            return None
        if not secrets.compare_digest(record.password_plaintext.encode(), password.encode()):
            return None
        return record.public()

    def add(self, data: UserCreate) -> User:
        snapshot = self._snapshot()
        if self._find(snapshot.value, data.username):
            raise DuplicateUsernameError(data.username)

        new_id, counter_write = self._allocator.reserve(
            NEXT_USER_ID_KEY, [r.id for r in snapshot.value], fmt=format_user_id
        )
        record = LocalUserRecord(id=new_id, username=data.username, password_plaintext=data.password)

        self._store.save_many([
            counter_write,
            self._store.pending(USERS_KEY, [record, *snapshot.value], self._codec.replace, snapshot.version),
        ])
        logger.info(f"User {new_id} ({data.username}) created")
        return record.public()

    def update(self, user_id: str, data: UserUpdate) -> Optional[User]:
        snapshot = self._snapshot()
        records = list(snapshot.value)
        index = next((i for i, r in enumerate(records) if r.id == user_id), None)
        if index is None:
            logger.info(f"Update of unknown user {user_id} ignored")
            return None

        target = records[index]
        self.check_update_policy(target, data)
        if data.username is not None and data.username != target.username:
            if self._find(records, data.username):
                raise DuplicateUsernameError(data.username)

        changes = {}
        if data.username is not None:
            changes["username"] = data.username
        if data.password:
            changes["password_plaintext"] = data.password
        if not changes:
            return target.public()

        records[index] = target.model_copy(update=changes)
        self._store.save(USERS_KEY, records, self._codec.replace, snapshot.version)
        logger.info(f"User {user_id} updated")
        return records[index].public()

    def delete(self, user_id: str, current_user_id: Optional[str] = None) -> None:
        snapshot = self._snapshot()
        target = next((r for r in snapshot.value if r.id == user_id), None)
        if target is None:
            logger.info(f"Delete of unknown user {user_id} ignored")
            return

        self.check_delete_policy(target, current_user_id)
        remaining = [r for r in snapshot.value if r.id != user_id]
        self._store.save(USERS_KEY, remaining, self._codec.replace, snapshot.version)
        logger.info(f"User {user_id} deleted")

    def ensure_admin(self) -> User:
        snapshot = self._snapshot()
        admin = self._find(snapshot.value, ADMIN_USERNAME)
        if admin is not None:
            return admin.public()

        logger.info("Admin user not found, creating it")
        new_id, counter_write = self._allocator.reserve(
            NEXT_USER_ID_KEY, [r.id for r in snapshot.value], fmt=format_user_id
        )
        admin = LocalUserRecord(id=new_id, username=ADMIN_USERNAME, password_plaintext=self._admin_password)
        self._store.save_many([
            counter_write,
            self._store.pending(USERS_KEY, [admin, *snapshot.value], self._codec.replace, snapshot.version),
        ])
        return admin.public()
