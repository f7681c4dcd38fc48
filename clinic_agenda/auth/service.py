"""
Session Service - the single-session login gate.

The logged-in user (id and username only) is kept under one key of the local
entity store, whichever backend holds the collections. There is one session
per store; this is a gate for a single-operator clinic, not multi-user
authentication.
"""
import logging
import time
from typing import Optional

from pydantic import ValidationError

from ..core.entity_store import EntityStore
from ..core.keys import CURRENT_USER_KEY
from ..exceptions import InvalidCredentialsError
from ..users.schemas import User
from ..users.service import UserService

# Set up logging
logger = logging.getLogger(__name__)


class SessionService:
    """
    Args:
        store: Local entity store holding the session key
        users: User service used to check credentials
        latency_seconds: Artificial delay applied before each login attempt
    """

    def __init__(self, store: EntityStore, users: UserService, latency_seconds: float = 0.0):
        self._store = store
        self._users = users
        self._latency_seconds = latency_seconds

    def login(self, username: str, password: str) -> User:
        """
        Check credentials and remember the user as the current session.

        Raises:
            InvalidCredentialsError: If the username/password pair does not match
        """
        if self._latency_seconds > 0:
            time.sleep(self._latency_seconds)

        user = self._users.authenticate(username, password)
        if user is None:
            logger.warning(f"Login failed for username {username!r}")
            raise InvalidCredentialsError()

        self.remember(user)
        logger.info(f"User {user.id} ({user.username}) logged in")
        return user

    def remember(self, user: User) -> None:
        """Store `user` as the current session user."""
        self._store.save(CURRENT_USER_KEY, user.model_dump(by_alias=True))

    def logout(self) -> None:
        self._store.delete(CURRENT_USER_KEY)
        logger.info("Session closed")

    def current_user(self) -> Optional[User]:
        """Return the session user, or None. An unreadable session is cleared."""
        snapshot = self._store.get(CURRENT_USER_KEY)
        if snapshot is None:
            return None
        try:
            return User.model_validate(snapshot.value)
        except ValidationError as e:
            logger.error(f"Error reading session user, clearing it: {str(e)}")
            self._store.delete(CURRENT_USER_KEY)
            return None
