"""
Firestore client creation and error translation for the remote backend.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore

from ..config import Settings
from ..exceptions import StorageUnavailableError

# Set up logging
logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
PATIENTS_COLLECTION = "patients"
MEDICAL_ENTRIES_COLLECTION = "medicalEntries"
APPOINTMENTS_COLLECTION = "appointments"


def create_firestore_client(settings: Settings) -> Optional[firestore.Client]:
    """
    Create a Firestore client from settings.

    A missing project or unusable credentials are logged and yield None; the
    remote services then fail every call with StorageUnavailableError instead
    of preventing the application from starting.

    Args:
        settings: Application settings

    Returns:
        firestore.Client or None
    """
    if not settings.firestore_project:
        logger.error(
            "CRITICAL: Firestore configuration is missing. Set FIRESTORE_PROJECT "
            "(and FIRESTORE_CREDENTIALS_FILE if not using default credentials)."
        )
        return None

    try:
        if settings.firestore_credentials_file:
            client = firestore.Client.from_service_account_json(
                settings.firestore_credentials_file, project=settings.firestore_project
            )
        else:
            client = firestore.Client(project=settings.firestore_project)
    except (auth_exceptions.GoogleAuthError, google_exceptions.GoogleAPIError, OSError, ValueError) as e:
        logger.error(f"Error initializing Firestore: {str(e)}")
        return None

    logger.info(f"Firestore initialized for project {settings.firestore_project}")
    return client


@contextmanager
def remote_call(action: str):
    """
    Translate Google API failures raised inside the block into StorageUnavailableError.

    Args:
        action: What was being attempted, used in the log and the error message
    """
    try:
        yield
    except google_exceptions.GoogleAPIError as e:
        logger.error(f"Error {action}: {str(e)}")
        raise StorageUnavailableError(
            f"Remote storage failed while {action}. Check your connection and Firestore setup. "
            f"Original error: {str(e)}"
        )


class FirestoreBacked:
    """Holds the client and resolves this service's collection."""

    collection_name: str = ""

    def __init__(self, client):
        self._client = client

    def _require_client(self):
        if self._client is None:
            raise StorageUnavailableError(
                "Firestore not initialized. Check FIRESTORE_PROJECT and credentials configuration."
            )
        return self._client

    def _collection(self, name: Optional[str] = None):
        return self._require_client().collection(name or self.collection_name)
