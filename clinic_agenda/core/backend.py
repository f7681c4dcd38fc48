"""
Backend wiring - builds the four collection services for the configured store.

The application chooses one backend at startup and injects it into the routes;
nothing else decides which implementation is in use.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from ..appointments.service import AppointmentService, LocalAppointmentService
from ..config import Settings
from ..medical_records.service import LocalMedicalEntryService, MedicalEntryService
from ..patients.service import LocalPatientService, PatientService
from ..users.service import LocalUserService, UserService
from .entity_store import EntityStore
from .identity import IdentityAllocator

# Set up logging
logger = logging.getLogger(__name__)


@dataclass
class ClinicBackend:
    """The collection services of one backend."""
    name: str
    patients: PatientService
    appointments: AppointmentService
    medical_entries: MedicalEntryService
    users: UserService


def clinic_timezone(settings: Settings) -> dt.tzinfo:
    """Resolve the configured clinic timezone."""
    if settings.clinic_timezone.upper() == "UTC":
        return dt.timezone.utc
    return ZoneInfo(settings.clinic_timezone)


def build_local_backend(store: EntityStore, tz: dt.tzinfo, admin_password: str = "password") -> ClinicBackend:
    """
    Build services that keep every collection in the local entity store.

    Args:
        store: Entity store
        tz: Clinic timezone
        admin_password: Password for a newly created admin account
    """
    allocator = IdentityAllocator(store)
    patients = LocalPatientService(store, allocator)
    return ClinicBackend(
        name="local",
        patients=patients,
        appointments=LocalAppointmentService(store, allocator, patients, tz),
        medical_entries=LocalMedicalEntryService(store, allocator),
        users=LocalUserService(store, allocator, admin_password),
    )


def build_remote_backend(client, tz: dt.tzinfo, admin_password: str = "password") -> ClinicBackend:
    """
    Build services backed by Firestore.

    Args:
        client: Firestore client, or None when it could not be created
        tz: Clinic timezone
        admin_password: Password for a newly created admin account
    """
    from ..remote.services import (
        FirestoreAppointmentService,
        FirestoreMedicalEntryService,
        FirestorePatientService,
        FirestoreUserService,
    )

    patients = FirestorePatientService(client)
    return ClinicBackend(
        name="remote",
        patients=patients,
        appointments=FirestoreAppointmentService(client, patients, tz),
        medical_entries=FirestoreMedicalEntryService(client),
        users=FirestoreUserService(client, admin_password),
    )


def build_backend(settings: Settings, store: EntityStore, firestore_client=None) -> ClinicBackend:
    """
    Build the backend selected by `settings.storage_backend`.

    Args:
        settings: Application settings
        store: Local entity store (always present: it also holds the session)
        firestore_client: Client to use for the remote backend; created from
            settings when omitted

    Returns:
        ClinicBackend: Wired services
    """
    tz = clinic_timezone(settings)
    if settings.storage_backend == "remote":
        if firestore_client is None:
            from ..remote.client import create_firestore_client

            firestore_client = create_firestore_client(settings)
        logger.info("Using remote (Firestore) storage backend")
        return build_remote_backend(firestore_client, tz, settings.default_admin_password)

    logger.info(f"Using local storage backend at {settings.database_url}")
    return build_local_backend(store, tz, settings.default_admin_password)
