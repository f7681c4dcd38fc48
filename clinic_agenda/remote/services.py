"""
Firestore implementations of the four collection contracts.

Records are keyed by Firestore-generated document ids, except the admin user
which always lives at `users/admin` so it can be fetched without a query.
Deleting a patient removes the patient, their medical entries and their
appointments in one atomic write batch.
"""
import datetime as dt
import logging
from typing import List, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from ..appointments.schemas import Appointment, AppointmentCreate, AppointmentStatus, AppointmentUpdate
from ..appointments.service import AppointmentService, combine_date_time, sort_appointments
from ..core.security import hash_password, verify_password
from ..exceptions import DuplicateUsernameError
from ..medical_records.schemas import MedicalEntry, MedicalEntryCreate, MedicalEntryUpdate
from ..medical_records.service import MedicalEntryService, sort_entries
from ..patients.schemas import Patient, PatientCreate, PatientUpdate
from ..patients.service import PatientService, sort_patients
from ..users.schemas import ADMIN_USERNAME, User, UserCreate, UserUpdate
from ..users.service import UserService
from .client import (
    APPOINTMENTS_COLLECTION,
    MEDICAL_ENTRIES_COLLECTION,
    PATIENTS_COLLECTION,
    USERS_COLLECTION,
    FirestoreBacked,
    remote_call,
)
from .timestamps import appointment_datetime_from_store, entry_date_from_store, to_timestamp

# Set up logging
logger = logging.getLogger(__name__)

ADMIN_DOCUMENT_ID = "admin"


class FirestorePatientService(FirestoreBacked, PatientService):
    collection_name = PATIENTS_COLLECTION

    @staticmethod
    def _to_patient(doc) -> Optional[Patient]:
        try:
            return Patient.model_validate({**doc.to_dict(), "id": doc.id})
        except ValidationError as e:
            logger.warning(f"Patient {doc.id} skipped: unreadable record ({e.error_count()} invalid fields)")
            return None

    def list(self) -> List[Patient]:
        with remote_call("fetching patients"):
            docs = self._collection().stream()
            patients = [self._to_patient(doc) for doc in docs]
        return sort_patients([p for p in patients if p is not None])

    def get(self, patient_id: str) -> Optional[Patient]:
        with remote_call("fetching patient"):
            snapshot = self._collection().document(patient_id).get()
        return self._to_patient(snapshot) if snapshot.exists else None

    def add(self, data: PatientCreate) -> Patient:
        with remote_call("adding patient"):
            ref = self._collection().document()
            ref.set(data.model_dump(by_alias=True, mode="json"))
        logger.info(f"Patient {ref.id} created")
        return Patient(id=ref.id, **data.model_dump())

    def update(self, patient_id: str, data: PatientUpdate) -> Optional[Patient]:
        changes = data.changes(by_alias=True)
        with remote_call("updating patient"):
            ref = self._collection().document(patient_id)
            try:
                if changes:
                    ref.update(changes)
            except google_exceptions.NotFound:
                logger.info(f"Update of unknown patient {patient_id} ignored")
                return None
        return self.get(patient_id)

    def delete(self, patient_id: str) -> None:
        client = self._require_client()
        with remote_call("deleting patient and related data"):
            batch = client.batch()
            by_patient = FieldFilter("patientId", "==", patient_id)
            entries = list(client.collection(MEDICAL_ENTRIES_COLLECTION).where(filter=by_patient).stream())
            appointments = list(client.collection(APPOINTMENTS_COLLECTION).where(filter=by_patient).stream())
            for doc in entries + appointments:
                batch.delete(doc.reference)
            batch.delete(self._collection().document(patient_id))
            batch.commit()
        logger.info(
            f"Patient {patient_id} deleted with {len(entries)} medical entries and {len(appointments)} appointments"
        )


class FirestoreAppointmentService(FirestoreBacked, AppointmentService):
    collection_name = APPOINTMENTS_COLLECTION

    def __init__(self, client, patients: PatientService, tz: dt.tzinfo):
        FirestoreBacked.__init__(self, client)
        AppointmentService.__init__(self, patients, tz)

    def _to_appointment(self, doc) -> Optional[Appointment]:
        data = doc.to_dict()
        when = appointment_datetime_from_store(data.get("date"), self._tz)
        if when is None:
            logger.warning(f"Appointment {doc.id} skipped: unreadable date")
            return None
        return Appointment(
            id=doc.id,
            patient_id=data.get("patientId", ""),
            patient_name=data.get("patientName"),
            date=when,
            reason=data.get("reason", ""),
            status=data.get("status", AppointmentStatus.SCHEDULED),
        )

    @staticmethod
    def _to_document(appointment: Appointment) -> dict:
        return {
            "patientId": appointment.patient_id,
            "patientName": appointment.patient_name,
            "date": to_timestamp(appointment.date),
            "reason": appointment.reason,
            "status": appointment.status.value,
        }

    def list(self) -> List[Appointment]:
        with remote_call("fetching appointments"):
            docs = self._collection().order_by("date").stream()
            appointments = [self._to_appointment(doc) for doc in docs]
        return sort_appointments([a for a in appointments if a is not None])

    def get(self, appointment_id: str) -> Optional[Appointment]:
        with remote_call("fetching appointment"):
            snapshot = self._collection().document(appointment_id).get()
        return self._to_appointment(snapshot) if snapshot.exists else None

    def add(self, data: AppointmentCreate) -> Appointment:
        patient_name = self._patient_name(data.patient_id)
        with remote_call("adding appointment"):
            ref = self._collection().document()
            appointment = Appointment(
                id=ref.id,
                patient_id=data.patient_id,
                patient_name=patient_name,
                date=combine_date_time(data.date, data.time, self._tz),
                reason=data.reason,
                status=data.status,
            )
            ref.set(self._to_document(appointment))
        logger.info(f"Appointment {ref.id} created for patient {data.patient_id}")
        return appointment

    def update(self, appointment_id: str, data: AppointmentUpdate) -> Optional[Appointment]:
        current = self.get(appointment_id)
        if current is None:
            logger.info(f"Update of unknown appointment {appointment_id} ignored")
            return None

        updated = self._edited(current, data)
        document = self._to_document(updated)
        document.pop("patientId")
        with remote_call("updating appointment"):
            try:
                self._collection().document(appointment_id).update(document)
            except google_exceptions.NotFound:
                logger.info(f"Appointment {appointment_id} disappeared before update")
                return None
        return updated

    def delete(self, appointment_id: str) -> None:
        with remote_call("deleting appointment"):
            self._collection().document(appointment_id).delete()


class FirestoreMedicalEntryService(FirestoreBacked, MedicalEntryService):
    collection_name = MEDICAL_ENTRIES_COLLECTION

    @staticmethod
    def _to_entry(doc) -> MedicalEntry:
        data = doc.to_dict()
        return MedicalEntry(
            id=doc.id,
            patient_id=data.get("patientId", ""),
            date=entry_date_from_store(data.get("date"), doc.id),
            notes=data.get("notes", ""),
        )

    def list(self, patient_id: Optional[str] = None) -> List[MedicalEntry]:
        with remote_call("fetching medical entries"):
            docs = self._collection().order_by("date", direction=firestore.Query.DESCENDING).stream()
            entries = [self._to_entry(doc) for doc in docs]
        if patient_id is not None:
            entries = [e for e in entries if e.patient_id == patient_id]
        # Server order puts every timestamp before every string date
        return sort_entries(entries)

    def add(self, data: MedicalEntryCreate) -> MedicalEntry:
        with remote_call("adding medical entry"):
            ref = self._collection().document()
            ref.set({"patientId": data.patient_id, "date": to_timestamp(data.date), "notes": data.notes})
        logger.info(f"Medical entry {ref.id} created for patient {data.patient_id}")
        return MedicalEntry(id=ref.id, **data.model_dump())

    def update(self, entry_id: str, data: MedicalEntryUpdate) -> Optional[MedicalEntry]:
        changes = {}
        if data.date is not None:
            changes["date"] = to_timestamp(data.date)
        if data.notes is not None:
            changes["notes"] = data.notes
        with remote_call("updating medical entry"):
            ref = self._collection().document(entry_id)
            try:
                if changes:
                    ref.update(changes)
                snapshot = ref.get()
            except google_exceptions.NotFound:
                logger.info(f"Update of unknown medical entry {entry_id} ignored")
                return None
        return self._to_entry(snapshot) if snapshot.exists else None

    def delete(self, entry_id: str) -> None:
        with remote_call("deleting medical entry"):
            self._collection().document(entry_id).delete()


class FirestoreUserService(FirestoreBacked, UserService):
    """
    Users in Firestore. Documents hold only `username` and a bcrypt `passwordHash`.

    Args:
        client: Firestore client (None when not configured)
        admin_password: Password given to the admin account when it is created
    """
    collection_name = USERS_COLLECTION

    def __init__(self, client, admin_password: str = "password"):
        super().__init__(client)
        self._admin_password = admin_password

    def _find(self, username: str):
        """Return the document snapshot of the user with this username, or None."""
        if username == ADMIN_USERNAME:
            snapshot = self._collection().document(ADMIN_DOCUMENT_ID).get()
            if snapshot.exists and (snapshot.to_dict() or {}).get("username") == ADMIN_USERNAME:
                return snapshot
        query = self._collection().where(filter=FieldFilter("username", "==", username)).limit(1)
        return next(iter(query.stream()), None)

    @staticmethod
    def _to_user(snapshot) -> User:
        return User(id=snapshot.id, username=(snapshot.to_dict() or {}).get("username", ""))

    def list(self) -> List[User]:
        with remote_call("fetching users"):
            return [self._to_user(doc) for doc in self._collection().stream()]

    def get(self, user_id: str) -> Optional[User]:
        with remote_call("fetching user"):
            snapshot = self._collection().document(user_id).get()
        return self._to_user(snapshot) if snapshot.exists else None

    def get_by_username(self, username: str) -> Optional[User]:
        with remote_call("fetching user by username"):
            snapshot = self._find(username)
        return self._to_user(snapshot) if snapshot is not None else None

    def authenticate(self, username: str, password: str) -> Optional[User]:
        with remote_call("fetching user by username"):
            snapshot = self._find(username)
        if snapshot is None:
            return None
        password_hash = (snapshot.to_dict() or {}).get("passwordHash")
        if not password_hash:
            logger.warning(f"User {username} found but has no passwordHash. Cannot authenticate.")
            return None
        if not verify_password(password, password_hash):
            return None
        return self._to_user(snapshot)

    def add(self, data: UserCreate) -> User:
        with remote_call("adding user"):
            if self._find(data.username) is not None:
                raise DuplicateUsernameError(data.username)
            document = {"username": data.username, "passwordHash": hash_password(data.password)}
            if data.username == ADMIN_USERNAME:
                ref = self._collection().document(ADMIN_DOCUMENT_ID)
            else:
                ref = self._collection().document()
            ref.set(document)
        logger.info(f"User {ref.id} ({data.username}) created")
        return User(id=ref.id, username=data.username)

    def update(self, user_id: str, data: UserUpdate) -> Optional[User]:
        with remote_call("updating user"):
            ref = self._collection().document(user_id)
            snapshot = ref.get()
            if not snapshot.exists:
                logger.info(f"Update of unknown user {user_id} ignored")
                return None

            target = self._to_user(snapshot)
            self.check_update_policy(target, data)
            if data.username is not None and data.username != target.username:
                if self._find(data.username) is not None:
                    raise DuplicateUsernameError(data.username)

            changes = {}
            if data.username is not None:
                changes["username"] = data.username
            if data.password:
                changes["passwordHash"] = hash_password(data.password)
            if changes:
                ref.update(changes)
        logger.info(f"User {user_id} updated")
        return User(id=user_id, username=changes.get("username", target.username))

    def delete(self, user_id: str, current_user_id: Optional[str] = None) -> None:
        with remote_call("deleting user"):
            ref = self._collection().document(user_id)
            snapshot = ref.get()
            if not snapshot.exists:
                logger.info(f"Delete of unknown user {user_id} ignored")
                return
            self.check_delete_policy(self._to_user(snapshot), current_user_id)
            ref.delete()
        logger.info(f"User {user_id} deleted")

    def ensure_admin(self) -> User:
        with remote_call("ensuring admin user exists"):
            ref = self._collection().document(ADMIN_DOCUMENT_ID)
            snapshot = ref.get()
            if snapshot.exists:
                if not (snapshot.to_dict() or {}).get("passwordHash"):
                    logger.warning("Admin user exists but 'passwordHash' is missing. Re-creating hash for the default password.")
                    ref.update({"passwordHash": hash_password(self._admin_password)})
                return User(id=ADMIN_DOCUMENT_ID, username=ADMIN_USERNAME)

            existing = self._find(ADMIN_USERNAME)
            if existing is not None:
                logger.info("Admin user found with a different document ID. Using existing admin.")
                return self._to_user(existing)

            logger.info("No admin user found. Creating admin user with ID 'admin'.")
            ref.set({"username": ADMIN_USERNAME, "passwordHash": hash_password(self._admin_password)})
        return User(id=ADMIN_DOCUMENT_ID, username=ADMIN_USERNAME)
