"""
Appointment Service - collection contract and local-store implementation.

Appointments are always kept in ascending date-time order. The patient's
display name is copied onto the appointment on every create and edit; renaming
a patient afterwards does not rewrite existing appointments.
"""
import datetime as dt
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.entity_store import CollectionCodec, EntityStore
from ..core.identity import IdentityAllocator
from ..core.keys import APPOINTMENTS_KEY, NEXT_APPOINTMENT_ID_KEY
from ..patients.service import PatientService
from .schemas import UNKNOWN_PATIENT_NAME, Appointment, AppointmentCreate, AppointmentUpdate

# Set up logging
logger = logging.getLogger(__name__)


def combine_date_time(day: dt.date, time_of_day: str, tz: dt.tzinfo) -> dt.datetime:
    """
    Assemble an appointment date-time from a calendar day and "HH:MM".

    Args:
        day: Calendar day
        time_of_day: Time as "HH:MM" (24h)
        tz: Clinic timezone the day and time are expressed in

    Returns:
        datetime: Timezone-aware date-time
    """
    hours, minutes = (int(part) for part in time_of_day.split(":"))
    return dt.datetime.combine(day, dt.time(hours, minutes), tzinfo=tz)


def sort_appointments(appointments: List[Appointment]) -> List[Appointment]:
    """Order appointments by ascending date-time."""
    return sorted(appointments, key=lambda a: a.date)


class AppointmentService(ABC):
    """
    Operations every appointment backend provides.

    Args:
        patients: Patient service used to resolve display names
        tz: Clinic timezone
    """

    def __init__(self, patients: PatientService, tz: dt.tzinfo):
        self._patients = patients
        self._tz = tz

    @abstractmethod
    def list(self) -> List[Appointment]:
        """Return all appointments in ascending date-time order."""

    @abstractmethod
    def get(self, appointment_id: str) -> Optional[Appointment]:
        """Return one appointment, or None when the id is unknown."""

    @abstractmethod
    def add(self, data: AppointmentCreate) -> Appointment:
        """Store a new appointment under a freshly allocated id."""

    @abstractmethod
    def update(self, appointment_id: str, data: AppointmentUpdate) -> Optional[Appointment]:
        """Apply the sent fields; an unknown id is a no-op returning None."""

    @abstractmethod
    def delete(self, appointment_id: str) -> None:
        """Remove an appointment; unknown ids are ignored."""

    def list_for_day(self, day: dt.date) -> List[Appointment]:
        """Return the appointments falling on `day` in the clinic timezone."""
        return [a for a in self.list() if a.date.astimezone(self._tz).date() == day]

    def _patient_name(self, patient_id: str) -> str:
        patient = self._patients.get(patient_id)
        if patient is None:
            logger.warning(f"Appointment references unknown patient {patient_id}")
            return UNKNOWN_PATIENT_NAME
        return patient.full_name

    def _edited(self, current: Appointment, data: AppointmentUpdate) -> Appointment:
        changes = {"patient_name": self._patient_name(current.patient_id)}
        if data.date is not None or data.time is not None:
            local = current.date.astimezone(self._tz)
            day = data.date if data.date is not None else local.date()
            time_of_day = data.time if data.time is not None else local.strftime("%H:%M")
            changes["date"] = combine_date_time(day, time_of_day, self._tz)
        if data.reason is not None:
            changes["reason"] = data.reason
        if data.status is not None:
            changes["status"] = data.status
        return current.model_copy(update=changes)


class LocalAppointmentService(AppointmentService):
    """
    Appointment collection kept in the local entity store.

    Args:
        store: Entity store holding the snapshots
        allocator: Id allocator sharing the same store
        patients: Patient service used to resolve display names
        tz: Clinic timezone
    """

    def __init__(self, store: EntityStore, allocator: IdentityAllocator, patients: PatientService, tz: dt.tzinfo):
        super().__init__(patients, tz)
        self._store = store
        self._allocator = allocator
        self._codec = CollectionCodec(Appointment)

    def _snapshot(self):
        return self._store.load(APPOINTMENTS_KEY, [], self._codec.revive, self._codec.replace)

    def list(self) -> List[Appointment]:
        return sort_appointments(self._snapshot().value)

    def get(self, appointment_id: str) -> Optional[Appointment]:
        return next((a for a in self._snapshot().value if a.id == appointment_id), None)

    def add(self, data: AppointmentCreate) -> Appointment:
        snapshot = self._snapshot()
        new_id, counter_write = self._allocator.reserve(NEXT_APPOINTMENT_ID_KEY, [a.id for a in snapshot.value])

        appointment = Appointment(
            id=new_id,
            patient_id=data.patient_id,
            patient_name=self._patient_name(data.patient_id),
            date=combine_date_time(data.date, data.time, self._tz),
            reason=data.reason,
            status=data.status,
        )
        appointments = sort_appointments([*snapshot.value, appointment])

        self._store.save_many([
            counter_write,
            self._store.pending(APPOINTMENTS_KEY, appointments, self._codec.replace, snapshot.version),
        ])
        logger.info(f"Appointment {new_id} created for patient {data.patient_id} at {appointment.date.isoformat()}")
        return appointment

    def update(self, appointment_id: str, data: AppointmentUpdate) -> Optional[Appointment]:
        snapshot = self._snapshot()
        appointments = list(snapshot.value)
        index = next((i for i, a in enumerate(appointments) if a.id == appointment_id), None)
        if index is None:
            logger.info(f"Update of unknown appointment {appointment_id} ignored")
            return None

        updated = self._edited(appointments[index], data)
        appointments[index] = updated
        self._store.save(APPOINTMENTS_KEY, sort_appointments(appointments), self._codec.replace, snapshot.version)
        logger.info(f"Appointment {appointment_id} updated")
        return updated

    def delete(self, appointment_id: str) -> None:
        snapshot = self._snapshot()
        remaining = [a for a in snapshot.value if a.id != appointment_id]
        if len(remaining) == len(snapshot.value):
            logger.info(f"Delete of unknown appointment {appointment_id} ignored")
            return
        self._store.save(APPOINTMENTS_KEY, remaining, self._codec.replace, snapshot.version)
        logger.info(f"Appointment {appointment_id} deleted")
