"""
Appointment Schemas - Pydantic models for appointment data validation and serialization.
"""
import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.schemas import CamelModel

TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

# Display name used when the referenced patient cannot be found
UNKNOWN_PATIENT_NAME = "Desconocido"


class AppointmentStatus(str, Enum):
    SCHEDULED = "programada"
    COMPLETED = "completada"
    CANCELLED = "cancelada"


class AppointmentCreate(CamelModel):
    """
    Appointment Creation Schema

    The stored date-time is assembled from `date` (calendar day) and `time`
    ("HH:MM") in the clinic timezone.
    """
    patient_id: str = Field(..., min_length=1)
    date: dt.date
    time: str = Field(..., pattern=TIME_PATTERN)
    reason: str = Field(..., min_length=5)
    status: AppointmentStatus = AppointmentStatus.SCHEDULED


class AppointmentUpdate(CamelModel):
    """
    Appointment Update Schema

    The patient of an appointment cannot be changed, so `patientId` is
    rejected here. Sending only `date` keeps the current time of day and
    sending only `time` keeps the current day.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    date: Optional[dt.date] = None
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    reason: Optional[str] = Field(None, min_length=5)
    status: Optional[AppointmentStatus] = None


class Appointment(CamelModel):
    """
    Stored appointment.

    `patient_name` is a copy of the patient's full name taken when the
    appointment was last created or edited.
    """
    id: str
    patient_id: str
    patient_name: Optional[str] = None
    date: dt.datetime
    reason: str
    status: AppointmentStatus

    @field_validator("date")
    @classmethod
    def assume_utc(cls, value: dt.datetime) -> dt.datetime:
        # Naive values come from serializers that always wrote UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value
