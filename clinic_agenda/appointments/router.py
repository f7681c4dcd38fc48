"""
Appointment Router - API endpoints for the appointment calendar.
"""
import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..core.backend import ClinicBackend
from ..dependencies import get_backend, get_current_user
from ..exceptions import ResourceNotFoundError
from ..users.schemas import User
from .schemas import Appointment, AppointmentCreate, AppointmentUpdate

router = APIRouter()


@router.get("/", response_model=List[Appointment])
def list_appointments(
    day: Optional[dt.date] = Query(None, description="Only appointments on this day (YYYY-MM-DD)"),
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Get appointments in ascending date-time order, optionally for a single day
    """
    if day is not None:
        return backend.appointments.list_for_day(day)
    return backend.appointments.list()


@router.get("/{appointment_id}", response_model=Appointment)
def get_appointment(
    appointment_id: str,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Get an appointment by ID
    """
    appointment = backend.appointments.get(appointment_id)
    if appointment is None:
        raise ResourceNotFoundError("Appointment not found")
    return appointment


@router.post("/", response_model=Appointment, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Schedule an appointment

    `date` and `time` ("HH:MM") are combined in the clinic timezone.
    """
    return backend.appointments.add(appointment_data)


@router.patch("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_appointment(
    appointment_id: str,
    appointment_data: AppointmentUpdate,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Reschedule, change the reason, or change the status of an appointment

    The patient cannot be changed. Updating an unknown appointment does nothing.
    """
    backend.appointments.update(appointment_id, appointment_data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: str,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Delete an appointment
    """
    backend.appointments.delete(appointment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
