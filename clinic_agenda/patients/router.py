"""
Patient Router - API endpoints for patient records.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..core.backend import ClinicBackend
from ..dependencies import get_backend, get_current_user
from ..exceptions import ResourceNotFoundError
from ..users.schemas import User
from .schemas import Patient, PatientCreate, PatientUpdate

router = APIRouter()


@router.get("/", response_model=List[Patient])
def list_patients(
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Get all patients ordered by last name, then first name
    """
    return backend.patients.list()


@router.get("/{patient_id}", response_model=Patient)
def get_patient(
    patient_id: str,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Get a patient by ID
    """
    patient = backend.patients.get(patient_id)
    if patient is None:
        raise ResourceNotFoundError("Patient not found")
    return patient


@router.post("/", response_model=Patient, status_code=status.HTTP_201_CREATED)
def create_patient(
    patient_data: PatientCreate,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Register a new patient

    The patient id is assigned by the backend.
    """
    return backend.patients.add(patient_data)


@router.patch("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_patient(
    patient_id: str,
    patient_data: PatientUpdate,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Update a patient

    Only the fields sent are changed. Updating an unknown patient does nothing.
    Appointments keep the patient name they were last saved with.
    """
    backend.patients.update(patient_id, patient_data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(
    patient_id: str,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a patient together with their medical entries and appointments
    """
    backend.patients.delete(patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
