"""
Medical Entry Router - API endpoints for patients' medical history.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..core.backend import ClinicBackend
from ..dependencies import get_backend, get_current_user
from ..users.schemas import User
from .schemas import MedicalEntry, MedicalEntryCreate, MedicalEntryUpdate

router = APIRouter()


@router.get("/", response_model=List[MedicalEntry])
def list_medical_entries(
    patient_id: Optional[str] = Query(None, description="Only entries of this patient"),
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Get medical entries, newest first
    """
    return backend.medical_entries.list(patient_id)


@router.post("/", response_model=MedicalEntry, status_code=status.HTTP_201_CREATED)
def create_medical_entry(
    entry_data: MedicalEntryCreate,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Add an entry to a patient's medical history
    """
    return backend.medical_entries.add(entry_data)


@router.patch("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_medical_entry(
    entry_id: str,
    entry_data: MedicalEntryUpdate,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Change the date or notes of an entry
    """
    backend.medical_entries.update(entry_id, entry_data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_medical_entry(
    entry_id: str,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a medical entry
    """
    backend.medical_entries.delete(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
