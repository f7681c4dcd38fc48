"""
Medical Entry Schemas - Pydantic models for medical history entries.
"""
import datetime as dt
from typing import Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.schemas import CamelModel


class MedicalEntryCreate(CamelModel):
    """
    Medical Entry Creation Schema

    Fields:
    - patient_id: Patient the entry belongs to
    - date: Calendar day of the visit (no time of day)
    - notes: Free text, at least 10 characters
    """
    patient_id: str = Field(..., min_length=1)
    date: dt.date
    notes: str = Field(..., min_length=10)


class MedicalEntryUpdate(CamelModel):
    """Medical Entry Update Schema - the owning patient cannot be changed."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    date: Optional[dt.date] = None
    notes: Optional[str] = Field(None, min_length=10)


class MedicalEntry(CamelModel):
    id: str
    patient_id: str
    date: dt.date
    notes: str
