"""
Patient Schemas - Pydantic models for patient data validation and serialization.
"""
from enum import Enum
from typing import ClassVar, FrozenSet, List, Optional

from pydantic import EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.schemas import CamelModel

PHONE_PATTERN = r"^\+?[0-9\s\-()]{7,20}$"
DNI_PATTERN = r"^\d{7,8}$"


class Gender(str, Enum):
    MALE = "masculino"
    FEMALE = "femenino"
    OTHER = "otro"


class BloodType(str, Enum):
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"
    UNKNOWN = "Desconocido"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def split_conditions(value) -> List[str]:
    """Read stored chronic conditions, which older records keep as one comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [label.strip() for label in value.split(",") if label.strip()]
    return value


def _clean_conditions(value):
    if value is None:
        return value
    cleaned = []
    for label in value:
        label = label.strip()
        if label and label not in cleaned:
            cleaned.append(label)
    return cleaned


class PatientCreate(CamelModel):
    """
    Patient Creation Schema - Used when registering a new patient

    Fields:
    - first_name / last_name: At least 2 characters each
    - dni: National id number, 7 or 8 digits
    - age: Whole years, 1 to 120
    - gender, blood_type: Enumerated values
    - address: At least 5 characters
    - phone / secondary_contact: Phone numbers (secondary is optional)
    - email: Contact email
    - social_work: Optional insurer name
    - chronic_diseases: Ordered list of chronic condition labels
    """
    first_name: str = Field(..., min_length=2)
    last_name: str = Field(..., min_length=2)
    dni: str = Field(..., pattern=DNI_PATTERN)
    age: int = Field(..., gt=0, le=120)
    gender: Gender
    blood_type: BloodType = BloodType.UNKNOWN
    address: str = Field(..., min_length=5)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    secondary_contact: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: EmailStr
    social_work: Optional[str] = None
    chronic_diseases: List[str] = Field(default_factory=list)

    @field_validator("secondary_contact", "social_work", mode="before")
    @classmethod
    def blank_optional(cls, value):
        return _blank_to_none(value)

    @field_validator("chronic_diseases")
    @classmethod
    def clean_conditions(cls, value):
        return _clean_conditions(value)


class PatientUpdate(CamelModel):
    """
    Patient Update Schema - Every field optional; only the fields sent are changed.

    Sending an empty secondary contact or insurer clears it.
    """
    first_name: Optional[str] = Field(None, min_length=2)
    last_name: Optional[str] = Field(None, min_length=2)
    dni: Optional[str] = Field(None, pattern=DNI_PATTERN)
    age: Optional[int] = Field(None, gt=0, le=120)
    gender: Optional[Gender] = None
    blood_type: Optional[BloodType] = None
    address: Optional[str] = Field(None, min_length=5)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    secondary_contact: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    social_work: Optional[str] = None
    chronic_diseases: Optional[List[str]] = None

    # Fields that may be cleared by sending null
    CLEARABLE: ClassVar[FrozenSet[str]] = frozenset({"secondary_contact", "social_work"})

    @field_validator("secondary_contact", "social_work", mode="before")
    @classmethod
    def blank_optional(cls, value):
        return _blank_to_none(value)

    @field_validator("chronic_diseases")
    @classmethod
    def clean_conditions(cls, value):
        return _clean_conditions(value)

    def changes(self, by_alias: bool = False) -> dict:
        """
        Return the fields the caller actually sent.

        Args:
            by_alias: Key by stored (camelCase) names with JSON-ready values
                instead of by field name
        """
        clearable = {to_camel(name) for name in self.CLEARABLE} if by_alias else self.CLEARABLE
        dumped = self.model_dump(exclude_unset=True, by_alias=by_alias, mode="json" if by_alias else "python")
        return {key: value for key, value in dumped.items() if value is not None or key in clearable}


class Patient(CamelModel):
    """
    Stored patient record.

    Validation rules live on the create/update schemas; stored records are
    read back as they were written.
    """
    id: str
    first_name: str
    last_name: str
    dni: str = ""
    age: int
    gender: Gender
    blood_type: BloodType = BloodType.UNKNOWN
    address: str = ""
    phone: str = ""
    secondary_contact: Optional[str] = None
    email: str = ""
    social_work: Optional[str] = None
    chronic_diseases: List[str] = Field(default_factory=list)

    @field_validator("chronic_diseases", mode="before")
    @classmethod
    def read_conditions(cls, value):
        return split_conditions(value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
