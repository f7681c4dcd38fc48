"""
User Schemas - Pydantic models for user administration and login.

Credentials never appear in API responses: `User` carries only the id and
username, the credential material stays in the backend-specific records.
"""
from typing import Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.schemas import CamelModel

ADMIN_USERNAME = "admin"


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class UserCreate(CamelModel):
    """
    User Creation Schema

    Fields:
    - username: Unique login name, 3 to 50 characters
    - password: Plain text password, at least 6 characters
    """
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return _strip(value)


class UserUpdate(CamelModel):
    """User Update Schema - an empty or missing password leaves the credential unchanged."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: Optional[str] = Field(None, min_length=3, max_length=50)
    password: Optional[str] = None

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return _strip(value)

    @field_validator("password")
    @classmethod
    def password_length(cls, value):
        if value and len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value or None


class User(CamelModel):
    id: str
    username: str

    @property
    def is_admin(self) -> bool:
        return self.username == ADMIN_USERNAME


class LocalUserRecord(User):
    """User as stored by the local backend (credential kept in plain text)."""
    password_plaintext: str = ""

    def public(self) -> User:
        return User(id=self.id, username=self.username)


class LoginRequest(CamelModel):
    username: str
    password: str
