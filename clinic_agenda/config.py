"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        storage_backend: Which collection backend to wire at startup ("local" or "remote")
        database_url: SQLAlchemy URL of the local key-value substrate

        # Remote document store settings
        firestore_project: Google Cloud project holding the Firestore database
        firestore_credentials_file: Optional service account JSON file

        # Scheduling settings
        clinic_timezone: IANA timezone used to assemble appointment date-times

        # Local backend behaviour
        simulated_latency_ms: Artificial delay applied before local reads and logins
        default_admin_password: Password given to the admin account when it is created

        # Frontend settings
        cors_origins: Origins allowed to call the API from a browser
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Backend selection
    storage_backend: Literal["local", "remote"] = "local"

    # Local key-value substrate
    database_url: str = "sqlite:///./clinic_agenda.db"

    # Remote document store
    firestore_project: Optional[str] = None
    firestore_credentials_file: Optional[str] = None

    # Scheduling
    clinic_timezone: str = "UTC"

    # Local backend behaviour
    simulated_latency_ms: int = 0
    default_admin_password: str = "password"

    # Frontend settings
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:9002"]


@lru_cache
def get_settings() -> Settings:
    """Return the process settings, read once from the environment."""
    return Settings()
