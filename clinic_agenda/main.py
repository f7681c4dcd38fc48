"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .appointments.router import router as appointments_router
from .auth.router import router as auth_router
from .auth.service import SessionService
from .config import Settings, get_settings
from .core.backend import build_backend, clinic_timezone
from .core.entity_store import EntityStore
from .core.middleware import setup_middlewares
from .core.migrations import migrate_local_store
from .dashboard.router import router as dashboard_router
from .database import create_db_engine, create_session_factory
from .exceptions import AppException, register_exception_handlers
from .medical_records.router import router as medical_records_router
from .patients.router import router as patients_router
from .users.router import router as users_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, firestore_client=None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted
        firestore_client: Client for the remote backend; created from settings
            when omitted

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Clinic Agenda API...")
        engine = create_db_engine(settings.database_url)
        store = EntityStore(create_session_factory(engine), settings.simulated_latency_ms / 1000)

        migrate_local_store(store)
        backend = build_backend(settings, store, firestore_client)

        try:
            backend.users.ensure_admin()
        except AppException as e:
            logger.error(f"Admin bootstrap failed: {e.detail}")

        app.state.store = store
        app.state.backend = backend
        app.state.clinic_tz = clinic_timezone(settings)
        app.state.sessions = SessionService(store, backend.users, settings.simulated_latency_ms / 1000)
        try:
            yield
        finally:
            engine.dispose()
            logger.info("Clinic Agenda API stopped")

    app = FastAPI(
        title="Clinic Agenda API",
        description="API for managing patients, medical history and appointments of a clinic",
        version=__version__,
        lifespan=lifespan,
    )

    # Register exception handlers
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup custom middleware
    setup_middlewares(app)

    # Include routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
    app.include_router(patients_router, prefix="/api/v1/patients", tags=["Patients"])
    app.include_router(appointments_router, prefix="/api/v1/appointments", tags=["Appointments"])
    app.include_router(medical_records_router, prefix="/api/v1/medical-entries", tags=["Medical entries"])
    app.include_router(users_router, prefix="/api/v1/users", tags=["Users"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])

    @app.get("/")
    def root():
        """
        Root endpoint for API health check.

        Returns:
            dict: Welcome message and API version
        """
        return {"message": "Welcome to Clinic Agenda API", "version": __version__}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for monitoring.

        Returns:
            dict: Health status and the active storage backend
        """
        return {"status": "healthy", "backend": app.state.backend.name}

    return app


app = create_app()
