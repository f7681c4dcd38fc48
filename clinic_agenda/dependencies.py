"""
FastAPI dependencies resolving the injected backend and the session user.
"""
from fastapi import Depends, Request

from .auth.service import SessionService
from .core.backend import ClinicBackend
from .exceptions import NotAuthenticatedError, PolicyViolationError
from .users.schemas import User


def get_backend(request: Request) -> ClinicBackend:
    """Return the backend built at application startup."""
    return request.app.state.backend


def get_session_service(request: Request) -> SessionService:
    """Return the session service built at application startup."""
    return request.app.state.sessions


def get_current_user(sessions: SessionService = Depends(get_session_service)) -> User:
    """
    Return the logged-in user.

    Raises:
        NotAuthenticatedError: If nobody is logged in
    """
    user = sessions.current_user()
    if user is None:
        raise NotAuthenticatedError()
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Return the logged-in user if it is the admin account.

    Raises:
        PolicyViolationError: If the user is not the admin
    """
    if not current_user.is_admin:
        raise PolicyViolationError("Only the admin user can perform this action")
    return current_user
