"""
Authentication routes: log in, log out, and read the session user.
"""
from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_current_user, get_session_service
from ..users.schemas import LoginRequest, User
from .service import SessionService

router = APIRouter()


@router.post("/login", response_model=User)
def login(
    credentials: LoginRequest,
    sessions: SessionService = Depends(get_session_service),
):
    """
    Log in with username and password.

    The user becomes the current session user.
    """
    return sessions.login(credentials.username, credentials.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(sessions: SessionService = Depends(get_session_service)):
    """Close the current session."""
    sessions.logout()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=User)
def me(current_user: User = Depends(get_current_user)):
    """Return the current session user."""
    return current_user
