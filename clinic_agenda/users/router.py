"""
User Router - API endpoints for user administration.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..auth.service import SessionService
from ..core.backend import ClinicBackend
from ..dependencies import get_backend, get_current_user, get_session_service, require_admin
from .schemas import User, UserCreate, UserUpdate

router = APIRouter()


@router.get("/", response_model=List[User])
def list_users(
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Get all users (credentials are never returned)
    """
    return backend.users.list()


@router.post("/", response_model=User, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(require_admin),
):
    """
    Create a user

    Only the admin user can create users. Usernames must be unique.
    """
    return backend.users.add(user_data)


@router.patch("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_user(
    user_id: str,
    user_data: UserUpdate,
    backend: ClinicBackend = Depends(get_backend),
    sessions: SessionService = Depends(get_session_service),
    current_user: User = Depends(get_current_user),
):
    """
    Change a user's username or password

    The admin account cannot be renamed and its password cannot be changed here.
    Editing your own account refreshes the session.
    """
    updated = backend.users.update(user_id, user_data)
    if updated is not None and updated.id == current_user.id:
        sessions.remember(updated)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    backend: ClinicBackend = Depends(get_backend),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a user

    The admin account and your own account cannot be deleted.
    """
    backend.users.delete(user_id, current_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
