"""
Tests for the single-session login gate.
"""
import pytest

from clinic_agenda.auth.service import SessionService
from clinic_agenda.exceptions import InvalidCredentialsError
from clinic_agenda.users.schemas import User


@pytest.fixture
def sessions(store, backend):
    return SessionService(store, backend.users)


def test_login_remembers_user(sessions, store):
    user = sessions.login("admin", "password")

    assert user == User(id="user-001", username="admin")
    assert sessions.current_user() == user
    assert store.get("current_user").value == {"id": "user-001", "username": "admin"}


def test_wrong_credentials_do_not_open_a_session(sessions):
    with pytest.raises(InvalidCredentialsError):
        sessions.login("admin", "wrong")
    assert sessions.current_user() is None


def test_logout_clears_session(sessions):
    sessions.login("admin", "password")
    sessions.logout()
    assert sessions.current_user() is None


def test_unreadable_session_is_cleared(sessions, store):
    store.save("current_user", {"name": "admin"})
    assert sessions.current_user() is None
    assert store.get("current_user") is None
