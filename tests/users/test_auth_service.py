from __future__ import annotations

from dataclasses import replace

import pytest

from src.attendance_tracker.attendance_tracker.core.enums import Role
from src.attendance_tracker.attendance_tracker.core.exceptions import AuthenticationError, ValidationError
from src.attendance_tracker.attendance_tracker.users.service import AuthService


def test_authenticate_returns_session_user(users_repo):
    s_user = AuthService(users_repo).authenticate("Student@Example.com", "student123")

    assert s_user.user_id == 2
    assert s_user.role == Role.STUDENT
    assert s_user.to_dict()["departmentId"] == 1


def test_authenticate_wrong_password(users_repo):
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        AuthService(users_repo).authenticate("student@example.com", "nope")


def test_authenticate_unknown_email(users_repo):
    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate("ghost@example.com", "student123")


def test_authenticate_inactive_user(users_repo):
    users_repo._by_id[2] = replace(users_repo._by_id[2], is_active=False)

    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate("student@example.com", "student123")


def test_authenticate_placeholder_hash(users_repo):
    users_repo._by_id[2] = replace(users_repo._by_id[2], password_hash="CHANGE_ME")

    with pytest.raises(AuthenticationError):
        AuthService(users_repo).authenticate("student@example.com", "CHANGE_ME")


def test_authenticate_requires_email(users_repo):
    with pytest.raises(ValidationError):
        AuthService(users_repo).authenticate("", "student123")
