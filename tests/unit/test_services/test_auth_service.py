# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for auth_service."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from ems.config import Settings
from ems.errors import ConfigurationFault, StoreFailure
from ems.models import Role, User
from ems.rbac.permissions import ALL_PERMISSION_IDS
from ems.services import auth_service, credential_store, session_service

ADMIN_PASSWORD = "ems137245"  # nosec - documented bootstrap default  # noqa: S105


def test_first_admin_login_bootstraps_role_and_user(db_session, settings):
    result = auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)

    assert result.success is True
    assert result.message == "Login successful! Preparing your dashboard..."
    assert result.redirect_to == "/dashboard"
    assert result.token
    assert result.user.username == "Admin"
    assert result.user.role.name == "Admin"
    assert result.user.permissions == list(ALL_PERMISSION_IDS)

    role = db_session.query(Role).one()
    assert role.name == "Admin"
    assert set(role.permissions) == set(ALL_PERMISSION_IDS)
    user = db_session.query(User).one()
    assert user.role_id == role.id


def test_second_admin_login_creates_nothing_new(db_session, settings):
    first = auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)
    second = auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)

    assert second.success is True
    assert db_session.query(Role).count() == 1
    assert db_session.query(User).count() == 1
    assert second.user.id == first.user.id
    assert second.user.role == first.user.role
    assert second.user.permissions == first.user.permissions


def test_issued_token_verifies_to_the_returned_user(db_session, settings):
    result = auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)
    assert session_service.verify_session_token(settings, result.token) == result.user


def test_unknown_user_and_wrong_password_are_indistinguishable(
    db_session, settings, make_role, make_user
):
    role = make_role("Clerk", ["dashboard:view"])
    make_user("clerk", role, password="right-password")

    wrong_password = auth_service.login(db_session, settings, "clerk", "wrong-password")
    unknown_user = auth_service.login(db_session, settings, "nobody", "wrong-password")

    assert wrong_password.success is False
    assert wrong_password.message == "Invalid username or password."
    assert wrong_password.model_dump() == unknown_user.model_dump()
    assert wrong_password.token is None


def test_overlong_password_fails_the_same_for_known_and_unknown_users(
    db_session, settings, make_role, make_user
):
    role = make_role("Clerk", ["dashboard:view"])
    make_user("clerk", role, password="right-password")
    overlong = "x" * 80

    known = auth_service.login(db_session, settings, "clerk", overlong)
    unknown = auth_service.login(db_session, settings, "nobody", overlong)

    assert known.success is False
    assert known.code == "INVALID_CREDENTIALS"
    assert known.model_dump() == unknown.model_dump()


def test_username_match_is_case_sensitive(db_session, settings, make_role, make_user):
    role = make_role("Clerk", ["dashboard:view"])
    make_user("clerk", role, password="right-password")

    result = auth_service.login(db_session, settings, "CLERK", "right-password")
    assert result.success is False
    assert result.message == "Invalid username or password."


def test_reserved_username_in_other_case_does_not_bootstrap(db_session, settings):
    result = auth_service.login(db_session, settings, "admin", ADMIN_PASSWORD)

    assert result.success is False
    assert db_session.query(Role).count() == 0
    assert db_session.query(User).count() == 0


def test_blank_credentials_return_field_errors(db_session, settings):
    result = auth_service.login(db_session, settings, "  ", "")

    assert result.success is False
    assert result.message == "Invalid input."
    assert result.code == "VALIDATION_ERROR"
    assert result.errors == {
        "username": ["Username is required."],
        "password": ["Password is required."],
    }


def test_user_without_password_hash_cannot_login(db_session, settings, make_role, make_user):
    role = make_role("Clerk", ["dashboard:view"])
    make_user("nohash", role, password=None)

    result = auth_service.login(db_session, settings, "nohash", "anything")
    assert result.success is False
    assert result.message == "Invalid username or password."


def test_login_resolves_role_permissions(db_session, settings, make_role, make_user):
    role = make_role("Clerk", ["employee:view_list_page", "dashboard:view"])
    make_user("clerk", role, password="right-password")

    result = auth_service.login(db_session, settings, "clerk", "right-password")

    assert result.success is True
    assert result.user.role.name == "Clerk"
    # Catalog order, not insertion order
    assert result.user.permissions == ["dashboard:view", "employee:view_list_page"]


def test_dangling_role_logs_in_with_no_permissions(db_session, settings, make_user):
    user = make_user("orphan", None, password="right-password")

    result = auth_service.login(db_session, settings, "orphan", "right-password")

    assert result.success is True
    assert result.user.permissions == []
    assert result.user.role.name == "Unknown Role"
    assert result.user.role.id == str(user.role_id)


def test_admin_login_repairs_deleted_admin_role(db_session, settings):
    auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)
    credential_store.delete_role(db_session, db_session.query(Role).one())

    result = auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)

    assert result.success is True
    assert result.user.permissions == list(ALL_PERMISSION_IDS)
    role = db_session.query(Role).one()
    assert db_session.query(User).one().role_id == role.id
    assert result.user.role.id == str(role.id)


def test_admin_gets_full_catalog_even_if_role_drifted(db_session, settings):
    auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)
    role = db_session.query(Role).one()
    role.permissions = ["dashboard:view"]
    db_session.commit()

    result = auth_service.login(db_session, settings, "Admin", ADMIN_PASSWORD)

    assert result.user.permissions == list(ALL_PERMISSION_IDS)
    db_session.refresh(role)
    assert set(role.permissions) == set(ALL_PERMISSION_IDS)


def test_missing_signing_key_fails_closed(db_session):
    broken = Settings(secret_key="   ")
    with pytest.raises(ConfigurationFault):
        auth_service.login(db_session, broken, "Admin", ADMIN_PASSWORD)
    assert db_session.query(User).count() == 0


def test_store_failure_is_reported_generically(db_session, settings, monkeypatch):
    def boom(db, username):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(credential_store, "get_user_by_username", boom)

    with pytest.raises(StoreFailure) as exc_info:
        auth_service.login(db_session, settings, "clerk", "whatever")

    assert exc_info.value.message == (
        "An internal server error occurred. Please try again later."
    )
    # Detail is only exposed outside production
    assert "disk I/O error" in exc_info.value.errors["general"][0]


def test_store_failure_hides_detail_in_production(db_session, monkeypatch):
    production = Settings(
        secret_key="test-secret-key-for-testing-only-32chars!",  # noqa: S106
        environment="production",
    )

    def boom(db, username):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(credential_store, "get_user_by_username", boom)

    with pytest.raises(StoreFailure) as exc_info:
        auth_service.login(db_session, production, "clerk", "whatever")
    assert exc_info.value.errors is None
