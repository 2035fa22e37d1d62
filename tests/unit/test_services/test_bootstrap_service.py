# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Tests for bootstrap_service."""

import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import SQLAlchemyError

from ems.config import Settings
from ems.errors import ConfigurationFault
from ems.models import Role, User
from ems.rbac.permissions import ALL_PERMISSION_IDS
from ems.security import verify_password
from ems.services import bootstrap_service, credential_store


def test_bootstrap_creates_role_and_user(db_session, settings):
    role_id = bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)

    role = db_session.query(Role).one()
    assert role.id == role_id
    assert role.name == "Admin"
    assert role.author == "System"
    assert set(role.permissions) == set(ALL_PERMISSION_IDS)

    user = db_session.query(User).one()
    assert user.username == "Admin"
    assert user.role_id == role_id
    assert user.author_username == "System"
    assert verify_password("ems137245", user.hashed_password)


def test_bootstrap_is_idempotent(db_session, settings):
    first = bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)
    updated_at = db_session.query(Role).one().updated_at

    second = bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)

    assert first == second
    assert db_session.query(Role).count() == 1
    assert db_session.query(User).count() == 1
    assert db_session.query(Role).one().updated_at == updated_at


def test_bootstrap_uses_configured_credentials(db_session):
    custom = Settings(
        secret_key="test-secret-key-for-testing-only-32chars!",  # noqa: S106
        reserved_username="root",
        reserved_password="s3cret-pass",  # noqa: S106
    )
    bootstrap_service.ensure_privileged_role_and_principal(db_session, custom)

    user = db_session.query(User).one()
    assert user.username == "root"
    assert verify_password("s3cret-pass", user.hashed_password)


@pytest.mark.parametrize(
    "stored",
    [
        ["dashboard:view"],
        [*ALL_PERMISSION_IDS, "legacy:unknown"],
        [],
    ],
)
def test_bootstrap_heals_drifted_permissions(db_session, settings, make_role, stored):
    make_role("Admin", stored, author="System")

    bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)
    role = db_session.query(Role).one()
    assert sorted(role.permissions) == sorted(ALL_PERMISSION_IDS)
    healed_at = role.updated_at

    # Running again changes nothing further
    bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)
    db_session.refresh(role)
    assert role.updated_at == healed_at


def test_bootstrap_heals_name_case_and_missing_author(db_session, settings, make_role):
    make_role("ADMIN", ALL_PERMISSION_IDS, author=None)

    role = bootstrap_service.ensure_privileged_role(db_session)

    assert role.name == "Admin"
    assert role.author == "System"
    assert db_session.query(Role).count() == 1


def test_bootstrap_rebinds_stale_role_reference(db_session, settings, make_user):
    user = make_user("Admin", uuid.uuid4(), password="ems137245", author="System")

    role_id = bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)

    db_session.refresh(user)
    assert user.role_id == role_id


def test_role_insert_race_rereads_winner(db_session, settings, make_role, monkeypatch):
    winner = make_role("Admin", ALL_PERMISSION_IDS, author="System")
    real_lookup = credential_store.get_role_by_name
    calls = []

    def lookup_missing_first(db, name):
        calls.append(name)
        if len(calls) == 1:
            return None
        return real_lookup(db, name)

    monkeypatch.setattr(credential_store, "get_role_by_name", lookup_missing_first)

    role = bootstrap_service.ensure_privileged_role(db_session)

    assert role.id == winner.id
    assert db_session.query(Role).count() == 1


def test_user_insert_race_rereads_winner(db_session, settings, make_role, make_user, monkeypatch):
    role = make_role("Admin", ALL_PERMISSION_IDS, author="System")
    winner = make_user("Admin", role, password="ems137245", author="System")
    real_lookup = credential_store.get_user_by_username
    calls = []

    def lookup_missing_first(db, username):
        calls.append(username)
        if len(calls) == 1:
            return None
        return real_lookup(db, username)

    monkeypatch.setattr(credential_store, "get_user_by_username", lookup_missing_first)

    user = bootstrap_service.ensure_privileged_principal(db_session, settings, role)

    assert user.id == winner.id
    assert db_session.query(User).count() == 1


def test_reserved_username_held_in_other_case_is_a_configuration_fault(
    db_session, settings, make_role, make_user
):
    make_user("admin", uuid.uuid4())

    with pytest.raises(ConfigurationFault) as exc_info:
        bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)
    assert exc_info.value.message == bootstrap_service.BOOTSTRAP_FAILURE_MESSAGE


def test_store_error_becomes_configuration_fault(db_session, settings, monkeypatch):
    def boom(db, name):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(credential_store, "get_role_by_name", boom)

    with pytest.raises(ConfigurationFault) as exc_info:
        bootstrap_service.ensure_privileged_role_and_principal(db_session, settings)
    assert exc_info.value.message == "System error: could not initialize the Admin account."


def test_concurrent_bootstrap_creates_exactly_one_of_each(db_session, settings, session_factory):
    def run_once(_):
        session = session_factory()
        try:
            return bootstrap_service.ensure_privileged_role_and_principal(session, settings)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        role_ids = list(pool.map(run_once, range(8)))

    assert len(set(role_ids)) == 1
    assert db_session.query(Role).count() == 1
    assert db_session.query(User).count() == 1
    assert db_session.query(User).one().role_id == role_ids[0]
