# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User account management under authorship scoping."""

import logging
import uuid

from sqlalchemy.orm import Session

from ems.config import Settings
from ems.errors import AuthorizationDenied, NotFound, ReservedRoleError, ValidationFailed
from ems.models import Role, User
from ems.rbac.roles import is_reserved_username
from ems.schemas.auth import SessionUser
from ems.schemas.user import UserCreate, UserUpdate
from ems.security import get_password_hash
from ems.services import bootstrap_service, credential_store, rbac_service

logger = logging.getLogger(__name__)


def get_user_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = credential_store.get_user_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


def list_users_for(
    db: Session, session: SessionUser, settings: Settings
) -> list[tuple[User, Role | None]]:
    """Users visible to the caller, each paired with its (possibly missing) role.

    Non-reserved callers see their own account and the accounts they created,
    never the reserved account.
    """
    if rbac_service.is_reserved_principal(session.username, settings):
        users = credential_store.list_users(db)
    else:
        users = credential_store.list_users_visible_to(
            db,
            _session_user_id(session),
            session.username,
            settings.reserved_username,
        )

    roles = {role.id: role for role in credential_store.list_roles(db)}
    return [(user, roles.get(user.role_id)) for user in users]


def ensure_user_in_scope(session: SessionUser, user: User, settings: Settings) -> None:
    """Non-reserved callers may only manage themselves and accounts they created."""
    if rbac_service.is_reserved_principal(session.username, settings):
        return
    if str(user.id) == session.id or user.author_username == session.username:
        return
    raise AuthorizationDenied("You can only manage user accounts that you have created.")


def create_user(
    db: Session, session: SessionUser, data: UserCreate, settings: Settings
) -> tuple[User, Role]:
    """Create a user bound to a role the caller is allowed to hand out."""
    if is_reserved_username(data.username, settings.reserved_username):
        raise ValidationFailed(
            f'The username "{settings.reserved_username}" is reserved and cannot '
            "be manually created.",
            errors={
                "username": [f'The username "{settings.reserved_username}" is reserved.']
            },
        )
    if credential_store.find_username_conflict(db, data.username):
        raise _username_taken()

    role = credential_store.get_role_by_id(db, data.role_id)
    if role is None:
        raise _role_missing()
    rbac_service.ensure_role_assignable(session, role, data.username, settings)

    outcome = credential_store.insert_user(
        db,
        data.username,
        get_password_hash(data.password),
        role.id,
        session.username,
    )
    if not outcome.created:
        raise _username_taken()
    return outcome.record, role


def update_user(
    db: Session,
    session: SessionUser,
    user_id: uuid.UUID,
    data: UserUpdate,
    settings: Settings,
) -> tuple[User, Role, str]:
    """Change a user's username and role.

    Edits to the reserved account are coerced back to the reserved username
    and the Admin role instead of being rejected.
    """
    user = get_user_or_404(db, user_id)
    reserved_target = rbac_service.is_reserved_principal(user.username, settings)

    if reserved_target:
        username = settings.reserved_username
        role = bootstrap_service.ensure_privileged_role(db)
    else:
        ensure_user_in_scope(session, user, settings)
        username = data.username
        if is_reserved_username(username, settings.reserved_username):
            raise ValidationFailed(
                f'The username "{settings.reserved_username}" is reserved.',
                errors={
                    "username": [
                        f'The username "{settings.reserved_username}" is reserved.'
                    ]
                },
            )
        if username.lower() != user.username.lower() and (
            credential_store.find_username_conflict(db, username, exclude_id=user.id)
        ):
            raise ValidationFailed(
                "This username is already taken by another user.",
                errors={"username": ["Username already exists."]},
            )
        role = credential_store.get_role_by_id(db, data.role_id)
        if role is None:
            raise _role_missing()
        rbac_service.ensure_role_assignable(session, role, username, settings)

    if user.username == username and user.role_id == role.id:
        if reserved_target:
            return user, role, "Admin user data is already up to date."
        return user, role, "User data is already up to date."

    outcome = credential_store.update_user(
        db,
        user,
        username=username if user.username != username else None,
        role_id=role.id if user.role_id != role.id else None,
    )
    if outcome.duplicate:
        raise _username_taken()
    return outcome.record, role, "User updated successfully."


def delete_user(
    db: Session, session: SessionUser, user_id: uuid.UUID, settings: Settings
) -> None:
    user = get_user_or_404(db, user_id)
    if rbac_service.is_reserved_principal(user.username, settings):
        raise ReservedRoleError(
            f'The "{settings.reserved_username}" user account cannot be deleted.'
        )
    ensure_user_in_scope(session, user, settings)
    credential_store.delete_user(db, user)


def _session_user_id(session: SessionUser) -> uuid.UUID | None:
    try:
        return uuid.UUID(session.id)
    except ValueError:
        return None


def _username_taken() -> ValidationFailed:
    return ValidationFailed(
        "Username already exists. Please choose a different username.",
        errors={"username": ["Username already exists."]},
    )


def _role_missing() -> ValidationFailed:
    return ValidationFailed(
        "Selected role does not exist.",
        errors={"role_id": ["Invalid role selected."]},
    )
