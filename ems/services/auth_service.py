# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Authentication service."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ems.config import Settings
from ems.errors import AuthenticationFailure, StoreFailure, ValidationFailed
from ems.logging_config import safe_log_identifier
from ems.models import Role, User
from ems.rbac.roles import UNKNOWN_ROLE_NAME
from ems.schemas.auth import LoginResult
from ems.security import verify_password
from ems.services import bootstrap_service, credential_store, rbac_service
from ems.services.session_service import issue_session, require_signing_key

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."
LOGIN_SUCCESS_MESSAGE = "Login successful! Preparing your dashboard..."
LOGIN_REDIRECT = "/dashboard"


def login(db: Session, settings: Settings, username: str, password: str) -> LoginResult:
    """Authenticate a user and issue a session.

    Validation and credential failures are returned as unsuccessful results.
    Bootstrap and store problems raise ConfigurationFault / StoreFailure.
    """
    require_signing_key(settings)

    errors: dict[str, list[str]] = {}
    if not username or not username.strip():
        errors["username"] = ["Username is required."]
    if not password:
        errors["password"] = ["Password is required."]
    if errors:
        return LoginResult(
            success=False,
            message="Invalid input.",
            code=ValidationFailed.code,
            errors=errors,
        )

    log_id = safe_log_identifier(username, prefix="user")
    logger.info(f"Login attempt for {log_id}")

    if username == settings.reserved_username:
        bootstrap_service.ensure_privileged_role_and_principal(db, settings)

    try:
        user = credential_store.get_user_by_username(db, username)
    except SQLAlchemyError as exc:
        raise _store_failure(db, settings, exc) from exc

    if user is None or not user.hashed_password:
        # Still pay for a hash check so a miss is not faster than a mismatch
        verify_password(password, None)
        logger.info(f"Login rejected for {log_id}: unknown user or no password")
        return invalid_credentials()

    if not verify_password(password, user.hashed_password):
        logger.info(f"Login rejected for {log_id}: password mismatch")
        return invalid_credentials()

    try:
        role = _load_role(db, settings, user)
        permissions = rbac_service.resolve_permissions(user, role, settings)
    except SQLAlchemyError as exc:
        raise _store_failure(db, settings, exc) from exc

    issued = issue_session(
        settings,
        user_id=str(user.id),
        username=user.username,
        role_id=str(role.id) if role is not None else str(user.role_id),
        role_name=role.name if role is not None else UNKNOWN_ROLE_NAME,
        permissions=permissions,
    )
    logger.info(f"Login succeeded for {log_id} with {len(permissions)} permissions")
    return LoginResult(
        success=True,
        message=LOGIN_SUCCESS_MESSAGE,
        redirect_to=LOGIN_REDIRECT,
        user=issued.user,
        token=issued.token,
    )


def invalid_credentials() -> LoginResult:
    """The single failure shape for unknown users and wrong passwords."""
    return LoginResult(
        success=False,
        message=INVALID_CREDENTIALS_MESSAGE,
        code=AuthenticationFailure.code,
    )


def _load_role(db: Session, settings: Settings, user: User) -> Role | None:
    """Fetch the user's role, repairing the reserved user's binding once."""
    role = credential_store.get_role_by_id(db, user.role_id)
    if role is not None:
        return role

    if not rbac_service.is_reserved_principal(user.username, settings):
        logger.warning("User role reference is dangling; session gets no permissions")
        return None

    logger.warning("Reserved user's role not found, re-running Admin role repair")
    role = bootstrap_service.ensure_privileged_role(db)
    credential_store.update_user(db, user, role_id=role.id)
    return role


def _store_failure(db: Session, settings: Settings, exc: Exception) -> StoreFailure:
    db.rollback()
    logger.exception("Credential store failure during login")
    if settings.is_production:
        return StoreFailure()
    return StoreFailure(errors={"general": [f"Database operation failed: {exc}"]})
