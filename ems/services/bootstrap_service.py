# ems/services/bootstrap_service.py
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ems.config import Settings
from ems.errors import ConfigurationFault
from ems.logging_config import safe_log_identifier
from ems.models import Role, User
from ems.rbac.roles import RESERVED_ROLE_NAME, RESERVED_ROLE_PERMISSIONS, SYSTEM_AUTHOR
from ems.security import get_password_hash

from . import credential_store

logger = logging.getLogger(__name__)

BOOTSTRAP_FAILURE_MESSAGE = "System error: could not initialize the Admin account."


def ensure_privileged_role_and_principal(db: Session, settings: Settings) -> uuid.UUID:
    """Make sure the Admin role and the reserved user exist and are consistent.

    This function is idempotent and safe to run from concurrent logins: inserts
    that lose a unique-key race re-read the record the winner created.
    @param db: SQLAlchemy Session object
    @param settings: application settings holding the reserved credentials
    @return: id of the privileged role
    """
    try:
        role = ensure_privileged_role(db)
        ensure_privileged_principal(db, settings, role)
        return role.id
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Store failure while bootstrapping the Admin account")
        raise ConfigurationFault(BOOTSTRAP_FAILURE_MESSAGE) from exc


def ensure_privileged_role(db: Session) -> Role:
    """Create the Admin role if missing and heal its permission set."""
    role = credential_store.get_role_by_name(db, RESERVED_ROLE_NAME)
    if role is None:
        logger.info('"Admin" role not found, creating it with all permissions')
        outcome = credential_store.insert_role(
            db, RESERVED_ROLE_NAME, RESERVED_ROLE_PERMISSIONS, SYSTEM_AUTHOR
        )
        if outcome.created:
            logger.info(
                f'"Admin" role created with {len(RESERVED_ROLE_PERMISSIONS)} permissions'
            )
            return outcome.record
        role = credential_store.get_role_by_name(db, RESERVED_ROLE_NAME)
        if role is None:
            logger.error('"Admin" role missing after a duplicate insert outcome')
            raise ConfigurationFault(BOOTSTRAP_FAILURE_MESSAGE)
    return heal_privileged_role(db, role)


def heal_privileged_role(db: Session, role: Role) -> Role:
    """Reset the Admin role to the full catalog when it has drifted."""
    drifted = set(role.permissions or []) != set(RESERVED_ROLE_PERMISSIONS)
    renamed = role.name != RESERVED_ROLE_NAME
    if not (drifted or renamed or not role.author):
        return role

    outcome = credential_store.update_role(
        db,
        role,
        name=RESERVED_ROLE_NAME if renamed else None,
        permissions=RESERVED_ROLE_PERMISSIONS if drifted else None,
        author=SYSTEM_AUTHOR if not role.author else None,
    )
    if outcome.duplicate:
        logger.error('"Admin" role rename collided with another role')
        raise ConfigurationFault(BOOTSTRAP_FAILURE_MESSAGE)
    logger.info(
        f'Healed "Admin" role to hold all {len(RESERVED_ROLE_PERMISSIONS)} permissions'
    )
    return outcome.record


def ensure_privileged_principal(db: Session, settings: Settings, role: Role) -> User:
    """Create the reserved user if missing and bind it to the Admin role."""
    username = settings.reserved_username
    user = credential_store.get_user_by_username(db, username)
    if user is None:
        logger.info("Reserved user not found, creating it with the default password")
        outcome = credential_store.insert_user(
            db,
            username,
            get_password_hash(settings.reserved_password),
            role.id,
            SYSTEM_AUTHOR,
        )
        if outcome.created:
            return outcome.record
        user = credential_store.get_user_by_username(db, username)
        if user is None:
            logger.error(
                "Reserved username collides with "
                f"{safe_log_identifier(username, prefix='user')} of different case"
            )
            raise ConfigurationFault(BOOTSTRAP_FAILURE_MESSAGE)

    if user.role_id != role.id:
        logger.warning("Reserved user had a stale role reference, rebinding to Admin")
        user = credential_store.update_user(db, user, role_id=role.id).record
    return user
