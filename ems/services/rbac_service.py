# ems/services/rbac_service.py
import logging
import uuid

from sqlalchemy.orm import Session

from ems.config import Settings
from ems.errors import AuthorizationDenied, NotFound, ReservedRoleError, ValidationFailed
from ems.models import Role, User
from ems.rbac.permissions import (
    ALL_PERMISSION_IDS,
    normalize_permissions,
    unknown_permissions,
)
from ems.rbac.roles import RESERVED_ROLE_NAME, is_reserved_role_name
from ems.schemas.auth import SessionUser
from ems.schemas.rbac import RoleCreateSchema, RoleUpdateSchema

from . import bootstrap_service, credential_store

logger = logging.getLogger(__name__)


def is_reserved_principal(username: str, settings: Settings) -> bool:
    """The reserved account is matched by exact username."""
    return username == settings.reserved_username


def is_reserved_role(role: Role) -> bool:
    return is_reserved_role_name(role.name)


def resolve_permissions(user: User, role: Role | None, settings: Settings) -> list[str]:
    """Compute the effective permission set for a user.

    The reserved user always gets the full catalog, whatever its role document
    says. Everyone else gets the stored grants of their role, or nothing when
    the role reference is dangling. Performs no I/O.
    """
    if is_reserved_principal(user.username, settings):
        return list(ALL_PERMISSION_IDS)
    if role is None:
        return []
    return normalize_permissions(role.permissions or [])


def can(session: SessionUser | None, permission_code: str) -> bool:
    """Check if a session holds a specific permission."""
    if session is None:
        return False
    return permission_code in session.permissions


def ensure_grantable(
    session: SessionUser, requested: list[str], settings: Settings
) -> list[str]:
    """Validate a requested permission set for a role write.

    Unknown ids are rejected for everybody. A non-reserved editor may only
    grant permissions contained in its own session snapshot.
    """
    unknown = unknown_permissions(requested)
    if unknown:
        raise ValidationFailed(
            f"Unknown permissions: {', '.join(unknown)}.",
            errors={"permissions": [f"Unknown permissions: {', '.join(unknown)}"]},
        )

    if not is_reserved_principal(session.username, settings):
        held = set(session.permissions)
        missing = [p for p in dict.fromkeys(requested) if p not in held]
        if missing:
            listed = ", ".join(missing)
            raise AuthorizationDenied(
                "You do not have permission to assign the following "
                f"permissions: {listed}.",
                errors={
                    "permissions": [
                        f"Cannot assign permissions you do not possess: {listed}"
                    ]
                },
            )
    return normalize_permissions(requested)


def ensure_role_assignable(
    session: SessionUser, role: Role, target_username: str, settings: Settings
) -> None:
    """Check that ``session`` may bind ``role`` to the user ``target_username``."""
    if is_reserved_role(role) and not is_reserved_principal(target_username, settings):
        raise ValidationFailed(
            'The "Admin" role can only be assigned to the "Admin" user.',
            errors={"role_id": ['Cannot assign "Admin" role to this user.']},
        )
    if is_reserved_principal(session.username, settings):
        return
    if role.author != session.username:
        raise AuthorizationDenied(
            "You can only assign roles that you have created.",
            errors={"role_id": ["Permission denied to assign this role."]},
        )


def ensure_role_authored(session: SessionUser, role: Role, settings: Settings) -> None:
    """Non-reserved editors may only change roles they created."""
    if is_reserved_principal(session.username, settings):
        return
    if role.author != session.username:
        raise AuthorizationDenied("You can only modify roles that you have created.")


def get_role_or_404(db: Session, role_id: uuid.UUID) -> Role:
    role = credential_store.get_role_by_id(db, role_id)
    if role is None:
        raise NotFound("Role not found.")
    return role


def list_roles_for(db: Session, session: SessionUser, settings: Settings) -> list[Role]:
    """Roles visible to the caller.

    The reserved user sees every role. Others see the roles they authored plus
    their own assigned role, never the Admin role.
    """
    if is_reserved_principal(session.username, settings):
        return credential_store.list_roles(db)

    roles: dict[uuid.UUID, Role] = {}
    for role in credential_store.list_roles_by_author(db, session.username):
        if not is_reserved_role(role):
            roles[role.id] = role

    assigned = _assigned_role(db, session)
    if assigned is not None and not is_reserved_role(assigned):
        roles[assigned.id] = assigned

    return sorted(roles.values(), key=lambda r: r.name.lower())


def _assigned_role(db: Session, session: SessionUser) -> Role | None:
    try:
        user_id = uuid.UUID(session.id)
    except ValueError:
        return None
    user = credential_store.get_user_by_id(db, user_id)
    if user is None:
        return None
    return credential_store.get_role_by_id(db, user.role_id)


def create_role(
    db: Session, session: SessionUser, data: RoleCreateSchema, settings: Settings
) -> Role:
    """Create a role authored by the caller."""
    if is_reserved_role_name(data.name):
        raise ValidationFailed(
            f'The role name "{RESERVED_ROLE_NAME}" is reserved and cannot be '
            "manually created.",
            errors={"name": [f'The role name "{RESERVED_ROLE_NAME}" is reserved.']},
        )
    if credential_store.find_role_name_conflict(db, data.name):
        raise _role_name_taken()

    permissions = ensure_grantable(session, data.permissions, settings)

    outcome = credential_store.insert_role(db, data.name, permissions, session.username)
    if not outcome.created:
        raise _role_name_taken()
    logger.info(f"Role created with {len(permissions)} permissions")
    return outcome.record


def update_role(
    db: Session,
    session: SessionUser,
    role_id: uuid.UUID,
    data: RoleUpdateSchema,
    settings: Settings,
) -> tuple[Role, str]:
    """Rename a role and/or replace its permissions.

    Returns the reloaded role and a message describing what happened.
    """
    role = get_role_or_404(db, role_id)

    if is_reserved_role(role):
        if data.name is not None and data.name != RESERVED_ROLE_NAME:
            raise ReservedRoleError('The "Admin" role cannot be renamed.')
        if data.permissions is not None and set(data.permissions) != set(
            ALL_PERMISSION_IDS
        ):
            raise ReservedRoleError(
                'The permissions of the "Admin" role cannot be changed.'
            )
        role = bootstrap_service.heal_privileged_role(db, role)
        return role, "Admin role is already up to date."

    ensure_role_authored(session, role, settings)

    new_name = data.name if data.name is not None else role.name
    if is_reserved_role_name(new_name):
        raise ValidationFailed(
            f'The role name "{RESERVED_ROLE_NAME}" is reserved. '
            "Please use a different name.",
            errors={"name": [f'The role name "{RESERVED_ROLE_NAME}" is reserved.']},
        )
    if new_name.lower() != role.name.lower() and credential_store.find_role_name_conflict(
        db, new_name, exclude_id=role.id
    ):
        raise ValidationFailed(
            "Another role with this name already exists. Please use a different name.",
            errors={"name": ["Role name already exists."]},
        )

    new_permissions = None
    if data.permissions is not None:
        new_permissions = ensure_grantable(session, data.permissions, settings)

    name_changed = new_name != role.name
    permissions_changed = new_permissions is not None and new_permissions != list(
        role.permissions or []
    )
    if not (name_changed or permissions_changed):
        return role, "Role data is already up to date."

    outcome = credential_store.update_role(
        db,
        role,
        name=new_name if name_changed else None,
        permissions=new_permissions if permissions_changed else None,
    )
    if outcome.duplicate:
        raise _role_name_taken()
    return outcome.record, "Role updated successfully."


def delete_role(
    db: Session, session: SessionUser, role_id: uuid.UUID, settings: Settings
) -> None:
    """Delete a role. Users holding it keep a dangling reference."""
    role = get_role_or_404(db, role_id)
    if is_reserved_role(role):
        raise ReservedRoleError('The "Admin" role cannot be deleted.')
    ensure_role_authored(session, role, settings)
    credential_store.delete_role(db, role)
    logger.info("Role deleted; assigned users now resolve to no permissions")


def _role_name_taken() -> ValidationFailed:
    return ValidationFailed(
        "Role name already exists. Please use a different name.",
        errors={"name": ["Role name already exists."]},
    )
