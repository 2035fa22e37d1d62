# ems/api/v1/users.py
"""User management API endpoints."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ems.api.deps import get_db, get_settings, require_permission
from ems.config import Settings
from ems.models import Role, User
from ems.rbac.roles import UNKNOWN_ROLE_NAME
from ems.schemas.auth import SessionUser
from ems.schemas.common import MessageResponse
from ems.schemas.user import (
    UserActionResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserRoleRef,
    UserUpdate,
)
from ems.services import user_service

router = APIRouter()


def build_user_response(user: User, role: Role | None) -> UserResponse:
    """Build UserResponse, tolerating a dangling role reference."""
    if role is None:
        role_ref = UserRoleRef(id=str(user.role_id), name=UNKNOWN_ROLE_NAME)
    else:
        role_ref = UserRoleRef(id=str(role.id), name=role.name)
    return UserResponse(
        id=str(user.id),
        username=user.username,
        role=role_ref,
        author_username=user.author_username,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users visible to the caller",
)
def list_users(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(require_permission("user_management:view_users_page")),
) -> UserListResponse:
    """Retrieve users, newest first.

    Admin sees every account; others see their own account and the accounts
    they created.
    """
    rows = user_service.list_users_for(db, session, settings)
    return UserListResponse(users=[build_user_response(u, r) for u, r in rows])


@router.post(
    "/users",
    response_model=UserActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user",
)
def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(require_permission("user_management:add_new_user")),
) -> UserActionResponse:
    """Create a new user bound to a role the caller authored."""
    user, role = user_service.create_user(db, session, user_in, settings)
    return UserActionResponse(
        message="User added successfully.", user=build_user_response(user, role)
    )


@router.put(
    "/users/{user_id}",
    response_model=UserActionResponse,
    summary="Update a user's username and role",
)
def update_user(
    user_id: uuid.UUID,
    user_in: UserUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(
        require_permission("user_management:edit_user_action")
    ),
) -> UserActionResponse:
    user, role, message = user_service.update_user(
        db, session, user_id, user_in, settings
    )
    return UserActionResponse(message=message, user=build_user_response(user, role))


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    summary="Delete a user",
)
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(
        require_permission("user_management:delete_user_action")
    ),
) -> MessageResponse:
    """Delete a user account. The reserved account cannot be deleted."""
    user_service.delete_user(db, session, user_id, settings)
    return MessageResponse(message="User deleted successfully.")
