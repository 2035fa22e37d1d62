# ems/api/v1/rbac.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ems.api.deps import get_current_session, get_db, get_settings, require_permission
from ems.config import Settings
from ems.rbac.permissions import get_grouped_permissions
from ems.schemas.auth import SessionUser
from ems.schemas.common import MessageResponse
from ems.schemas.rbac import (
    PermissionGroupSchema,
    PermissionSchema,
    RoleActionResponse,
    RoleCreateSchema,
    RoleListResponse,
    RoleSchema,
    RoleUpdateSchema,
)
from ems.services import rbac_service

router = APIRouter()


@router.get("/rbac/permissions", response_model=list[PermissionGroupSchema], summary="List the permission catalog")
def list_permissions(
    session: SessionUser = Depends(get_current_session),
):
    """Return every grantable permission grouped by category."""
    return [
        PermissionGroupSchema(
            category=category,
            permissions=[PermissionSchema.model_validate(p) for p in permissions],
        )
        for category, permissions in get_grouped_permissions().items()
    ]


@router.get("/rbac/roles", response_model=RoleListResponse, summary="List roles visible to the caller")
def list_roles(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(require_permission("user_roles:view_roles_page")),
):
    """Admin sees every role; other users see roles they authored plus their own role."""
    roles = rbac_service.list_roles_for(db, session, settings)
    return RoleListResponse(roles=[RoleSchema.model_validate(r) for r in roles])


@router.post("/rbac/roles", response_model=RoleActionResponse, status_code=status.HTTP_201_CREATED, summary="Create a new role")
def create_role(
    role_in: RoleCreateSchema,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(require_permission("user_roles:add_new_role")),
):
    """Create a role authored by the caller.
    Only permissions the caller holds may be granted.
    """
    role = rbac_service.create_role(db, session, role_in, settings)
    return RoleActionResponse(
        message="Role added successfully.", role=RoleSchema.model_validate(role)
    )


@router.put("/rbac/roles/{role_id}", response_model=RoleActionResponse, summary="Update an existing role")
def update_role(
    role_id: uuid.UUID,
    role_in: RoleUpdateSchema,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(require_permission("user_roles:edit_role_action")),
):
    """Rename a role and/or replace its permissions.
    The Admin role cannot be renamed or have its permissions changed.
    """
    role, message = rbac_service.update_role(db, session, role_id, role_in, settings)
    return RoleActionResponse(message=message, role=RoleSchema.model_validate(role))


@router.delete("/rbac/roles/{role_id}", response_model=MessageResponse, summary="Delete a role")
def delete_role(
    role_id: uuid.UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    session: SessionUser = Depends(require_permission("user_roles:delete_role_action")),
):
    """Delete a role. The Admin role can never be deleted."""
    rbac_service.delete_role(db, session, role_id, settings)
    return MessageResponse(message="Role deleted successfully.")
