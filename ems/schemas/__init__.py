# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Pydantic schemas package."""
from ems.schemas.auth import (
    LoginResponse,
    LoginResult,
    SessionResponse,
    SessionRole,
    SessionUser,
)
from ems.schemas.common import ActionResponse, HealthResponse, MessageResponse
from ems.schemas.rbac import (
    PermissionGroupSchema,
    PermissionSchema,
    RoleActionResponse,
    RoleCreateSchema,
    RoleListResponse,
    RoleSchema,
    RoleUpdateSchema,
)
from ems.schemas.user import (
    UserActionResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserRoleRef,
    UserUpdate,
)

__all__ = [
    "ActionResponse",
    "HealthResponse",
    "LoginResponse",
    "LoginResult",
    "MessageResponse",
    "PermissionGroupSchema",
    "PermissionSchema",
    "RoleActionResponse",
    "RoleCreateSchema",
    "RoleListResponse",
    "RoleSchema",
    "RoleUpdateSchema",
    "SessionResponse",
    "SessionRole",
    "SessionUser",
    "UserActionResponse",
    "UserCreate",
    "UserListResponse",
    "UserResponse",
    "UserRoleRef",
    "UserUpdate",
]
