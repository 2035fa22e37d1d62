# ems/schemas/rbac.py
import datetime
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

ROLE_NAME_MAX_LENGTH = 50


class PermissionSchema(BaseModel):
    """Schema representing a catalog permission."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    category: str
    description: str | None = None


class PermissionGroupSchema(BaseModel):
    """Permissions belonging to one category."""

    category: str
    permissions: list[PermissionSchema]


class RoleSchema(BaseModel):
    """Schema representing a role."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    author: str | None
    permissions: list[str]
    created_at: datetime.datetime
    updated_at: datetime.datetime


def _clean_role_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Role name is required.")
    if len(value) > ROLE_NAME_MAX_LENGTH:
        raise ValueError("Role name must be 50 characters or less.")
    return value


class RoleCreateSchema(BaseModel):
    """Schema for creating a new role."""

    name: str
    permissions: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_role_name(v)


class RoleUpdateSchema(BaseModel):
    """Schema for renaming a role and/or replacing its permissions."""

    name: str | None = None
    permissions: list[str] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_role_name(v)


class RoleListResponse(BaseModel):
    roles: list[RoleSchema]


class RoleActionResponse(BaseModel):
    """Successful role mutation."""

    success: bool = True
    message: str
    role: RoleSchema
