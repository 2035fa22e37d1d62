# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User schemas."""
import datetime
import uuid

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ems.security import PASSWORD_MAX_BYTES, password_too_long


class UserCreate(BaseModel):
    """Schema for creating a user."""

    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    confirm_password: str
    role_id: uuid.UUID

    @field_validator("password")
    @classmethod
    def password_fits_hash(cls, v: str) -> str:
        if password_too_long(v):
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes.")
        return v

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords don't match.")
        return v


class UserUpdate(BaseModel):
    """Schema for changing a user's username and role."""

    username: str = Field(..., min_length=3, max_length=50)
    role_id: uuid.UUID


class UserRoleRef(BaseModel):
    """Role summary shown alongside a user."""

    id: str
    name: str


class UserResponse(BaseModel):
    """Schema for user response."""

    id: str
    username: str
    role: UserRoleRef
    author_username: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class UserListResponse(BaseModel):
    users: list[UserResponse]


class UserActionResponse(BaseModel):
    """Successful user mutation."""

    success: bool = True
    message: str
    user: UserResponse
