# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Authentication and session schemas."""
import datetime

from pydantic import BaseModel, Field


class SessionRole(BaseModel):
    """Role reference carried inside a session."""

    id: str
    name: str


class SessionUser(BaseModel):
    """The verified contents of a session token.

    ``permissions`` is the snapshot resolved at login and is trusted until the
    token expires.
    """

    id: str
    username: str
    role: SessionRole
    permissions: list[str] = Field(default_factory=list)
    issued_at: datetime.datetime
    expires_at: datetime.datetime


class LoginResult(BaseModel):
    """Outcome of a login attempt.

    Validation and credential failures come back as results, not exceptions.
    ``token`` is only set on success and is never serialized to clients.
    """

    success: bool
    message: str
    code: str | None = None
    errors: dict[str, list[str]] | None = None
    redirect_to: str | None = None
    user: SessionUser | None = None
    token: str | None = Field(default=None, exclude=True, repr=False)


class LoginResponse(BaseModel):
    """Login payload returned to the client."""

    success: bool
    message: str
    code: str | None = None
    redirect_to: str | None = None
    user: SessionUser | None = None
    errors: dict[str, list[str]] | None = None


class SessionResponse(BaseModel):
    """Session introspection payload; ``user`` is null when not logged in."""

    user: SessionUser | None = None
