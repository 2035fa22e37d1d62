# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Signed session tokens.

A session is a JWT carrying the principal, its role and the permission
snapshot resolved at login. Nothing is stored server-side; verification is
purely cryptographic and structural.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError
from pydantic import ValidationError

from ems.config import Settings
from ems.errors import ConfigurationFault
from ems.schemas.auth import SessionRole, SessionUser

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["exp", "iat", "iss", "sub"]


@dataclass(frozen=True)
class IssuedSession:
    token: str
    user: SessionUser


def require_signing_key(settings: Settings) -> str:
    """Return the signing key, failing closed when it is not configured."""
    key = (settings.secret_key or "").strip()
    if not key:
        logger.error("SECRET_KEY is not configured; sessions cannot be issued")
        raise ConfigurationFault(
            "Authentication system configuration error. Please contact support."
        )
    return key


def issue_session(
    settings: Settings,
    *,
    user_id: str,
    username: str,
    role_id: str,
    role_name: str,
    permissions: list[str],
    ttl: timedelta | None = None,
    now: datetime | None = None,
) -> IssuedSession:
    """Sign a session for a principal and return the token with its contents."""
    key = require_signing_key(settings)
    issued = int((now or datetime.now(tz=UTC)).timestamp())
    expires = issued + int((ttl or settings.session_ttl).total_seconds())

    payload: dict[str, Any] = {
        "iss": settings.token_issuer,
        "sub": user_id,
        "username": username,
        "role": {"id": role_id, "name": role_name},
        "permissions": list(permissions),
        "iat": issued,
        "exp": expires,
    }
    token = jwt.encode(payload, key, algorithm=settings.token_algorithm)
    return IssuedSession(token=token, user=_session_user_from_claims(payload))


def issue_session_token(settings: Settings, **kwargs: Any) -> str:
    """Convenience wrapper returning only the encoded token."""
    return issue_session(settings, **kwargs).token


def verify_session_token(settings: Settings, token: str | None) -> SessionUser | None:
    """Decode and validate a session token.

    Returns None for every kind of failure (bad signature, malformed claims,
    expiry). Callers treat that exactly like "not logged in".
    """
    if not token:
        return None
    key = require_signing_key(settings)
    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=[settings.token_algorithm],
            issuer=settings.token_issuer,
            options={"require": REQUIRED_CLAIMS},
        )
        return _session_user_from_claims(payload)
    except (InvalidTokenError, ValidationError, KeyError, TypeError) as exc:
        logger.debug(f"Rejected session token: {type(exc).__name__}")
        return None


def _session_user_from_claims(payload: dict[str, Any]) -> SessionUser:
    role = payload["role"]
    if not isinstance(role, dict):
        raise TypeError("role claim must be an object")
    permissions = payload.get("permissions", [])
    if not isinstance(permissions, list):
        raise TypeError("permissions claim must be a list")
    return SessionUser(
        id=payload["sub"],
        username=payload["username"],
        role=SessionRole(id=role["id"], name=role["name"]),
        permissions=permissions,
        issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
    )
