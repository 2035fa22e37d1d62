# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""API dependencies for dependency injection."""

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, Response, status

from ems.config import Settings, get_settings
from ems.database import get_db
from ems.schemas.auth import SessionUser
from ems.services import rbac_service, session_service

__all__ = [
    "clear_session_cookie",
    "get_current_session",
    "get_db",
    "get_optional_session",
    "get_settings",
    "require_permission",
    "set_session_cookie",
]


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the session token as an HTTP-only cookie."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=int(settings.session_ttl.total_seconds()),
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def get_optional_session(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> SessionUser | None:
    """Get the verified session if present, otherwise return None."""
    token = request.cookies.get(settings.session_cookie_name)
    return session_service.verify_session_token(settings, token)


def get_current_session(
    session: SessionUser | None = Depends(get_optional_session),
) -> SessionUser:
    """Get the verified session from the cookie or reject the request."""
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    return session


def require_permission(permission_code: str) -> Callable[..., SessionUser]:
    """Dependency for permission-based authorization."""

    def dependency(
        session: SessionUser = Depends(get_current_session),
    ) -> SessionUser:
        if not rbac_service.can(session, permission_code):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {permission_code}",
            )
        return session

    return dependency
