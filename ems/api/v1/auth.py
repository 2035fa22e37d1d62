# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Form, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ems.api.deps import (
    clear_session_cookie,
    get_db,
    get_settings,
    set_session_cookie,
)
from ems.config import Settings
from ems.errors import AuthenticationFailure, ValidationFailed
from ems.schemas.auth import LoginResponse, SessionResponse
from ems.schemas.common import MessageResponse
from ems.services import auth_service, session_service

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": LoginResponse}, 401: {"model": LoginResponse}},
)
def login(
    response: Response,
    username: str = Form(default=""),
    password: str = Form(default=""),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> LoginResponse | JSONResponse:
    """Login with a form-encoded username and password."""
    result = auth_service.login(db, settings, username, password)
    payload = LoginResponse(
        success=result.success,
        message=result.message,
        redirect_to=result.redirect_to,
        user=result.user,
        code=result.code,
        errors=result.errors,
    )

    if not result.success:
        failure = ValidationFailed if result.errors else AuthenticationFailure
        return JSONResponse(
            status_code=failure.status_code,
            content=payload.model_dump(mode="json"),
        )

    set_session_cookie(response, result.token, settings)
    return payload


@router.get("/session", response_model=SessionResponse)
def get_session(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> SessionResponse:
    """Return the current session's principal, or null when not logged in.

    A cookie that fails verification is cleared.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return SessionResponse(user=None)

    user = session_service.verify_session_token(settings, token)
    if user is None:
        clear_session_cookie(response, settings)
    return SessionResponse(user=user)


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """Clear the session cookie. Safe to call without a session."""
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logged out successfully.")
