# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ems import __version__
from ems.api.deps import clear_session_cookie
from ems.config import default_credentials_in_use, get_settings
from ems.errors import EmsError, StoreFailure
from ems.logging_config import configure_logging
from ems.schemas.common import ActionResponse, HealthResponse
from ems.services.session_service import require_signing_key

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "PERMISSION_DENIED",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)

    # Fail closed: refuse to serve without a signing key
    require_signing_key(settings)

    if default_credentials_in_use(settings):
        logger.warning(
            "RESERVED_USERNAME or RESERVED_PASSWORD is not set. "
            "The built-in Admin credentials will be used; change them before "
            "exposing this service."
        )
    logger.info(f"EMS access core {__version__} started ({settings.environment})")

    yield

    logger.info("Shutting down EMS access core...")


app = FastAPI(
    title="EMS Access Core",
    description="Authentication, sessions and role-based access for the EMS admin app",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _action_response(
    status_code: int,
    message: str,
    code: str | None,
    errors: dict[str, list[str]] | None = None,
) -> JSONResponse:
    payload = ActionResponse(message=message, code=code, errors=errors)
    return JSONResponse(status_code=status_code, content=payload.model_dump(mode="json"))


@app.exception_handler(EmsError)
async def handle_ems_error(request: Request, exc: EmsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return _action_response(exc.status_code, exc.message, exc.code, exc.errors)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _action_response(
        exc.status_code,
        str(exc.detail),
        HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
    )
    settings = get_settings()
    if exc.status_code == status.HTTP_401_UNAUTHORIZED and (
        settings.session_cookie_name in request.cookies
    ):
        # Whatever was presented did not verify; make the client drop it
        clear_session_cookie(response, settings)
    return response


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        fields = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        field = fields[-1] if fields else "general"
        message = str(error.get("msg", "Invalid value.")).removeprefix("Value error, ")
        errors.setdefault(field, []).append(message)
    return _action_response(
        status.HTTP_400_BAD_REQUEST, "Invalid input data.", "VALIDATION_ERROR", errors
    )


@app.exception_handler(SQLAlchemyError)
async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        f"Store failure on {request.method} {request.url.path}", exc_info=exc
    )
    failure = StoreFailure()
    errors = None
    if not get_settings().is_production:
        errors = {"general": [f"Database operation failed: {exc}"]}
    return _action_response(failure.status_code, failure.message, failure.code, errors)


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy")


# Import and include API router after it's created
from ems.api.v1.router import api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
