# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Application exception types.

Each error carries the HTTP status, a stable code and optional field-level
messages so the API layer can render a uniform ``ActionResponse``.
"""

GENERIC_INTERNAL_MESSAGE = "An internal server error occurred. Please try again later."


class EmsError(Exception):
    """Base error that maps directly to the action response payload."""

    status_code = 400
    code = "ERROR"

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
        self.message = message
        self.errors = errors
        super().__init__(message)


class ValidationFailed(EmsError):
    """Malformed input; messages are safe to show verbatim."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationFailure(EmsError):
    """Generic credential failure. Never says which half was wrong."""

    status_code = 401
    code = "INVALID_CREDENTIALS"


class AuthorizationDenied(EmsError):
    """Capability or authorship-scope violation."""

    status_code = 403
    code = "PERMISSION_DENIED"


class ReservedRoleError(AuthorizationDenied):
    """Attempt to alter or remove the reserved Admin role or account."""

    code = "RESERVED_ROLE"


class NotFound(EmsError):
    status_code = 404
    code = "NOT_FOUND"


class ConfigurationFault(EmsError):
    """The subsystem is misconfigured or could not provision itself."""

    status_code = 500
    code = "CONFIGURATION_ERROR"


class StoreFailure(EmsError):
    """Unexpected credential store failure."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str = GENERIC_INTERNAL_MESSAGE,
        errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message, errors)


__all__ = [
    "GENERIC_INTERNAL_MESSAGE",
    "AuthenticationFailure",
    "AuthorizationDenied",
    "ConfigurationFault",
    "EmsError",
    "NotFound",
    "ReservedRoleError",
    "StoreFailure",
    "ValidationFailed",
]
