"""Services package."""
from ems.services import (
    auth_service,
    bootstrap_service,
    credential_store,
    rbac_service,
    session_service,
    user_service,
)

__all__ = [
    "auth_service",
    "bootstrap_service",
    "credential_store",
    "rbac_service",
    "session_service",
    "user_service",
]
