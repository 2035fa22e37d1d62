# ems/rbac/roles.py
from .permissions import ALL_PERMISSION_IDS

# The privileged role always carries every catalog permission
RESERVED_ROLE_NAME = "Admin"
RESERVED_ROLE_PERMISSIONS = list(ALL_PERMISSION_IDS)

# Author recorded on records created by bootstrap rather than by a person
SYSTEM_AUTHOR = "System"

# Shown in place of a role name when a user's role reference is dangling
UNKNOWN_ROLE_NAME = "Unknown Role"


def is_reserved_role_name(name: str) -> bool:
    """Reserved-name check used on create and rename, case-insensitive."""
    return name.strip().lower() == RESERVED_ROLE_NAME.lower()


def is_reserved_username(username: str, reserved_username: str) -> bool:
    """Case-insensitive reserved-username check used on user create and rename."""
    return username.strip().lower() == reserved_username.lower()
