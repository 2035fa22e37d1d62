# ems/rbac/permissions.py
from dataclasses import dataclass


class PermissionCategory:
    DASHBOARD = "Dashboard"
    EMPLOYEE_MANAGEMENT = "Employee Management"
    USER_ROLE_MANAGEMENT = "User & Role Management"
    PROFILE = "Profile"


# Order in which categories appear in listings
PERMISSION_CATEGORIES_ORDER = [
    PermissionCategory.DASHBOARD,
    PermissionCategory.EMPLOYEE_MANAGEMENT,
    PermissionCategory.USER_ROLE_MANAGEMENT,
    PermissionCategory.PROFILE,
]


@dataclass(frozen=True)
class PermissionDef:
    """A grantable capability known to the application."""

    id: str
    label: str
    category: str
    description: str | None = None


ALL_PERMISSIONS: tuple[PermissionDef, ...] = (
    # Dashboard
    PermissionDef(
        "dashboard:view",
        "View Dashboard",
        PermissionCategory.DASHBOARD,
        "Allows user to see the main dashboard overview.",
    ),
    # Employee management: pages and actions
    PermissionDef(
        "employee:view_list_page",
        "View Employee List Page",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows accessing the main employee listing page.",
    ),
    PermissionDef(
        "employee:view_birthdays_page",
        "View Employee Birthdays Page",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows accessing the employee birthdays page.",
    ),
    PermissionDef(
        "employee:view_six_month_service_page",
        "View 6+ Months Service Page",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows accessing the page for employees with 6+ months of service.",
    ),
    PermissionDef(
        "employee:export",
        "Export Employee Data",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows exporting the employee list to a CSV file.",
    ),
    PermissionDef(
        "employee:add_new",
        "Add New Employees",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows creating new employee records.",
    ),
    PermissionDef(
        "employee:edit_action",
        "Perform Edit Action (on Employee)",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows user to open the edit dialog for an employee.",
    ),
    PermissionDef(
        "employee:delete_action",
        "Perform Delete Action (on Employee)",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows user to initiate deleting an employee record.",
    ),
    PermissionDef(
        "employee:view_details_modal",
        "View Employee Details Modal",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        "Allows opening the modal to see details of a specific employee.",
    ),
    # Employee management: field visibility
    PermissionDef(
        "employee:view_position",
        "View Employee Position",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        'Allows viewing the "Position" field/column for employees.',
    ),
    PermissionDef(
        "employee:view_gender",
        "View Employee Gender",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        'Allows viewing the "Gender" field/column for employees.',
    ),
    PermissionDef(
        "employee:view_dob",
        "View Employee Date of Birth",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        'Allows viewing the "DOB" field/column for employees.',
    ),
    PermissionDef(
        "employee:view_phone",
        "View Employee Phone Number",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        'Allows viewing the "Phone No." field/column for employees.',
    ),
    PermissionDef(
        "employee:view_nrc",
        "View Employee NRC",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        'Allows viewing the "NRC" field/column for employees.',
    ),
    PermissionDef(
        "employee:view_address",
        "View Employee Address",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        'Allows viewing the "Address" field/column for employees.',
    ),
    PermissionDef(
        "employee:view_service_years",
        "View Employee Service Years",
        PermissionCategory.EMPLOYEE_MANAGEMENT,
        'Allows viewing the calculated "Service Years" for employees.',
    ),
    # User & role management
    PermissionDef(
        "user_roles:view_roles_page",
        "View User Roles Page",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        "Allows accessing the user roles listing page.",
    ),
    PermissionDef(
        "user_roles:add_new_role",
        "Add New Role",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        "Allows creating new user roles and assigning permissions to them.",
    ),
    PermissionDef(
        "user_roles:edit_role_action",
        "Edit Role (Name & Permissions)",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        "Allows modifying a role's name and its assigned permissions.",
    ),
    PermissionDef(
        "user_roles:delete_role_action",
        "Delete Role",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        "Allows deleting a user role.",
    ),
    PermissionDef(
        "user_management:view_users_page",
        "View User List Page",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        "Allows accessing the user account listing page.",
    ),
    PermissionDef(
        "user_management:add_new_user",
        "Add New User Account",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        "Allows creating new user accounts and assigning roles.",
    ),
    PermissionDef(
        "user_management:edit_user_action",
        "Edit User Account (Username/Role)",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        "Allows modifying a user's username and role.",
    ),
    PermissionDef(
        "user_management:delete_user_action",
        "Delete User Account",
        PermissionCategory.USER_ROLE_MANAGEMENT,
        'Allows deleting a user account (except protected accounts like "Admin").',
    ),
    # Profile
    PermissionDef(
        "profile:change_image",
        "Change Global Profile Image",
        PermissionCategory.PROFILE,
        "Allows the user to change the global profile picture for the application.",
    ),
)

ALL_PERMISSION_IDS: tuple[str, ...] = tuple(p.id for p in ALL_PERMISSIONS)
_PERMISSION_IDS = frozenset(ALL_PERMISSION_IDS)


def is_known_permission(permission_id: str) -> bool:
    return permission_id in _PERMISSION_IDS


def unknown_permissions(permission_ids: list[str]) -> list[str]:
    """Return the ids not present in the catalog, preserving input order."""
    return [p for p in dict.fromkeys(permission_ids) if p not in _PERMISSION_IDS]


def normalize_permissions(permission_ids: list[str] | set[str]) -> list[str]:
    """Deduplicate, drop unknown ids and return them in catalog order."""
    wanted = set(permission_ids)
    return [p for p in ALL_PERMISSION_IDS if p in wanted]


def get_grouped_permissions() -> dict[str, list[PermissionDef]]:
    """Group the catalog by category, labels sorted within each category."""
    groups: dict[str, list[PermissionDef]] = {
        category: [] for category in PERMISSION_CATEGORIES_ORDER
    }
    for permission in ALL_PERMISSIONS:
        groups.setdefault(permission.category, []).append(permission)
    for permissions in groups.values():
        permissions.sort(key=lambda p: p.label.lower())
    return groups
