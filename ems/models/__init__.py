# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Database models package."""

from ems.models.base import Base, TimestampMixin
from ems.models.role import Role
from ems.models.user import User

__all__ = [
    "Base",
    "Role",
    "TimestampMixin",
    "User",
]
