# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User model for authentication."""

from __future__ import annotations

import uuid as uuid_lib

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from ems.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """A login-capable principal bound to exactly one role.

    ``role_id`` has no foreign key: deleting a role leaves the
    reference dangling and the user resolves to no permissions until reassigned.
    """

    __tablename__ = "users"

    id: Mapped[uuid_lib.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid_lib.uuid4,
    )
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    username_key: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role_id: Mapped[uuid_lib.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True
    )
    author_username: Mapped[str | None] = mapped_column(
        String(50), nullable=True, index=True
    )

    @validates("username")
    def _sync_username_key(self, key: str, value: str) -> str:
        self.username_key = value.lower()
        return value
