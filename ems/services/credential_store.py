# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""Repository functions over the role and user tables.

Every write here is a single commit. Inserts and updates report a unique-key
collision as a ``DUPLICATE`` outcome instead of raising, so callers racing each
other can re-read the winning record or report the name as taken.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Generic, TypeVar

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ems.models import Role, User
from ems.models.base import utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WriteStatus(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DUPLICATE = "duplicate"


@dataclass
class WriteOutcome(Generic[T]):
    """Result of a write guarded by a unique key."""

    status: WriteStatus
    record: T | None = None

    @property
    def created(self) -> bool:
        return self.status is WriteStatus.CREATED

    @property
    def duplicate(self) -> bool:
        return self.status is WriteStatus.DUPLICATE


# Roles


def get_role_by_id(db: Session, role_id: uuid.UUID) -> Role | None:
    return db.query(Role).filter(Role.id == role_id).first()


def get_role_by_name(db: Session, name: str) -> Role | None:
    """Get a role by its name, ignoring case."""
    return db.query(Role).filter(Role.name_key == name.lower()).first()


def find_role_name_conflict(
    db: Session, name: str, exclude_id: uuid.UUID | None = None
) -> Role | None:
    """Return another role already using ``name`` (case-insensitive)."""
    query = db.query(Role).filter(Role.name_key == name.lower())
    if exclude_id is not None:
        query = query.filter(Role.id != exclude_id)
    return query.first()


def list_roles(db: Session) -> list[Role]:
    return db.query(Role).order_by(Role.name).all()


def list_roles_by_author(db: Session, author: str) -> list[Role]:
    return db.query(Role).filter(Role.author == author).all()


def insert_role(
    db: Session, name: str, permissions: list[str], author: str | None
) -> WriteOutcome[Role]:
    """Insert a role; a name collision yields a DUPLICATE outcome."""
    role = Role(name=name, permissions=list(permissions), author=author)
    db.add(role)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Role insert collided on unique name")
        return WriteOutcome(WriteStatus.DUPLICATE)
    db.refresh(role)
    return WriteOutcome(WriteStatus.CREATED, role)


def update_role(
    db: Session,
    role: Role,
    *,
    name: str | None = None,
    permissions: list[str] | None = None,
    author: str | None = None,
) -> WriteOutcome[Role]:
    """Apply the given changes to a role and commit.

    A rename onto a name taken in the meantime yields a DUPLICATE outcome.
    """
    if name is not None:
        role.name = name
    if permissions is not None:
        role.permissions = list(permissions)
    if author is not None:
        role.author = author
    role.updated_at = utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Role update collided on unique name")
        return WriteOutcome(WriteStatus.DUPLICATE)
    db.refresh(role)
    return WriteOutcome(WriteStatus.UPDATED, role)


def delete_role(db: Session, role: Role) -> None:
    db.delete(role)
    db.commit()


# Users


def get_user_by_id(db: Session, user_id: uuid.UUID) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> User | None:
    """Exact, case-sensitive username lookup."""
    return db.query(User).filter(User.username == username).first()


def find_username_conflict(
    db: Session, username: str, exclude_id: uuid.UUID | None = None
) -> User | None:
    """Return another user already using ``username`` (case-insensitive)."""
    query = db.query(User).filter(User.username_key == username.lower())
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first()


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def list_users_visible_to(
    db: Session, user_id: uuid.UUID, username: str, hidden_username: str
) -> list[User]:
    """Users a non-privileged caller may see: itself plus accounts it created."""
    return (
        db.query(User)
        .filter(
            and_(
                User.username != hidden_username,
                or_(User.id == user_id, User.author_username == username),
            )
        )
        .order_by(User.created_at.desc())
        .all()
    )


def insert_user(
    db: Session,
    username: str,
    hashed_password: str | None,
    role_id: uuid.UUID,
    author_username: str | None,
) -> WriteOutcome[User]:
    """Insert a user; a username collision yields a DUPLICATE outcome."""
    user = User(
        username=username,
        hashed_password=hashed_password,
        role_id=role_id,
        author_username=author_username,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("User insert collided on unique username")
        return WriteOutcome(WriteStatus.DUPLICATE)
    db.refresh(user)
    return WriteOutcome(WriteStatus.CREATED, user)


def update_user(
    db: Session,
    user: User,
    *,
    username: str | None = None,
    role_id: uuid.UUID | None = None,
) -> WriteOutcome[User]:
    """Apply the given changes to a user; a username collision yields DUPLICATE."""
    if username is not None:
        user.username = username
    if role_id is not None:
        user.role_id = role_id
    user.updated_at = utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("User update collided on unique username")
        return WriteOutcome(WriteStatus.DUPLICATE)
    db.refresh(user)
    return WriteOutcome(WriteStatus.UPDATED, user)


def delete_user(db: Session, user: User) -> None:
    db.delete(user)
    db.commit()
