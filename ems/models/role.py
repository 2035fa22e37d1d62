# ems/models/role.py
import uuid as uuid_lib

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from ems.models.base import Base, TimestampMixin


class Role(Base, TimestampMixin):
    """A named bundle of capability ids.

    ``name_key`` holds the lower-cased name and carries the unique constraint,
    so role names are unique regardless of case while ``name`` keeps the case
    the author typed.
    """

    __tablename__ = "roles"

    id: Mapped[uuid_lib.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid_lib.uuid4,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    name_key: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    permissions: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    author: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    @validates("name")
    def _sync_name_key(self, key: str, value: str) -> str:
        self.name_key = value.lower()
        return value
