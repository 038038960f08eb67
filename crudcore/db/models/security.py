from __future__ import annotations

from typing import Optional

from sqlalchemy import Enum, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from crudcore.core.enums import RoleKind
from crudcore.db.base import Base, TimestampMixin, UUIDPkMixin


class Role(UUIDPkMixin, TimestampMixin, Base):
    """Role that can be granted to users."""
    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("name", name="uq_roles_name"),
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    kind: Mapped[RoleKind] = mapped_column(
        Enum(
            RoleKind,
            name="role_kind",
            native_enum=False,
            length=32,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
        default=RoleKind.DEVELOPER,
    )
    # Optimistic concurrency counter; stale updates raise StaleDataError on flush.
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id, "eager_defaults": True}
