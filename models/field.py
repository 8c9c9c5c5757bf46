"""Field model - user-definable data attributes"""

import enum
from typing import Optional

from sqlalchemy import String, Text, Boolean, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, JSONType


class FieldStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    ARCHIVED = "Archived"


class Field(Base):
    """
    Field represents a data attribute captured for a project.

    Other rows reference a field by ``name`` (child fields through ``parent``,
    rules through ``condition_field``/``target_field``), so names are unique
    and fields are archived instead of deleted.
    """
    __tablename__ = "fields"

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Field type reference by name
    type: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("field_types.name", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Self-referential hierarchy by name
    parent: Mapped[Optional[str]] = mapped_column(
        String(200),
        ForeignKey("fields.name", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    # Permissible values, only meaningful for select kinds
    values: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # "metadata" is reserved on declarative classes
    metadata_: Mapped[Optional[dict]] = mapped_column("metadata", JSONType, nullable=True)

    status: Mapped[FieldStatus] = mapped_column(
        SQLEnum(FieldStatus, name="field_status", values_callable=lambda x: [e.value for e in x]),
        default=FieldStatus.ACTIVE,
        nullable=False,
        index=True
    )
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def is_archived(self) -> bool:
        return self.status == FieldStatus.ARCHIVED

    def __repr__(self):
        return f"<Field(name='{self.name}', type='{self.type}', status='{self.status.value}')>"
