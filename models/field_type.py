"""Field type catalogue - primitive kinds and their validation contracts"""

from typing import Optional

from sqlalchemy import String, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, JSONType


class FieldType(Base):
    """
    A primitive field kind (Text, Number, Select, ...) and its validation contract.

    ``validation_spec`` is a JSON document discriminated by its ``kind`` key,
    see ``schemas.field_type``. System types are seeded and cannot be
    removed or renamed.
    """
    __tablename__ = "field_types"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    validation_spec: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)

    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<FieldType(name='{self.name}', system={self.is_system})>"
