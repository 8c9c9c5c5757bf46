from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Project(Base):
    """Power-generation project. Managed elsewhere; rules may be scoped to one."""
    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    def __repr__(self):
        return f"<Project(name='{self.name}')>"
