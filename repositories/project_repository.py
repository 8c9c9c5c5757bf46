from uuid import UUID

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models import Project


class ProjectRepository:
    """Read access to projects; project management lives elsewhere."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, project_id: UUID) -> Project | None:
        return self.session.get(Project, project_id)

    def get_or_404(self, project_id: UUID) -> Project:
        project = self.get(project_id)
        if not project:
            raise NotFoundError("Project", project_id)
        return project

    def exists(self, project_id: UUID) -> bool:
        return self.get(project_id) is not None
