"""
Project Service - CRUD and status filtering for projects.

Deleting a project is destructive: its tasks and their time entries go
with it.
"""

import datetime
import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from productivity.domain.models import (
    Project, ProjectCreate, ProjectStatus, ProjectUpdate, parse_payload,
)
from productivity.infra.repository import ProjectRepository

logger = logging.getLogger(__name__)


class ProjectService:
    """Operations on projects, one store transaction per call"""

    def __init__(self, session: Optional[AsyncSession] = None,
                 clock: Optional[Callable[[], datetime.datetime]] = None):
        self.project_repo = ProjectRepository(session)
        self.clock = clock or datetime.datetime.now

    async def create_project(self, payload: Union[ProjectCreate, Mapping[str, Any]]) -> Project:
        """
        Create a project.

        Raises:
            ValidationError: if the payload is missing fields, too long, or
                carries an unknown status name
        """
        data = parse_payload(ProjectCreate, payload)
        project = await self.project_repo.create(data, timestamp=self.clock())
        logger.info(f"Created project {project.id} '{project.name}'")
        return project

    async def get_project(self, project_id: int) -> Optional[Project]:
        return await self.project_repo.get_by_id(project_id)

    async def list_projects(self) -> List[Project]:
        return await self.project_repo.get_all()

    async def update_project(self, project_id: int,
                             patch: Union[ProjectUpdate, Mapping[str, Any]]) -> Optional[Project]:
        """
        Apply the fields present in `patch`; absent fields are left untouched.

        Returns:
            The updated project, or None if it does not exist
        """
        changes = parse_payload(ProjectUpdate, patch).changes()
        changes["updated_at"] = self.clock()
        return await self.project_repo.update(project_id, changes)

    async def delete_project(self, project_id: int) -> bool:
        deleted = await self.project_repo.delete(project_id)
        if deleted:
            logger.info(f"Deleted project {project_id} with its tasks and time entries")
        return deleted

    async def list_projects_by_status(self, status: Union[ProjectStatus, str]) -> List[Project]:
        return await self.project_repo.get_by_status(ProjectStatus.parse(status))
