"""
Task Service - CRUD, filters and the overdue query for tasks.
"""

import datetime
import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from productivity.domain import timer
from productivity.domain.models import (
    Task, TaskCreate, TaskPriority, TaskStatus, TaskUpdate, parse_payload,
)
from productivity.infra.repository import TaskRepository

logger = logging.getLogger(__name__)


class TaskService:
    """Operations on tasks, one store transaction per call"""

    def __init__(self, session: Optional[AsyncSession] = None,
                 clock: Optional[Callable[[], datetime.datetime]] = None):
        self.task_repo = TaskRepository(session)
        self.clock = clock or datetime.datetime.now

    async def create_task(self, payload: Union[TaskCreate, Mapping[str, Any]]) -> Task:
        """
        Create a task under an existing project.

        Raises:
            ValidationError: on invalid input or if the project does not exist
        """
        data = parse_payload(TaskCreate, payload)
        task = await self.task_repo.create(data, timestamp=self.clock())
        logger.info(f"Created task {task.id} '{task.title}' in project {task.project_id}")
        return task

    async def get_task(self, task_id: int) -> Optional[Task]:
        return await self.task_repo.get_by_id(task_id)

    async def list_tasks(self) -> List[Task]:
        return await self.task_repo.get_all()

    async def update_task(self, task_id: int,
                          patch: Union[TaskUpdate, Mapping[str, Any]]) -> Optional[Task]:
        """
        Apply the fields present in `patch`.

        Moving a task to another project requires that project to exist
        (ValidationError otherwise). Returns None if the task does not exist.
        """
        changes = parse_payload(TaskUpdate, patch).changes()
        changes["updated_at"] = self.clock()
        return await self.task_repo.update(task_id, changes)

    async def delete_task(self, task_id: int) -> bool:
        deleted = await self.task_repo.delete(task_id)
        if deleted:
            logger.info(f"Deleted task {task_id} with its time entries")
        return deleted

    async def list_tasks_by_project(self, project_id: int) -> List[Task]:
        return await self.task_repo.get_by_project(project_id)

    async def list_tasks_by_status(self, status: Union[TaskStatus, str]) -> List[Task]:
        return await self.task_repo.get_by_status(TaskStatus.parse(status))

    async def list_tasks_by_priority(self, priority: Union[TaskPriority, str]) -> List[Task]:
        return await self.task_repo.get_by_priority(TaskPriority.parse(priority))

    async def list_overdue_tasks(self, now: Optional[datetime.datetime] = None) -> List[Task]:
        """
        Tasks whose due date has passed and whose status is not Completed.

        Cancelled tasks with a past due date are reported as overdue too.
        """
        now = timer.to_local_naive(now) if now else self.clock()
        candidates = await self.task_repo.get_due_before(now)
        return [task for task in candidates if task.is_overdue(now)]
