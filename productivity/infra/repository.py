"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Mock data for testing
- Keep every store call atomic (one session, one commit)

Repositories return Pydantic read models with their child collections
already loaded; nothing lazy escapes a session. Absence is signalled with
None (lookups, updates) or False (deletes). A missing parent row on create
or re-parenting raises ValidationError.
"""

import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from productivity.domain import timer
from productivity.domain.errors import ValidationError
from productivity.domain.models import (
    Project, ProjectCreate, ProjectStatus,
    Task, TaskCreate, TaskPriority, TaskStatus,
    TimeEntry, TimeEntryCreate,
)
from productivity.infra.db import ProjectModel, TaskModel, TimeEntryModel, get_engine


class ProjectRepository:
    """
    Handles all Project-related database operations.

    Projects are loaded with their tasks, and each task with its time entries.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    @staticmethod
    def _select():
        return (
            select(ProjectModel)
            .options(selectinload(ProjectModel.tasks).selectinload(TaskModel.time_entries))
            .execution_options(populate_existing=True)
            .order_by(ProjectModel.id)
        )

    async def _load(self, session: AsyncSession, project_id: int) -> Optional[Project]:
        result = await session.execute(self._select().where(ProjectModel.id == project_id))
        model = result.scalar_one_or_none()
        return Project.model_validate(model) if model else None

    async def get_all(self) -> List[Project]:
        """Get all projects"""
        session = await self._get_session()
        async with session:
            result = await session.execute(self._select())
            return [Project.model_validate(m) for m in result.scalars().all()]

    async def get_by_status(self, status: ProjectStatus) -> List[Project]:
        """Get projects whose status matches exactly"""
        session = await self._get_session()
        async with session:
            result = await session.execute(self._select().where(ProjectModel.status == status))
            return [Project.model_validate(m) for m in result.scalars().all()]

    async def get_by_id(self, project_id: int) -> Optional[Project]:
        """Get a specific project by ID"""
        session = await self._get_session()
        async with session:
            return await self._load(session, project_id)

    async def exists(self, project_id: int) -> bool:
        session = await self._get_session()
        async with session:
            return await session.get(ProjectModel, project_id) is not None

    async def create(self, project: ProjectCreate, timestamp: datetime.datetime) -> Project:
        """Create a new project"""
        session = await self._get_session()
        async with session:
            model = ProjectModel(
                name=project.name,
                description=project.description,
                status=project.status,
                start_date=project.start_date,
                end_date=project.end_date,
                created_at=timestamp,
                updated_at=timestamp
            )
            session.add(model)
            await session.commit()
            return await self._load(session, model.id)

    async def update(self, project_id: int, values: Dict[str, Any]) -> Optional[Project]:
        """Apply the given column values to an existing project"""
        session = await self._get_session()
        async with session:
            model = await session.get(ProjectModel, project_id)
            if model is None:
                return None
            for key, value in values.items():
                setattr(model, key, value)
            await session.commit()
            return await self._load(session, project_id)

    async def delete(self, project_id: int) -> bool:
        """Delete a project together with its tasks and their time entries"""
        session = await self._get_session()
        async with session:
            model = await session.get(ProjectModel, project_id)
            if model is None:
                return False
            await session.delete(model)
            await session.commit()
            return True

    async def delete_all(self) -> int:
        """Delete all projects. Returns count of deleted rows."""
        session = await self._get_session()
        async with session:
            await session.execute(delete(TimeEntryModel))
            await session.execute(delete(TaskModel))
            result = await session.execute(delete(ProjectModel))
            await session.commit()
            return result.rowcount


class TaskRepository:
    """
    Handles all Task-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    @staticmethod
    def _select():
        return (
            select(TaskModel)
            .options(selectinload(TaskModel.time_entries))
            .execution_options(populate_existing=True)
            .order_by(TaskModel.id)
        )

    async def _load(self, session: AsyncSession, task_id: int) -> Optional[Task]:
        result = await session.execute(self._select().where(TaskModel.id == task_id))
        model = result.scalar_one_or_none()
        return Task.model_validate(model) if model else None

    async def _list(self, *criteria) -> List[Task]:
        session = await self._get_session()
        async with session:
            result = await session.execute(self._select().where(*criteria))
            return [Task.model_validate(m) for m in result.scalars().all()]

    @staticmethod
    async def _require_project(session: AsyncSession, project_id: int) -> None:
        if await session.get(ProjectModel, project_id) is None:
            raise ValidationError(f"Project {project_id} does not exist")

    async def get_all(self) -> List[Task]:
        """Get all tasks"""
        return await self._list()

    async def get_by_id(self, task_id: int) -> Optional[Task]:
        """Get a specific task by ID"""
        session = await self._get_session()
        async with session:
            return await self._load(session, task_id)

    async def exists(self, task_id: int) -> bool:
        session = await self._get_session()
        async with session:
            return await session.get(TaskModel, task_id) is not None

    async def get_by_project(self, project_id: int) -> List[Task]:
        return await self._list(TaskModel.project_id == project_id)

    async def get_by_status(self, status: TaskStatus) -> List[Task]:
        return await self._list(TaskModel.status == status)

    async def get_by_priority(self, priority: TaskPriority) -> List[Task]:
        return await self._list(TaskModel.priority == priority)

    async def get_due_before(self, now: datetime.datetime) -> List[Task]:
        """Get tasks with a due date strictly before `now`, whatever their status"""
        return await self._list(
            TaskModel.due_date.is_not(None),
            TaskModel.due_date < timer.to_local_naive(now),
        )

    async def create(self, task: TaskCreate, timestamp: datetime.datetime) -> Task:
        """Create a new task under an existing project"""
        session = await self._get_session()
        async with session:
            await self._require_project(session, task.project_id)
            model = TaskModel(
                title=task.title,
                description=task.description,
                status=task.status,
                priority=task.priority,
                due_date=task.due_date,
                project_id=task.project_id,
                created_at=timestamp,
                updated_at=timestamp
            )
            session.add(model)
            await session.commit()
            return await self._load(session, model.id)

    async def update(self, task_id: int, values: Dict[str, Any]) -> Optional[Task]:
        """Apply the given column values to an existing task"""
        session = await self._get_session()
        async with session:
            model = await session.get(TaskModel, task_id)
            if model is None:
                return None
            if "project_id" in values:
                await self._require_project(session, values["project_id"])
            for key, value in values.items():
                setattr(model, key, value)
            await session.commit()
            return await self._load(session, task_id)

    async def delete(self, task_id: int) -> bool:
        """Delete a task together with its time entries"""
        session = await self._get_session()
        async with session:
            model = await session.get(TaskModel, task_id)
            if model is None:
                return False
            await session.delete(model)
            await session.commit()
            return True


class TimeEntryRepository:
    """
    Handles all TimeEntry-related database operations.

    Duration is never taken from the caller: every write derives it from
    start_time and end_time inside the same session.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def _get_session(self) -> AsyncSession:
        """Get session - either injected or create new one"""
        if self.session:
            return self.session
        engine = get_engine()
        return engine.get_session()

    @staticmethod
    def _select():
        return (
            select(TimeEntryModel)
            .execution_options(populate_existing=True)
            .order_by(TimeEntryModel.start_time, TimeEntryModel.id)
        )

    async def _load(self, session: AsyncSession, entry_id: int) -> Optional[TimeEntry]:
        result = await session.execute(self._select().where(TimeEntryModel.id == entry_id))
        model = result.scalar_one_or_none()
        return TimeEntry.model_validate(model) if model else None

    async def _list(self, *criteria) -> List[TimeEntry]:
        session = await self._get_session()
        async with session:
            result = await session.execute(self._select().where(*criteria))
            return [TimeEntry.model_validate(m) for m in result.scalars().all()]

    @staticmethod
    async def _require_task(session: AsyncSession, task_id: int) -> None:
        if await session.get(TaskModel, task_id) is None:
            raise ValidationError(f"Task {task_id} does not exist")

    async def get_all(self) -> List[TimeEntry]:
        return await self._list()

    async def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        """Get a specific time entry by ID"""
        session = await self._get_session()
        async with session:
            return await self._load(session, entry_id)

    async def get_by_task(self, task_id: int) -> List[TimeEntry]:
        """Get all time entries for a specific task"""
        return await self._list(TimeEntryModel.task_id == task_id)

    async def get_by_date_range(self, start: datetime.datetime,
                                end: datetime.datetime) -> List[TimeEntry]:
        """Get entries whose start_time lies in [start, end], both ends inclusive"""
        return await self._list(
            TimeEntryModel.start_time >= timer.to_local_naive(start),
            TimeEntryModel.start_time <= timer.to_local_naive(end),
        )

    async def get_running(self, task_id: int) -> List[TimeEntry]:
        return await self._list(
            TimeEntryModel.task_id == task_id,
            TimeEntryModel.end_time.is_(None),
        )

    async def create(self, entry: TimeEntryCreate, created_at: datetime.datetime) -> TimeEntry:
        """Create a new time entry; duration is derived from its bounds"""
        duration = timer.compute_duration(entry.start_time, entry.end_time)
        session = await self._get_session()
        async with session:
            await self._require_task(session, entry.task_id)
            model = TimeEntryModel(
                task_id=entry.task_id,
                description=entry.description,
                start_time=entry.start_time,
                end_time=entry.end_time,
                duration_us=timer.to_microseconds(duration),
                created_at=created_at
            )
            session.add(model)
            await session.commit()
            return await self._load(session, model.id)

    async def update(self, entry_id: int, values: Dict[str, Any]) -> Optional[TimeEntry]:
        """Apply the given column values, then recompute the duration"""
        session = await self._get_session()
        async with session:
            model = await session.get(TimeEntryModel, entry_id)
            if model is None:
                return None
            if "task_id" in values:
                await self._require_task(session, values["task_id"])
            if model.end_time is not None and "end_time" in values and values["end_time"] is None:
                raise ValidationError(f"TimeEntry {entry_id} is stopped and cannot be reopened")
            for key, value in values.items():
                setattr(model, key, value)
            duration = timer.compute_duration(model.start_time, model.end_time)
            model.duration_us = timer.to_microseconds(duration)
            await session.commit()
            return await self._load(session, entry_id)

    async def stop(self, entry_id: int, end_time: datetime.datetime) -> Optional[TimeEntry]:
        """
        Close a running entry.

        Returns:
            The stopped entry, or None if it does not exist or was already stopped
        """
        session = await self._get_session()
        async with session:
            model = await session.get(TimeEntryModel, entry_id)
            if model is None or model.end_time is not None:
                return None
            duration = timer.compute_duration(model.start_time, end_time)
            # Guarded on end_time IS NULL: at most one stop succeeds
            result = await session.execute(
                update(TimeEntryModel)
                .where(TimeEntryModel.id == entry_id, TimeEntryModel.end_time.is_(None))
                .values(end_time=end_time, duration_us=timer.to_microseconds(duration))
            )
            await session.commit()
            if result.rowcount != 1:
                return None
            return await self._load(session, entry_id)

    async def delete(self, entry_id: int) -> bool:
        """Delete a time entry by ID"""
        session = await self._get_session()
        async with session:
            result = await session.execute(
                delete(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def total_duration_for_task(self, task_id: int) -> datetime.timedelta:
        """Sum of durations of the task's stopped entries; running entries count zero"""
        return await self._sum(
            select(func.coalesce(func.sum(TimeEntryModel.duration_us), 0))
            .where(TimeEntryModel.task_id == task_id, TimeEntryModel.end_time.is_not(None))
        )

    async def total_duration_for_project(self, project_id: int) -> datetime.timedelta:
        """Sum of durations of stopped entries across all tasks of a project"""
        return await self._sum(
            select(func.coalesce(func.sum(TimeEntryModel.duration_us), 0))
            .join(TaskModel, TaskModel.id == TimeEntryModel.task_id)
            .where(TaskModel.project_id == project_id, TimeEntryModel.end_time.is_not(None))
        )

    async def _sum(self, stmt) -> datetime.timedelta:
        session = await self._get_session()
        async with session:
            total = (await session.execute(stmt)).scalar_one()
            return timer.from_microseconds(total)
