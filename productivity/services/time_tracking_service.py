"""
Time Tracking Service - timer state machine and aggregation.

A time entry is Running while it has no end time and Stopped once it has
one. "Running" is only a data state: nothing ticks in the background, and
the elapsed time of a running entry is computed on demand.

State transitions:
- start_timer: creates a Running entry (start_time = now, duration = 0)
- stop_timer: Running -> Stopped (end_time = now, duration fixed); terminal

A task may have several running entries at once. That is unusual but
permitted and is only logged.
"""

import datetime
import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from productivity.domain import timer
from productivity.domain.errors import NotFoundError
from productivity.domain.models import (
    TimeEntry, TimeEntryCreate, TimeEntryUpdate, parse_payload,
)
from productivity.infra.repository import ProjectRepository, TaskRepository, TimeEntryRepository

logger = logging.getLogger(__name__)


class TimeTrackingService:
    """
    The time tracking engine: time entry CRUD, timers and totals.
    """

    def __init__(self, session: Optional[AsyncSession] = None,
                 clock: Optional[Callable[[], datetime.datetime]] = None):
        self.project_repo = ProjectRepository(session)
        self.task_repo = TaskRepository(session)
        self.entry_repo = TimeEntryRepository(session)
        self.clock = clock or datetime.datetime.now

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_time_entry(self, payload: Union[TimeEntryCreate, Mapping[str, Any]]) -> TimeEntry:
        """
        Create an entry directly, bypassing the timer.

        The duration is end_time - start_time when an end time is given and
        zero otherwise.

        Raises:
            ValidationError: on invalid input, end before start, or unknown task
        """
        data = parse_payload(TimeEntryCreate, payload)
        return await self.entry_repo.create(data, created_at=self.clock())

    async def get_time_entry(self, entry_id: int) -> Optional[TimeEntry]:
        return await self.entry_repo.get_by_id(entry_id)

    async def list_time_entries(self) -> List[TimeEntry]:
        return await self.entry_repo.get_all()

    async def update_time_entry(self, entry_id: int,
                                patch: Union[TimeEntryUpdate, Mapping[str, Any]]) -> Optional[TimeEntry]:
        """
        Apply the fields present in `patch` and recompute the duration.

        An explicit None for end_time leaves the stored end time alone, so a
        stopped entry stays stopped.

        Raises:
            ValidationError: on invalid input, end before start, or unknown task
        """
        changes = parse_payload(TimeEntryUpdate, patch).changes()
        return await self.entry_repo.update(entry_id, changes)

    async def delete_time_entry(self, entry_id: int) -> bool:
        return await self.entry_repo.delete(entry_id)

    async def list_time_entries_by_task(self, task_id: int) -> List[TimeEntry]:
        return await self.entry_repo.get_by_task(task_id)

    async def list_time_entries_by_date_range(self, start: datetime.datetime,
                                              end: datetime.datetime) -> List[TimeEntry]:
        """Entries whose start time lies within [start, end], inclusive"""
        return await self.entry_repo.get_by_date_range(start, end)

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    async def start_timer(self, task_id: int, description: str) -> TimeEntry:
        """
        Start tracking time for a task.

        Raises:
            ValidationError: if the description is empty or too long
            NotFoundError: if the task does not exist
        """
        data = parse_payload(TimeEntryCreate, {
            "task_id": task_id,
            "description": description,
            "start_time": self.clock(),
        })
        if not await self.task_repo.exists(task_id):
            raise NotFoundError("Task", task_id)

        running = await self.entry_repo.get_running(task_id)
        if running:
            logger.warning(
                f"Task {task_id} already has {len(running)} running timer(s); starting another"
            )

        entry = await self.entry_repo.create(data, created_at=data.start_time)
        logger.info(f"Timer started: entry {entry.id} on task {task_id}")
        return entry

    async def stop_timer(self, entry_id: int) -> TimeEntry:
        """
        Stop a running entry.

        Raises:
            NotFoundError: if the entry does not exist or is already stopped
        """
        entry = await self.entry_repo.stop(entry_id, self.clock())
        if entry is None:
            existing = await self.entry_repo.get_by_id(entry_id)
            reason = "already stopped" if existing is not None else None
            raise NotFoundError("TimeEntry", entry_id, reason)

        logger.info(f"Timer stopped: entry {entry.id} on task {entry.task_id}, {entry.duration}")
        return entry

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    async def total_time_for_task(self, task_id: int) -> datetime.timedelta:
        """Total duration of the task's stopped entries (zero if there are none)"""
        return await self.entry_repo.total_duration_for_task(task_id)

    async def total_time_for_project(self, project_id: int) -> datetime.timedelta:
        """
        Total duration of stopped entries across the project's tasks.

        An unknown project id yields zero rather than an error.
        """
        total = await self.entry_repo.total_duration_for_project(project_id)
        if total == timer.ZERO and not await self.project_repo.exists(project_id):
            logger.debug(f"Total requested for unknown project {project_id}; reporting zero")
        return total
