"""
Demo data seeder.

Populates an empty database with a few projects, tasks and stopped time
entries so the system has something to aggregate on first start.
"""

import datetime
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from productivity.domain import timer
from productivity.domain.models import (
    ProjectCreate, ProjectStatus, TaskCreate, TaskPriority, TaskStatus, TimeEntryCreate,
)
from productivity.infra.repository import ProjectRepository, TaskRepository, TimeEntryRepository

logger = logging.getLogger(__name__)


async def seed_demo_data(session: Optional[AsyncSession] = None,
                         now: Optional[datetime.datetime] = None,
                         reset: bool = False) -> bool:
    """
    Insert the demo data set unless a project already exists.

    Args:
        session: Optional session to inject into the repositories
        now: Reference time the demo dates are relative to
        reset: Delete all existing projects, tasks and entries first

    Returns:
        True if data was inserted, False if the database was not empty
    """
    now = now or datetime.datetime.now()
    day = datetime.timedelta(days=1)
    hour = datetime.timedelta(hours=1)

    project_repo = ProjectRepository(session)
    task_repo = TaskRepository(session)
    entry_repo = TimeEntryRepository(session)

    if reset:
        deleted = await project_repo.delete_all()
        logger.info(f"Reset: deleted {deleted} project(s) with their tasks and time entries")

    if await project_repo.get_all():
        logger.info("Database already contains projects; skipping demo seed")
        return False

    # 1. Projects
    website = await project_repo.create(ProjectCreate(
        name="Website Redesign",
        description="Complete redesign of company website",
        status=ProjectStatus.IN_PROGRESS,
        start_date=now - 30 * day,
        end_date=now + 30 * day,
    ), timestamp=now)
    mobile = await project_repo.create(ProjectCreate(
        name="Mobile App",
        description="Development of mobile application",
        status=ProjectStatus.PLANNING,
        start_date=now + 10 * day,
        end_date=now + 90 * day,
    ), timestamp=now)
    migration = await project_repo.create(ProjectCreate(
        name="Database Migration",
        description="Migrate to new database system",
        status=ProjectStatus.COMPLETED,
        start_date=now - 60 * day,
        end_date=now - 10 * day,
    ), timestamp=now)

    # 2. Tasks
    homepage = await task_repo.create(TaskCreate(
        title="Design Homepage",
        description="Create new homepage design",
        status=TaskStatus.IN_PROGRESS,
        priority=TaskPriority.HIGH,
        project_id=website.id,
        due_date=now + 7 * day,
    ), timestamp=now)
    setup_db = await task_repo.create(TaskCreate(
        title="Setup Database",
        description="Configure database for new project",
        status=TaskStatus.COMPLETED,
        priority=TaskPriority.MEDIUM,
        project_id=website.id,
        due_date=now - 5 * day,
    ), timestamp=now)
    await task_repo.create(TaskCreate(
        title="Create Wireframes",
        description="Design app wireframes",
        status=TaskStatus.TODO,
        priority=TaskPriority.HIGH,
        project_id=mobile.id,
        due_date=now + 14 * day,
    ), timestamp=now)
    await task_repo.create(TaskCreate(
        title="Data Backup",
        description="Backup existing data",
        status=TaskStatus.COMPLETED,
        priority=TaskPriority.CRITICAL,
        project_id=migration.id,
        due_date=now - 15 * day,
    ), timestamp=now)

    # 3. Stopped time entries
    entries = [
        (homepage.id, "Working on homepage layout", now - 3 * hour, now - 1 * hour),
        (setup_db.id, "Database configuration", now - day - 4 * hour, now - day - 1 * hour),
        (homepage.id, "Homepage styling", now - 2 * day - 2 * hour, now - 2 * day),
    ]
    tracked = []
    for task_id, description, start, end in entries:
        entry = await entry_repo.create(TimeEntryCreate(
            task_id=task_id,
            description=description,
            start_time=start,
            end_time=end,
        ), created_at=now)
        tracked.append(entry.duration)

    logger.info(
        f"Seeded 3 projects, 4 tasks and {len(entries)} time entries "
        f"({timer.sum_durations(tracked)} tracked)"
    )
    return True
