"""
Pytest configuration and fixtures.
"""

import sys
import datetime
from pathlib import Path
import pytest
import pytest_asyncio

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from productivity.infra.db import DatabaseEngine
from productivity.services import ProjectService, TaskService, TimeTrackingService


class FakeClock:
    """Deterministic stand-in for datetime.now"""

    def __init__(self, start: datetime.datetime):
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs) -> datetime.datetime:
        self.now += datetime.timedelta(**kwargs)
        return self.now


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    database = DatabaseEngine("sqlite+aiosqlite:///:memory:")
    await database.create_tables()

    yield database

    await database.drop_tables()
    await database.engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async with db_engine.get_session() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock(datetime.datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture
def project_service(db_session, clock):
    return ProjectService(session=db_session, clock=clock)


@pytest.fixture
def task_service(db_session, clock):
    return TaskService(session=db_session, clock=clock)


@pytest.fixture
def tracking_service(db_session, clock):
    return TimeTrackingService(session=db_session, clock=clock)


@pytest_asyncio.fixture
async def project(project_service, clock):
    return await project_service.create_project({
        "name": "P1",
        "status": "Planning",
        "start_date": clock(),
    })


@pytest_asyncio.fixture
async def task(task_service, project):
    return await task_service.create_task({
        "title": "T1",
        "status": "ToDo",
        "priority": "High",
        "project_id": project.id,
    })
