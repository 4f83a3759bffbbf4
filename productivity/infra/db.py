"""
SQLAlchemy database models and configuration.

Architecture Decision: Why SQLAlchemy?
- Provides ORM for cleaner code and prevents SQL injection
- Supports async operations for non-blocking database access
- Relationship cascades give Project -> Task -> TimeEntry ownership
  without hand-written child cleanup
- Easy to migrate to PostgreSQL or other databases if needed
"""

import datetime
from typing import List, Optional

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, Integer, String, event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, column_property, mapped_column, relationship
from sqlalchemy.pool import StaticPool

from productivity.domain import timer
from productivity.domain.models import ProjectStatus, TaskPriority, TaskStatus


# Base class for all models
class Base(DeclarativeBase):
    pass


def _symbolic_enum(enum_cls) -> Enum:
    """Persist enums by their symbolic name ("InProgress"), not the Python member name"""
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class ProjectModel(Base):
    """SQLAlchemy model for Project entity"""
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), default="", nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(_symbolic_enum(ProjectStatus), nullable=False)
    start_date: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now, nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now, nullable=False)

    tasks: Mapped[List["TaskModel"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="TaskModel.id",
    )


class TaskModel(Base):
    """SQLAlchemy model for Task entity"""
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), default="", nullable=False)
    status: Mapped[TaskStatus] = mapped_column(_symbolic_enum(TaskStatus), nullable=False)
    priority: Mapped[TaskPriority] = mapped_column(_symbolic_enum(TaskPriority), nullable=False)
    due_date: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now, nullable=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now, nullable=False)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    project: Mapped[ProjectModel] = relationship(back_populates="tasks")
    time_entries: Mapped[List["TimeEntryModel"]] = relationship(
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TimeEntryModel.start_time",
    )

    # Loaded with the row, so read models never need a lazy load
    project_name: Mapped[Optional[str]] = column_property(
        select(ProjectModel.name)
        .where(ProjectModel.id == project_id)
        .correlate_except(ProjectModel)
        .scalar_subquery()
    )


class TimeEntryModel(Base):
    """SQLAlchemy model for TimeEntry entity"""
    __tablename__ = "time_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    start_time: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_time: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime, nullable=True)
    # Whole microseconds; zero while running
    duration_us: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=datetime.datetime.now, nullable=False)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )

    task: Mapped[TaskModel] = relationship(back_populates="time_entries")

    task_title: Mapped[Optional[str]] = column_property(
        select(TaskModel.title)
        .where(TaskModel.id == task_id)
        .correlate_except(TaskModel)
        .scalar_subquery()
    )

    @property
    def duration(self) -> datetime.timedelta:
        return timer.from_microseconds(self.duration_us)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseEngine:
    """
    Manages database connection and session lifecycle.

    Singleton pattern ensures only one engine exists per application.
    Tests build their own instance directly with an in-memory URL.
    """
    _instance: Optional['DatabaseEngine'] = None

    def __init__(self, db_url: str, echo: bool = False):
        kwargs = {}
        if db_url.endswith(":memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        self.engine = create_async_engine(db_url, echo=echo, **kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @classmethod
    def get_instance(cls, db_url: Optional[str] = None) -> 'DatabaseEngine':
        """Get or create the database engine instance"""
        if cls._instance is None:
            from productivity.infra.config import get_settings
            settings = get_settings()
            cls._instance = cls(db_url or settings.get_db_url(), echo=settings.echo_sql)
        return cls._instance

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self):
        """Drop all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    def get_session(self) -> AsyncSession:
        """Get a new database session"""
        return self.session_factory()


# Convenience functions
def get_engine(db_url: Optional[str] = None) -> DatabaseEngine:
    """Get the database engine instance"""
    return DatabaseEngine.get_instance(db_url)


async def init_db(db_url: Optional[str] = None) -> DatabaseEngine:
    """Initialize the database (create tables)"""
    engine = get_engine(db_url)
    await engine.create_tables()
    return engine
