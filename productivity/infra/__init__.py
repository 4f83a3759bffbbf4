"""Infrastructure layer - Database and persistence"""

from .db import DatabaseEngine, get_engine, init_db
from .models import ProjectModel, TaskModel, TimeEntryModel

__all__ = ["DatabaseEngine", "get_engine", "init_db", "ProjectModel", "TaskModel", "TimeEntryModel"]
