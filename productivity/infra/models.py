"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import ProjectModel, TaskModel, TimeEntryModel, Base

__all__ = ["ProjectModel", "TaskModel", "TimeEntryModel", "Base"]
