"""Domain layer - Pure business entities and logic"""

from .errors import NotFoundError, ProductivityError, ValidationError
from .models import (
    Project, ProjectCreate, ProjectStatus, ProjectUpdate,
    Task, TaskCreate, TaskPriority, TaskStatus, TaskUpdate,
    TimeEntry, TimeEntryCreate, TimeEntryUpdate,
)

__all__ = [
    "NotFoundError", "ProductivityError", "ValidationError",
    "Project", "ProjectCreate", "ProjectStatus", "ProjectUpdate",
    "Task", "TaskCreate", "TaskPriority", "TaskStatus", "TaskUpdate",
    "TimeEntry", "TimeEntryCreate", "TimeEntryUpdate",
]
