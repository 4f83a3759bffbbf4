"""Services layer - Business logic"""

from .project_service import ProjectService
from .task_service import TaskService
from .time_tracking_service import TimeTrackingService

__all__ = ["ProjectService", "TaskService", "TimeTrackingService"]
