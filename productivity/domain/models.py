"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Pydantic provides runtime data validation at the boundary (decoded JSON,
keyword arguments) and reads ORM rows directly via `from_attributes`,
so the services never hand SQLAlchemy objects to their callers.

Three kinds of models live here:
- read models (Project, Task, TimeEntry) returned by every operation,
- create payloads carrying what a caller may set on creation,
- patch payloads whose fields are all optional and applied only if present.
"""

import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from productivity.domain import timer
from productivity.domain.errors import ValidationError


class SymbolicEnum(str, Enum):
    """Enum exchanged by its symbolic name ("InProgress"), matched case-sensitively"""

    @classmethod
    def parse(cls, value: Union[str, "SymbolicEnum"]):
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValidationError(
                f"'{value}' is not a valid {cls.__name__}; expected one of: {allowed}"
            ) from None

    def __str__(self) -> str:
        return self.value


class ProjectStatus(SymbolicEnum):
    PLANNING = "Planning"
    IN_PROGRESS = "InProgress"
    ON_HOLD = "OnHold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TaskStatus(SymbolicEnum):
    TODO = "ToDo"
    IN_PROGRESS = "InProgress"
    IN_REVIEW = "InReview"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TaskPriority(SymbolicEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


def is_overdue(due_date: Optional[datetime.datetime], status: TaskStatus,
               now: datetime.datetime) -> bool:
    """
    A task is overdue when its due date has passed and it is not Completed.

    Cancelled tasks are not exempt.
    """
    return due_date is not None and due_date < now and status != TaskStatus.COMPLETED


def _not_blank(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("must not be blank")
    return value


def _empty_if_none(value: Any) -> Any:
    return "" if value is None else value


def _local_time(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    return timer.to_local_naive(value)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

class TimeEntry(BaseModel):
    """
    A single recorded (or in-progress) span of work against one task.

    Running while end_time is None; stopped once end_time is set, at which
    point duration == end_time - start_time.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    description: str
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    duration: datetime.timedelta = timer.ZERO
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)

    # Eager-loaded from the owning task
    task_title: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.end_time is None

    def elapsed(self, now: Optional[datetime.datetime] = None) -> datetime.timedelta:
        """Elapsed time, computed on demand for running entries"""
        return timer.elapsed(self.start_time, self.end_time, now or datetime.datetime.now())


class Task(BaseModel):
    """A unit of work belonging to exactly one project"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str
    description: str = ""
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime.datetime] = None
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    project_id: int

    # Eager-loaded relations
    project_name: Optional[str] = None
    time_entries: List[TimeEntry] = Field(default_factory=list)

    def is_overdue(self, now: Optional[datetime.datetime] = None) -> bool:
        return is_overdue(self.due_date, self.status, now or datetime.datetime.now())


class Project(BaseModel):
    """Top-level unit of work grouping tasks"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str
    description: str = ""
    status: ProjectStatus
    start_date: datetime.datetime
    end_date: Optional[datetime.datetime] = None
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)
    updated_at: datetime.datetime = Field(default_factory=datetime.datetime.now)

    tasks: List[Task] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Create payloads
# ---------------------------------------------------------------------------

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: datetime.datetime
    end_date: Optional[datetime.datetime] = None

    check_name = field_validator("name")(_not_blank)
    check_description = field_validator("description", mode="before")(_empty_if_none)
    check_dates = field_validator("start_date", "end_date")(_local_time)


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime.datetime] = None
    project_id: int

    check_title = field_validator("title")(_not_blank)
    check_description = field_validator("description", mode="before")(_empty_if_none)
    check_due_date = field_validator("due_date")(_local_time)


class TimeEntryCreate(BaseModel):
    """
    Payload for a directly created entry.

    Carries no duration field: duration is always derived from
    start_time and end_time.
    """
    description: str = Field(..., min_length=1, max_length=500)
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    task_id: int

    check_description = field_validator("description")(_not_blank)
    check_times = field_validator("start_time", "end_time")(_local_time)


# ---------------------------------------------------------------------------
# Patch payloads
# ---------------------------------------------------------------------------

class Patch(BaseModel):
    """
    Partial update: every field optional, only explicitly given fields apply.

    Explicit null is rejected for NON_NULLABLE fields, ignored for
    KEEP_ON_NULL fields and clears any other nullable column.
    """
    NON_NULLABLE: ClassVar[FrozenSet[str]] = frozenset()
    KEEP_ON_NULL: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_for_required(self):
        nulls = sorted(
            name for name in self.model_fields_set & self.NON_NULLABLE
            if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"fields cannot be null: {', '.join(nulls)}")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields that were explicitly provided"""
        return {
            name: value for name, value in self.model_dump(exclude_unset=True).items()
            if not (value is None and name in self.KEEP_ON_NULL)
        }


class ProjectUpdate(Patch):
    NON_NULLABLE: ClassVar[FrozenSet[str]] = frozenset({"name", "description", "status", "start_date"})

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime.datetime] = None
    end_date: Optional[datetime.datetime] = None

    check_name = field_validator("name")(_not_blank)
    check_dates = field_validator("start_date", "end_date")(_local_time)


class TaskUpdate(Patch):
    NON_NULLABLE: ClassVar[FrozenSet[str]] = frozenset(
        {"title", "description", "status", "priority", "project_id"}
    )

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime.datetime] = None
    project_id: Optional[int] = None

    check_title = field_validator("title")(_not_blank)
    check_due_date = field_validator("due_date")(_local_time)


class TimeEntryUpdate(Patch):
    NON_NULLABLE: ClassVar[FrozenSet[str]] = frozenset({"description", "start_time", "task_id"})
    # A stopped entry never goes back to running
    KEEP_ON_NULL: ClassVar[FrozenSet[str]] = frozenset({"end_time"})

    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    start_time: Optional[datetime.datetime] = None
    end_time: Optional[datetime.datetime] = None
    task_id: Optional[int] = None

    check_description = field_validator("description")(_not_blank)
    check_times = field_validator("start_time", "end_time")(_local_time)


M = TypeVar("M", bound=BaseModel)


def parse_payload(model_cls: Type[M], payload: Union[M, Mapping[str, Any]]) -> M:
    """
    Validate a caller payload into `model_cls`.

    Raises:
        ValidationError: with pydantic's error list attached
    """
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) or "<payload>" for err in exc.errors()})
        raise ValidationError(
            f"Invalid {model_cls.__name__}: {', '.join(fields)}",
            errors=exc.errors(include_url=False),
        ) from exc
