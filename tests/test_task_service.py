"""
Tests for the Task Service: CRUD, referential integrity, filters and overdue.
"""

import datetime

import pytest

from productivity.domain.errors import ValidationError
from productivity.domain.models import TaskPriority, TaskStatus


@pytest.mark.asyncio
async def test_create_task(task_service, project, clock):
    task = await task_service.create_task({
        "title": "Design Homepage",
        "description": "Create new homepage design",
        "status": "InProgress",
        "priority": "Critical",
        "due_date": clock() + datetime.timedelta(days=7),
        "project_id": project.id,
    })

    assert task.id is not None
    assert task.status is TaskStatus.IN_PROGRESS
    assert task.priority is TaskPriority.CRITICAL
    assert task.project_id == project.id
    assert task.project_name == "P1"
    assert task.time_entries == []


@pytest.mark.asyncio
async def test_create_requires_existing_project(task_service):
    with pytest.raises(ValidationError, match="Project 404"):
        await task_service.create_task({"title": "Orphan", "project_id": 404})
    assert await task_service.list_tasks() == []


@pytest.mark.asyncio
async def test_create_rejects_unknown_priority(task_service, project):
    with pytest.raises(ValidationError):
        await task_service.create_task({"title": "T", "priority": "Urgent", "project_id": project.id})


@pytest.mark.asyncio
async def test_update_task(task_service, task, clock):
    clock.advance(minutes=5)
    updated = await task_service.update_task(task.id, {"title": "Renamed", "priority": "Low"})

    assert updated.title == "Renamed"
    assert updated.priority is TaskPriority.LOW
    assert updated.status is task.status
    assert updated.created_at == task.created_at
    assert updated.updated_at == clock()


@pytest.mark.asyncio
async def test_move_task_to_other_project(task_service, project_service, task, clock):
    other = await project_service.create_project({"name": "P2", "start_date": clock()})

    moved = await task_service.update_task(task.id, {"project_id": other.id})
    assert moved.project_id == other.id
    assert moved.project_name == "P2"

    with pytest.raises(ValidationError):
        await task_service.update_task(task.id, {"project_id": 999})
    assert (await task_service.get_task(task.id)).project_id == other.id


@pytest.mark.asyncio
async def test_full_patch_with_null_due_date(task_service, project, clock):
    created = await task_service.create_task({
        "title": "T", "status": "InProgress", "project_id": project.id,
        "due_date": clock() - datetime.timedelta(days=1),
    })
    assert [t.id for t in await task_service.list_overdue_tasks()] == [created.id]

    updated = await task_service.update_task(created.id, {
        "title": "T",
        "description": "",
        "status": "InProgress",
        "priority": "Medium",
        "due_date": None,
        "project_id": project.id,
    })

    assert updated.due_date is None
    assert updated.status is TaskStatus.IN_PROGRESS
    assert updated.project_id == project.id
    assert await task_service.list_overdue_tasks() == []

@pytest.mark.asyncio
async def test_update_and_delete_unknown(task_service):
    assert await task_service.update_task(123, {"title": "X"}) is None
    assert await task_service.delete_task(123) is False


@pytest.mark.asyncio
async def test_delete_task_cascades_entries(task_service, tracking_service, task):
    entry = await tracking_service.start_timer(task.id, "work")

    assert await task_service.delete_task(task.id) is True
    assert await task_service.get_task(task.id) is None
    assert await tracking_service.get_time_entry(entry.id) is None


class TestFilters:
    @pytest.fixture
    def specs(self):
        return [
            ("A", "ToDo", "Low"),
            ("B", "InProgress", "High"),
            ("C", "InProgress", "Critical"),
            ("D", "Completed", "High"),
            ("E", "InReview", "Medium"),
        ]

    @pytest.mark.asyncio
    async def test_by_status_and_priority(self, task_service, project, specs):
        for title, status, priority in specs:
            await task_service.create_task({
                "title": title, "status": status, "priority": priority, "project_id": project.id,
            })

        assert [t.title for t in await task_service.list_tasks_by_status("InProgress")] == ["B", "C"]
        assert [t.title for t in await task_service.list_tasks_by_status(TaskStatus.IN_REVIEW)] == ["E"]
        assert await task_service.list_tasks_by_status("Cancelled") == []
        assert [t.title for t in await task_service.list_tasks_by_priority("High")] == ["B", "D"]

        with pytest.raises(ValidationError):
            await task_service.list_tasks_by_status("in_progress")
        with pytest.raises(ValidationError):
            await task_service.list_tasks_by_priority("high")

    @pytest.mark.asyncio
    async def test_by_project(self, task_service, project_service, project, clock):
        other = await project_service.create_project({"name": "P2", "start_date": clock()})
        await task_service.create_task({"title": "mine", "project_id": project.id})
        await task_service.create_task({"title": "theirs", "project_id": other.id})

        assert [t.title for t in await task_service.list_tasks_by_project(project.id)] == ["mine"]
        assert [t.title for t in await task_service.list_tasks_by_project(other.id)] == ["theirs"]
        assert await task_service.list_tasks_by_project(999) == []


class TestOverdue:
    @pytest.mark.asyncio
    async def test_overdue_classification(self, task_service, project, clock):
        now = clock()
        yesterday = now - datetime.timedelta(days=1)
        tomorrow = now + datetime.timedelta(days=1)

        cases = [
            ("late", "InProgress", yesterday),
            ("late-done", "Completed", yesterday),
            ("late-cancelled", "Cancelled", yesterday),
            ("no-due", "InProgress", None),
            ("no-due-done", "Completed", None),
            ("future", "ToDo", tomorrow),
        ]
        for title, status, due in cases:
            await task_service.create_task({
                "title": title, "status": status, "due_date": due, "project_id": project.id,
            })

        overdue = await task_service.list_overdue_tasks()
        assert [t.title for t in overdue] == ["late", "late-cancelled"]
        assert all(t.is_overdue(now) for t in overdue)

    @pytest.mark.asyncio
    async def test_completing_a_task_clears_overdue(self, task_service, project, clock):
        task = await task_service.create_task({
            "title": "late",
            "status": "InProgress",
            "due_date": clock() - datetime.timedelta(days=1),
            "project_id": project.id,
        })
        assert [t.id for t in await task_service.list_overdue_tasks()] == [task.id]

        await task_service.update_task(task.id, {"status": "Completed"})
        assert await task_service.list_overdue_tasks() == []

    @pytest.mark.asyncio
    async def test_explicit_reference_time(self, task_service, project, clock):
        due = clock() + datetime.timedelta(days=2)
        await task_service.create_task({"title": "soon", "due_date": due, "project_id": project.id})

        assert await task_service.list_overdue_tasks() == []
        later = await task_service.list_overdue_tasks(now=due + datetime.timedelta(seconds=1))
        assert [t.title for t in later] == ["soon"]
