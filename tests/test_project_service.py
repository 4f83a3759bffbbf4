"""
Tests for the Project Service: CRUD, status filter and cascading delete.
"""

import datetime

import pytest

from productivity.domain.errors import ValidationError
from productivity.domain.models import ProjectStatus, ProjectUpdate


@pytest.mark.asyncio
async def test_create_and_get(project_service, clock):
    created = await project_service.create_project({
        "name": "Website Redesign",
        "description": "Complete redesign",
        "status": "InProgress",
        "start_date": clock(),
        "end_date": clock() + datetime.timedelta(days=30),
    })

    assert created.id is not None
    assert created.status is ProjectStatus.IN_PROGRESS
    assert created.created_at == clock()
    assert created.updated_at == clock()
    assert created.tasks == []

    fetched = await project_service.get_project(created.id)
    assert fetched == created


@pytest.mark.asyncio
async def test_get_unknown_returns_none(project_service):
    assert await project_service.get_project(999) is None


@pytest.mark.asyncio
async def test_create_rejects_invalid_status(project_service, clock):
    with pytest.raises(ValidationError):
        await project_service.create_project({"name": "P", "status": "Paused", "start_date": clock()})
    assert await project_service.list_projects() == []


@pytest.mark.asyncio
async def test_update_applies_only_present_fields(project_service, project, clock):
    created_at = project.created_at
    clock.advance(hours=1)

    updated = await project_service.update_project(project.id, {"status": "OnHold"})

    assert updated.status is ProjectStatus.ON_HOLD
    assert updated.name == project.name
    assert updated.start_date == project.start_date
    assert updated.created_at == created_at
    assert updated.updated_at == clock()
    assert updated.updated_at > created_at


@pytest.mark.asyncio
async def test_update_can_clear_end_date(project_service, clock):
    created = await project_service.create_project({
        "name": "P", "start_date": clock(), "end_date": clock() + datetime.timedelta(days=1),
    })
    updated = await project_service.update_project(created.id, ProjectUpdate(end_date=None))
    assert updated.end_date is None


@pytest.mark.asyncio
async def test_full_patch_with_null_end_date(project_service, project, clock):
    clock.advance(minutes=1)
    updated = await project_service.update_project(project.id, {
        "name": "P1",
        "description": "",
        "status": "Planning",
        "start_date": project.start_date,
        "end_date": None,
    })

    assert updated.end_date is None
    assert updated.status is ProjectStatus.PLANNING
    assert updated.start_date == project.start_date
    assert updated.updated_at == clock()

@pytest.mark.asyncio
async def test_update_unknown_returns_none(project_service):
    assert await project_service.update_project(42, {"name": "X"}) is None


@pytest.mark.asyncio
async def test_update_rejects_null_name(project_service, project):
    with pytest.raises(ValidationError):
        await project_service.update_project(project.id, {"name": None})


@pytest.mark.asyncio
async def test_list_by_status_exact_match(project_service, clock):
    for name, status in [("A", "Planning"), ("B", "InProgress"), ("C", "InProgress"), ("D", "Completed")]:
        await project_service.create_project({"name": name, "status": status, "start_date": clock()})

    in_progress = await project_service.list_projects_by_status("InProgress")
    assert [p.name for p in in_progress] == ["B", "C"]

    planning = await project_service.list_projects_by_status(ProjectStatus.PLANNING)
    assert [p.name for p in planning] == ["A"]

    assert await project_service.list_projects_by_status("Cancelled") == []

    with pytest.raises(ValidationError):
        await project_service.list_projects_by_status("inprogress")


@pytest.mark.asyncio
async def test_project_includes_tasks_and_entries(project_service, task_service, tracking_service, project, task):
    await tracking_service.start_timer(task.id, "work")

    loaded = await project_service.get_project(project.id)

    assert [t.title for t in loaded.tasks] == ["T1"]
    assert loaded.tasks[0].project_name == "P1"
    assert len(loaded.tasks[0].time_entries) == 1
    assert loaded.tasks[0].time_entries[0].task_title == "T1"


@pytest.mark.asyncio
async def test_delete_cascades_to_tasks_and_entries(project_service, task_service, tracking_service, clock):
    doomed = await project_service.create_project({"name": "Doomed", "start_date": clock()})
    kept = await project_service.create_project({"name": "Kept", "start_date": clock()})

    doomed_tasks = [
        await task_service.create_task({"title": f"T{i}", "project_id": doomed.id}) for i in range(2)
    ]
    kept_task = await task_service.create_task({"title": "K", "project_id": kept.id})

    doomed_entries = []
    for t in doomed_tasks:
        doomed_entries.append(await tracking_service.start_timer(t.id, "work"))
    kept_entry = await tracking_service.start_timer(kept_task.id, "work")

    assert await project_service.delete_project(doomed.id) is True

    assert await project_service.get_project(doomed.id) is None
    for t in doomed_tasks:
        assert await task_service.get_task(t.id) is None
    for e in doomed_entries:
        assert await tracking_service.get_time_entry(e.id) is None

    assert await task_service.get_task(kept_task.id) is not None
    assert [e.id for e in await tracking_service.list_time_entries()] == [kept_entry.id]


@pytest.mark.asyncio
async def test_delete_unknown_returns_false(project_service, project):
    assert await project_service.delete_project(project.id + 100) is False
    assert await project_service.delete_project(project.id) is True
    assert await project_service.delete_project(project.id) is False


@pytest.mark.asyncio
async def test_json_uses_symbolic_names(project):
    data = project.model_dump(mode="json")
    assert data["status"] == "Planning"
    assert data["name"] == "P1"
