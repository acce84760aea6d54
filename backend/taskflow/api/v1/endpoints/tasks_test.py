"""
Integration tests for task endpoints.

Tests cover:
- Creation defaults and owner enforcement
- Filtering and sorting
- Status transitions (completed_at bookkeeping)
- Visibility of other owners' tasks
"""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.messages import AccessMessages, CategoryMessages, TaskMessages
from taskflow.models.task import TaskPriority, TaskStatus
from taskflow.testing import (
    create_admin,
    create_category,
    create_subtask,
    create_task,
    create_user,
    get_auth_headers,
)


@pytest.mark.integration
async def test_create_task_defaults(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)

    response = await client.post(
        "/api/v1/tasks/",
        json={"title": "  Write report  ", "tags": ["work", " work ", ""]},
        headers=get_auth_headers(user),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Write report"
    assert data["status"] == "pending"
    assert data["priority"] == "medium"
    assert data["tags"] == ["work"]
    assert data["is_starred"] is False
    assert data["completed_at"] is None
    assert data["user_id"] == str(user.id)


@pytest.mark.integration
async def test_create_completed_task_sets_completed_at(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)

    response = await client.post(
        "/api/v1/tasks/",
        json={"title": "Already done", "status": "completed"},
        headers=get_auth_headers(user),
    )

    assert response.status_code == 201
    assert response.json()["completed_at"] is not None


@pytest.mark.integration
async def test_create_task_for_another_user_is_forbidden(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    other = await create_user(session)

    response = await client.post(
        "/api/v1/tasks/",
        json={"title": "Not yours", "user_id": str(other.id)},
        headers=get_auth_headers(user),
    )

    assert response.status_code == 403
    assert response.json()["detail"] == AccessMessages.PERMISSION_DENIED


@pytest.mark.integration
async def test_create_task_for_another_user_in_own_category_is_forbidden(
    client: AsyncClient, session: AsyncSession
):
    user = await create_user(session)
    other = await create_user(session)
    category = await create_category(session, user)

    response = await client.post(
        "/api/v1/tasks/",
        json={"title": "Not yours", "user_id": str(other.id), "category_id": str(category.id)},
        headers=get_auth_headers(user),
    )

    assert response.status_code == 403
    assert response.json()["detail"] == AccessMessages.PERMISSION_DENIED


@pytest.mark.integration
async def test_create_task_in_foreign_category_is_not_found(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    other = await create_user(session)
    category = await create_category(session, other)

    response = await client.post(
        "/api/v1/tasks/",
        json={"title": "Sneaky", "category_id": str(category.id)},
        headers=get_auth_headers(user),
    )

    assert response.status_code == 404
    assert response.json()["detail"] == CategoryMessages.NOT_FOUND


@pytest.mark.integration
async def test_list_tasks_filters(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    other = await create_user(session)
    category = await create_category(session, user)
    await create_task(session, user, title="Open", category_id=category.id, tags=["home"])
    await create_task(session, user, title="Done", status=TaskStatus.completed)
    await create_task(session, user, title="Hot", priority=TaskPriority.urgent, is_starred=True)
    await create_task(session, other, title="Someone else's")
    headers = get_auth_headers(user)

    async def titles(**params):
        response = await client.get("/api/v1/tasks/", params=params, headers=headers)
        assert response.status_code == 200
        return sorted(task["title"] for task in response.json())

    assert await titles() == ["Done", "Hot", "Open"]
    assert await titles(status="completed") == ["Done"]
    assert await titles(priority="urgent") == ["Hot"]
    assert await titles(starred="true") == ["Hot"]
    assert await titles(category_id=str(category.id)) == ["Open"]
    assert await titles(tag="home") == ["Open"]
    assert await titles(search="DON") == ["Done"]


@pytest.mark.integration
async def test_list_tasks_sorted_by_due_date(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    await create_task(session, user, title="No due date")
    await create_task(session, user, title="Later", due_date=datetime(2030, 1, 2, tzinfo=timezone.utc))
    await create_task(session, user, title="Sooner", due_date=datetime(2030, 1, 1, tzinfo=timezone.utc))

    response = await client.get("/api/v1/tasks/", params={"sort": "due_date"}, headers=get_auth_headers(user))

    assert [task["title"] for task in response.json()] == ["Sooner", "Later", "No due date"]


@pytest.mark.integration
async def test_toggle_complete_and_back(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    task = await create_task(session, user)
    headers = get_auth_headers(user)

    completed = await client.post(f"/api/v1/tasks/{task.id}/toggle-complete", headers=headers)
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["completed_at"] is not None

    reopened = await client.post(f"/api/v1/tasks/{task.id}/toggle-complete", headers=headers)
    assert reopened.json()["status"] == "pending"
    assert reopened.json()["completed_at"] is None


@pytest.mark.integration
async def test_toggle_star(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    task = await create_task(session, user)

    response = await client.post(f"/api/v1/tasks/{task.id}/star", headers=get_auth_headers(user))

    assert response.status_code == 200
    assert response.json()["is_starred"] is True


@pytest.mark.integration
async def test_update_task_fields(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    task = await create_task(session, user)

    response = await client.patch(
        f"/api/v1/tasks/{task.id}",
        json={"title": "Renamed", "priority": "high", "status": "in_progress", "tags": ["x"]},
        headers=get_auth_headers(user),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renamed"
    assert data["priority"] == "high"
    assert data["status"] == "in_progress"
    assert data["tags"] == ["x"]


@pytest.mark.integration
async def test_other_users_task_is_not_found(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    other = await create_user(session)
    task = await create_task(session, other)
    headers = get_auth_headers(user)

    for response in (
        await client.get(f"/api/v1/tasks/{task.id}", headers=headers),
        await client.patch(f"/api/v1/tasks/{task.id}", json={"title": "Mine"}, headers=headers),
        await client.post(f"/api/v1/tasks/{task.id}/toggle-complete", headers=headers),
        await client.delete(f"/api/v1/tasks/{task.id}", headers=headers),
    ):
        assert response.status_code == 404
        assert response.json()["detail"] == TaskMessages.NOT_FOUND


@pytest.mark.integration
async def test_admin_cannot_modify_other_users_task(client: AsyncClient, session: AsyncSession):
    admin = await create_admin(session)
    owner = await create_user(session)
    task = await create_task(session, owner, title="Owner's")

    response = await client.patch(
        f"/api/v1/tasks/{task.id}", json={"title": "Admin edit"}, headers=get_auth_headers(admin)
    )

    assert response.status_code == 404
    owner_view = await client.get(f"/api/v1/tasks/{task.id}", headers=get_auth_headers(owner))
    assert owner_view.json()["title"] == "Owner's"


@pytest.mark.integration
async def test_delete_task_removes_subtasks(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    task = await create_task(session, user)
    subtask = await create_subtask(session, task)
    headers = get_auth_headers(user)

    response = await client.delete(f"/api/v1/tasks/{task.id}", headers=headers)
    assert response.status_code == 204

    assert (await client.get(f"/api/v1/tasks/{task.id}", headers=headers)).status_code == 404
    assert (await client.post(f"/api/v1/subtasks/{subtask.id}/toggle", headers=headers)).status_code == 404
