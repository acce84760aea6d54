"""
Integration tests for subtask endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.messages import SubtaskMessages, TaskMessages
from taskflow.testing import create_subtask, create_task, create_user, get_auth_headers


@pytest.mark.integration
async def test_create_subtasks_appends_in_order(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    task = await create_task(session, user)
    headers = get_auth_headers(user)

    first = await client.post(f"/api/v1/tasks/{task.id}/subtasks", json={"title": "First"}, headers=headers)
    second = await client.post(f"/api/v1/tasks/{task.id}/subtasks", json={"title": "Second"}, headers=headers)

    assert first.status_code == 201
    assert first.json()["sort_order"] == 0
    assert second.json()["sort_order"] == 1
    assert second.json()["user_id"] == str(user.id)

    listing = await client.get(f"/api/v1/tasks/{task.id}/subtasks", headers=headers)
    assert [item["title"] for item in listing.json()] == ["First", "Second"]


@pytest.mark.integration
async def test_toggle_and_update_subtask(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    task = await create_task(session, user)
    subtask = await create_subtask(session, task)
    headers = get_auth_headers(user)

    toggled = await client.post(f"/api/v1/subtasks/{subtask.id}/toggle", headers=headers)
    assert toggled.status_code == 200
    assert toggled.json()["is_completed"] is True

    updated = await client.patch(f"/api/v1/subtasks/{subtask.id}", json={"title": "Renamed"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["title"] == "Renamed"
    assert updated.json()["is_completed"] is True

    kept = await client.patch(
        f"/api/v1/subtasks/{subtask.id}", json={"title": None, "sort_order": None}, headers=headers
    )
    assert kept.status_code == 200
    assert kept.json()["title"] == "Renamed"


@pytest.mark.integration
async def test_delete_subtask(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    task = await create_task(session, user)
    subtask = await create_subtask(session, task)
    headers = get_auth_headers(user)

    assert (await client.delete(f"/api/v1/subtasks/{subtask.id}", headers=headers)).status_code == 204
    listing = await client.get(f"/api/v1/tasks/{task.id}/subtasks", headers=headers)
    assert listing.json() == []


@pytest.mark.integration
async def test_other_users_subtasks_are_not_found(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    other = await create_user(session)
    task = await create_task(session, other)
    subtask = await create_subtask(session, task)
    headers = get_auth_headers(user)

    add = await client.post(f"/api/v1/tasks/{task.id}/subtasks", json={"title": "Intrude"}, headers=headers)
    assert add.status_code == 404
    assert add.json()["detail"] == TaskMessages.NOT_FOUND

    toggle = await client.post(f"/api/v1/subtasks/{subtask.id}/toggle", headers=headers)
    assert toggle.status_code == 404
    assert toggle.json()["detail"] == SubtaskMessages.NOT_FOUND
