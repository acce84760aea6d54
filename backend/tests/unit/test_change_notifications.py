"""
Tests for the ``notify_row_change`` trigger feeding realtime delivery.
"""

import asyncio
import json

import asyncpg
import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.config import settings
from taskflow.testing import create_category, create_notification, create_task, create_user


@pytest.fixture
async def listener(engine):
    dsn = engine.url.render_as_string(hide_password=False).replace("+asyncpg", "", 1)
    connection = await asyncpg.connect(dsn)
    queue: asyncio.Queue[dict] = asyncio.Queue()

    def _on_notify(conn, pid, channel, payload):
        queue.put_nowait(json.loads(payload))

    await connection.add_listener(settings.REALTIME_CHANNEL, _on_notify)
    yield queue
    await connection.remove_listener(settings.REALTIME_CHANNEL, _on_notify)
    await connection.close()


@pytest.mark.unit
async def test_task_insert_update_delete_are_announced(session: AsyncSession, listener):
    user = await create_user(session)
    task = await create_task(session, user)
    task_id = task.id
    expected = {"table": "tasks", "id": str(task_id), "user_id": str(user.id)}

    inserted = await asyncio.wait_for(listener.get(), timeout=5)
    assert inserted == {**expected, "action": "insert"}

    task.title = "Updated"
    session.add(task)
    await session.commit()
    updated = await asyncio.wait_for(listener.get(), timeout=5)
    assert updated == {**expected, "action": "update"}

    await session.delete(task)
    await session.commit()
    deleted = await asyncio.wait_for(listener.get(), timeout=5)
    assert deleted == {**expected, "action": "delete"}


@pytest.mark.unit
async def test_notifications_are_announced(session: AsyncSession, listener):
    user = await create_user(session)
    notification = await create_notification(session, user)

    event = await asyncio.wait_for(listener.get(), timeout=5)
    assert event["table"] == "notifications"
    assert event["id"] == str(notification.id)


@pytest.mark.unit
async def test_unpublished_tables_are_silent(session: AsyncSession, listener):
    user = await create_user(session)
    await create_category(session, user)

    assert listener.empty()
    await asyncio.sleep(0.2)
    assert listener.empty()
