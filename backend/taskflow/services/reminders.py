from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.reminder import Reminder
from taskflow.models.task import Task


_REQUIRED_FIELDS = ("remind_at", "is_sent")


class ReminderAlreadySent(Exception):
    """Raised when a change would move ``is_sent`` back to False."""


async def list_reminders(
    session: AsyncSession,
    *,
    upcoming_only: bool = False,
    task_id: Optional[uuid.UUID] = None,
) -> List[Reminder]:
    stmt = select(Reminder)
    if task_id is not None:
        stmt = stmt.where(Reminder.task_id == task_id)
    if upcoming_only:
        stmt = stmt.where(
            Reminder.is_sent.is_(False),
            Reminder.remind_at >= datetime.now(timezone.utc),
        )
    result = await session.exec(stmt.order_by(Reminder.remind_at.asc()))
    return list(result.all())


async def get_reminder(session: AsyncSession, reminder_id: uuid.UUID) -> Optional[Reminder]:
    return await session.get(Reminder, reminder_id)


async def create_reminder(
    session: AsyncSession,
    *,
    task: Task,
    remind_at: datetime,
    message: Optional[str] = None,
) -> Reminder:
    reminder = Reminder(
        task_id=task.id,
        user_id=task.user_id,
        remind_at=remind_at,
        message=message,
    )
    session.add(reminder)
    await session.commit()
    await session.refresh(reminder)
    return reminder


async def update_reminder(session: AsyncSession, reminder: Reminder, changes: dict[str, Any]) -> Reminder:
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            del changes[field]
    if reminder.is_sent and changes.get("is_sent") is False:
        raise ReminderAlreadySent(str(reminder.id))
    for field, value in changes.items():
        setattr(reminder, field, value)
    session.add(reminder)
    await session.commit()
    await session.refresh(reminder)
    return reminder


async def mark_sent(session: AsyncSession, reminder: Reminder) -> Reminder:
    return await update_reminder(session, reminder, {"is_sent": True})


async def delete_reminder(session: AsyncSession, reminder: Reminder) -> None:
    await session.delete(reminder)
    await session.commit()
