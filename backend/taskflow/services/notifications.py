from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.notification import Notification, NotificationType

DEFAULT_LIMIT = 50


async def list_notifications(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    unread_only: bool = False,
    limit: int = DEFAULT_LIMIT,
) -> List[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
    result = await session.exec(stmt)
    return list(result.all())


async def unread_count(session: AsyncSession, *, user_id: uuid.UUID) -> int:
    stmt = select(func.count(Notification.id)).where(
        Notification.user_id == user_id,
        Notification.is_read.is_(False),
    )
    result = await session.exec(stmt)
    return result.one()


async def get_notification(session: AsyncSession, notification_id: uuid.UUID) -> Optional[Notification]:
    return await session.get(Notification, notification_id)


async def create_notification(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    title: str,
    body: Optional[str] = None,
    notification_type: NotificationType = NotificationType.reminder,
    task_id: Optional[uuid.UUID] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        body=body,
        type=notification_type.value,
        task_id=task_id,
    )
    session.add(notification)
    await session.commit()
    await session.refresh(notification)
    return notification


async def mark_read(session: AsyncSession, notification: Notification) -> Notification:
    if not notification.is_read:
        notification.is_read = True
        session.add(notification)
        await session.commit()
        await session.refresh(notification)
    return notification


async def mark_all_read(session: AsyncSession, *, user_id: uuid.UUID) -> int:
    stmt = (
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session="fetch")
    )
    result = await session.exec(stmt)
    await session.commit()
    return result.rowcount


async def delete_notification(session: AsyncSession, notification: Notification) -> None:
    await session.delete(notification)
    await session.commit()
