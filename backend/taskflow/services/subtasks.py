from __future__ import annotations

import uuid
from typing import Any, List, Optional

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.subtask import Subtask
from taskflow.models.task import Task

_REQUIRED_FIELDS = ("title", "is_completed", "sort_order")


async def list_subtasks(session: AsyncSession, task_id: uuid.UUID) -> List[Subtask]:
    stmt = (
        select(Subtask)
        .where(Subtask.task_id == task_id)
        .order_by(Subtask.sort_order.asc(), Subtask.created_at.asc())
    )
    result = await session.exec(stmt)
    return list(result.all())


async def get_subtask(session: AsyncSession, subtask_id: uuid.UUID) -> Optional[Subtask]:
    # subtasks have no admin read policy, so visibility already means ownership.
    return await session.get(Subtask, subtask_id)


async def _next_sort_order(session: AsyncSession, task_id: uuid.UUID) -> int:
    stmt = select(func.max(Subtask.sort_order)).where(Subtask.task_id == task_id)
    result = await session.exec(stmt)
    current = result.one()
    return 0 if current is None else current + 1


async def create_subtask(session: AsyncSession, *, task: Task, title: str) -> Subtask:
    subtask = Subtask(
        task_id=task.id,
        user_id=task.user_id,
        title=title.strip(),
        sort_order=await _next_sort_order(session, task.id),
    )
    session.add(subtask)
    await session.commit()
    await session.refresh(subtask)
    return subtask


async def update_subtask(session: AsyncSession, subtask: Subtask, changes: dict[str, Any]) -> Subtask:
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            del changes[field]
    for field, value in changes.items():
        setattr(subtask, field, value)
    session.add(subtask)
    await session.commit()
    await session.refresh(subtask)
    return subtask


async def toggle_subtask(session: AsyncSession, subtask: Subtask) -> Subtask:
    return await update_subtask(session, subtask, {"is_completed": not subtask.is_completed})


async def delete_subtask(session: AsyncSession, subtask: Subtask) -> None:
    await session.delete(subtask)
    await session.commit()
