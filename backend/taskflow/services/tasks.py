"""
Task lifecycle: listing, creation, updates and status transitions.

``completed_at`` is kept consistent with ``status`` here: it is stamped when a
task moves into ``completed`` (unless the caller supplies a time) and cleared
when it moves out. Every transition is mirrored into the owner's daily
analytics counters.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import case
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.category import Category
from taskflow.models.task import PRIORITY_ORDER, Task, TaskPriority, TaskStatus
from taskflow.schemas.task import TaskCreate, TaskSort
from taskflow.services import analytics as analytics_service

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500
_REQUIRED_FIELDS = ("title", "priority", "is_starred", "sort_order")


class CategoryNotVisible(Exception):
    """Raised when a task references a category the owner cannot use."""


def _priority_rank():
    return case(
        {priority: rank for rank, priority in enumerate(PRIORITY_ORDER)},
        value=Task.priority,
    )


async def list_tasks(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    category_id: Optional[uuid.UUID] = None,
    starred: Optional[bool] = None,
    tag: Optional[str] = None,
    search: Optional[str] = None,
    sort: TaskSort = TaskSort.created_at,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> List[Task]:
    # Admins can read every task; the owner filter keeps this list personal.
    stmt = select(Task).where(Task.user_id == user_id)
    if status is not None:
        stmt = stmt.where(Task.status == status)
    if priority is not None:
        stmt = stmt.where(Task.priority == priority)
    if category_id is not None:
        stmt = stmt.where(Task.category_id == category_id)
    if starred is not None:
        stmt = stmt.where(Task.is_starred.is_(starred))
    if tag:
        stmt = stmt.where(Task.tags.contains([tag]))
    if search:
        stmt = stmt.where(Task.title.ilike(f"%{search.strip()}%"))

    if sort == TaskSort.due_date:
        stmt = stmt.order_by(Task.due_date.asc().nulls_last(), Task.created_at.desc())
    elif sort == TaskSort.priority:
        stmt = stmt.order_by(_priority_rank(), Task.created_at.desc())
    elif sort == TaskSort.sort_order:
        stmt = stmt.order_by(Task.sort_order.asc(), Task.created_at.desc())
    else:
        stmt = stmt.order_by(Task.created_at.desc())

    stmt = stmt.offset(offset).limit(min(limit, MAX_PAGE_SIZE))
    result = await session.exec(stmt)
    return list(result.all())


async def get_task(session: AsyncSession, task_id: uuid.UUID) -> Optional[Task]:
    """Fetch a task if the current RLS context can see it."""
    return await session.get(Task, task_id)


async def get_owned_task(session: AsyncSession, *, task_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Task]:
    """Fetch a task only when ``user_id`` owns it (admin visibility excluded)."""
    stmt = select(Task).where(Task.id == task_id, Task.user_id == user_id)
    result = await session.exec(stmt)
    return result.one_or_none()


async def _ensure_category(session: AsyncSession, *, category_id: uuid.UUID, owner_id: uuid.UUID) -> None:
    stmt = select(Category.id).where(Category.id == category_id, Category.user_id == owner_id)
    result = await session.exec(stmt)
    if result.one_or_none() is None:
        raise CategoryNotVisible(str(category_id))


def apply_status(
    task: Task,
    new_status: TaskStatus,
    *,
    completed_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """Move ``task`` to ``new_status`` and return the analytics deltas."""
    now = now or datetime.now(timezone.utc)
    previous = task.status
    deltas = {"completed": 0, "cancelled": 0}

    if new_status == TaskStatus.completed:
        if previous != TaskStatus.completed:
            task.completed_at = completed_at or now
            deltas["completed"] = 1
        elif completed_at is not None:
            task.completed_at = completed_at
    else:
        task.completed_at = None
        if new_status == TaskStatus.cancelled and previous != TaskStatus.cancelled:
            deltas["cancelled"] = 1

    task.status = new_status
    return deltas


async def create_task(session: AsyncSession, *, user_id: uuid.UUID, task_in: TaskCreate) -> Task:
    data = task_in.model_dump(exclude={"status", "completed_at", "user_id"})
    owner_id = task_in.user_id or user_id
    if task_in.category_id is not None:
        await _ensure_category(session, category_id=task_in.category_id, owner_id=user_id)

    task = Task(user_id=owner_id, **data)
    task.status = TaskStatus.pending
    deltas = apply_status(task, task_in.status, completed_at=task_in.completed_at)
    session.add(task)
    await session.flush()
    await analytics_service.record_activity(
        session,
        user_id=owner_id,
        created=1,
        completed=deltas["completed"],
        cancelled=deltas["cancelled"],
    )
    await session.commit()
    await session.refresh(task)
    logger.debug("Created task %s for %s", task.id, owner_id)
    return task


async def update_task(session: AsyncSession, task: Task, changes: dict[str, Any]) -> Task:
    new_status = changes.pop("status", None)
    completed_at = changes.pop("completed_at", None)
    # Explicit nulls only clear nullable columns.
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            del changes[field]

    category_id = changes.get("category_id")
    if category_id is not None and category_id != task.category_id:
        await _ensure_category(session, category_id=category_id, owner_id=task.user_id)
    if "tags" in changes and changes["tags"] is None:
        changes["tags"] = []

    for field, value in changes.items():
        setattr(task, field, value)

    deltas = {"completed": 0, "cancelled": 0}
    if new_status is not None:
        deltas = apply_status(task, new_status, completed_at=completed_at)
    elif completed_at is not None and task.status == TaskStatus.completed:
        task.completed_at = completed_at

    session.add(task)
    await session.flush()
    await analytics_service.record_activity(session, user_id=task.user_id, **deltas)
    await session.commit()
    await session.refresh(task)
    return task


async def toggle_complete(session: AsyncSession, task: Task) -> Task:
    target = TaskStatus.pending if task.status == TaskStatus.completed else TaskStatus.completed
    return await update_task(session, task, {"status": target})


async def toggle_star(session: AsyncSession, task: Task) -> Task:
    return await update_task(session, task, {"is_starred": not task.is_starred})


async def delete_task(session: AsyncSession, task: Task) -> None:
    # Subtasks and reminders cascade; notifications keep the row with task_id nulled.
    await session.delete(task)
    await session.commit()
