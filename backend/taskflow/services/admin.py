"""
Platform-wide views for admins.

Every query here runs under the admin's own RLS context: the admin read
policies are what make other owners' rows visible, so a non-admin calling
these functions would simply see their own data.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.analytics import AnalyticsDay
from taskflow.models.category import Category
from taskflow.models.task import PRIORITY_ORDER, Task, TaskStatus
from taskflow.models.user import AppRole, User, UserRole
from taskflow.schemas.admin import AdminStats, AdminUserRead
from taskflow.services.analytics import completion_rate
from taskflow.services.users import get_roles

logger = logging.getLogger(__name__)

DEFAULT_RECENT_TASKS = 50


async def _count(session: AsyncSession, stmt) -> int:
    result = await session.exec(stmt)
    return result.one() or 0


async def get_stats(session: AsyncSession) -> AdminStats:
    by_status: Dict[str, int] = {status.value: 0 for status in TaskStatus}
    status_rows = await session.exec(select(Task.status, func.count(Task.id)).group_by(Task.status))
    for task_status, count in status_rows.all():
        by_status[TaskStatus(task_status).value] = count

    priority_rows = await session.exec(select(Task.priority, func.count(Task.id)).group_by(Task.priority))
    priority_counts = dict(priority_rows.all())
    by_priority = {priority.value: priority_counts.get(priority, 0) for priority in PRIORITY_ORDER}

    totals = await session.exec(
        select(
            func.coalesce(func.sum(AnalyticsDay.focus_minutes), 0),
            func.coalesce(func.sum(AnalyticsDay.tasks_completed), 0),
        )
    )
    focus_minutes, tracked_completed = totals.one()

    total_tasks = sum(by_status.values())
    return AdminStats(
        total_users=await _count(session, select(func.count(User.id))),
        total_admins=await _count(
            session, select(func.count(UserRole.id)).where(UserRole.role == AppRole.admin)
        ),
        total_tasks=total_tasks,
        total_categories=await _count(session, select(func.count(Category.id))),
        completion_rate=completion_rate(by_status[TaskStatus.completed.value], total_tasks),
        tasks_by_status=by_status,
        tasks_by_priority=by_priority,
        total_focus_minutes=int(focus_minutes),
        total_tasks_completed_tracked=int(tracked_completed),
    )


async def list_users(session: AsyncSession) -> List[AdminUserRead]:
    users = (await session.exec(select(User).order_by(User.created_at.asc()))).all()

    roles: Dict[uuid.UUID, List[AppRole]] = {}
    role_rows = await session.exec(select(UserRole.user_id, UserRole.role).order_by(UserRole.role))
    for user_id, role in role_rows.all():
        roles.setdefault(user_id, []).append(role)

    count_rows = await session.exec(select(Task.user_id, func.count(Task.id)).group_by(Task.user_id))
    task_counts = dict(count_rows.all())

    return [
        AdminUserRead(
            id=user.id,
            email=user.email,
            is_active=user.is_active,
            created_at=user.created_at,
            roles=roles.get(user.id, []),
            task_count=task_counts.get(user.id, 0),
        )
        for user in users
    ]


async def recent_tasks(session: AsyncSession, *, limit: int = DEFAULT_RECENT_TASKS) -> List[Task]:
    stmt = select(Task).order_by(Task.created_at.desc()).limit(limit)
    result = await session.exec(stmt)
    return list(result.all())


async def grant_role(session: AsyncSession, *, user_id: uuid.UUID, role: AppRole) -> List[AppRole]:
    """Give ``user_id`` ``role``; granting an existing role is a no-op."""
    stmt = (
        pg_insert(UserRole.__table__)
        .values(
            id=uuid.uuid4(),
            user_id=user_id,
            role=role,
            created_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_nothing(index_elements=["user_id", "role"])
    )
    await session.execute(stmt)
    await session.commit()
    logger.info("Granted %s role to user %s", role.value, user_id)
    return await get_roles(session, user_id)
