"""
Daily productivity counters and the dashboard summary.

Counters live in one ``analytics`` row per (owner, date) and are bumped with
``INSERT .. ON CONFLICT (user_id, date) DO UPDATE`` so concurrent task
changes never trip the uniqueness constraint.
"""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.analytics import AnalyticsDay
from taskflow.models.task import PRIORITY_ORDER, Task, TaskStatus
from taskflow.schemas.analytics import AnalyticsDayCreate, AnalyticsSummary, DailyActivity

SUMMARY_WINDOW_DAYS = 7
_CLOSED_STATUSES = (TaskStatus.completed, TaskStatus.cancelled)


def today_utc() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


async def _previous_streak(session: AsyncSession, user_id: uuid.UUID, day: dt.date) -> int:
    stmt = select(AnalyticsDay.streak_days).where(
        AnalyticsDay.user_id == user_id,
        AnalyticsDay.date == day - dt.timedelta(days=1),
    )
    result = await session.exec(stmt)
    return result.one_or_none() or 0


async def record_activity(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    created: int = 0,
    completed: int = 0,
    cancelled: int = 0,
    focus_minutes: int = 0,
    day: Optional[dt.date] = None,
) -> None:
    """Add to the owner's counters for ``day`` (today by default).

    Does not commit; the caller's transaction owns the write.
    """
    if not any((created, completed, cancelled, focus_minutes)):
        return
    day = day or today_utc()
    table = AnalyticsDay.__table__
    values = dict(
        id=uuid.uuid4(),
        user_id=user_id,
        date=day,
        tasks_created=created,
        tasks_completed=completed,
        tasks_cancelled=cancelled,
        focus_minutes=focus_minutes,
        streak_days=0,
        created_at=dt.datetime.now(dt.timezone.utc),
    )
    updates = dict(
        tasks_created=table.c.tasks_created + created,
        tasks_completed=table.c.tasks_completed + completed,
        tasks_cancelled=table.c.tasks_cancelled + cancelled,
        focus_minutes=table.c.focus_minutes + focus_minutes,
    )
    if completed:
        streak = await _previous_streak(session, user_id, day) + 1
        values["streak_days"] = streak
        updates["streak_days"] = streak

    stmt = pg_insert(table).values(**values).on_conflict_do_update(
        index_elements=["user_id", "date"],
        set_=updates,
    )
    await session.execute(stmt)


async def list_days(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> List[AnalyticsDay]:
    stmt = select(AnalyticsDay).where(AnalyticsDay.user_id == user_id)
    if start is not None:
        stmt = stmt.where(AnalyticsDay.date >= start)
    if end is not None:
        stmt = stmt.where(AnalyticsDay.date <= end)
    result = await session.exec(stmt.order_by(AnalyticsDay.date.asc()))
    return list(result.all())


async def create_day(session: AsyncSession, *, user_id: uuid.UUID, day_in: AnalyticsDayCreate) -> AnalyticsDay:
    """Insert a row verbatim; a second row for the same date violates the unique key."""
    data = day_in.model_dump(exclude_none=True)
    day = AnalyticsDay(user_id=user_id, **data)
    session.add(day)
    await session.commit()
    await session.refresh(day)
    return day


async def add_focus_minutes(session: AsyncSession, *, user_id: uuid.UUID, minutes: int) -> AnalyticsDay:
    day = today_utc()
    await record_activity(session, user_id=user_id, focus_minutes=minutes, day=day)
    await session.commit()
    stmt = select(AnalyticsDay).where(AnalyticsDay.user_id == user_id, AnalyticsDay.date == day)
    result = await session.exec(stmt)
    row = result.one()
    await session.refresh(row)
    return row


async def current_streak(session: AsyncSession, *, user_id: uuid.UUID, today: Optional[dt.date] = None) -> int:
    """Today's streak, or yesterday's when nothing has been completed yet today."""
    today = today or today_utc()
    stmt = select(AnalyticsDay.date, AnalyticsDay.streak_days).where(
        AnalyticsDay.user_id == user_id,
        AnalyticsDay.date.in_([today, today - dt.timedelta(days=1)]),
        AnalyticsDay.tasks_completed > 0,
    )
    result = await session.exec(stmt)
    streaks = {row_date: streak for row_date, streak in result.all()}
    return streaks.get(today) or streaks.get(today - dt.timedelta(days=1)) or 0


def _as_utc_date(value: Optional[dt.datetime]) -> Optional[dt.date]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).date()


async def _daily_activity(
    session: AsyncSession, *, user_id: uuid.UUID, today: dt.date
) -> List[DailyActivity]:
    days = [today - dt.timedelta(days=offset) for offset in range(SUMMARY_WINDOW_DAYS - 1, -1, -1)]
    window_start = dt.datetime.combine(days[0], dt.time.min, tzinfo=dt.timezone.utc)
    buckets: Dict[dt.date, DailyActivity] = {day: DailyActivity(date=day) for day in days}

    stmt = select(Task.created_at, Task.completed_at).where(
        Task.user_id == user_id,
        (Task.created_at >= window_start) | (Task.completed_at >= window_start),
    )
    result = await session.exec(stmt)
    for created_at, completed_at in result.all():
        created_day = _as_utc_date(created_at)
        if created_day in buckets:
            buckets[created_day].created += 1
        completed_day = _as_utc_date(completed_at)
        if completed_day in buckets:
            buckets[completed_day].completed += 1
    return [buckets[day] for day in days]


async def get_summary(session: AsyncSession, *, user_id: uuid.UUID) -> AnalyticsSummary:
    now = dt.datetime.now(dt.timezone.utc)
    today = now.date()

    status_stmt = (
        select(Task.status, func.count(Task.id))
        .where(Task.user_id == user_id)
        .group_by(Task.status)
    )
    status_rows = (await session.exec(status_stmt)).all()
    by_status = {status.value: 0 for status in TaskStatus}
    for task_status, count in status_rows:
        by_status[TaskStatus(task_status).value] = count

    priority_stmt = (
        select(Task.priority, func.count(Task.id))
        .where(Task.user_id == user_id)
        .group_by(Task.priority)
    )
    priority_rows = dict((await session.exec(priority_stmt)).all())
    by_priority = {priority.value: priority_rows.get(priority, 0) for priority in PRIORITY_ORDER}

    flags_stmt = select(
        func.count(case((Task.is_starred.is_(True), 1))),
        func.count(
            case(
                (
                    (Task.due_date < now) & Task.status.notin_(_CLOSED_STATUSES),
                    1,
                )
            )
        ),
    ).where(Task.user_id == user_id)
    starred, overdue = (await session.exec(flags_stmt)).one()

    focus_stmt = select(AnalyticsDay.focus_minutes).where(
        AnalyticsDay.user_id == user_id,
        AnalyticsDay.date == today,
    )
    focus_today = (await session.exec(focus_stmt)).one_or_none() or 0

    total = sum(by_status.values())
    completed = by_status[TaskStatus.completed.value]
    return AnalyticsSummary(
        total_tasks=total,
        pending=by_status[TaskStatus.pending.value],
        in_progress=by_status[TaskStatus.in_progress.value],
        completed=completed,
        cancelled=by_status[TaskStatus.cancelled.value],
        starred=starred,
        overdue=overdue,
        completion_rate=completion_rate(completed, total),
        current_streak=await current_streak(session, user_id=user_id, today=today),
        focus_minutes_today=focus_today,
        last_7_days=await _daily_activity(session, user_id=user_id, today=today),
        by_priority=by_priority,
        by_status=by_status,
    )


def completion_rate(completed: int, total: int) -> float:
    """Percentage of tasks completed, rounded to one decimal."""
    if total <= 0:
        return 0.0
    return round(completed * 100.0 / total, 1)
