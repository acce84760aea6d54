"""
Unit tests for daily counters, streaks and the dashboard summary.
"""

import datetime as dt

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.analytics import AnalyticsDay
from taskflow.models.task import TaskPriority, TaskStatus
from taskflow.services import analytics as analytics_service
from taskflow.testing import create_analytics_day, create_task, create_user, user_context


@pytest.mark.unit
@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [(0, 0, 0.0), (1, 3, 33.3), (2, 2, 100.0), (0, 5, 0.0)],
)
def test_completion_rate(completed, total, expected):
    assert analytics_service.completion_rate(completed, total) == expected


@pytest.mark.service
async def test_record_activity_accumulates_into_one_row(session: AsyncSession):
    user = await create_user(session)
    day = dt.date(2026, 2, 10)

    await analytics_service.record_activity(session, user_id=user.id, created=1, day=day)
    await analytics_service.record_activity(session, user_id=user.id, created=2, focus_minutes=25, day=day)
    await session.commit()

    rows = (await session.exec(select(AnalyticsDay).where(AnalyticsDay.user_id == user.id))).all()
    assert len(rows) == 1
    await session.refresh(rows[0])
    assert rows[0].tasks_created == 3
    assert rows[0].focus_minutes == 25


@pytest.mark.service
async def test_streak_continues_from_previous_day(session: AsyncSession):
    user = await create_user(session)
    yesterday = dt.date(2026, 2, 9)
    await create_analytics_day(session, user, date=yesterday, tasks_completed=2, streak_days=3)

    await analytics_service.record_activity(session, user_id=user.id, completed=1, day=yesterday + dt.timedelta(days=1))
    await session.commit()

    assert await analytics_service.current_streak(
        session, user_id=user.id, today=yesterday + dt.timedelta(days=1)
    ) == 4


@pytest.mark.service
async def test_streak_resets_after_gap(session: AsyncSession):
    user = await create_user(session)
    await create_analytics_day(session, user, date=dt.date(2026, 2, 1), tasks_completed=1, streak_days=5)

    await analytics_service.record_activity(session, user_id=user.id, completed=1, day=dt.date(2026, 2, 10))
    await session.commit()

    assert await analytics_service.current_streak(session, user_id=user.id, today=dt.date(2026, 2, 10)) == 1
    assert await analytics_service.current_streak(session, user_id=user.id, today=dt.date(2026, 2, 12)) == 0


@pytest.mark.service
async def test_add_focus_minutes_upserts_today(session: AsyncSession):
    user = await create_user(session)

    async with user_context(session, user):
        await analytics_service.add_focus_minutes(session, user_id=user.id, minutes=25)
        row = await analytics_service.add_focus_minutes(session, user_id=user.id, minutes=15)

    assert row.date == analytics_service.today_utc()
    assert row.focus_minutes == 40


@pytest.mark.service
async def test_summary_counts_own_tasks(session: AsyncSession):
    user = await create_user(session)
    other = await create_user(session)
    past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=2)
    await create_task(session, user, priority=TaskPriority.high, is_starred=True)
    await create_task(session, user, due_date=past)
    await create_task(
        session, user, status=TaskStatus.completed, completed_at=dt.datetime.now(dt.timezone.utc)
    )
    await create_task(session, user, status=TaskStatus.cancelled, due_date=past)
    await create_task(session, other)

    async with user_context(session, user):
        summary = await analytics_service.get_summary(session, user_id=user.id)

    assert summary.total_tasks == 4
    assert summary.pending == 2
    assert summary.completed == 1
    assert summary.cancelled == 1
    assert summary.starred == 1
    assert summary.overdue == 1
    assert summary.completion_rate == 25.0
    assert summary.by_priority["high"] == 1
    assert len(summary.last_7_days) == 7
    assert summary.last_7_days[-1].date == analytics_service.today_utc()
    assert summary.last_7_days[-1].created == 4
    assert summary.last_7_days[-1].completed == 1
