import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, status

from taskflow.api.deps import CurrentUser, UserSessionDep
from taskflow.models.analytics import AnalyticsDay
from taskflow.schemas.analytics import AnalyticsDayCreate, AnalyticsDayRead, AnalyticsSummary, FocusSessionCreate
from taskflow.services import analytics as analytics_service

router = APIRouter()


@router.get("/summary", response_model=AnalyticsSummary)
async def analytics_summary(current_user: CurrentUser, session: UserSessionDep) -> AnalyticsSummary:
    """Dashboard totals, last seven days of activity and the current streak."""
    return await analytics_service.get_summary(session, user_id=current_user.id)


@router.get("/days", response_model=List[AnalyticsDayRead])
async def list_analytics_days(
    current_user: CurrentUser,
    session: UserSessionDep,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> List[AnalyticsDay]:
    return await analytics_service.list_days(session, user_id=current_user.id, start=start, end=end)


@router.post("/days", response_model=AnalyticsDayRead, status_code=status.HTTP_201_CREATED)
async def create_analytics_day(
    day_in: AnalyticsDayCreate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> AnalyticsDay:
    """Record a day explicitly. A second row for the same date is a 409."""
    return await analytics_service.create_day(session, user_id=current_user.id, day_in=day_in)


@router.post("/focus", response_model=AnalyticsDayRead)
async def log_focus_session(
    focus_in: FocusSessionCreate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> AnalyticsDay:
    return await analytics_service.add_focus_minutes(session, user_id=current_user.id, minutes=focus_in.minutes)
