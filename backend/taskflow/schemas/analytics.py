import datetime as dt
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsDayCreate(BaseModel):
    date: Optional[dt.date] = None
    tasks_created: int = Field(default=0, ge=0)
    tasks_completed: int = Field(default=0, ge=0)
    tasks_cancelled: int = Field(default=0, ge=0)
    focus_minutes: int = Field(default=0, ge=0)
    streak_days: int = Field(default=0, ge=0)


class AnalyticsDayRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    date: dt.date
    tasks_created: int
    tasks_completed: int
    tasks_cancelled: int
    focus_minutes: int
    streak_days: int
    created_at: dt.datetime


class FocusSessionCreate(BaseModel):
    minutes: int = Field(..., gt=0, le=24 * 60)


class DailyActivity(BaseModel):
    date: dt.date
    created: int = 0
    completed: int = 0


class AnalyticsSummary(BaseModel):
    total_tasks: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int
    starred: int
    overdue: int
    completion_rate: float
    current_streak: int
    focus_minutes_today: int
    last_7_days: List[DailyActivity]
    by_priority: Dict[str, int]
    by_status: Dict[str, int]
