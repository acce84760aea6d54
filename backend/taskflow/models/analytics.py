import datetime as dt
import uuid

from sqlalchemy import Column, Date, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def _today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


class AnalyticsDay(SQLModel, table=True):
    """Per-owner daily productivity counters; one row per (user_id, date)."""

    __tablename__ = "analytics"
    __table_args__ = (UniqueConstraint("user_id", "date", name="analytics_user_id_date_key"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    date: dt.date = Field(default_factory=_today, sa_column=Column(Date, nullable=False))
    tasks_created: int = Field(default=0)
    tasks_completed: int = Field(default=0)
    tasks_cancelled: int = Field(default=0)
    focus_minutes: int = Field(default=0)
    streak_days: int = Field(default=0)
    created_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
