import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import Column, DateTime, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlmodel import Enum as SQLEnum, Field, SQLModel


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# Highest first; used for priority sorting and breakdowns.
PRIORITY_ORDER = [TaskPriority.urgent, TaskPriority.high, TaskPriority.medium, TaskPriority.low]


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    category_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="categories.id", nullable=True, index=True, ondelete="SET NULL"
    )
    title: str = Field(sa_column=Column(Text, nullable=False))
    description: Optional[str] = Field(default=None)
    status: TaskStatus = Field(
        default=TaskStatus.pending,
        sa_column=Column(SQLEnum(TaskStatus, name="task_status"), nullable=False),
    )
    priority: TaskPriority = Field(
        default=TaskPriority.medium,
        sa_column=Column(SQLEnum(TaskPriority, name="task_priority"), nullable=False),
    )
    due_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    tags: List[str] = Field(
        default_factory=list,
        sa_column=Column(ARRAY(Text), nullable=True, server_default="{}"),
    )
    is_starred: bool = Field(default=False)
    sort_order: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
