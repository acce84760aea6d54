import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class NotificationType(str, Enum):
    reminder = "reminder"
    task = "task"
    system = "system"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    title: str = Field(sa_column=Column(Text, nullable=False))
    body: Optional[str] = Field(default=None)
    # Free-form tag column; NotificationType lists the values the API emits.
    type: str = Field(default=NotificationType.reminder.value)
    is_read: bool = Field(default=False)
    task_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="tasks.id", nullable=True, index=True, ondelete="SET NULL"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
