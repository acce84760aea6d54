from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReminderCreate(BaseModel):
    task_id: UUID
    remind_at: datetime
    message: Optional[str] = Field(default=None, max_length=1000)


class ReminderUpdate(BaseModel):
    remind_at: Optional[datetime] = None
    message: Optional[str] = Field(default=None, max_length=1000)
    is_sent: Optional[bool] = None


class ReminderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    user_id: UUID
    remind_at: datetime
    is_sent: bool
    message: Optional[str] = None
    created_at: datetime
