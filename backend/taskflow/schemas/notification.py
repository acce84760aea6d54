from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taskflow.models.notification import NotificationType


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: Optional[str] = None
    type: NotificationType = NotificationType.reminder
    task_id: Optional[UUID] = None
    user_id: Optional[UUID] = None


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    body: Optional[str] = None
    type: str
    is_read: bool
    task_id: Optional[UUID] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationRead]
    unread_count: int


class NotificationCountResponse(BaseModel):
    unread_count: int
