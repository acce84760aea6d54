from datetime import datetime
from typing import Dict, List
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from taskflow.models.user import AppRole


class AdminStats(BaseModel):
    total_users: int
    total_admins: int
    total_tasks: int
    total_categories: int
    completion_rate: float
    tasks_by_status: Dict[str, int]
    tasks_by_priority: Dict[str, int]
    total_focus_minutes: int
    total_tasks_completed_tracked: int


class AdminUserRead(BaseModel):
    id: UUID
    email: EmailStr
    is_active: bool
    created_at: datetime
    roles: List[AppRole] = Field(default_factory=list)
    task_count: int = 0


class RolePromotionResponse(BaseModel):
    user_id: UUID
    roles: List[AppRole]
