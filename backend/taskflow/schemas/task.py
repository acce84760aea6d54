from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskflow.models.task import TaskPriority, TaskStatus


class TaskSort(str, Enum):
    created_at = "created_at"
    due_date = "due_date"
    priority = "priority"
    sort_order = "sort_order"


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.pending
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[datetime] = None
    category_id: Optional[UUID] = None
    tags: List[str] = Field(default_factory=list)
    is_starred: bool = False
    sort_order: int = 0

    @field_validator("title")
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Task title cannot be empty")
        return v

    @field_validator("tags")
    def validate_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v) or []


class TaskCreate(TaskBase):
    user_id: Optional[UUID] = None
    completed_at: Optional[datetime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    category_id: Optional[UUID] = None
    tags: Optional[List[str]] = None
    is_starred: Optional[bool] = None
    sort_order: Optional[int] = None
    completed_at: Optional[datetime] = None

    @field_validator("title")
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Task title cannot be empty")
        return v

    @field_validator("tags")
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    category_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    is_starred: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", mode="before")
    def default_tags(cls, v: Optional[List[str]]) -> List[str]:
        return v or []
