from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskflow.models.category import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, pattern=COLOR_PATTERN)
    icon: Optional[str] = Field(default=DEFAULT_CATEGORY_ICON, max_length=50)

    @field_validator("name")
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Category name cannot be empty")
        return v


class CategoryCreate(CategoryBase):
    # Defaults to the requester; anything else is refused by the database.
    user_id: Optional[UUID] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=COLOR_PATTERN)
    icon: Optional[str] = Field(default=None, max_length=50)

    @field_validator("name")
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Category name cannot be empty")
        return v


class CategoryRead(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: datetime
    task_count: int = 0
