from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from taskflow.models.user import AppRole


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=256)
    # Signup metadata; the profile trigger picks the display name from these.
    display_name: Optional[str] = Field(default=None, max_length=100)
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("email")
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()

    def signup_metadata(self) -> dict[str, str]:
        data = self.model_dump(include={"display_name", "full_name", "avatar_url"}, exclude_none=True)
        return {key: value for key, value in data.items() if value.strip()}


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)
    bio: Optional[str] = Field(default=None, max_length=2000)


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    is_active: bool
    created_at: datetime
    roles: List[AppRole] = Field(default_factory=list)
    profile: Optional[ProfileRead] = None

    @property
    def is_admin(self) -> bool:
        return AppRole.admin in self.roles
