import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

DEFAULT_CATEGORY_COLOR = "#f9a8d4"
DEFAULT_CATEGORY_ICON = "folder"


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    name: str = Field(sa_column=Column(Text, nullable=False))
    color: str = Field(
        default=DEFAULT_CATEGORY_COLOR,
        sa_column=Column(Text, nullable=False, server_default=DEFAULT_CATEGORY_COLOR),
    )
    icon: Optional[str] = Field(default=DEFAULT_CATEGORY_ICON)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
