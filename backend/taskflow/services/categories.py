from __future__ import annotations

import uuid
from typing import Any, List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.category import Category
from taskflow.models.task import Task
from taskflow.schemas.category import CategoryCreate, CategoryRead

_REQUIRED_FIELDS = ("name", "color")


def to_read(category: Category, task_count: int = 0) -> CategoryRead:
    read = CategoryRead.model_validate(category)
    read.task_count = task_count
    return read


async def list_categories(session: AsyncSession, *, user_id: uuid.UUID) -> List[Tuple[Category, int]]:
    """Own categories, oldest first, each with its number of tasks."""
    stmt = (
        select(Category, func.count(Task.id))
        .outerjoin(Task, Task.category_id == Category.id)
        .where(Category.user_id == user_id)
        .group_by(Category.id)
        .order_by(Category.created_at.asc())
    )
    result = await session.exec(stmt)
    return [(category, count) for category, count in result.all()]


async def count_tasks(session: AsyncSession, category_id: uuid.UUID) -> int:
    stmt = select(func.count(Task.id)).where(Task.category_id == category_id)
    result = await session.exec(stmt)
    return result.one()


async def get_owned_category(
    session: AsyncSession, *, category_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[Category]:
    stmt = select(Category).where(Category.id == category_id, Category.user_id == user_id)
    result = await session.exec(stmt)
    return result.one_or_none()


async def create_category(session: AsyncSession, *, user_id: uuid.UUID, category_in: CategoryCreate) -> Category:
    data = category_in.model_dump(exclude={"user_id"})
    category = Category(user_id=category_in.user_id or user_id, **data)
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category


async def update_category(session: AsyncSession, category: Category, changes: dict[str, Any]) -> Category:
    # Only the icon may be cleared with an explicit null.
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            del changes[field]
    for field, value in changes.items():
        setattr(category, field, value)
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category


async def delete_category(session: AsyncSession, category: Category) -> None:
    # Tasks survive with category_id set to NULL.
    await session.delete(category)
    await session.commit()
