from typing import List
from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from taskflow.api.deps import CurrentUser, UserSessionDep
from taskflow.core.messages import CategoryMessages
from taskflow.models.category import Category
from taskflow.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from taskflow.services import categories as categories_service

router = APIRouter()


async def _get_category_or_404(session: UserSessionDep, category_id: UUID, user_id: UUID) -> Category:
    category = await categories_service.get_owned_category(session, category_id=category_id, user_id=user_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CategoryMessages.NOT_FOUND)
    return category


@router.get("/", response_model=List[CategoryRead])
async def list_categories(current_user: CurrentUser, session: UserSessionDep) -> List[CategoryRead]:
    rows = await categories_service.list_categories(session, user_id=current_user.id)
    return [categories_service.to_read(category, count) for category, count in rows]


@router.post("/", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_in: CategoryCreate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> CategoryRead:
    category = await categories_service.create_category(session, user_id=current_user.id, category_in=category_in)
    return categories_service.to_read(category)


@router.get("/{category_id}", response_model=CategoryRead)
async def read_category(category_id: UUID, current_user: CurrentUser, session: UserSessionDep) -> CategoryRead:
    category = await _get_category_or_404(session, category_id, current_user.id)
    return categories_service.to_read(category, await categories_service.count_tasks(session, category.id))


@router.patch("/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: UUID,
    category_in: CategoryUpdate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> CategoryRead:
    category = await _get_category_or_404(session, category_id, current_user.id)
    category = await categories_service.update_category(
        session, category, category_in.model_dump(exclude_unset=True)
    )
    return categories_service.to_read(category, await categories_service.count_tasks(session, category.id))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: UUID, current_user: CurrentUser, session: UserSessionDep) -> Response:
    category = await _get_category_or_404(session, category_id, current_user.id)
    await categories_service.delete_category(session, category)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
