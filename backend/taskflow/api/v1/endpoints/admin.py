from typing import List
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from taskflow.api.deps import AdminUser, UserSessionDep
from taskflow.core.messages import AuthMessages
from taskflow.models.task import Task
from taskflow.models.user import AppRole, User
from taskflow.schemas.admin import AdminStats, AdminUserRead, RolePromotionResponse
from taskflow.schemas.task import TaskRead
from taskflow.services import admin as admin_service

router = APIRouter()


@router.get("/stats", response_model=AdminStats)
async def platform_stats(admin: AdminUser, session: UserSessionDep) -> AdminStats:
    return await admin_service.get_stats(session)


@router.get("/users", response_model=List[AdminUserRead])
async def list_users(admin: AdminUser, session: UserSessionDep) -> List[AdminUserRead]:
    return await admin_service.list_users(session)


@router.get("/tasks", response_model=List[TaskRead])
async def recent_tasks(
    admin: AdminUser,
    session: UserSessionDep,
    limit: int = Query(default=admin_service.DEFAULT_RECENT_TASKS, ge=1, le=500),
) -> List[Task]:
    return await admin_service.recent_tasks(session, limit=limit)


@router.post("/users/{user_id}/promote", response_model=RolePromotionResponse)
async def promote_user(user_id: UUID, admin: AdminUser, session: UserSessionDep) -> RolePromotionResponse:
    if await session.get(User, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=AuthMessages.USER_NOT_FOUND)
    roles = await admin_service.grant_role(session, user_id=user_id, role=AppRole.admin)
    return RolePromotionResponse(user_id=user_id, roles=roles)
