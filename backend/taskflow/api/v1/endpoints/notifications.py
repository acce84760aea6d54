from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Response, status

from taskflow.api.deps import CurrentUser, UserSessionDep
from taskflow.core.messages import NotificationMessages, TaskMessages
from taskflow.models.notification import Notification
from taskflow.schemas.notification import (
    NotificationCountResponse,
    NotificationCreate,
    NotificationListResponse,
    NotificationRead,
)
from taskflow.services import notifications as notifications_service
from taskflow.services import tasks as tasks_service

router = APIRouter()


async def _get_notification_or_404(session: UserSessionDep, notification_id: UUID) -> Notification:
    notification = await notifications_service.get_notification(session, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NotificationMessages.NOT_FOUND)
    return notification


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    current_user: CurrentUser,
    session: UserSessionDep,
    unread_only: bool = False,
    limit: int = Query(default=notifications_service.DEFAULT_LIMIT, ge=1, le=200),
) -> NotificationListResponse:
    notifications = await notifications_service.list_notifications(
        session, user_id=current_user.id, unread_only=unread_only, limit=limit
    )
    unread = await notifications_service.unread_count(session, user_id=current_user.id)
    return NotificationListResponse(
        notifications=[NotificationRead.model_validate(item) for item in notifications],
        unread_count=unread,
    )


@router.get("/unread-count", response_model=NotificationCountResponse)
async def notification_unread_count(current_user: CurrentUser, session: UserSessionDep) -> NotificationCountResponse:
    unread = await notifications_service.unread_count(session, user_id=current_user.id)
    return NotificationCountResponse(unread_count=unread)


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def create_notification(
    notification_in: NotificationCreate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> Notification:
    if notification_in.task_id is not None:
        task = await tasks_service.get_owned_task(
            session, task_id=notification_in.task_id, user_id=current_user.id
        )
        if task is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TaskMessages.NOT_FOUND)
    return await notifications_service.create_notification(
        session,
        user_id=notification_in.user_id or current_user.id,
        title=notification_in.title,
        body=notification_in.body,
        notification_type=notification_in.type,
        task_id=notification_in.task_id,
    )


@router.post("/read-all", response_model=NotificationCountResponse)
async def mark_all_notifications_read(current_user: CurrentUser, session: UserSessionDep) -> NotificationCountResponse:
    await notifications_service.mark_all_read(session, user_id=current_user.id)
    return NotificationCountResponse(unread_count=0)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(notification_id: UUID, session: UserSessionDep) -> Notification:
    notification = await _get_notification_or_404(session, notification_id)
    return await notifications_service.mark_read(session, notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: UUID, session: UserSessionDep) -> Response:
    notification = await _get_notification_or_404(session, notification_id)
    await notifications_service.delete_notification(session, notification)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
