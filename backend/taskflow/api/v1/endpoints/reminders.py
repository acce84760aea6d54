from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from taskflow.api.deps import CurrentUser, UserSessionDep
from taskflow.core.messages import ReminderMessages, TaskMessages
from taskflow.models.reminder import Reminder
from taskflow.schemas.reminder import ReminderCreate, ReminderRead, ReminderUpdate
from taskflow.services import reminders as reminders_service
from taskflow.services import tasks as tasks_service

router = APIRouter()


async def _get_reminder_or_404(session: UserSessionDep, reminder_id: UUID) -> Reminder:
    reminder = await reminders_service.get_reminder(session, reminder_id)
    if reminder is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ReminderMessages.NOT_FOUND)
    return reminder


async def _apply_update(session: UserSessionDep, reminder: Reminder, changes: dict) -> Reminder:
    try:
        return await reminders_service.update_reminder(session, reminder, changes)
    except reminders_service.ReminderAlreadySent as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ReminderMessages.CANNOT_UNSEND) from exc


@router.get("/", response_model=List[ReminderRead])
async def list_reminders(
    session: UserSessionDep,
    upcoming_only: bool = False,
    task_id: Optional[UUID] = None,
) -> List[Reminder]:
    return await reminders_service.list_reminders(session, upcoming_only=upcoming_only, task_id=task_id)


@router.post("/", response_model=ReminderRead, status_code=status.HTTP_201_CREATED)
async def create_reminder(
    reminder_in: ReminderCreate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> Reminder:
    task = await tasks_service.get_owned_task(session, task_id=reminder_in.task_id, user_id=current_user.id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TaskMessages.NOT_FOUND)
    return await reminders_service.create_reminder(
        session,
        task=task,
        remind_at=reminder_in.remind_at,
        message=reminder_in.message,
    )


@router.patch("/{reminder_id}", response_model=ReminderRead)
async def update_reminder(reminder_id: UUID, reminder_in: ReminderUpdate, session: UserSessionDep) -> Reminder:
    reminder = await _get_reminder_or_404(session, reminder_id)
    return await _apply_update(session, reminder, reminder_in.model_dump(exclude_unset=True))


@router.post("/{reminder_id}/sent", response_model=ReminderRead)
async def mark_reminder_sent(reminder_id: UUID, session: UserSessionDep) -> Reminder:
    reminder = await _get_reminder_or_404(session, reminder_id)
    return await reminders_service.mark_sent(session, reminder)


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reminder(reminder_id: UUID, session: UserSessionDep) -> Response:
    reminder = await _get_reminder_or_404(session, reminder_id)
    await reminders_service.delete_reminder(session, reminder)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
