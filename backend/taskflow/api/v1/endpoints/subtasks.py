from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from taskflow.api.deps import UserSessionDep
from taskflow.core.messages import SubtaskMessages
from taskflow.models.subtask import Subtask
from taskflow.schemas.subtask import SubtaskRead, SubtaskUpdate
from taskflow.services import subtasks as subtasks_service

router = APIRouter()


async def _get_subtask_or_404(session: UserSessionDep, subtask_id: UUID) -> Subtask:
    subtask = await subtasks_service.get_subtask(session, subtask_id)
    if subtask is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SubtaskMessages.NOT_FOUND)
    return subtask


@router.patch("/{subtask_id}", response_model=SubtaskRead)
async def update_subtask(subtask_id: UUID, subtask_in: SubtaskUpdate, session: UserSessionDep) -> Subtask:
    subtask = await _get_subtask_or_404(session, subtask_id)
    changes = subtask_in.model_dump(exclude_unset=True)
    return await subtasks_service.update_subtask(session, subtask, changes)


@router.post("/{subtask_id}/toggle", response_model=SubtaskRead)
async def toggle_subtask(subtask_id: UUID, session: UserSessionDep) -> Subtask:
    subtask = await _get_subtask_or_404(session, subtask_id)
    return await subtasks_service.toggle_subtask(session, subtask)


@router.delete("/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subtask(subtask_id: UUID, session: UserSessionDep) -> Response:
    subtask = await _get_subtask_or_404(session, subtask_id)
    await subtasks_service.delete_subtask(session, subtask)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
