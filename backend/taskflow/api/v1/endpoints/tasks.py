from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Response, status

from taskflow.api.deps import CurrentUser, UserSessionDep
from taskflow.core.messages import CategoryMessages, TaskMessages
from taskflow.models.task import Task, TaskPriority, TaskStatus
from taskflow.schemas.subtask import SubtaskCreate, SubtaskRead
from taskflow.schemas.task import TaskCreate, TaskRead, TaskSort, TaskUpdate
from taskflow.services import subtasks as subtasks_service
from taskflow.services import tasks as tasks_service

router = APIRouter()


async def _get_task_or_404(session: UserSessionDep, task_id: UUID, user_id: UUID) -> Task:
    task = await tasks_service.get_owned_task(session, task_id=task_id, user_id=user_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TaskMessages.NOT_FOUND)
    return task


def _category_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CategoryMessages.NOT_FOUND)


@router.get("/", response_model=List[TaskRead])
async def list_tasks(
    current_user: CurrentUser,
    session: UserSessionDep,
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    priority: Optional[TaskPriority] = None,
    category_id: Optional[UUID] = None,
    starred: Optional[bool] = None,
    tag: Optional[str] = None,
    search: Optional[str] = Query(default=None, max_length=200),
    sort: TaskSort = TaskSort.created_at,
    limit: int = Query(default=tasks_service.DEFAULT_PAGE_SIZE, ge=1, le=tasks_service.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> List[Task]:
    return await tasks_service.list_tasks(
        session,
        user_id=current_user.id,
        status=status_filter,
        priority=priority,
        category_id=category_id,
        starred=starred,
        tag=tag,
        search=search,
        sort=sort,
        limit=limit,
        offset=offset,
    )


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(task_in: TaskCreate, current_user: CurrentUser, session: UserSessionDep) -> Task:
    try:
        return await tasks_service.create_task(session, user_id=current_user.id, task_in=task_in)
    except tasks_service.CategoryNotVisible as exc:
        raise _category_not_found() from exc


@router.get("/{task_id}", response_model=TaskRead)
async def read_task(task_id: UUID, current_user: CurrentUser, session: UserSessionDep) -> Task:
    return await _get_task_or_404(session, task_id, current_user.id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: UUID,
    task_in: TaskUpdate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> Task:
    task = await _get_task_or_404(session, task_id, current_user.id)
    try:
        return await tasks_service.update_task(session, task, task_in.model_dump(exclude_unset=True))
    except tasks_service.CategoryNotVisible as exc:
        raise _category_not_found() from exc


@router.post("/{task_id}/star", response_model=TaskRead)
async def toggle_star(task_id: UUID, current_user: CurrentUser, session: UserSessionDep) -> Task:
    task = await _get_task_or_404(session, task_id, current_user.id)
    return await tasks_service.toggle_star(session, task)


@router.post("/{task_id}/toggle-complete", response_model=TaskRead)
async def toggle_complete(task_id: UUID, current_user: CurrentUser, session: UserSessionDep) -> Task:
    task = await _get_task_or_404(session, task_id, current_user.id)
    return await tasks_service.toggle_complete(session, task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: UUID, current_user: CurrentUser, session: UserSessionDep) -> Response:
    task = await _get_task_or_404(session, task_id, current_user.id)
    await tasks_service.delete_task(session, task)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{task_id}/subtasks", response_model=List[SubtaskRead])
async def list_subtasks(task_id: UUID, current_user: CurrentUser, session: UserSessionDep):
    task = await _get_task_or_404(session, task_id, current_user.id)
    return await subtasks_service.list_subtasks(session, task.id)


@router.post("/{task_id}/subtasks", response_model=SubtaskRead, status_code=status.HTTP_201_CREATED)
async def create_subtask(
    task_id: UUID,
    subtask_in: SubtaskCreate,
    current_user: CurrentUser,
    session: UserSessionDep,
):
    task = await _get_task_or_404(session, task_id, current_user.id)
    return await subtasks_service.create_subtask(session, task=task, title=subtask_in.title)
