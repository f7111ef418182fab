from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..errors import ValidationError
from ..repositories import Repository, get_repository
from ..schemas import ErrorResponse, TaskCreate, TaskOut, TaskUpdate

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    500: {"model": ErrorResponse, "description": "Storage error"},
}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description="Return every task in creation order. A missing or unreadable store reads as an empty list.",
    responses={200: {"description": "Tasks retrieved"}, 500: _ERRORS[500]},
)
def list_tasks(repo: Repository = Depends(get_repository)) -> List[TaskOut]:
    return [TaskOut(**t) for t in repo.list()]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Append a new, not yet completed task. The title is trimmed and must not be empty.",
    responses={201: {"description": "Task created"}, **_ERRORS},
)
def create_task(payload: TaskCreate, repo: Repository = Depends(get_repository)) -> TaskOut:
    return TaskOut(**repo.create(payload.title))


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=TaskOut,
    summary="Update Task",
    description="Set the completion flag of the task with the given id.",
    responses={
        200: {"description": "Task updated"},
        404: {"model": ErrorResponse, "description": "Task not found"},
        **_ERRORS,
    },
)
def update_task(payload: TaskUpdate, repo: Repository = Depends(get_repository)) -> TaskOut:
    return TaskOut(**repo.update(payload.id, payload.completed))


# PUBLIC_INTERFACE
@router.delete(
    "",
    response_model=TaskOut,
    summary="Delete Task",
    description="Remove the task identified by the `id` query parameter and return it.",
    responses={
        200: {"description": "Task deleted"},
        404: {"model": ErrorResponse, "description": "Task not found"},
        **_ERRORS,
    },
)
def delete_task(
    id: Optional[str] = Query(None, description="Identifier of the task to delete"),
    repo: Repository = Depends(get_repository),
) -> TaskOut:
    if not id:
        raise ValidationError("id query parameter is required")
    return TaskOut(**repo.delete(id))
