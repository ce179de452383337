from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, status

from ..auth import require_bearer_token
from ..errors import ValidationError
from ..repositories import Repository, get_repository
from ..schemas import (
    ErrorResponse,
    MessageResponse,
    TaskListResponse,
    TaskOut,
    TaskResponse,
)
from ..service import MAX_TASK_ID, TaskService, is_ascii_digits
from ..utils import handler_boundary

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
    dependencies=[Depends(require_bearer_token)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token (when auth is enabled)"},
        500: {"model": ErrorResponse, "description": "Store or unexpected failure"},
    },
)


def get_task_service(repo: Repository = Depends(get_repository)) -> TaskService:
    """
    Dependency building the validating service over the configured repository.
    """
    return TaskService(repo)


def _parse_if_match(value: Optional[str]) -> Optional[int]:
    """Read a version from an If-Match header such as ``"3"`` or ``W/"3"``."""
    if value is None:
        return None
    raw = value.strip()
    if raw.startswith("W/"):
        raw = raw[2:]
    raw = raw.strip('"')
    if not is_ascii_digits(raw) or not 0 < int(raw) <= MAX_TASK_ID:
        raise ValidationError("If-Match must carry a positive task version")
    return int(raw)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListResponse,
    summary="List Tasks",
    description="Return every task, newest first.",
    responses={200: {"description": "Tasks retrieved"}},
)
def list_tasks(service: TaskService = Depends(get_task_service)) -> TaskListResponse:
    """
    List all tasks ordered by creation time, newest first.
    """
    with handler_boundary("Error while retrieving tasks"):
        tasks = service.list_tasks()
    return TaskListResponse(
        data=[TaskOut.model_validate(t) for t in tasks],
        message=f"{len(tasks)} task(s) found",
    )


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task from a title, a description and an optional due date.",
    responses={
        201: {"description": "Task created"},
        400: {"model": ErrorResponse, "description": "Missing/blank title or description, or invalid dueDate"},
    },
)
def create_task(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """
    Create a task. The title and description are trimmed; the task starts not completed.
    """
    with handler_boundary("Error while creating the task"):
        created = service.create_task(payload or {})
    return TaskResponse(data=TaskOut.model_validate(created), message="Task created successfully")


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get Task",
    description="Get a single task by id.",
    responses={
        200: {"description": "Task found"},
        400: {"model": ErrorResponse, "description": "Invalid task id"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
def get_task(task_id: str, service: TaskService = Depends(get_task_service)) -> TaskResponse:
    """
    Retrieve a single task by its id.
    """
    with handler_boundary("Error while retrieving the task"):
        task = service.get_task(task_id)
    return TaskResponse(data=TaskOut.model_validate(task), message="Task found")


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Update Task",
    description=(
        "Partially update a task. Only fields present in the body change; "
        "`completed: false` clears the flag and `dueDate: null` clears the due date. "
        "Pass `version` in the body or an `If-Match` header to reject stale writes."
    ),
    responses={
        200: {"description": "Task updated"},
        400: {"model": ErrorResponse, "description": "Invalid id, invalid field, or nothing to update"},
        404: {"model": ErrorResponse, "description": "Task not found"},
        409: {"model": ErrorResponse, "description": "Version mismatch"},
    },
)
def update_task(
    task_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    if_match: Optional[str] = Header(default=None),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """
    Partial update of a task.
    """
    with handler_boundary("Error while updating the task"):
        updated = service.update_task(
            task_id, payload or {}, expected_version=_parse_if_match(if_match)
        )
    return TaskResponse(data=TaskOut.model_validate(updated), message="Task updated successfully")


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    summary="Delete Task",
    description="Delete a task by id. The confirmation message names the deleted task.",
    responses={
        200: {"description": "Task deleted"},
        400: {"model": ErrorResponse, "description": "Invalid task id"},
        404: {"model": ErrorResponse, "description": "Task not found"},
    },
)
def delete_task(task_id: str, service: TaskService = Depends(get_task_service)) -> MessageResponse:
    """
    Hard-delete a task.
    """
    with handler_boundary("Error while deleting the task"):
        title = service.delete_task(task_id)
    return MessageResponse(message=f'Task "{title}" deleted successfully')
