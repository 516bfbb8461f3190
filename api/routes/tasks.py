"""
Task management API routes.

Provides CRUD operations for tasks plus completion. Engine and store errors
propagate to the exception handlers registered in api.main, which turn them
into ``{"error": ...}`` responses.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dependencies import get_store
from ..schemas import (
    TaskCreateRequest, TaskUpdateRequest, TaskResponse, TaskListResponse,
    TaskCreatedResponse, ErrorResponse,
)
from ..store import DEFAULT_LIST_LIMIT, TaskStore

router = APIRouter(prefix="/api", tags=["tasks"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def _require_id(task_id: Optional[str]) -> str:
    if task_id is None or not str(task_id).strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Task identifier is required"
        )
    return str(task_id).strip()


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(store: TaskStore = Depends(get_store)) -> TaskListResponse:
    """
    List tasks ordered by date, earliest first.

    Returns at most 50 tasks.
    """
    tasks = store.list(limit=DEFAULT_LIST_LIMIT)
    return TaskListResponse(tasks=[TaskResponse.model_validate(task) for task in tasks])


@router.get("/task", response_model=TaskResponse, responses=_ERRORS)
def get_task(
    task_id: Optional[str] = Query(None, alias="id", description="Task identifier"),
    store: TaskStore = Depends(get_store),
) -> TaskResponse:
    """Get a single task by ID."""
    task = store.get(_require_id(task_id))
    return TaskResponse.model_validate(task)


@router.post("/task", response_model=TaskCreatedResponse,
             status_code=status.HTTP_201_CREATED, responses=_ERRORS)
def create_task(
    task_request: TaskCreateRequest,
    store: TaskStore = Depends(get_store),
) -> TaskCreatedResponse:
    """
    Create a new task.

    A missing date means today. A past date is moved to today for one-shot
    tasks and to the next occurrence for recurring ones.
    """
    task_id = store.insert(
        title=task_request.title or "",
        date=task_request.date or "",
        comment=task_request.comment or "",
        repeat=task_request.repeat or "",
    )
    return TaskCreatedResponse(id=task_id)


@router.put("/task", responses=_ERRORS)
def update_task(
    task_update: TaskUpdateRequest,
    store: TaskStore = Depends(get_store),
) -> dict:
    """Replace the fields of an existing task. Date and rule are re-validated."""
    store.update(
        _require_id(task_update.id),
        title=task_update.title or "",
        date=task_update.date or "",
        comment=task_update.comment or "",
        repeat=task_update.repeat or "",
    )
    return {}


@router.delete("/task", responses=_ERRORS)
def delete_task(
    task_id: Optional[str] = Query(None, alias="id", description="Task identifier"),
    store: TaskStore = Depends(get_store),
) -> dict:
    store.delete(_require_id(task_id))
    return {}


@router.post("/task/done", responses=_ERRORS)
def complete_task(
    task_id: Optional[str] = Query(None, alias="id", description="Task identifier"),
    store: TaskStore = Depends(get_store),
) -> dict:
    """
    Mark a task as done.

    One-shot tasks are deleted; recurring tasks move to their next occurrence.
    """
    store.complete(_require_id(task_id))
    return {}
