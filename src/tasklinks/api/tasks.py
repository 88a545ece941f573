"""Task API endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.api.auth import CurrentPrincipal
from tasklinks.api.limits import default_rate_limit, limiter
from tasklinks.config import get_settings
from tasklinks.database import get_db
from tasklinks.errors import NotFoundError
from tasklinks.models.task import TaskPriority, TaskStatus
from tasklinks.schemas.task import (
    BulkDelete,
    BulkResult,
    BulkStatusUpdate,
    SortDirection,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskSortField,
    TaskUpdate,
)
from tasklinks.services.task_service import TaskService, TaskValidationError

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _service(db: AsyncSession, principal) -> TaskService:
    return TaskService(db, principal, anon_read_grants=get_settings().anon_read_grants)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    principal: CurrentPrincipal,
    status_in: list[TaskStatus] | None = Query(None, alias="status"),
    priority_in: list[TaskPriority] | None = Query(None, alias="priority"),
    category_id: list[str] | None = Query(None),
    search: str | None = None,
    due_from: date | None = None,
    due_to: date | None = None,
    sort: TaskSortField = TaskSortField.CREATED_AT,
    direction: SortDirection = SortDirection.DESC,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's tasks with optional filtering and sorting."""
    tasks, total = await _service(db, principal).get_all(
        status=status_in,
        priority=priority_in,
        category_ids=category_id,
        search=search,
        due_from=due_from,
        due_to=due_to,
        sort=sort,
        direction=direction,
        page=page,
        page_size=page_size,
    )
    return TaskListResponse(
        items=[TaskResponse.model_validate(t) for t in tasks],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_rate_limit)
async def create_task(
    request: Request,
    data: TaskCreate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Create a new task."""
    try:
        task = await _service(db, principal).create(data)
    except TaskValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )
    return TaskResponse.model_validate(task)


@router.post("/bulk/status", response_model=BulkResult)
@limiter.limit(default_rate_limit)
async def bulk_update_status(
    request: Request,
    data: BulkStatusUpdate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Set one status on several tasks; nothing changes if any task is missing."""
    try:
        affected = await _service(db, principal).bulk_update_status(
            data.task_ids, data.status
        )
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message,
        )
    return BulkResult(affected=affected)


@router.post("/bulk/delete", response_model=BulkResult)
@limiter.limit(default_rate_limit)
async def bulk_delete(
    request: Request,
    data: BulkDelete,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Delete several tasks; nothing is deleted if any task is missing."""
    try:
        affected = await _service(db, principal).bulk_delete(data.task_ids)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message,
        )
    return BulkResult(affected=affected)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Get a single task by ID."""
    task = await _service(db, principal).get_by_id(task_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return TaskResponse.model_validate(task)


async def _update_task_impl(
    task_id: str,
    data: TaskUpdate,
    principal,
    db: AsyncSession,
) -> TaskResponse:
    """Shared implementation for PUT and PATCH task updates."""
    try:
        task = await _service(db, principal).update(task_id, data)
    except TaskValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        )
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskResponse)
@limiter.limit(default_rate_limit)
async def update_task(
    request: Request,
    task_id: str,
    data: TaskUpdate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Update a task (full update)."""
    return await _update_task_impl(task_id, data, principal, db)


@router.patch("/{task_id}", response_model=TaskResponse)
@limiter.limit(default_rate_limit)
async def patch_task(
    request: Request,
    task_id: str,
    data: TaskUpdate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Partially update a task (only specified fields are modified)."""
    return await _update_task_impl(task_id, data, principal, db)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(default_rate_limit)
async def delete_task(
    request: Request,
    task_id: str,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
):
    """Delete a task."""
    deleted = await _service(db, principal).delete(task_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
