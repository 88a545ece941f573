"""Dashboard statistics endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.api.auth import RequireUser
from tasklinks.config import get_settings
from tasklinks.database import get_db
from tasklinks.schemas.stats import CategoryStatistics, TaskStatistics
from tasklinks.services.stats_service import StatsService

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/tasks", response_model=TaskStatistics)
async def task_statistics(
    principal: RequireUser,
    db: AsyncSession = Depends(get_db),
):
    """Task counts by status plus overdue for the caller."""
    service = StatsService(db, principal, anon_read_grants=get_settings().anon_read_grants)
    return await service.task_statistics(principal.user_id)


@router.get("/categories", response_model=list[CategoryStatistics])
async def category_statistics(
    principal: RequireUser,
    db: AsyncSession = Depends(get_db),
):
    """Task counts for every category of the caller, ordered by name."""
    service = StatsService(db, principal, anon_read_grants=get_settings().anon_read_grants)
    return await service.category_statistics(principal.user_id)
