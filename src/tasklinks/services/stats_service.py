"""On-demand dashboard statistics.

Nothing is cached or maintained incrementally: each call aggregates the
owner's rows as they are right now.
"""

from datetime import date, datetime, timezone

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasklinks.access import AccessGuard, Operation, Principal
from tasklinks.models import Category, Task
from tasklinks.models.task import TaskStatus
from tasklinks.schemas.stats import CategoryStatistics, TaskStatistics


def _count_where(condition):
    # COUNT ignores the NULLs produced when the condition is false
    return func.count(case((condition, 1)))


class StatsService:
    """Service for task and category statistics."""

    def __init__(
        self,
        db: AsyncSession,
        principal: Principal,
        *,
        anon_read_grants: bool = True,
    ):
        self.db = db
        self.guard = AccessGuard(principal, anon_read_grants=anon_read_grants)

    async def task_statistics(
        self, owner_id: str | None, today: date | None = None
    ) -> TaskStatistics:
        """Counts by status plus overdue for ``owner_id``'s tasks.

        Overdue means a due date strictly before ``today`` (UTC date by
        default) and a status other than completed. Rows the caller cannot
        see do not count.
        """
        today = today or datetime.now(timezone.utc).date()
        overdue = and_(
            Task.due_date.is_not(None),
            Task.due_date < today,
            Task.status != TaskStatus.COMPLETED.value,
        )

        query = select(
            func.count(Task.id),
            _count_where(Task.status == TaskStatus.PENDING.value),
            _count_where(Task.status == TaskStatus.IN_PROGRESS.value),
            _count_where(Task.status == TaskStatus.COMPLETED.value),
            _count_where(overdue),
        ).where(Task.user_id == owner_id)
        stmt = self.guard.scope(Task, query, Operation.SELECT)

        total, pending, in_progress, completed, overdue_count = (
            await self.db.execute(stmt)
        ).one()

        completion_rate = round(completed / total * 100) if total else 0
        return TaskStatistics(
            total=total,
            pending=pending,
            in_progress=in_progress,
            completed=completed,
            overdue=overdue_count,
            completion_rate=completion_rate,
        )

    async def category_statistics(
        self, owner_id: str | None
    ) -> list[CategoryStatistics]:
        """Per-category task counts, including categories with no tasks."""
        query = (
            select(
                Category.id,
                Category.name,
                func.count(Task.id),
                _count_where(Task.status == TaskStatus.COMPLETED.value),
                _count_where(Task.status == TaskStatus.PENDING.value),
            )
            .select_from(Category)
            .outerjoin(Task, Task.category_id == Category.id)
            .where(Category.user_id == owner_id)
            .group_by(Category.id, Category.name)
            .order_by(Category.name)
        )
        stmt = self.guard.scope(Category, query, Operation.SELECT)

        rows = (await self.db.execute(stmt)).all()
        return [
            CategoryStatistics(
                category_id=category_id,
                name=name,
                task_count=task_count,
                completed_count=completed_count,
                pending_count=pending_count,
            )
            for category_id, name, task_count, completed_count, pending_count in rows
        ]
