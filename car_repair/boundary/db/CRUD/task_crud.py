"""
Task CRUD operations.

Graph loading for the task processor, the payment flag and guarded
status transitions.

Dependencies: sqlalchemy, car_repair.boundary.db.models
System role: Task persistence operations
"""

from typing import Collection
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from car_repair.boundary.db.CRUD.base_crud import BaseCRUD
from car_repair.boundary.db.models.image_model import ImageModel
from car_repair.boundary.db.models.task_model import TaskModel


class TaskCRUD(BaseCRUD[TaskModel]):
    """CRUD operations for TaskModel."""

    def __init__(self) -> None:
        super().__init__(TaskModel)

    async def get_with_graph(self, session: AsyncSession, task_id: UUID) -> TaskModel | None:
        """
        Load a task with owner, images (and their types), reports and status.

        Args:
            session: Async database session
            task_id: Task UUID

        Returns:
            TaskModel with relationships eagerly loaded, or None
        """
        stmt = (
            select(TaskModel)
            .where(TaskModel.id == task_id)
            .options(
                selectinload(TaskModel.owner),
                selectinload(TaskModel.images).selectinload(ImageModel.image_type),
                selectinload(TaskModel.reports),
                selectinload(TaskModel.current_status),
            )
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_paid(self, session: AsyncSession, task_id: UUID) -> bool:
        """
        Set is_paid on an unpaid task.

        Returns:
            True if the flag changed, False if already paid or missing
        """
        stmt = (
            update(TaskModel)
            .where(TaskModel.id == task_id, TaskModel.is_paid.is_(False))
            .values(is_paid=True)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def set_status_if_current_in(
        self,
        session: AsyncSession,
        task_id: UUID,
        status_id: UUID,
        allowed_current_ids: Collection[UUID],
        allow_unset: bool,
    ) -> bool:
        """
        Conditionally move a task to a new status.

        The update applies only when the task's current status is one of
        `allowed_current_ids` (or NULL when `allow_unset`), so illegal
        transitions are rejected atomically.

        Returns:
            True if the row was updated
        """
        conditions = []
        if allowed_current_ids:
            conditions.append(TaskModel.current_status_id.in_(list(allowed_current_ids)))
        if allow_unset:
            conditions.append(TaskModel.current_status_id.is_(None))
        if not conditions:
            return False

        stmt = (
            update(TaskModel)
            .where(TaskModel.id == task_id, or_(*conditions))
            .values(current_status_id=status_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0


task_crud = TaskCRUD()
