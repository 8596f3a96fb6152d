"""
Task status CRUD operations.

Lookup of the status vocabulary and the status history audit trail.

Dependencies: sqlalchemy, car_repair.boundary.db.models
System role: Status lookup persistence
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from car_repair.boundary.db.CRUD.base_crud import BaseCRUD
from car_repair.boundary.db.models.task_status_model import (
    TaskStatusHistoryModel,
    TaskStatusModel,
)


class TaskStatusCRUD(BaseCRUD[TaskStatusModel]):
    """CRUD operations for TaskStatusModel."""

    def __init__(self) -> None:
        super().__init__(TaskStatusModel)

    async def get_name_map(self, session: AsyncSession) -> dict[str, UUID]:
        """Return every seeded status as a name -> id mapping."""
        result = await session.execute(select(TaskStatusModel.name, TaskStatusModel.id))
        return {name: status_id for name, status_id in result.all()}

    async def ensure_names(self, session: AsyncSession, names: Iterable[str]) -> list[str]:
        """
        Insert any missing status names.

        Args:
            session: Async database session
            names: Status names that must exist

        Returns:
            list[str]: Names that were inserted
        """
        existing = await self.get_name_map(session)
        inserted = []
        for name in names:
            if name not in existing:
                session.add(TaskStatusModel(name=name))
                inserted.append(name)
        if inserted:
            await session.flush()
        return inserted

    async def add_history(
        self,
        session: AsyncSession,
        task_id: UUID,
        status_id: UUID,
    ) -> TaskStatusHistoryModel:
        """Record a status transition for a task."""
        entry = TaskStatusHistoryModel(task_id=task_id, status_id=status_id)
        session.add(entry)
        await session.flush()
        return entry


task_status_crud = TaskStatusCRUD()
