"""
Report CRUD operations.

Dependencies: sqlalchemy, car_repair.boundary.db.models
System role: Report persistence operations
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from car_repair.boundary.db.CRUD.base_crud import BaseCRUD
from car_repair.boundary.db.models.report_model import ReportModel


class ReportCRUD(BaseCRUD[ReportModel]):
    """CRUD operations for ReportModel."""

    def __init__(self) -> None:
        super().__init__(ReportModel)

    async def get_by_task_id(self, session: AsyncSession, task_id: UUID) -> ReportModel | None:
        """Return the task's report, if one has been produced."""
        result = await session.execute(
            select(ReportModel).where(ReportModel.task_id == task_id)
        )
        return result.scalar_one_or_none()


report_crud = ReportCRUD()
