"""
Test suite for report and task CRUD operations against SQLite.

Covers the JSON payload round trip, the one-report-per-task constraint,
the conditional payment flag.

System role: Verification of report persistence
"""

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from car_repair.boundary.db.CRUD.report_crud import ReportCRUD, report_crud
from car_repair.boundary.db.CRUD.task_crud import task_crud
from car_repair.boundary.db.models import ReportModel

NESTED_PAYLOAD = {
    "damage_detected": True,
    "damages": [{"location": "rear door", "severity": "moderate", "estimated_labor_cost": 240.5}],
    "recommendations": ["Repaint panel"],
    "summary": "Dent on the rear door",
    "currency": "EUR",
}


class TestReportCRUDInit:
    """Test suite for ReportCRUD initialization."""

    def test_init_should_set_model_to_report_model(self) -> None:
        # Act
        crud = ReportCRUD()

        # Assert
        assert crud.model == ReportModel


class TestReportPersistence:
    """Test suite for report rows."""

    @pytest.mark.asyncio
    async def test_create_should_round_trip_json_payload(self, test_async_db, make_task) -> None:
        # Arrange
        task_id = await make_task()

        # Act
        report = await report_crud.create(test_async_db, task_id=task_id, data=NESTED_PAYLOAD)
        await test_async_db.commit()
        test_async_db.expire_all()
        fetched = await report_crud.get_by_task_id(test_async_db, task_id)

        # Assert
        assert fetched.id == report.id
        assert fetched.data == NESTED_PAYLOAD
        assert fetched.created_at is not None

    @pytest.mark.asyncio
    async def test_second_report_for_task_should_violate_unique_constraint(
        self, test_async_db, make_task
    ) -> None:
        # Arrange
        task_id = await make_task()
        await report_crud.create(test_async_db, task_id=task_id, data={"damage_detected": False, "summary": "a"})
        await test_async_db.commit()

        # Act / Assert
        with pytest.raises(IntegrityError):
            await report_crud.create(test_async_db, task_id=task_id, data={"damage_detected": False, "summary": "b"})
        await test_async_db.rollback()
        count = await test_async_db.scalar(
            select(func.count()).select_from(ReportModel).where(ReportModel.task_id == task_id)
        )
        assert count == 1

    @pytest.mark.asyncio
    async def test_get_by_task_id_should_return_none_without_report(self, test_async_db) -> None:
        # Act / Assert
        assert await report_crud.get_by_task_id(test_async_db, uuid.uuid4()) is None


class TestTaskCRUDMarkPaid:
    """Test suite for TaskCRUD.mark_paid()."""

    @pytest.mark.asyncio
    async def test_mark_paid_should_only_flip_once(self, test_async_db, make_task) -> None:
        # Arrange
        task_id = await make_task(paid=False)

        # Act
        first = await task_crud.mark_paid(test_async_db, task_id)
        second = await task_crud.mark_paid(test_async_db, task_id)

        # Assert
        assert first is True
        assert second is False
