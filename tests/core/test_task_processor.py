"""
Test suite for TaskProcessor.

Exercises the processing state machine against an in-memory database
with a mocked analyzer and notifier: preconditions, report persistence,
the completed transition, idempotency and notification isolation.

System role: Verification of the task processing unit
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from car_repair.boundary.db.models import ReportModel, TaskStatusName
from car_repair.core.exceptions import (
    AnalysisError,
    AnalysisFailedError,
    NoImagesError,
    ProcessingErrorKind,
    TaskNotFoundError,
    TaskNotPaidError,
)
from car_repair.core.status_registry import StatusRegistry
from car_repair.core.task_processing.task_processor import TaskProcessor
from car_repair.models.processing import ALREADY_PROCESSED, TERMINAL_STATUS


async def _reports_for(session_factory, task_id: uuid.UUID) -> list[ReportModel]:
    async with session_factory() as session:
        result = await session.execute(select(ReportModel).where(ReportModel.task_id == task_id))
        return list(result.scalars().all())


class TestProcessHappyPath:
    """Test suite for a successful processing attempt."""

    @pytest.mark.asyncio
    async def test_process_should_store_exact_payload_and_complete_task(
        self, task_processor: TaskProcessor, session_factory, make_task, read_status
    ) -> None:
        # Arrange
        task_id = await make_task()

        # Act
        result = await task_processor.process(task_id)

        # Assert
        assert result.success is True
        assert result.skipped is False
        reports = await _reports_for(session_factory, task_id)
        assert len(reports) == 1
        assert reports[0].id == result.report_id
        assert reports[0].data == {"damage_detected": False, "summary": "clean"}
        assert await read_status(task_id) == "completed"

    @pytest.mark.asyncio
    async def test_process_should_send_images_in_angle_order(
        self, task_processor: TaskProcessor, mock_analyzer: AsyncMock, make_task
    ) -> None:
        # Arrange
        task_id = await make_task(image_types=["issue", "back", "front"])

        # Act
        await task_processor.process(task_id)

        # Assert
        images, car_info = mock_analyzer.analyze.await_args.args
        assert [image.type for image in images] == ["front", "back", "issue"]
        assert car_info.brand == "Toyota"
        assert car_info.country_code == "GB"

    @pytest.mark.asyncio
    async def test_process_should_notify_owner_with_report_id(
        self, task_processor: TaskProcessor, mock_notifier: AsyncMock, make_task
    ) -> None:
        # Arrange
        task_id = await make_task(email="owner@example.com")

        # Act
        result = await task_processor.process(task_id)

        # Assert
        owner, report_id = mock_notifier.notify_report_ready.await_args.args
        assert owner.email == "owner@example.com"
        assert report_id == result.report_id
        assert result.to_dict()["notification"]["sent"] is True


class TestProcessIdempotency:
    """Test suite for repeated processing of the same task."""

    @pytest.mark.asyncio
    async def test_process_should_skip_when_report_exists(
        self, task_processor: TaskProcessor, mock_analyzer: AsyncMock, session_factory, make_task
    ) -> None:
        # Arrange
        task_id = await make_task()
        await task_processor.process(task_id)
        mock_analyzer.analyze.reset_mock()

        # Act
        result = await task_processor.process(task_id)

        # Assert
        assert result.skipped is True
        assert result.reason == ALREADY_PROCESSED
        assert result.to_dict() == {"skipped": True, "reason": ALREADY_PROCESSED}
        mock_analyzer.analyze.assert_not_awaited()
        assert len(await _reports_for(session_factory, task_id)) == 1

    @pytest.mark.asyncio
    async def test_process_should_skip_when_report_exists_even_if_unpaid(
        self, task_processor: TaskProcessor, session_factory, make_task
    ) -> None:
        # Arrange
        task_id = await make_task(paid=False)
        async with session_factory() as session:
            session.add(ReportModel(task_id=task_id, data={"damage_detected": True, "summary": "old"}))
            await session.commit()

        # Act
        result = await task_processor.process(task_id)

        # Assert
        assert result.skipped is True

    @pytest.mark.asyncio
    async def test_process_should_skip_when_concurrent_run_stored_report_first(
        self, task_processor: TaskProcessor, mock_analyzer: AsyncMock, session_factory, make_task
    ) -> None:
        # Arrange
        task_id = await make_task()
        outcome = mock_analyzer.analyze.return_value

        async def analyze_and_lose_race(images, car_info):
            async with session_factory() as session:
                session.add(ReportModel(task_id=task_id, data={"damage_detected": False, "summary": "first"}))
                await session.commit()
            return outcome

        mock_analyzer.analyze.side_effect = analyze_and_lose_race

        # Act
        result = await task_processor.process(task_id)

        # Assert
        assert result.skipped is True
        reports = await _reports_for(session_factory, task_id)
        assert [report.data["summary"] for report in reports] == ["first"]


class TestProcessTerminalStatus:
    """Test suite for tasks that can no longer become completed."""

    @pytest.mark.asyncio
    async def test_process_should_skip_task_already_failed(
        self,
        task_processor: TaskProcessor,
        mock_analyzer: AsyncMock,
        mock_notifier: AsyncMock,
        status_registry: StatusRegistry,
        session_factory,
        make_task,
    ) -> None:
        # Arrange
        task_id = await make_task()
        await status_registry.transition(task_id, TaskStatusName.FAILED)

        # Act
        result = await task_processor.process(task_id)

        # Assert
        assert result.to_dict() == {"skipped": True, "reason": TERMINAL_STATUS}
        mock_analyzer.analyze.assert_not_awaited()
        mock_notifier.notify_report_ready.assert_not_awaited()
        assert await _reports_for(session_factory, task_id) == []

    @pytest.mark.asyncio
    async def test_process_should_discard_report_when_task_failed_during_analysis(
        self,
        task_processor: TaskProcessor,
        mock_analyzer: AsyncMock,
        mock_notifier: AsyncMock,
        status_registry: StatusRegistry,
        session_factory,
        make_task,
        read_status,
    ) -> None:
        # Arrange
        task_id = await make_task()
        outcome = mock_analyzer.analyze.return_value

        async def analyze_while_other_job_fails_task(images, car_info):
            await status_registry.transition(task_id, TaskStatusName.FAILED)
            return outcome

        mock_analyzer.analyze.side_effect = analyze_while_other_job_fails_task

        # Act
        result = await task_processor.process(task_id)

        # Assert
        assert result.skipped is True
        assert result.reason == TERMINAL_STATUS
        assert result.report_id is None
        assert await read_status(task_id) == "failed"
        assert await _reports_for(session_factory, task_id) == []
        mock_notifier.notify_report_ready.assert_not_awaited()


class TestProcessFailures:
    """Test suite for tagged processing failures."""

    @pytest.mark.asyncio
    async def test_process_should_raise_not_found_for_unknown_task(self, task_processor: TaskProcessor) -> None:
        # Act
        with pytest.raises(TaskNotFoundError) as exc_info:
            await task_processor.process(uuid.uuid4())

        # Assert
        assert exc_info.value.kind == ProcessingErrorKind.NOT_FOUND
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_process_should_raise_retryable_not_paid(
        self, task_processor: TaskProcessor, mock_analyzer: AsyncMock, make_task
    ) -> None:
        # Arrange
        task_id = await make_task(paid=False)

        # Act
        with pytest.raises(TaskNotPaidError) as exc_info:
            await task_processor.process(task_id)

        # Assert
        assert exc_info.value.retryable is True
        mock_analyzer.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_process_should_raise_fatal_no_images(
        self, task_processor: TaskProcessor, make_task
    ) -> None:
        # Arrange
        task_id = await make_task(image_types=[])

        # Act
        with pytest.raises(NoImagesError) as exc_info:
            await task_processor.process(task_id)

        # Assert
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("retryable", [True, False])
    async def test_process_should_carry_adapter_retryability(
        self,
        task_processor: TaskProcessor,
        mock_analyzer: AsyncMock,
        session_factory,
        make_task,
        read_status,
        retryable: bool,
    ) -> None:
        # Arrange
        task_id = await make_task()
        mock_analyzer.analyze.side_effect = AnalysisError(
            "model said no", failure_class="timeout", reason_code="model_timeout", retryable=retryable
        )

        # Act
        with pytest.raises(AnalysisFailedError) as exc_info:
            await task_processor.process(task_id)

        # Assert
        assert exc_info.value.retryable is retryable
        assert exc_info.value.failure_class == "timeout"
        assert await _reports_for(session_factory, task_id) == []
        assert await read_status(task_id) == "processing"


class TestNotificationIsolation:
    """Notification problems never fail a completed task."""

    @pytest.mark.asyncio
    async def test_process_should_succeed_when_notifier_raises(
        self, task_processor: TaskProcessor, mock_notifier: AsyncMock, session_factory, make_task, read_status
    ) -> None:
        # Arrange
        task_id = await make_task()
        mock_notifier.notify_report_ready.side_effect = RuntimeError("smtp down")

        # Act
        result = await task_processor.process(task_id)

        # Assert
        assert result.success is True
        assert result.notification == {"sent": False, "reason": "delivery_failed"}
        assert await read_status(task_id) == "completed"

    @pytest.mark.asyncio
    async def test_process_should_work_with_real_dispatcher_when_owner_has_no_email(
        self, session_factory, mock_analyzer: AsyncMock, status_registry, make_task
    ) -> None:
        # Arrange
        from car_repair.configs.notification import NotificationSettings
        from car_repair.core.notification.notification_dispatcher import NotificationDispatcher

        mailer = AsyncMock()
        dispatcher = NotificationDispatcher(session_factory, mailer, NotificationSettings())
        processor = TaskProcessor(session_factory, mock_analyzer, dispatcher, status_registry)
        task_id = await make_task(email=None)

        # Act
        result = await processor.process(task_id)

        # Assert
        assert result.success is True
        assert result.notification["sent"] is False
        mailer.send.assert_not_awaited()
