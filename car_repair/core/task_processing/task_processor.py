"""
Task processor.

Runs one processing attempt for a task: load, check preconditions,
analyze, persist the report together with the `completed` transition,
then notify. Failures are raised as tagged ProcessingError subclasses
whose `retryable` flag drives the worker's retry policy.

Dependencies: sqlalchemy, car_repair.boundary.db, car_repair.core
System role: Orchestration unit and status state machine writer
"""

import logging
from typing import Protocol
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from car_repair.boundary.db.CRUD.report_crud import report_crud
from car_repair.boundary.db.CRUD.task_crud import task_crud
from car_repair.boundary.db.models.task_model import TaskModel
from car_repair.boundary.db.models.task_status_model import TaskStatusName
from car_repair.core.exceptions import (
    AnalysisError,
    AnalysisFailedError,
    NoImagesError,
    ReportPersistenceError,
    TaskNotFoundError,
    TaskNotPaidError,
)
from car_repair.core.notification.notification_dispatcher import NotificationResult
from car_repair.core.status_registry import StatusRegistry
from car_repair.models.analysis import AnalysisOutcome, CarInfo, ImageRef
from car_repair.models.processing import (
    ALREADY_PROCESSED,
    TERMINAL_STATUS,
    OwnerContact,
    ProcessingResult,
    TaskSnapshot,
)
from car_repair.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

# Photos are sent to the model in this order.
IMAGE_TYPE_ORDER: tuple[str, ...] = ("front", "back", "left", "right", "issue", "other")

TERMINAL_STATUSES = frozenset({TaskStatusName.COMPLETED.value, TaskStatusName.FAILED.value})


class ImageAnalyzer(Protocol):
    async def analyze(self, images: list[ImageRef], car_info: CarInfo) -> AnalysisOutcome: ...


class ReportNotifier(Protocol):
    async def notify_report_ready(self, owner: OwnerContact, report_id: UUID) -> NotificationResult: ...


def _image_order(ref: ImageRef) -> int:
    if ref.type in IMAGE_TYPE_ORDER:
        return IMAGE_TYPE_ORDER.index(ref.type)
    return len(IMAGE_TYPE_ORDER)


def build_snapshot(task: TaskModel) -> TaskSnapshot:
    """
    Freeze a loaded task graph into a TaskSnapshot.

    Images without a type are labelled "unknown" and sent last.
    """
    images = [
        ImageRef(
            type=image.image_type.name if image.image_type is not None else "unknown",
            path=image.local_path,
        )
        for image in task.images
    ]
    images.sort(key=_image_order)

    owner = task.owner
    car_info = CarInfo(
        brand=task.brand or "Unknown",
        model=task.model or "Unknown",
        year=task.year,
        mileage=task.mileage,
        description=task.description,
        country_code=task.country_code,
        user_currency=owner.currency if owner is not None else None,
        user_language=owner.language if owner is not None else None,
    )
    return TaskSnapshot(
        task_id=task.id,
        is_paid=task.is_paid,
        has_report=bool(task.reports),
        status=task.current_status.name if task.current_status is not None else None,
        images=tuple(images),
        car_info=car_info,
        owner=OwnerContact(user_id=owner.id, email=owner.email, name=owner.name) if owner else None,
    )


class TaskProcessor:
    """
    Processes one task per call.

    Safe to call repeatedly for the same task: an existing report short
    circuits to a skipped result, and the unique constraint on
    reports.task_id turns a lost race into the same skipped result.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        analyzer: ImageAnalyzer,
        notifier: ReportNotifier,
        status_registry: StatusRegistry,
    ) -> None:
        """
        Initialize the processor.

        Args:
            session_factory: Async session factory
            analyzer: Image analysis adapter
            notifier: Report-ready notifier
            status_registry: Status resolution and transitions
        """
        self._session_factory = session_factory
        self._analyzer = analyzer
        self._notifier = notifier
        self._statuses = status_registry

    async def process(self, task_id: UUID) -> ProcessingResult:
        """
        Run one processing attempt.

        Args:
            task_id: Task to process

        Returns:
            ProcessingResult: completed with report id, or skipped

        Raises:
            TaskNotFoundError: Task missing (not retryable)
            TaskNotPaidError: Task not paid yet (retryable)
            NoImagesError: Task has no photos (not retryable)
            AnalysisFailedError: Adapter failed (retryable per adapter)
            ReportPersistenceError: Report write failed (retryable)
        """
        snapshot = await self._load_snapshot(task_id)

        if snapshot.has_report:
            logger.info(
                f"{__name__}:process - Task already has a report, skipping",
                extra={"task_id": str(task_id)},
            )
            return ProcessingResult.already_processed()
        if snapshot.status in TERMINAL_STATUSES:
            logger.info(
                f"{__name__}:process - Task is in a terminal status, skipping",
                extra={"task_id": str(task_id), "status": snapshot.status},
            )
            return ProcessingResult.skipped_for(TERMINAL_STATUS)
        if not snapshot.is_paid:
            raise TaskNotPaidError(task_id)
        if not snapshot.images:
            raise NoImagesError(task_id)

        await self._mark_processing(task_id)

        try:
            outcome = await self._analyzer.analyze(list(snapshot.images), snapshot.car_info)
        except AnalysisError as e:
            raise AnalysisFailedError(task_id, e) from e

        report_id, skip_reason = await self._persist_report(task_id, outcome)
        if report_id is None:
            return ProcessingResult.skipped_for(skip_reason)

        logger.info(
            f"{__name__}:process - Report stored",
            extra={"task_id": str(task_id), "report_id": str(report_id), "model": outcome.model_used},
        )

        notification = await self._notify(snapshot, report_id)
        return ProcessingResult.completed(report_id, notification)

    async def _load_snapshot(self, task_id: UUID) -> TaskSnapshot:
        async with self._session_factory() as session:
            task = await task_crud.get_with_graph(session, task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            return build_snapshot(task)

    async def _mark_processing(self, task_id: UUID) -> None:
        # Best effort: a missed intermediate status must not block analysis.
        try:
            await self._statuses.transition(task_id, TaskStatusName.PROCESSING)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_mark_processing - Could not set processing status",
                e,
                task_id=task_id,
            )

    async def _persist_report(self, task_id: UUID, outcome: AnalysisOutcome) -> tuple[UUID | None, str | None]:
        """
        Store the report and move the task to completed in one transaction.

        Nothing is stored when the task can no longer become completed.

        Returns:
            (report id, None) when stored, or (None, skip reason) when
            another run stored a report first or the task reached a
            terminal status meanwhile
        """
        async with self._session_factory() as session:
            try:
                report = await report_crud.create(session, task_id=task_id, data=outcome.payload)
                applied = await self._statuses.transition_in_session(session, task_id, TaskStatusName.COMPLETED)
                if not applied:
                    await session.rollback()
                    logger.warning(
                        f"{__name__}:_persist_report - Task can no longer complete, report discarded",
                        extra={"task_id": str(task_id)},
                    )
                    return None, TERMINAL_STATUS
                await session.commit()
                return report.id, None
            except IntegrityError:
                await session.rollback()
                if await report_crud.get_by_task_id(session, task_id) is not None:
                    logger.info(
                        f"{__name__}:_persist_report - Report already stored by another run",
                        extra={"task_id": str(task_id)},
                    )
                    return None, ALREADY_PROCESSED
                raise ReportPersistenceError(task_id, "integrity error without existing report")
            except SQLAlchemyError as e:
                await session.rollback()
                raise ReportPersistenceError(task_id, f"{type(e).__name__}: {e}") from e

    async def _notify(self, snapshot: TaskSnapshot, report_id: UUID) -> dict:
        if snapshot.owner is None:
            return {}
        try:
            result = await self._notifier.notify_report_ready(snapshot.owner, report_id)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_notify - Notification failed, report is still available",
                e,
                task_id=snapshot.task_id,
                report_id=report_id,
            )
            return {"sent": False, "reason": "delivery_failed"}
        return result.to_dict()
