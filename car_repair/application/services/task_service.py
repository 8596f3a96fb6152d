"""
Task service orchestrator.

Payment confirmation (direct call or checkout webhook) and task status
reads for the HTTP surface. Confirming payment sets `is_paid` and
enqueues the processing job in the same transaction.

Dependencies: sqlalchemy, car_repair.boundary.db.CRUD, car_repair.core.job_queue
System role: Entry point from payment signals into the processing pipeline
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from car_repair.boundary.db.CRUD.report_crud import report_crud
from car_repair.boundary.db.CRUD.task_crud import task_crud
from car_repair.core.exceptions import TaskLookupError
from car_repair.core.job_queue import DurableJobQueue
from car_repair.models.api import PaymentConfirmationResponse, TaskStatusResponse

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def task_id_from_checkout_event(data: dict[str, Any]) -> UUID | None:
    """
    Extract the task id from a checkout-completed event body.

    Looks at `object.metadata.task_id`, then `object.client_reference_id`.

    Returns:
        UUID, or None when absent or malformed
    """
    session_object = data.get("object") or {}
    candidates = [
        (session_object.get("metadata") or {}).get("task_id"),
        session_object.get("client_reference_id"),
    ]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return UUID(str(candidate))
        except ValueError:
            logger.warning(
                f"{__name__}:task_id_from_checkout_event - Malformed task id",
                extra={"candidate": str(candidate)[:64]},
            )
    return None


class TaskService:
    """
    Task service orchestrator.

    Coordinates task payment state and job enqueueing.
    """

    def __init__(self, db: AsyncSession, queue: DurableJobQueue) -> None:
        """
        Initialize task service.

        Args:
            db: AsyncSession for database operations
            queue: Durable job queue
        """
        self.db = db
        self.queue = queue

    async def confirm_payment(self, task_id: UUID, source: str = "direct") -> PaymentConfirmationResponse:
        """
        Mark a task paid and enqueue its processing job.

        Idempotent: a task that is already paid is not enqueued again.

        Args:
            task_id: Task UUID
            source: Where the confirmation came from ("direct", "webhook")

        Returns:
            PaymentConfirmationResponse

        Raises:
            TaskLookupError: Task does not exist
        """
        task = await task_crud.get_by_id(self.db, task_id)
        if task is None:
            raise TaskLookupError(task_id)

        try:
            newly_paid = await task_crud.mark_paid(self.db, task_id)
            job_id = None
            if newly_paid:
                handle = await self.queue.enqueue_in_session(self.db, task_id)
                job_id = handle.job_id
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"{__name__}:confirm_payment - Payment confirmed",
            extra={
                "task_id": str(task_id),
                "source": source,
                "newly_paid": newly_paid,
                "job_id": str(job_id) if job_id else None,
            },
        )
        return PaymentConfirmationResponse(
            task_id=task_id,
            is_paid=True,
            newly_paid=newly_paid,
            job_id=job_id,
        )

    async def handle_checkout_event(self, event_type: str, data: dict[str, Any]) -> PaymentConfirmationResponse | None:
        """
        Handle a payment provider webhook event.

        Only checkout-completed events carrying a task id confirm payment;
        everything else is acknowledged and ignored.

        Returns:
            PaymentConfirmationResponse, or None when the event was ignored
        """
        if event_type != CHECKOUT_COMPLETED:
            logger.info(
                f"{__name__}:handle_checkout_event - Ignoring event",
                extra={"event_type": event_type},
            )
            return None

        task_id = task_id_from_checkout_event(data)
        if task_id is None:
            logger.warning(f"{__name__}:handle_checkout_event - Checkout event without task id")
            return None
        return await self.confirm_payment(task_id, source="webhook")

    async def get_task_status(self, task_id: UUID) -> TaskStatusResponse:
        """
        Read the user-visible processing state of a task.

        Raises:
            TaskLookupError: Task does not exist
        """
        task = await task_crud.get_with_graph(self.db, task_id)
        if task is None:
            raise TaskLookupError(task_id)
        report = await report_crud.get_by_task_id(self.db, task_id)
        return TaskStatusResponse(
            task_id=task.id,
            status=task.current_status.name if task.current_status is not None else None,
            is_paid=task.is_paid,
            report_id=report.id if report is not None else None,
        )
