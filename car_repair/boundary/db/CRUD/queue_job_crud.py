"""
Queue job CRUD operations.

Persistence primitives behind the durable job queue: ordered ready-job
selection, compare-and-set claiming, retry scheduling, terminal states,
stale-claim recovery and retention pruning.

Dependencies: sqlalchemy, car_repair.boundary.db.models
System role: Job queue persistence operations
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from car_repair.boundary.db.CRUD.base_crud import BaseCRUD
from car_repair.boundary.db.models.queue_job_model import QueueJobModel, QueueJobStatus


class QueueJobCRUD(BaseCRUD[QueueJobModel]):
    """
    CRUD operations for QueueJobModel.

    Every state change is a conditional UPDATE on the expected current
    status, so two workers racing on the same row cannot both win.
    """

    def __init__(self) -> None:
        super().__init__(QueueJobModel)

    async def next_ready_ids(
        self,
        session: AsyncSession,
        now: datetime,
        limit: int = 5,
    ) -> list[UUID]:
        """
        Candidate jobs in claim order: priority, then run_after, then FIFO.

        Args:
            session: Async database session
            now: Current time; jobs with later run_after are not ready
            limit: Number of candidates to return

        Returns:
            list[UUID]: Job ids, best first
        """
        stmt = (
            select(QueueJobModel.id)
            .where(
                QueueJobModel.status == QueueJobStatus.PENDING,
                QueueJobModel.run_after <= now,
            )
            .order_by(
                QueueJobModel.priority.asc(),
                QueueJobModel.run_after.asc(),
                QueueJobModel.created_at.asc(),
            )
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def try_claim(
        self,
        session: AsyncSession,
        job_id: UUID,
        worker_id: str,
        now: datetime,
    ) -> bool:
        """
        Claim a pending job for a worker.

        Returns:
            True if this call moved the job to RUNNING
        """
        stmt = (
            update(QueueJobModel)
            .where(
                QueueJobModel.id == job_id,
                QueueJobModel.status == QueueJobStatus.PENDING,
            )
            .values(
                status=QueueJobStatus.RUNNING,
                worker_id=worker_id,
                started_at=now,
                attempt_count=QueueJobModel.attempt_count + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def mark_completed(
        self,
        session: AsyncSession,
        job_id: UUID,
        result_data: dict[str, Any],
        now: datetime,
    ) -> bool:
        """Move a running job to COMPLETED with its result."""
        return await self._transition(
            session,
            job_id,
            QueueJobStatus.RUNNING,
            status=QueueJobStatus.COMPLETED,
            result=result_data,
            finished_at=now,
            updated_at=now,
        )

    async def schedule_retry(
        self,
        session: AsyncSession,
        job_id: UUID,
        run_after: datetime,
        error: str,
        failure_kind: str | None,
        now: datetime,
    ) -> bool:
        """Return a running job to PENDING, not claimable before run_after."""
        return await self._transition(
            session,
            job_id,
            QueueJobStatus.RUNNING,
            status=QueueJobStatus.PENDING,
            run_after=run_after,
            last_error=error,
            failure_kind=failure_kind,
            worker_id=None,
            updated_at=now,
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        job_id: UUID,
        error: str,
        failure_kind: str | None,
        now: datetime,
    ) -> bool:
        """Move a running job to FAILED for good."""
        return await self._transition(
            session,
            job_id,
            QueueJobStatus.RUNNING,
            status=QueueJobStatus.FAILED,
            last_error=error,
            failure_kind=failure_kind,
            finished_at=now,
            updated_at=now,
        )

    async def release(self, session: AsyncSession, job_id: UUID, now: datetime) -> bool:
        """Hand a running job back to PENDING without consuming its attempt."""
        return await self._transition(
            session,
            job_id,
            QueueJobStatus.RUNNING,
            status=QueueJobStatus.PENDING,
            attempt_count=QueueJobModel.attempt_count - 1,
            worker_id=None,
            run_after=now,
            updated_at=now,
        )

    async def requeue_stale(
        self,
        session: AsyncSession,
        started_before: datetime,
        now: datetime,
    ) -> int:
        """
        Return running jobs whose claim is older than `started_before` to PENDING.

        Returns:
            int: Number of jobs requeued
        """
        stmt = (
            update(QueueJobModel)
            .where(
                QueueJobModel.status == QueueJobStatus.RUNNING,
                QueueJobModel.started_at < started_before,
            )
            .values(
                status=QueueJobStatus.PENDING,
                worker_id=None,
                run_after=now,
                last_error="worker lost while job was running",
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def prune_finished(
        self,
        session: AsyncSession,
        status: QueueJobStatus,
        keep: int,
    ) -> int:
        """
        Delete all but the newest `keep` jobs in a terminal status.

        Returns:
            int: Number of jobs deleted
        """
        stale_ids = (
            select(QueueJobModel.id)
            .where(QueueJobModel.status == status)
            .order_by(QueueJobModel.finished_at.desc(), QueueJobModel.created_at.desc())
            .offset(keep)
        )
        result = await session.execute(stale_ids)
        ids = list(result.scalars().all())
        if not ids:
            return 0
        await session.execute(
            delete(QueueJobModel)
            .where(QueueJobModel.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return len(ids)

    async def get_by_status(
        self,
        session: AsyncSession,
        status: QueueJobStatus | None = None,
        limit: int = 50,
    ) -> Sequence[QueueJobModel]:
        """List jobs newest first, optionally filtered by status."""
        stmt = select(QueueJobModel).order_by(QueueJobModel.created_at.desc()).limit(limit)
        if status is not None:
            stmt = stmt.where(QueueJobModel.status == status)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_for_task(self, session: AsyncSession, task_id: UUID) -> Sequence[QueueJobModel]:
        """All jobs recorded for a task, oldest first."""
        result = await session.execute(
            select(QueueJobModel)
            .where(QueueJobModel.task_id == task_id)
            .order_by(QueueJobModel.created_at.asc())
        )
        return result.scalars().all()

    async def _transition(
        self,
        session: AsyncSession,
        job_id: UUID,
        expected: QueueJobStatus,
        **values: Any,
    ) -> bool:
        stmt = (
            update(QueueJobModel)
            .where(QueueJobModel.id == job_id, QueueJobModel.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1


queue_job_crud = QueueJobCRUD()
