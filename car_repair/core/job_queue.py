"""
Durable job queue.

Database-backed, at-least-once queue of "process task X" jobs. Jobs
survive restarts, are claimed by exactly one worker at a time, retried
with exponential backoff, and kept for a bounded history once finished.
The queue knows nothing about what a task means.

Dependencies: sqlalchemy, car_repair.boundary.db, car_repair.configs
System role: Hand-off point between payment confirmation and the worker runtime
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from car_repair.boundary.db.base import as_utc, utc_now
from car_repair.boundary.db.CRUD.queue_job_crud import queue_job_crud
from car_repair.boundary.db.models.queue_job_model import QueueJobModel, QueueJobStatus
from car_repair.configs.queue import QueueSettings
from car_repair.core.exceptions import JobNotFoundError

logger = logging.getLogger(__name__)

_CLAIM_CANDIDATES = 5


@dataclass(frozen=True, slots=True)
class JobHandle:
    """Reference to an enqueued job."""

    job_id: UUID
    task_id: UUID
    priority: int


@dataclass(frozen=True, slots=True)
class ClaimedJob:
    """A job claimed by a worker for one attempt."""

    job_id: UUID
    task_id: UUID
    attempt: int
    max_attempts: int

    @property
    def is_last_attempt(self) -> bool:
        return self.attempt >= self.max_attempts


@dataclass(frozen=True, slots=True)
class JobFailureOutcome:
    """
    What the queue did with a failed attempt.

    Attributes:
        final: True when the job moved to FAILED and will not run again
        retry_at: Next eligible run time when a retry was scheduled
        delay_seconds: Backoff applied before the retry
    """

    final: bool
    retry_at: datetime | None = None
    delay_seconds: float | None = None


class DurableJobQueue:
    """
    Persistent priority queue over the queue_jobs table.

    Ordering: lowest priority value first, then earliest run_after, then
    insertion order. Claiming increments the attempt counter; a claimed job
    is invisible to other workers until it is completed, failed, retried or
    released.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: QueueSettings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the queue.

        Args:
            session_factory: Async session factory for the queue database
            settings: Retry, backoff and retention policy
            clock: Source of the current time (UTC), injectable for tests
        """
        self._session_factory = session_factory
        self._settings = settings
        self._clock = clock

    @property
    def settings(self) -> QueueSettings:
        return self._settings

    async def enqueue(self, task_id: UUID, priority: int | None = None) -> JobHandle:
        """
        Add a job for a task in its own transaction.

        Args:
            task_id: Task to process
            priority: Lower runs first (defaults to the configured priority)

        Returns:
            JobHandle: Reference to the new job
        """
        async with self._session_factory() as session:
            handle = await self.enqueue_in_session(session, task_id, priority)
            await session.commit()
        return handle

    async def enqueue_in_session(
        self,
        session: AsyncSession,
        task_id: UUID,
        priority: int | None = None,
    ) -> JobHandle:
        """
        Add a job inside the caller's transaction.

        Lets callers commit a state change (e.g. the payment flag) and the
        job atomically. The caller commits.
        """
        effective_priority = self._settings.default_priority if priority is None else priority
        now = self._clock()
        job = await queue_job_crud.create(
            session,
            task_id=task_id,
            status=QueueJobStatus.PENDING,
            priority=effective_priority,
            attempt_count=0,
            max_attempts=self._settings.max_attempts,
            run_after=now,
            created_at=now,
            updated_at=now,
        )
        logger.info(
            f"{__name__}:enqueue - Job enqueued",
            extra={"job_id": str(job.id), "task_id": str(task_id), "priority": effective_priority},
        )
        return JobHandle(job_id=job.id, task_id=task_id, priority=effective_priority)

    async def claim_next(self, worker_id: str) -> ClaimedJob | None:
        """
        Claim the next ready job for a worker.

        Candidates are tried in order; losing a race for one moves on to the
        next, and the selection is repeated until a claim succeeds or no
        ready job remains.

        Args:
            worker_id: Identity of the claiming worker

        Returns:
            ClaimedJob, or None when nothing is ready
        """
        while True:
            async with self._session_factory() as session:
                now = self._clock()
                candidates = await queue_job_crud.next_ready_ids(session, now, _CLAIM_CANDIDATES)
                if not candidates:
                    return None

                for job_id in candidates:
                    if await queue_job_crud.try_claim(session, job_id, worker_id, now):
                        await session.commit()
                        job = await queue_job_crud.get_by_id(session, job_id)
                        await session.refresh(job)
                        logger.info(
                            f"{__name__}:claim_next - Job claimed",
                            extra={
                                "job_id": str(job.id),
                                "task_id": str(job.task_id),
                                "attempt": job.attempt_count,
                                "worker_id": worker_id,
                            },
                        )
                        return ClaimedJob(
                            job_id=job.id,
                            task_id=job.task_id,
                            attempt=job.attempt_count,
                            max_attempts=job.max_attempts,
                        )
                await session.rollback()

    async def complete(self, job: ClaimedJob, result: dict[str, Any]) -> None:
        """
        Record a successful attempt and prune completed history.

        Args:
            job: Claimed job
            result: JSON-serializable processor result
        """
        async with self._session_factory() as session:
            updated = await queue_job_crud.mark_completed(session, job.job_id, result, self._clock())
            if updated:
                await queue_job_crud.prune_finished(
                    session, QueueJobStatus.COMPLETED, self._settings.keep_completed
                )
            await session.commit()

        if not updated:
            logger.warning(
                f"{__name__}:complete - Job was no longer running",
                extra={"job_id": str(job.job_id)},
            )

    async def fail(
        self,
        job: ClaimedJob,
        error: str,
        failure_kind: str | None,
        retryable: bool,
    ) -> JobFailureOutcome:
        """
        Record a failed attempt: schedule a retry or fail the job for good.

        A retry is scheduled only when the failure is retryable and the
        attempt budget is not spent.

        Args:
            job: Claimed job
            error: Error summary stored on the job
            failure_kind: Machine-readable failure tag
            retryable: Whether the failure may succeed on a later attempt

        Returns:
            JobFailureOutcome
        """
        now = self._clock()
        if retryable and not job.is_last_attempt:
            delay = self.compute_backoff(job.attempt)
            retry_at = now + timedelta(seconds=delay)
            async with self._session_factory() as session:
                await queue_job_crud.schedule_retry(
                    session, job.job_id, retry_at, error, failure_kind, now
                )
                await session.commit()
            logger.warning(
                f"{__name__}:fail - Retry scheduled",
                extra={
                    "job_id": str(job.job_id),
                    "task_id": str(job.task_id),
                    "attempt": job.attempt,
                    "delay_seconds": delay,
                },
            )
            return JobFailureOutcome(final=False, retry_at=retry_at, delay_seconds=delay)

        async with self._session_factory() as session:
            await queue_job_crud.mark_failed(session, job.job_id, error, failure_kind, now)
            await queue_job_crud.prune_finished(
                session, QueueJobStatus.FAILED, self._settings.keep_failed
            )
            await session.commit()
        logger.error(
            f"{__name__}:fail - Job failed permanently",
            extra={
                "job_id": str(job.job_id),
                "task_id": str(job.task_id),
                "attempt": job.attempt,
                "retryable": retryable,
            },
        )
        return JobFailureOutcome(final=True)

    async def release(self, job: ClaimedJob) -> bool:
        """
        Hand a claimed job back without consuming the attempt.

        Used when the worker stops before the attempt finished.
        """
        async with self._session_factory() as session:
            released = await queue_job_crud.release(session, job.job_id, self._clock())
            await session.commit()
        logger.info(
            f"{__name__}:release - Job released",
            extra={"job_id": str(job.job_id), "released": released},
        )
        return released

    async def recover_stale(self) -> int:
        """
        Requeue running jobs whose worker disappeared.

        Returns:
            int: Number of jobs requeued
        """
        now = self._clock()
        cutoff = now - timedelta(seconds=self._settings.stale_job_seconds)
        async with self._session_factory() as session:
            count = await queue_job_crud.requeue_stale(session, cutoff, now)
            await session.commit()
        if count:
            logger.warning(f"{__name__}:recover_stale - Requeued {count} stale job(s)")
        return count

    def compute_backoff(self, attempt: int) -> float:
        """
        Delay before the retry that follows `attempt` (1-based).

        base * 2 ** (attempt - 1), capped at backoff_max_seconds.
        """
        delay = self._settings.backoff_base_seconds * (2 ** max(attempt - 1, 0))
        return min(delay, self._settings.backoff_max_seconds)

    async def get_job(self, job_id: UUID) -> QueueJobModel:
        """
        Fetch a job row.

        Raises:
            JobNotFoundError: Unknown job id
        """
        async with self._session_factory() as session:
            job = await queue_job_crud.get_by_id(session, job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def list_jobs(
        self,
        status: QueueJobStatus | None = None,
        limit: int = 50,
    ) -> Sequence[QueueJobModel]:
        """List jobs newest first, optionally filtered by status."""
        async with self._session_factory() as session:
            return await queue_job_crud.get_by_status(session, status, limit)

    async def jobs_for_task(self, task_id: UUID) -> Sequence[QueueJobModel]:
        """All jobs recorded for a task, oldest first."""
        async with self._session_factory() as session:
            return await queue_job_crud.get_for_task(session, task_id)


def job_to_dict(job: QueueJobModel) -> dict[str, Any]:
    """Serialize a job row for the HTTP surface and event sinks."""
    return {
        "id": str(job.id),
        "task_id": str(job.task_id),
        "status": job.status.value,
        "priority": job.priority,
        "attempt_count": job.attempt_count,
        "max_attempts": job.max_attempts,
        "run_after": _iso(job.run_after),
        "started_at": _iso(job.started_at),
        "finished_at": _iso(job.finished_at),
        "last_error": job.last_error,
        "failure_kind": job.failure_kind,
        "result": job.result,
        "created_at": _iso(job.created_at),
        "updated_at": _iso(job.updated_at),
    }


def _iso(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value is not None else None
