"""
Worker runtime.

Long-lived consumer of the durable job queue. Claims jobs, runs the task
processor under a concurrency bound and a start-rate limit, and handles
each outcome inline: completion, retry scheduling, or final failure with
the task moved to `failed`. Constructed and owned by a lifecycle
controller that calls start() and stop(); there is no module-level
instance.

Dependencies: asyncio, car_repair.core
System role: Execution engine of the task-processing pipeline
"""

import asyncio
import logging
import os
import socket
from uuid import UUID

from car_repair.boundary.db.models.task_status_model import TaskStatusName
from car_repair.configs.queue import WorkerSettings
from car_repair.core.exceptions import ProcessingError
from car_repair.core.job_queue import ClaimedJob, DurableJobQueue
from car_repair.core.status_registry import StatusRegistry
from car_repair.core.task_processing.task_processor import TaskProcessor
from car_repair.core.worker.job_events import JobEvent, JobEventSink, JobEventType, LoggingEventSink
from car_repair.core.worker.rate_limiter import SlidingWindowRateLimiter
from car_repair.observability.correlation import clear_correlation_id, set_correlation_id
from car_repair.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


def default_worker_id() -> str:
    """hostname-pid, unique per worker process."""
    return f"{socket.gethostname()}-{os.getpid()}"


class WorkerRuntime:
    """
    Queue consumer with bounded concurrency and graceful shutdown.

    Lifecycle:
        start() spawns the claim loop and returns its task.
        stop() stops claiming, waits up to the shutdown timeout for
        in-flight jobs, cancels the rest and releases their jobs back to
        the queue.
    """

    def __init__(
        self,
        queue: DurableJobQueue,
        processor: TaskProcessor,
        status_registry: StatusRegistry,
        settings: WorkerSettings,
        event_sink: JobEventSink | None = None,
        worker_id: str | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
    ) -> None:
        """
        Initialize the runtime.

        Args:
            queue: Durable job queue
            processor: Task processor
            status_registry: Used to mark tasks failed after the last attempt
            settings: Concurrency, rate limit, polling and shutdown settings
            event_sink: Receives one JobEvent per finished attempt
            worker_id: Identity recorded on claimed jobs
            rate_limiter: Overrides the limiter built from settings
        """
        self._queue = queue
        self._processor = processor
        self._statuses = status_registry
        self._settings = settings
        self._events = event_sink or LoggingEventSink()
        self.worker_id = worker_id or default_worker_id()
        self._limiter = rate_limiter or SlidingWindowRateLimiter(
            settings.rate_limit_max_jobs, settings.rate_limit_window_seconds
        )
        self._slots = asyncio.Semaphore(settings.concurrency)
        self._stop_event = asyncio.Event()
        self._in_flight: set[asyncio.Task] = set()
        self._loop_task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def start(self) -> asyncio.Task:
        """
        Start consuming the queue.

        Stale running jobs left by a crashed worker are requeued first.

        Returns:
            asyncio.Task: Completes when the runtime has stopped
        """
        if self.is_running:
            return self._loop_task

        self._stop_event.clear()
        try:
            await self._queue.recover_stale()
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:start - Stale job recovery failed", e)

        self._loop_task = asyncio.create_task(self._run_loop(), name=f"worker-{self.worker_id}")
        logger.info(
            f"{__name__}:start - Worker started",
            extra={"worker_id": self.worker_id, "concurrency": self._settings.concurrency},
        )
        return self._loop_task

    async def stop(self, timeout: float | None = None) -> None:
        """
        Stop gracefully.

        Args:
            timeout: Grace period for in-flight jobs (defaults to settings)
        """
        if self._loop_task is None:
            return

        grace = self._settings.shutdown_timeout_seconds if timeout is None else timeout
        logger.info(
            f"{__name__}:stop - Stopping worker",
            extra={"worker_id": self.worker_id, "in_flight": len(self._in_flight)},
        )
        self._stop_event.set()

        # No job is spawned once the stop flag is set, so this set is final.
        if self._in_flight:
            _, pending = await asyncio.wait(set(self._in_flight), timeout=grace)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        await asyncio.gather(self._loop_task, return_exceptions=True)
        self._loop_task = None
        logger.info(f"{__name__}:stop - Worker stopped", extra={"worker_id": self.worker_id})

    def request_stop(self) -> None:
        """Signal-handler entry point: ask the loop to stop without waiting."""
        self._stop_event.set()

    async def wait_stopped(self) -> None:
        """Block until stop is requested, then shut down gracefully."""
        await self._stop_event.wait()
        await self.stop()

    async def run_once(self) -> JobEvent | None:
        """
        Claim and process a single job, if one is ready.

        Returns:
            JobEvent for the attempt, or None when the queue had nothing ready
        """
        await self._limiter.acquire()
        try:
            job = await self._queue.claim_next(self.worker_id)
        except Exception:
            self._limiter.refund()
            raise
        if job is None:
            self._limiter.refund()
            return None
        return await self._run_job(job)

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            await self._slots.acquire()
            if self._stop_event.is_set() or not await self._wait_for_start():
                self._slots.release()
                break

            try:
                job = await self._queue.claim_next(self.worker_id)
            except Exception as e:
                self._limiter.refund()
                self._slots.release()
                log_exception_with_context(logger, f"{__name__}:_run_loop - Claim failed", e)
                await self._idle()
                continue

            if job is None:
                self._limiter.refund()
                self._slots.release()
                await self._idle()
                continue

            if self._stop_event.is_set():
                # Claimed while stopping: hand it straight back.
                await self._release(job)
                self._slots.release()
                break

            task = asyncio.create_task(self._run_job(job), name=f"job-{job.job_id}")
            self._in_flight.add(task)
            task.add_done_callback(self._job_finished)

    async def _wait_for_start(self) -> bool:
        """Wait for a rate-limit slot. Returns False if stop was requested first."""
        acquire = asyncio.create_task(self._limiter.acquire())
        stopping = asyncio.create_task(self._stop_event.wait())
        try:
            await asyncio.wait({acquire, stopping}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (acquire, stopping):
                task.cancel()
            await asyncio.gather(acquire, stopping, return_exceptions=True)

        if self._stop_event.is_set():
            if not acquire.cancelled() and acquire.exception() is None:
                self._limiter.refund()
            return False
        return not acquire.cancelled()

    def _job_finished(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        self._slots.release()

    async def _idle(self) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._settings.poll_interval_seconds)
        except asyncio.TimeoutError:
            pass

    async def _run_job(self, job: ClaimedJob) -> JobEvent:
        set_correlation_id(str(job.job_id))
        try:
            result = await self._processor.process(job.task_id)
        except asyncio.CancelledError:
            await asyncio.shield(self._release(job))
            raise
        except ProcessingError as e:
            return await self._handle_failure(job, e, e.kind.value, e.retryable)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_run_job - Unexpected error",
                e,
                job_id=job.job_id,
                task_id=job.task_id,
            )
            return await self._handle_failure(job, e, "unexpected", True)
        else:
            return await self._handle_success(job, result.to_dict())
        finally:
            clear_correlation_id()

    async def _handle_success(self, job: ClaimedJob, result: dict) -> JobEvent:
        try:
            await self._queue.complete(job, result)
        except Exception as e:
            log_exception_with_context(
                logger, f"{__name__}:_handle_success - Could not mark job completed", e, job_id=job.job_id
            )
        return await self._publish(
            JobEvent(
                event=JobEventType.COMPLETED,
                job_id=job.job_id,
                task_id=job.task_id,
                attempt=job.attempt,
                max_attempts=job.max_attempts,
                result=result,
            )
        )

    async def _handle_failure(
        self,
        job: ClaimedJob,
        error: BaseException,
        failure_kind: str,
        retryable: bool,
    ) -> JobEvent:
        summary = f"{type(error).__name__}: {error}"[:2000]
        log_with_context(
            logger,
            logging.WARNING,
            f"{__name__}:_handle_failure - Attempt failed",
            job_id=job.job_id,
            task_id=job.task_id,
            attempt=job.attempt,
            failure_kind=failure_kind,
            retryable=retryable,
        )

        try:
            outcome = await self._queue.fail(job, summary, failure_kind, retryable)
        except Exception as e:
            # Job stays running; stale recovery hands it back later.
            log_exception_with_context(
                logger, f"{__name__}:_handle_failure - Could not record failure", e, job_id=job.job_id
            )
            return await self._publish(
                JobEvent(
                    event=JobEventType.RETRY_SCHEDULED,
                    job_id=job.job_id,
                    task_id=job.task_id,
                    attempt=job.attempt,
                    max_attempts=job.max_attempts,
                    error=summary,
                    failure_kind=failure_kind,
                )
            )

        if outcome.final:
            await self._mark_task_failed(job.task_id)
            event_type = JobEventType.FAILED
        else:
            event_type = JobEventType.RETRY_SCHEDULED

        return await self._publish(
            JobEvent(
                event=event_type,
                job_id=job.job_id,
                task_id=job.task_id,
                attempt=job.attempt,
                max_attempts=job.max_attempts,
                error=summary,
                failure_kind=failure_kind,
                retry_at=outcome.retry_at,
            )
        )

    async def _mark_task_failed(self, task_id: UUID) -> None:
        try:
            await self._statuses.transition(task_id, TaskStatusName.FAILED)
        except Exception as e:
            log_exception_with_context(
                logger, f"{__name__}:_mark_task_failed - Could not set failed status", e, task_id=task_id
            )

    async def _release(self, job: ClaimedJob) -> None:
        try:
            await self._queue.release(job)
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:_release - Could not release job", e, job_id=job.job_id)
            return
        await self._publish(
            JobEvent(
                event=JobEventType.RELEASED,
                job_id=job.job_id,
                task_id=job.task_id,
                attempt=job.attempt,
                max_attempts=job.max_attempts,
            )
        )

    async def _publish(self, event: JobEvent) -> JobEvent:
        try:
            await self._events.publish(event)
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:_publish - Event sink failed", e)
        return event
