"""
Job lifecycle events.

The worker emits one JobEvent per finished attempt. Sinks decide where
events go: the log, an in-process channel for dashboards, or both.

Dependencies: asyncio, dataclasses (stdlib)
System role: Observable job lifecycle for operations
"""

import asyncio
import enum
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

logger = logging.getLogger(__name__)


class JobEventType(str, enum.Enum):
    COMPLETED = "completed"
    RETRY_SCHEDULED = "retry_scheduled"
    FAILED = "failed"
    RELEASED = "released"


@dataclass(frozen=True, slots=True)
class JobEvent:
    """
    One finished job attempt.

    Attributes:
        event: What happened
        job_id / task_id: Identity
        attempt / max_attempts: Attempt number (1-based) and budget
        result: Processor result on completion
        error: Error summary on failure
        failure_kind: Failure tag on failure
        retry_at: Next run time when a retry was scheduled
    """

    event: JobEventType
    job_id: UUID
    task_id: UUID
    attempt: int
    max_attempts: int
    result: dict[str, Any] | None = None
    error: str | None = None
    failure_kind: str | None = None
    retry_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["event"] = self.event.value
        data["job_id"] = str(self.job_id)
        data["task_id"] = str(self.task_id)
        data["retry_at"] = self.retry_at.isoformat() if self.retry_at else None
        return data


class JobEventSink(Protocol):
    async def publish(self, event: JobEvent) -> None: ...


class LoggingEventSink:
    """Write each event to the log."""

    async def publish(self, event: JobEvent) -> None:
        level = logging.ERROR if event.event is JobEventType.FAILED else logging.INFO
        logger.log(
            level,
            f"{__name__}:publish - Job {event.event.value}",
            extra={
                "job_id": str(event.job_id),
                "task_id": str(event.task_id),
                "attempt": event.attempt,
                "failure_kind": event.failure_kind,
            },
        )


class ChannelEventSink:
    """
    Buffer events on an asyncio.Queue for an in-process consumer.

    When the buffer is full the oldest event is dropped; the worker never
    blocks on a slow consumer.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self.queue: asyncio.Queue[JobEvent] = asyncio.Queue(maxsize=maxsize)

    async def publish(self, event: JobEvent) -> None:
        if self.queue.full():
            self.queue.get_nowait()
        self.queue.put_nowait(event)


class CompositeEventSink:
    """Fan events out to several sinks; one failing sink does not stop the rest."""

    def __init__(self, *sinks: JobEventSink) -> None:
        self._sinks = sinks

    async def publish(self, event: JobEvent) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(event)
            except Exception:
                logger.exception(f"{__name__}:publish - Event sink {type(sink).__name__} failed")
