"""
Test suite for job event sinks.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from car_repair.core.worker.job_events import (
    ChannelEventSink,
    CompositeEventSink,
    JobEvent,
    JobEventType,
    LoggingEventSink,
)


def _event(event_type: JobEventType = JobEventType.COMPLETED, **kwargs) -> JobEvent:
    return JobEvent(event=event_type, job_id=uuid.uuid4(), task_id=uuid.uuid4(), attempt=1, max_attempts=3, **kwargs)


class TestJobEvent:
    def test_to_dict_should_serialize_ids_and_times(self) -> None:
        # Arrange
        retry_at = datetime(2025, 1, 1, 12, 1, tzinfo=timezone.utc)
        event = _event(JobEventType.RETRY_SCHEDULED, retry_at=retry_at, failure_kind="not_paid")

        # Act
        data = event.to_dict()

        # Assert
        assert data["event"] == "retry_scheduled"
        assert data["job_id"] == str(event.job_id)
        assert data["retry_at"] == "2025-01-01T12:01:00+00:00"
        assert data["failure_kind"] == "not_paid"


class TestSinks:
    @pytest.mark.asyncio
    async def test_channel_sink_should_drop_oldest_when_full(self) -> None:
        # Arrange
        sink = ChannelEventSink(maxsize=2)
        events = [_event() for _ in range(3)]

        # Act
        for event in events:
            await sink.publish(event)

        # Assert
        assert [sink.queue.get_nowait(), sink.queue.get_nowait()] == events[1:]

    @pytest.mark.asyncio
    async def test_composite_sink_should_continue_after_failing_sink(self) -> None:
        # Arrange
        broken = AsyncMock()
        broken.publish.side_effect = RuntimeError("down")
        channel = ChannelEventSink()
        sink = CompositeEventSink(broken, LoggingEventSink(), channel)
        event = _event(JobEventType.FAILED)

        # Act
        await sink.publish(event)

        # Assert
        assert channel.queue.get_nowait() is event
