"""
Pipeline assembly.

Builds the queue, status registry, analysis adapter, notifier, task
processor and worker runtime from settings. Shared by the worker process
and the API lifespan; each caller owns what it builds.

Dependencies: car_repair.configs, car_repair.boundary, car_repair.core
System role: Composition root for the task-processing pipeline
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from car_repair.boundary.gemini.vision_client import GeminiVisionClient
from car_repair.boundary.mail.smtp_mailer import MailTransport, SmtpMailer
from car_repair.configs import Settings
from car_repair.core.job_queue import DurableJobQueue
from car_repair.core.notification.notification_dispatcher import NotificationDispatcher
from car_repair.core.status_registry import StatusRegistry
from car_repair.core.task_processing.task_processor import ImageAnalyzer, TaskProcessor
from car_repair.core.worker.job_events import JobEventSink
from car_repair.core.worker.worker_runtime import WorkerRuntime


@dataclass(slots=True)
class Pipeline:
    """Wired pipeline components."""

    queue: DurableJobQueue
    statuses: StatusRegistry
    processor: TaskProcessor
    runtime: WorkerRuntime


def build_pipeline(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    analyzer: ImageAnalyzer | None = None,
    mailer: MailTransport | None = None,
    event_sink: JobEventSink | None = None,
) -> Pipeline:
    """
    Wire the pipeline.

    Args:
        settings: Application settings
        session_factory: Async session factory
        analyzer: Overrides the Gemini adapter
        mailer: Overrides the SMTP transport
        event_sink: Receives job lifecycle events (logged by default)

    Returns:
        Pipeline
    """
    queue = DurableJobQueue(session_factory, settings.queue)
    statuses = StatusRegistry(session_factory)
    notifier = NotificationDispatcher(
        session_factory,
        mailer or SmtpMailer(settings.email),
        settings.notification,
    )
    processor = TaskProcessor(
        session_factory,
        analyzer or GeminiVisionClient(settings.gemini),
        notifier,
        statuses,
    )
    runtime = WorkerRuntime(queue, processor, statuses, settings.worker, event_sink=event_sink)
    return Pipeline(queue=queue, statuses=statuses, processor=processor, runtime=runtime)
