"""
Exception hierarchy for the Car RepAIr backend.

Layered, tagged exceptions for the task-processing pipeline. The worker
runtime decides between retry and final failure from `retryable` and
`kind` only; messages are for logs.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

import enum
from typing import Any
from uuid import UUID


class CarRepairException(Exception):
    """Base exception for all Car RepAIr application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ProcessingErrorKind(str, enum.Enum):
    """Tag identifying why a task could not be processed."""

    NOT_FOUND = "not_found"
    NOT_PAID = "not_paid"
    NO_IMAGES = "no_images"
    ADAPTER_FAILURE = "adapter_failure"
    PERSISTENCE_FAILURE = "persistence_failure"


class ProcessingError(CarRepairException):
    """
    Base error raised by the task processor.

    Attributes:
        kind: Failure tag
        retryable: Whether the job should be attempted again
        task_id: Task the failure belongs to
    """

    kind: ProcessingErrorKind
    retryable: bool = True

    def __init__(
        self,
        message: str,
        task_id: UUID,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["task_id"] = str(task_id)
        details["kind"] = self.kind.value
        self.task_id = task_id
        super().__init__(message, details)


class TaskNotFoundError(ProcessingError):
    """The task referenced by a job does not exist. Never retried."""

    kind = ProcessingErrorKind.NOT_FOUND
    retryable = False

    def __init__(self, task_id: UUID) -> None:
        super().__init__(f"Task not found: {task_id}", task_id)


class TaskNotPaidError(ProcessingError):
    """
    The task is not marked paid.

    Retryable: the payment flag may still be propagating when the job runs.
    """

    kind = ProcessingErrorKind.NOT_PAID
    retryable = True

    def __init__(self, task_id: UUID) -> None:
        super().__init__(f"Task is not paid: {task_id}", task_id)


class NoImagesError(ProcessingError):
    """The task has no images to analyse. Never retried."""

    kind = ProcessingErrorKind.NO_IMAGES
    retryable = False

    def __init__(self, task_id: UUID) -> None:
        super().__init__(f"No images found for task: {task_id}", task_id)


class AnalysisFailedError(ProcessingError):
    """The image analysis adapter failed; retryability follows the adapter."""

    kind = ProcessingErrorKind.ADAPTER_FAILURE

    def __init__(self, task_id: UUID, cause: "AnalysisError") -> None:
        self.retryable = cause.retryable
        self.failure_class = cause.failure_class
        super().__init__(
            f"Image analysis failed: {cause.message}",
            task_id,
            {"failure_class": cause.failure_class, "reason_code": cause.reason_code},
        )


class ReportPersistenceError(ProcessingError):
    """The report or its status transition could not be written."""

    kind = ProcessingErrorKind.PERSISTENCE_FAILURE
    retryable = True

    def __init__(self, task_id: UUID, reason: str) -> None:
        super().__init__(f"Failed to persist report: {reason}", task_id)


class AnalysisError(CarRepairException):
    """
    Raised by the image analysis adapter.

    Attributes:
        failure_class: Normalized failure class value
        reason_code: Stable machine-readable reason
        retryable: Whether repeating the call may succeed
    """

    def __init__(
        self,
        message: str,
        failure_class: str,
        reason_code: str,
        retryable: bool,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.failure_class = failure_class
        self.reason_code = reason_code
        self.retryable = retryable
        details = details or {}
        details.update({"failure_class": failure_class, "retryable": retryable})
        super().__init__(message, details)


class StatusNotFoundError(CarRepairException):
    """A status name is missing from the task_statuses lookup table."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Task status not seeded: {name}", {"status": name})


class NotificationError(CarRepairException):
    """The report-ready notification could not be delivered."""


class JobNotFoundError(CarRepairException):
    """A queue job id does not exist."""

    def __init__(self, job_id: UUID) -> None:
        super().__init__(f"Job not found: {job_id}", {"job_id": str(job_id)})


class TaskLookupError(CarRepairException):
    """A task requested through the HTTP surface does not exist."""

    def __init__(self, task_id: UUID) -> None:
        super().__init__(f"Task not found: {task_id}", {"task_id": str(task_id)})
