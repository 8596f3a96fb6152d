"""
Task processing models.

Immutable snapshot of the task graph the processor works from, and the
result it hands back to the worker runtime.

Dependencies: dataclasses (stdlib)
System role: Task processor inputs and outputs
"""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from car_repair.models.analysis import CarInfo, ImageRef

ALREADY_PROCESSED = "already_processed"
TERMINAL_STATUS = "terminal_status"


@dataclass(frozen=True, slots=True)
class OwnerContact:
    """Who to notify when the report is ready."""

    user_id: UUID
    email: str | None
    name: str | None


@dataclass(frozen=True, slots=True)
class TaskSnapshot:
    """Everything the processor needs, read in one short transaction."""

    task_id: UUID
    is_paid: bool
    has_report: bool
    status: str | None
    images: tuple[ImageRef, ...]
    car_info: CarInfo
    owner: OwnerContact | None


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    """
    Outcome of a successful or skipped processing run.

    Failures are raised as ProcessingError, never returned.
    """

    success: bool
    report_id: UUID | None = None
    skipped: bool = False
    reason: str | None = None
    notification: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def completed(cls, report_id: UUID, notification: dict[str, Any] | None = None) -> "ProcessingResult":
        return cls(success=True, report_id=report_id, notification=notification or {})

    @classmethod
    def skipped_for(cls, reason: str) -> "ProcessingResult":
        return cls(success=True, skipped=True, reason=reason)

    @classmethod
    def already_processed(cls) -> "ProcessingResult":
        return cls.skipped_for(ALREADY_PROCESSED)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form stored on the queue job."""
        if self.skipped:
            return {"skipped": True, "reason": self.reason}
        data: dict[str, Any] = {"success": self.success, "report_id": str(self.report_id)}
        if self.notification:
            data["notification"] = self.notification
        return data
