"""
HTTP request/response schemas.

Dependencies: pydantic
System role: Task, payment and job API contracts
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class PaymentConfirmationResponse(BaseModel):
    """Result of confirming payment for a task."""

    task_id: uuid.UUID
    is_paid: bool
    newly_paid: bool = Field(description="False when the task was already paid")
    job_id: uuid.UUID | None = Field(default=None, description="Job enqueued by this call")


class TaskStatusResponse(BaseModel):
    """User-visible processing state of a task."""

    task_id: uuid.UUID
    status: str | None
    is_paid: bool
    report_id: uuid.UUID | None = None


class WebhookEvent(BaseModel):
    """Minimal checkout webhook envelope."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the payment provider."""

    received: bool = True
    task_id: uuid.UUID | None = None
    job_id: uuid.UUID | None = None


class JobStatusResponse(BaseModel):
    """Queue job state for operational dashboards."""

    id: uuid.UUID
    task_id: uuid.UUID
    status: str
    priority: int
    attempt_count: int
    max_attempts: int
    run_after: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    last_error: str | None = None
    failure_kind: str | None = None
    result: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DirectAccessResponse(BaseModel):
    """Outcome of presenting a direct-access link token."""

    valid: bool
    reason: str | None = Field(default=None, description="missing, invalid, used or expired")
    report_id: uuid.UUID | None = None
    user_id: uuid.UUID | None = None
