"""
Task API endpoints.

Routes: POST /tasks/{id}/payment/confirm, GET /tasks/{id}/status

Dependencies: car_repair.application.services.task_service, car_repair.models
System role: Task payment and status HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from car_repair.api.deps import get_task_service
from car_repair.application.services.task_service import TaskService
from car_repair.core.exceptions import TaskLookupError
from car_repair.models.api import PaymentConfirmationResponse, TaskStatusResponse

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/{task_id}/payment/confirm", response_model=PaymentConfirmationResponse)
async def confirm_payment(
    task_id: UUID,
    task_service: TaskService = Depends(get_task_service),
) -> PaymentConfirmationResponse:
    """
    Confirm payment for a task and queue it for analysis.

    Repeated calls are harmless: only the first one enqueues a job.

    Raises:
        HTTPException(404): Task not found
    """
    try:
        return await task_service.confirm_payment(task_id, source="direct")
    except TaskLookupError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/{task_id}/status", response_model=TaskStatusResponse)
async def get_task_status(
    task_id: UUID,
    task_service: TaskService = Depends(get_task_service),
) -> TaskStatusResponse:
    """
    Get the processing status of a task for client polling.

    Only the status value is exposed; failure details stay internal.

    Raises:
        HTTPException(404): Task not found
    """
    try:
        return await task_service.get_task_status(task_id)
    except TaskLookupError as e:
        raise HTTPException(status_code=404, detail=e.message)
