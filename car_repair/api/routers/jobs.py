"""
Job API endpoints.

Routes: GET /jobs (status, task_id filters), GET /jobs/{id}

Dependencies: car_repair.application.services.job_service
System role: Job status HTTP API for operations
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from car_repair.api.deps import get_job_service
from car_repair.application.services.job_service import JobService
from car_repair.boundary.db.models.queue_job_model import QueueJobStatus
from car_repair.models.api import JobStatusResponse

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=list[JobStatusResponse])
async def list_jobs(
    status: QueueJobStatus | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    task_id: UUID | None = Query(default=None),
    job_service: JobService = Depends(get_job_service),
) -> list[dict]:
    """List queue jobs, optionally filtered by status or by task."""
    return await job_service.list_jobs(status, limit, task_id=task_id)


@router.get("/{job_id}", response_model=JobStatusResponse)
async def get_job_status(
    job_id: UUID,
    job_service: JobService = Depends(get_job_service),
) -> dict:
    """
    Get a queue job's state: attempts, schedule, last error and result.

    Raises:
        HTTPException(404): Job not found
    """
    try:
        return await job_service.get_job_status(job_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
