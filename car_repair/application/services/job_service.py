"""
Job service orchestrator.

Read access to queue jobs for operational dashboards.

Dependencies: car_repair.core.job_queue
System role: Job status reporting
"""

from typing import Any
from uuid import UUID

from car_repair.boundary.db.models.queue_job_model import QueueJobStatus
from car_repair.core.exceptions import JobNotFoundError
from car_repair.core.job_queue import DurableJobQueue, job_to_dict


class JobService:
    """Job status queries over the durable queue."""

    def __init__(self, queue: DurableJobQueue) -> None:
        self.queue = queue

    async def get_job_status(self, job_id: UUID) -> dict[str, Any]:
        """
        Get a job's current state.

        Args:
            job_id: Job UUID

        Returns:
            dict: Serialized job

        Raises:
            ValueError: If job not found
        """
        try:
            job = await self.queue.get_job(job_id)
        except JobNotFoundError as e:
            raise ValueError(f"Job {job_id} not found") from e
        return job_to_dict(job)

    async def list_jobs(
        self,
        status: QueueJobStatus | None = None,
        limit: int = 50,
        task_id: UUID | None = None,
    ) -> list[dict[str, Any]]:
        """
        List jobs, optionally filtered by status and task.

        All jobs come newest first, except the jobs of a single task, which
        come oldest first so its attempt history reads in order.
        """
        if task_id is None:
            jobs = await self.queue.list_jobs(status, limit)
        else:
            jobs = [
                job for job in await self.queue.jobs_for_task(task_id) if status is None or job.status == status
            ][:limit]
        return [job_to_dict(job) for job in jobs]
