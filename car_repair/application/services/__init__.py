"""Application services."""

from car_repair.application.services.job_service import JobService
from car_repair.application.services.task_service import TaskService
from car_repair.application.services.token_service import TokenService

__all__ = ["JobService", "TaskService", "TokenService"]
