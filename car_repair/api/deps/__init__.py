"""FastAPI dependency providers."""

from car_repair.api.deps.dependencies import (
    get_app_settings,
    get_job_queue,
    get_job_service,
    get_task_service,
    get_token_service,
)

__all__ = ["get_app_settings", "get_job_queue", "get_job_service", "get_task_service", "get_token_service"]
