"""
Dependency injection container.

Factory functions for FastAPI dependencies. The job queue is built once
by the application lifespan and read from `app.state`.

Dependencies: fastapi, car_repair.application, car_repair.boundary
System role: DI container for service injection
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from car_repair.application.services import JobService, TaskService, TokenService
from car_repair.boundary.db import get_async_db
from car_repair.configs import Settings, get_settings
from car_repair.core.job_queue import DurableJobQueue


def get_job_queue(request: Request) -> DurableJobQueue:
    """Get the application's durable job queue."""
    return request.app.state.job_queue


def get_task_service(
    db: AsyncSession = Depends(get_async_db),
    queue: DurableJobQueue = Depends(get_job_queue),
) -> TaskService:
    """
    Get TaskService instance with injected dependencies.

    Args:
        db: Request-scoped database session
        queue: Durable job queue

    Returns:
        TaskService: Service instance for the current request
    """
    return TaskService(db=db, queue=queue)


def get_token_service(db: AsyncSession = Depends(get_async_db)) -> TokenService:
    """Get TokenService bound to the request session."""
    return TokenService(db=db)


def get_job_service(queue: DurableJobQueue = Depends(get_job_queue)) -> JobService:
    """Get JobService instance."""
    return JobService(queue=queue)


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()
