"""
FastAPI application with assembled routers.

Dependencies: fastapi, uvicorn, car_repair.api.routers, car_repair.workers.pipeline
System role: API entry point with router assembly and lifespan management
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from car_repair.boundary.db.connection import dispose_engine, get_async_session_factory
from car_repair.boundary.db.create_tables import initialize_database
from car_repair.configs import get_settings
from car_repair.observability.logger import configure_logging
from car_repair.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware
from car_repair.workers.pipeline import build_pipeline

from .routers import direct_access_router, health_router, jobs_router, payments_router, tasks_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup: prepare the schema, wire the pipeline and optionally start
    the worker in-process. Shutdown: stop the worker, dispose the engine.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    session_factory = get_async_session_factory()
    await initialize_database(session_factory.kw["bind"])
    pipeline = build_pipeline(settings, session_factory)
    app.state.job_queue = pipeline.queue

    if settings.worker.run_in_api:
        await pipeline.runtime.start()
        logger.info(f"{__name__}:lifespan - In-process worker started")

    yield

    await pipeline.runtime.stop()
    await dispose_engine()
    logger.info(f"{__name__}:lifespan - Shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        use_lifespan: Disable to build an app without database startup (tests)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Car RepAIr API",
        description="AI car damage inspection: payment confirmation, task status, report links and job monitoring",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(tasks_router, prefix="/api/v1")
    app.include_router(payments_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")
    app.include_router(direct_access_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("car_repair.api.main:app", host="0.0.0.0", port=8000)
