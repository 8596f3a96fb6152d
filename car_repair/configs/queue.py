"""
Job queue and worker runtime settings.

Retry policy, retention and throughput limits for the task-processing
pipeline. Defaults: three attempts with exponential backoff starting at
60 seconds, one job at a time, at most one job start every five seconds.

Dependencies: pydantic, pydantic_settings
System role: Queue and worker configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from car_repair.configs.base import BaseSettings


class QueueSettings(BaseSettings):
    """Durable job queue configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUEUE_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    max_attempts: int = Field(default=3, ge=1, description="Attempts per job before it fails for good")
    backoff_base_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Delay before the first retry; doubled on each further retry",
    )
    backoff_max_seconds: float = Field(default=600.0, ge=0, description="Upper bound on retry delay")
    default_priority: int = Field(default=1, description="Priority for new jobs (lower runs first)")
    keep_completed: int = Field(default=100, ge=0, description="Completed jobs retained")
    keep_failed: int = Field(default=50, ge=0, description="Failed jobs retained")
    stale_job_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Running jobs older than this are handed back to the queue",
    )


class WorkerSettings(BaseSettings):
    """Worker runtime configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WORKER_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    concurrency: int = Field(default=1, ge=1, description="Jobs processed in parallel")
    rate_limit_max_jobs: int = Field(default=1, ge=1, description="Job starts allowed per window")
    rate_limit_window_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Rate limit window; 0 disables the limiter",
    )
    poll_interval_seconds: float = Field(default=2.0, gt=0, description="Idle wait between claims")
    shutdown_timeout_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Grace period for in-flight jobs on stop",
    )
    run_in_api: bool = Field(
        default=False,
        description="Run the worker inside the API process lifespan",
    )
