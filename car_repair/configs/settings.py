"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI and the worker.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from car_repair.configs.base import BaseSettings
from car_repair.configs.database import DatabaseSettings
from car_repair.configs.gemini import GeminiSettings
from car_repair.configs.notification import EmailSettings, NotificationSettings, PaymentSettings
from car_repair.configs.queue import QueueSettings, WorkerSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    payment: PaymentSettings = Field(default_factory=PaymentSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Environment variables are read once; call `get_settings.cache_clear()`
    in tests that change the environment.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
