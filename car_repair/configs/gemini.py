"""
Gemini vision model settings.

Dependencies: pydantic, pydantic_settings
System role: AI analysis adapter configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from car_repair.configs.base import BaseSettings


class GeminiSettings(BaseSettings):
    """Google Gemini configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GEMINI_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    api_key: str | None = Field(default=None, description="Gemini API key")
    model: str = Field(default="gemini-2.5-flash", description="Vision-capable model name")
    request_timeout_seconds: float = Field(default=120.0, gt=0, description="Per-call timeout")
    temperature: float = Field(default=0.2, ge=0, le=2, description="Sampling temperature")
