"""
Analysis domain models.

Inputs to the image analysis adapter (image references and the vehicle
descriptor) and the validated shape of the model's damage report.

Dependencies: pydantic
System role: Contract between task processor and analysis adapter
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True, slots=True)
class ImageRef:
    """A task photo: its angle and where the worker can read it."""

    type: str
    path: str


@dataclass(frozen=True, slots=True)
class CarInfo:
    """Vehicle descriptor and owner locale preferences sent with the photos."""

    brand: str = "Unknown"
    model: str = "Unknown"
    year: int | None = None
    mileage: int | None = None
    description: str | None = None
    country_code: str | None = None
    user_currency: str | None = None
    user_language: str | None = None


@dataclass(frozen=True, slots=True)
class AnalysisOutcome:
    """
    Successful analysis.

    Attributes:
        payload: Parsed JSON exactly as the model returned it
        model_used: Model name that produced it
    """

    payload: dict[str, Any]
    model_used: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


class Damage(BaseModel):
    """One damaged area found on the vehicle."""

    model_config = ConfigDict(extra="allow")

    location: str
    severity: Literal["minor", "moderate", "severe", "unknown"] = "unknown"
    description: str = ""
    estimated_parts_cost_original: str | float | None = None
    estimated_parts_cost_alternative: str | float | None = None
    estimated_labor_cost: str | float | None = None


class DamageReport(BaseModel):
    """
    Schema the analysis payload must satisfy.

    Extra keys are kept so prompt changes do not break validation.
    """

    model_config = ConfigDict(extra="allow")

    damage_detected: bool
    damages: list[Damage] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    estimated_total_parts_cost_original: str | float | None = None
    estimated_total_parts_cost_alternative: str | float | None = None
    estimated_total_labor_cost: str | float | None = None
    currency: str | None = None
    region: str | None = None
    locale: str | None = None
    summary: str
