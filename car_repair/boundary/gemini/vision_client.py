"""
Gemini vision client.

Image analysis adapter: sends a task's photos and vehicle descriptor to
Gemini and returns the parsed damage report. Every failure is raised as
an AnalysisError carrying a failure class and a retry decision; a reply
that is not valid report JSON is a failure, never a result.

Dependencies: google-genai, pydantic, car_repair.core
System role: Boundary between the task processor and the vision model
"""

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any

from google import genai
from google.genai import types
from pydantic import ValidationError

from car_repair.configs.gemini import GeminiSettings
from car_repair.core.exceptions import AnalysisError
from car_repair.core.failure_classifier import (
    FailureClass,
    FailureClassification,
    classify_exception,
)
from car_repair.core.task_processing.analysis_prompt import build_car_inspection_prompt
from car_repair.core.task_processing.locale import resolve_locale
from car_repair.models.analysis import AnalysisOutcome, CarInfo, DamageReport, ImageRef

logger = logging.getLogger(__name__)

MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def mime_type_for(path: str) -> str:
    """MIME type from the file extension, JPEG when unknown."""
    return MIME_TYPES.get(Path(path).suffix.lower(), "image/jpeg")


def parse_analysis_text(text: str | None) -> dict[str, Any]:
    """
    Parse and validate the model's reply.

    Markdown code fences around the JSON are tolerated.

    Args:
        text: Raw response text

    Returns:
        dict: Parsed payload, unchanged

    Raises:
        AnalysisError: Empty, non-JSON or schema-invalid reply (retryable)
    """
    if not text or not text.strip():
        raise _error(
            "Model returned an empty response",
            FailureClassification(FailureClass.OUTPUT_INVALID_JSON, "model_empty_response"),
        )

    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise _error(
            f"Model response is not valid JSON: {e.msg} at position {e.pos}",
            FailureClassification(FailureClass.OUTPUT_INVALID_JSON, "model_invalid_json"),
        ) from e

    if not isinstance(payload, dict):
        raise _error(
            f"Model response is a JSON {type(payload).__name__}, expected an object",
            FailureClassification(FailureClass.OUTPUT_INVALID_SCHEMA, "model_invalid_schema"),
        )

    try:
        DamageReport.model_validate(payload)
    except ValidationError as e:
        raise _error(
            f"Model response does not match the report schema: {e.error_count()} error(s)",
            FailureClassification(FailureClass.OUTPUT_INVALID_SCHEMA, "model_invalid_schema"),
            details={"errors": e.errors(include_url=False, include_input=False)[:5]},
        ) from e

    return payload


class GeminiVisionClient:
    """
    Image analysis adapter backed by Google Gemini.

    Uses the synchronous SDK client on a worker thread, bounded by the
    configured timeout both at the HTTP layer and around the await.
    """

    def __init__(self, settings: GeminiSettings, client: genai.Client | None = None) -> None:
        """
        Initialize the adapter.

        Args:
            settings: Model name, API key and timeout
            client: Pre-built SDK client (tests inject a fake)
        """
        self._settings = settings
        self._client = client

    @property
    def model_name(self) -> str:
        return self._settings.model

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._settings.api_key:
                raise _error(
                    "GEMINI_API_KEY is not configured",
                    FailureClassification(FailureClass.ACCESS_OR_AUTH, "model_api_key_missing"),
                )
            self._client = genai.Client(
                api_key=self._settings.api_key,
                http_options=types.HttpOptions(
                    timeout=int(self._settings.request_timeout_seconds * 1000)
                ),
            )
        return self._client

    async def analyze(self, images: list[ImageRef], car_info: CarInfo) -> AnalysisOutcome:
        """
        Analyze a task's photos.

        Args:
            images: At least one photo, read from local storage now
            car_info: Vehicle descriptor and locale preferences

        Returns:
            AnalysisOutcome: Validated payload and the model that produced it

        Raises:
            AnalysisError: Classified failure (see failure_classifier)
        """
        if not images:
            raise _error(
                "At least one image is required",
                FailureClassification(FailureClass.INPUT_INVALID, "no_images"),
            )

        image_parts = [await self._load_image_part(image) for image in images]
        locale = resolve_locale(car_info.country_code, car_info.user_currency, car_info.user_language)
        prompt = build_car_inspection_prompt(car_info, [image.type for image in images], locale)

        logger.info(
            f"{__name__}:analyze - START",
            extra={"model": self.model_name, "image_count": len(images), "currency": locale.currency},
        )

        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    client.models.generate_content,
                    model=self.model_name,
                    contents=[prompt, *image_parts],
                    config=types.GenerateContentConfig(
                        temperature=self._settings.temperature,
                        response_mime_type="application/json",
                    ),
                ),
                timeout=self._settings.request_timeout_seconds,
            )
        except Exception as e:
            classification = classify_exception(e)
            logger.warning(
                f"{__name__}:analyze - Model call failed - {type(e).__name__}: {e}",
                extra={
                    "failure_class": classification.failure_class.value,
                    "retryable": classification.retryable,
                },
            )
            raise _error(f"Gemini call failed: {type(e).__name__}: {e}", classification) from e

        payload = parse_analysis_text(getattr(response, "text", None))
        logger.info(
            f"{__name__}:analyze - END",
            extra={"model": self.model_name, "damage_detected": payload.get("damage_detected")},
        )
        return AnalysisOutcome(
            payload=payload,
            model_used=self.model_name,
            metadata={"currency": locale.currency, "language": locale.language},
        )

    async def _load_image_part(self, image: ImageRef) -> types.Part:
        try:
            data = await asyncio.to_thread(Path(image.path).read_bytes)
        except OSError as e:
            raise _error(
                f"Image not readable: {image.path} ({type(e).__name__})",
                FailureClassification(FailureClass.INPUT_INVALID, "image_unreadable"),
                details={"path": image.path},
            ) from e
        return types.Part.from_bytes(data=data, mime_type=mime_type_for(image.path))


def _error(
    message: str,
    classification: FailureClassification,
    details: dict[str, Any] | None = None,
) -> AnalysisError:
    return AnalysisError(
        message,
        failure_class=classification.failure_class.value,
        reason_code=classification.reason_code,
        retryable=classification.retryable,
        details=details,
    )
