"""
Test suite for GeminiVisionClient and reply parsing.

The SDK client is replaced by a fake exposing `models.generate_content`;
no request leaves the process.
"""

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from google.genai import errors as genai_errors

from car_repair.boundary.gemini.vision_client import GeminiVisionClient, mime_type_for, parse_analysis_text
from car_repair.configs.gemini import GeminiSettings
from car_repair.core.exceptions import AnalysisError
from car_repair.models.analysis import CarInfo, ImageRef

VALID_REPORT = {"damage_detected": True, "damages": [{"location": "front bumper", "severity": "minor"}], "summary": "Scuffed bumper"}


class FakeModels:
    def __init__(self, reply: Any) -> None:
        self.reply = reply
        self.calls: list[dict[str, Any]] = []

    def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if isinstance(self.reply, BaseException):
            raise self.reply
        return SimpleNamespace(text=self.reply)


class FakeClient:
    def __init__(self, reply: Any) -> None:
        self.models = FakeModels(reply)


@pytest.fixture
def gemini_settings() -> GeminiSettings:
    return GeminiSettings(api_key="test-key", model="gemini-test", request_timeout_seconds=5)


@pytest.fixture
def images(image_file: Path) -> list[ImageRef]:
    return [ImageRef(type="front", path=str(image_file))]


class TestParseAnalysisText:
    """Test suite for parse_analysis_text()."""

    def test_parse_should_return_payload_unchanged(self) -> None:
        # Act
        payload = parse_analysis_text(json.dumps(VALID_REPORT))

        # Assert
        assert payload == VALID_REPORT

    def test_parse_should_strip_markdown_fences(self) -> None:
        # Arrange
        text = "```json\n" + json.dumps(VALID_REPORT) + "\n```"

        # Act
        payload = parse_analysis_text(text)

        # Assert
        assert payload["summary"] == "Scuffed bumper"

    def test_parse_should_keep_unknown_keys(self) -> None:
        # Act
        payload = parse_analysis_text(json.dumps({**VALID_REPORT, "confidence": 0.9}))

        # Assert
        assert payload["confidence"] == 0.9

    @pytest.mark.parametrize(
        "text,failure_class",
        [
            ("", "output_invalid_json"),
            ("I could not see the car", "output_invalid_json"),
            ("[1, 2]", "output_invalid_schema"),
            ('{"damage_detected": true}', "output_invalid_schema"),
            ('{"damage_detected": "perhaps", "summary": "x"}', "output_invalid_schema"),
        ],
    )
    def test_parse_should_raise_retryable_error_for_bad_replies(self, text: str, failure_class: str) -> None:
        # Act
        with pytest.raises(AnalysisError) as exc_info:
            parse_analysis_text(text)

        # Assert
        assert exc_info.value.failure_class == failure_class
        assert exc_info.value.retryable is True


class TestAnalyze:
    """Test suite for GeminiVisionClient.analyze()."""

    @pytest.mark.asyncio
    async def test_analyze_should_send_prompt_and_images(
        self, gemini_settings: GeminiSettings, images: list[ImageRef]
    ) -> None:
        # Arrange
        fake = FakeClient(json.dumps(VALID_REPORT))
        client = GeminiVisionClient(gemini_settings, client=fake)

        # Act
        outcome = await client.analyze(images, CarInfo(brand="Ford", model="Focus", country_code="DE"))

        # Assert
        assert outcome.payload == VALID_REPORT
        assert outcome.model_used == "gemini-test"
        assert outcome.metadata == {"currency": "EUR", "language": "de"}
        call = fake.models.calls[0]
        assert call["model"] == "gemini-test"
        assert "Ford Focus" in call["contents"][0]
        assert len(call["contents"]) == 2
        assert call["config"].response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_analyze_should_reject_empty_image_list(self, gemini_settings: GeminiSettings) -> None:
        # Arrange
        client = GeminiVisionClient(gemini_settings, client=FakeClient("{}"))

        # Act
        with pytest.raises(AnalysisError) as exc_info:
            await client.analyze([], CarInfo())

        # Assert
        assert exc_info.value.failure_class == "input_invalid"
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_analyze_should_fail_fatally_for_unreadable_image(
        self, gemini_settings: GeminiSettings, tmp_path: Path
    ) -> None:
        # Arrange
        client = GeminiVisionClient(gemini_settings, client=FakeClient("{}"))
        missing = [ImageRef(type="front", path=str(tmp_path / "gone.jpg"))]

        # Act
        with pytest.raises(AnalysisError) as exc_info:
            await client.analyze(missing, CarInfo())

        # Assert
        assert exc_info.value.reason_code == "image_unreadable"
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_analyze_should_fail_fatally_without_api_key(self, images: list[ImageRef]) -> None:
        # Arrange
        client = GeminiVisionClient(GeminiSettings(api_key=None))

        # Act
        with pytest.raises(AnalysisError) as exc_info:
            await client.analyze(images, CarInfo())

        # Assert
        assert exc_info.value.failure_class == "access_or_auth"
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,failure_class,retryable",
        [
            (
                genai_errors.ClientError(429, {"error": {"code": 429, "message": "Too many requests", "status": "RESOURCE_EXHAUSTED"}}),
                "rate_limited",
                True,
            ),
            (
                genai_errors.ServerError(500, {"error": {"code": 500, "message": "Internal error", "status": "INTERNAL"}}),
                "backend_transient",
                True,
            ),
            (
                genai_errors.ClientError(404, {"error": {"code": 404, "message": "model not found", "status": "NOT_FOUND"}}),
                "model_not_available",
                False,
            ),
            (TimeoutError("deadline"), "timeout", True),
        ],
    )
    async def test_analyze_should_classify_sdk_errors(
        self,
        gemini_settings: GeminiSettings,
        images: list[ImageRef],
        error: BaseException,
        failure_class: str,
        retryable: bool,
    ) -> None:
        # Arrange
        client = GeminiVisionClient(gemini_settings, client=FakeClient(error))

        # Act
        with pytest.raises(AnalysisError) as exc_info:
            await client.analyze(images, CarInfo())

        # Assert
        assert exc_info.value.failure_class == failure_class
        assert exc_info.value.retryable is retryable

    @pytest.mark.asyncio
    async def test_analyze_should_treat_non_json_reply_as_retryable_failure(
        self, gemini_settings: GeminiSettings, images: list[ImageRef]
    ) -> None:
        # Arrange
        client = GeminiVisionClient(gemini_settings, client=FakeClient("Sorry, I cannot help with that."))

        # Act
        with pytest.raises(AnalysisError) as exc_info:
            await client.analyze(images, CarInfo())

        # Assert
        assert exc_info.value.failure_class == "output_invalid_json"
        assert exc_info.value.retryable is True


@pytest.mark.parametrize(
    "path,expected",
    [("a.JPG", "image/jpeg"), ("b.png", "image/png"), ("c.webp", "image/webp"), ("d.bin", "image/jpeg")],
)
def test_mime_type_for(path: str, expected: str) -> None:
    assert mime_type_for(path) == expected
