"""
Test suite for report locale resolution and the inspection prompt.
"""

import pytest

from car_repair.core.task_processing.analysis_prompt import build_car_inspection_prompt, describe_image_type
from car_repair.core.task_processing.locale import DEFAULT_PROFILE, resolve_locale
from car_repair.models.analysis import CarInfo


class TestResolveLocale:
    """Test suite for resolve_locale()."""

    @pytest.mark.parametrize(
        "country,currency,language,region",
        [
            ("DE", "EUR", "de", "Germany"),
            ("gb", "GBP", "en", "United Kingdom"),
            ("PL", "PLN", "pl", "Poland"),
        ],
    )
    def test_resolve_should_use_country_profile(
        self, country: str, currency: str, language: str, region: str
    ) -> None:
        # Act
        profile = resolve_locale(country)

        # Assert
        assert (profile.currency, profile.language, profile.region) == (currency, language, region)

    def test_resolve_should_fall_back_to_default_for_unknown_country(self) -> None:
        # Act / Assert
        assert resolve_locale("ZZ") == DEFAULT_PROFILE
        assert resolve_locale(None) == DEFAULT_PROFILE

    def test_owner_preferences_should_override_country(self) -> None:
        # Act
        profile = resolve_locale("DE", user_currency="usd", user_language="en-GB")

        # Assert
        assert profile.currency == "USD"
        assert profile.language == "en"
        assert profile.region == "Germany"
        assert profile.locale_tag == "en-DE"


class TestBuildCarInspectionPrompt:
    """Test suite for build_car_inspection_prompt()."""

    def test_prompt_should_describe_vehicle_images_and_locale(self) -> None:
        # Arrange
        car_info = CarInfo(brand="Skoda", model="Octavia", year=2016, mileage=120000, description="Scratched door")
        locale = resolve_locale("CZ")

        # Act
        prompt = build_car_inspection_prompt(car_info, ["front", "issue"], locale)

        # Assert
        assert "Skoda Octavia (2016) with 120000 km" in prompt
        assert "Images (in order): Front view, Issue/Damage close-up" in prompt
        assert "Owner's description: Scratched door" in prompt
        assert "CZK" in prompt
        assert "Czech" in prompt
        assert '"locale": "cs-CZ"' in prompt

    def test_prompt_should_handle_missing_vehicle_details(self) -> None:
        # Act
        prompt = build_car_inspection_prompt(CarInfo(), ["unknown"], DEFAULT_PROFILE)

        # Assert
        assert "Unknown Unknown (unknown year) with unknown km" in prompt
        assert "Owner's description" not in prompt

    def test_unknown_image_type_should_use_generic_label(self) -> None:
        # Act / Assert
        assert describe_image_type("roof") == "Additional view"
