"""
Report locale resolution.

Derives currency, language and pricing region for a report from the
task's country code, letting the owner's saved preferences override.

Dependencies: None (pure domain logic)
System role: Localization input for the analysis prompt
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LocaleProfile:
    """Currency, language and pricing region for one report."""

    currency: str
    language: str
    region: str

    @property
    def locale_tag(self) -> str:
        """BCP 47-style tag, e.g. "de-DE"."""
        return f"{self.language}-{self.region_code}" if self.region_code else self.language

    @property
    def region_code(self) -> str:
        return _REGION_CODES.get(self.region, "")


DEFAULT_PROFILE = LocaleProfile(currency="USD", language="en", region="United States")

COUNTRY_PROFILES: dict[str, LocaleProfile] = {
    "US": DEFAULT_PROFILE,
    "CA": LocaleProfile("CAD", "en", "Canada"),
    "GB": LocaleProfile("GBP", "en", "United Kingdom"),
    "IE": LocaleProfile("EUR", "en", "Ireland"),
    "AU": LocaleProfile("AUD", "en", "Australia"),
    "NZ": LocaleProfile("NZD", "en", "New Zealand"),
    "DE": LocaleProfile("EUR", "de", "Germany"),
    "AT": LocaleProfile("EUR", "de", "Austria"),
    "CH": LocaleProfile("CHF", "de", "Switzerland"),
    "FR": LocaleProfile("EUR", "fr", "France"),
    "BE": LocaleProfile("EUR", "fr", "Belgium"),
    "ES": LocaleProfile("EUR", "es", "Spain"),
    "IT": LocaleProfile("EUR", "it", "Italy"),
    "PT": LocaleProfile("EUR", "pt", "Portugal"),
    "NL": LocaleProfile("EUR", "nl", "Netherlands"),
    "PL": LocaleProfile("PLN", "pl", "Poland"),
    "CZ": LocaleProfile("CZK", "cs", "Czech Republic"),
    "UA": LocaleProfile("UAH", "uk", "Ukraine"),
    "SE": LocaleProfile("SEK", "sv", "Sweden"),
    "NO": LocaleProfile("NOK", "no", "Norway"),
    "DK": LocaleProfile("DKK", "da", "Denmark"),
    "JP": LocaleProfile("JPY", "ja", "Japan"),
    "BR": LocaleProfile("BRL", "pt", "Brazil"),
    "MX": LocaleProfile("MXN", "es", "Mexico"),
    "IN": LocaleProfile("INR", "en", "India"),
}

_REGION_CODES: dict[str, str] = {profile.region: code for code, profile in COUNTRY_PROFILES.items()}

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "pl": "Polish",
    "cs": "Czech",
    "uk": "Ukrainian",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "ja": "Japanese",
}


def resolve_locale(
    country_code: str | None,
    user_currency: str | None = None,
    user_language: str | None = None,
) -> LocaleProfile:
    """
    Resolve the report locale.

    Args:
        country_code: ISO 3166-1 alpha-2 code of the task (case-insensitive)
        user_currency: Owner's preferred ISO 4217 currency, overrides the country's
        user_language: Owner's preferred language code, overrides the country's

    Returns:
        LocaleProfile: Unknown countries fall back to USD / English / United States
    """
    base = COUNTRY_PROFILES.get((country_code or "").strip().upper(), DEFAULT_PROFILE)
    currency = (user_currency or "").strip().upper() or base.currency
    language = (user_language or "").strip().lower().split("-")[0] or base.language
    return LocaleProfile(currency=currency, language=language, region=base.region)


def language_name(code: str) -> str:
    """Human-readable language name for the prompt (falls back to the code)."""
    return LANGUAGE_NAMES.get(code, code)
