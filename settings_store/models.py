"""Settings model and the normalization rules applied to untrusted input."""

from __future__ import annotations

import math
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LANGUAGE = "en"

SUPPORTED_LANGUAGES = ("en", "es", "fr", "de", "hi", "ja")

# full name or code (lowercase) -> code
LANGUAGE_MAP: dict[str, str] = {
    "english": "en", "en": "en",
    "spanish": "es", "es": "es",
    "french": "fr", "fr": "fr",
    "german": "de", "de": "de",
    "hindi": "hi", "hi": "hi",
    "japanese": "ja", "ja": "ja",
}

MIN_PORT = 1
MAX_PORT = 65535


def normalize_language(value: Any) -> str:
    """Map a language name or code onto a supported code, ``en`` for anything else."""
    if not isinstance(value, str) or not value:
        return DEFAULT_LANGUAGE
    return LANGUAGE_MAP.get(value.strip().lower(), DEFAULT_LANGUAGE)


def normalize_port(value: Any) -> str:
    """
    Return the port as a decimal string, or ``""`` if it is not an integer in [1, 65535].

    Accepts ints, integral floats and numeric strings ("9000", " 9000 ", "9e3").
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return ""
    elif isinstance(value, (int, float)):
        number = value
    else:
        return ""
    if isinstance(number, float):
        if not math.isfinite(number) or not number.is_integer():
            return ""
        number = int(number)
    if MIN_PORT <= number <= MAX_PORT:
        return str(number)
    return ""


def normalize_host(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class Settings(BaseModel):
    """Connection settings for the Subgen server plus the default language."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    server_host: str = Field(default="", alias="serverHost")
    server_port: str = Field(default="", alias="serverPort")
    default_language: str = Field(default=DEFAULT_LANGUAGE, alias="defaultLanguage")

    @field_validator("server_host", "server_port", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("default_language", mode="before")
    @classmethod
    def _normalize_language(cls, value: Any) -> str:
        return normalize_language(value)

    @property
    def is_configured(self) -> bool:
        return bool(self.server_host and self.server_port)

    def to_payload(self) -> dict[str, str]:
        """JSON shape used on disk and over the API (camelCase keys)."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_input(cls, data: Mapping[str, Any] | None) -> Settings:
        """
        Validate candidate fields the way a save does.

        Every field is normalized independently; invalid values fall back to
        their default instead of raising.
        """
        data = data if isinstance(data, Mapping) else {}
        return cls(
            server_host=normalize_host(data.get("serverHost")),
            server_port=normalize_port(data.get("serverPort")),
            default_language=normalize_language(data.get("defaultLanguage")),
        )


def default_settings() -> Settings:
    return Settings()


__all__ = [
    "DEFAULT_LANGUAGE",
    "LANGUAGE_MAP",
    "SUPPORTED_LANGUAGES",
    "Settings",
    "default_settings",
    "normalize_host",
    "normalize_language",
    "normalize_port",
]
