import pytest

from settings_store.models import (
    Settings,
    default_settings,
    normalize_language,
    normalize_port,
)


@pytest.mark.parametrize("value, expected", [
    ("en", "en"),
    ("English", "en"),
    ("ENGLISH", "en"),
    ("  spanish ", "es"),
    ("FR", "fr"),
    ("german", "de"),
    ("Hindi", "hi"),
    ("ja", "ja"),
    ("Japanese", "ja"),
    ("Klingon", "en"),
    ("", "en"),
    (None, "en"),
    (42, "en"),
    (["es"], "en"),
])
def test_normalize_language(value, expected):
    assert normalize_language(value) == expected


@pytest.mark.parametrize("value, expected", [
    ("9000", "9000"),
    (" 9000 ", "9000"),
    (9000, "9000"),
    (9000.0, "9000"),
    ("1", "1"),
    ("65535", "65535"),
    ("1e3", "1000"),
    ("0", ""),
    ("65536", ""),
    ("99999", ""),
    ("-1", ""),
    ("9000.5", ""),
    ("", ""),
    ("abc", ""),
    ("nan", ""),
    ("inf", ""),
    (None, ""),
    (True, ""),
    ({"port": 1}, ""),
])
def test_normalize_port(value, expected):
    assert normalize_port(value) == expected


def test_defaults():
    assert default_settings().to_payload() == {"serverHost": "", "serverPort": "", "defaultLanguage": "en"}


def test_from_input_normalizes_each_field():
    settings = Settings.from_input({"serverHost": "  subgen.local ", "serverPort": "9000", "defaultLanguage": "Spanish"})
    assert settings.to_payload() == {"serverHost": "subgen.local", "serverPort": "9000", "defaultLanguage": "es"}


def test_from_input_invalid_fields_fall_back_to_defaults():
    settings = Settings.from_input({"serverHost": 123, "serverPort": "99999", "defaultLanguage": "Klingon"})
    assert settings.to_payload() == {"serverHost": "", "serverPort": "", "defaultLanguage": "en"}


def test_from_input_ignores_unknown_fields_and_non_mappings():
    assert Settings.from_input({"other": "x"}) == default_settings()
    assert Settings.from_input(None) == default_settings()
    assert Settings.from_input(["not", "a", "mapping"]) == default_settings()


def test_from_input_is_idempotent():
    once = Settings.from_input({"serverHost": " h ", "serverPort": 8080.0, "defaultLanguage": "JAPANESE"})
    twice = Settings.from_input(once.to_payload())
    assert once == twice


def test_model_validate_merges_over_defaults_and_normalizes_language():
    settings = Settings.model_validate({"serverHost": "h", "defaultLanguage": "German", "extra": True})
    assert settings.to_payload() == {"serverHost": "h", "serverPort": "", "defaultLanguage": "de"}


def test_model_validate_coerces_numeric_port():
    assert Settings.model_validate({"serverPort": 9000}).server_port == "9000"


def test_is_configured():
    assert not default_settings().is_configured
    assert not Settings(server_host="h").is_configured
    assert Settings(server_host="h", server_port="9000").is_configured


def test_settings_are_immutable():
    settings = default_settings()
    with pytest.raises(Exception):
        settings.server_host = "changed"
