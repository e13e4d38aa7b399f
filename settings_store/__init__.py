"""Persisted Subgen connection settings."""

from .migrations import migrate_legacy_settings
from .models import (
    DEFAULT_LANGUAGE,
    SUPPORTED_LANGUAGES,
    Settings,
    default_settings,
    normalize_language,
    normalize_port,
)
from .store import PersistFailedError, SettingsStore

__all__ = [
    "DEFAULT_LANGUAGE",
    "PersistFailedError",
    "SUPPORTED_LANGUAGES",
    "Settings",
    "SettingsStore",
    "default_settings",
    "migrate_legacy_settings",
    "normalize_language",
    "normalize_port",
]
