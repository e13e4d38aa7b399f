"""
settings_store.store
--------------------
File-backed settings for the browser: one canonical JSON file under the
config directory, plus a legacy location migrated on first read.

There is no locking; two concurrent saves are last-writer-wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from common.config import AppConfig
from .migrations import migrate_legacy_settings
from .models import Settings
from .storage import read_settings_file, write_settings_file

logger = logging.getLogger(__name__)


class PersistFailedError(RuntimeError):
    """Writing the settings file failed."""


class SettingsStore:
    def __init__(self, config_dir: Path, settings_path: Path, legacy_path: Path | None = None):
        self.config_dir = Path(config_dir)
        self.settings_path = Path(settings_path)
        self.legacy_path = Path(legacy_path) if legacy_path is not None else None

    @classmethod
    def from_config(cls, config: AppConfig) -> SettingsStore:
        return cls(config.config_dir, config.settings_path, config.legacy_settings_path)

    def ensure_config_dir(self) -> None:
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Cannot create config directory %s: %s", self.config_dir, exc)

    def load(self) -> Settings | None:
        """
        Return the stored settings, or None if nothing usable is stored.

        A missing canonical file triggers the legacy migration. Read and
        parse errors are logged and reported as None.
        """
        self.ensure_config_dir()
        try:
            if self.settings_path.exists():
                return read_settings_file(self.settings_path)
            if self.legacy_path is not None:
                return migrate_legacy_settings(self.legacy_path, self.settings_path)
        except (OSError, ValueError) as exc:
            logger.warning("Cannot load settings from %s: %s", self.settings_path, exc)
        return None

    def peek(self) -> Settings | None:
        """Read the canonical file only: no directory creation, no migration."""
        try:
            return read_settings_file(self.settings_path)
        except (OSError, ValueError):
            return None

    def save(self, data: Mapping[str, Any] | None) -> Settings:
        """Normalize ``data`` and replace the stored settings with it."""
        self.ensure_config_dir()
        clean = Settings.from_input(data)
        try:
            write_settings_file(self.settings_path, clean)
        except OSError as exc:
            logger.error("Failed to save settings to %s: %s", self.settings_path, exc)
            raise PersistFailedError(f"Failed to save settings to {self.settings_path}") from exc
        logger.info("Saved settings: %s", clean.to_payload())
        return clean


__all__ = ["PersistFailedError", "SettingsStore"]
