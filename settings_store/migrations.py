"""One-time migration of the legacy settings file to the canonical location."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import Settings
from .storage import read_settings_file, write_settings_file

logger = logging.getLogger(__name__)


def migrate_legacy_settings(legacy_path: Path, settings_path: Path) -> Settings | None:
    """
    Copy normalized legacy settings to ``settings_path``.

    Returns the migrated settings, or None when there is nothing to do: the
    canonical file already exists or there is no legacy file. The legacy file
    is never modified or removed. Read, parse and write errors propagate.
    """
    if settings_path.exists():
        logger.debug("Canonical settings %s present, skipping migration", settings_path)
        return None
    if not legacy_path.exists():
        return None
    settings = read_settings_file(legacy_path)
    write_settings_file(settings_path, settings)
    logger.info("Migrated legacy settings %s -> %s", legacy_path, settings_path)
    return settings


__all__ = ["migrate_legacy_settings"]
