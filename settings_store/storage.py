"""Reading and writing settings files as formatted JSON."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from .models import Settings


def read_settings_file(path: Path) -> Settings:
    """
    Parse a settings file, merging its fields over the defaults.

    Raises OSError if the file cannot be read and ValueError if it is not a
    JSON object.
    """
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return Settings.model_validate(raw)


def dump_settings(settings: Settings) -> str:
    return json.dumps(settings.to_payload(), indent=2)


def write_settings_file(path: Path, settings: Settings) -> None:
    """Serialize ``settings`` and atomically replace ``path`` with it."""
    text = dump_settings(settings)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


__all__ = ["dump_settings", "read_settings_file", "write_settings_file"]
