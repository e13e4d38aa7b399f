"""
Runtime configuration for the content browser.

Everything is resolved once from the environment (or explicit arguments) into
an immutable AppConfig, which is handed to the FastAPI app factory and the
settings store instead of living in module globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "SUBGEN_BROWSER_"

DEFAULT_PORT = 8585
DEFAULT_HOST = "127.0.0.1"
SETTINGS_FILENAME = "user-settings.json"


@dataclass(frozen=True)
class AppConfig:
    """Filesystem locations and listen address of one browser instance."""

    base_dir: Path
    content_dir: Path
    config_dir: Path
    legacy_settings_path: Path
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    tree_max_depth: int | None = None

    @property
    def settings_path(self) -> Path:
        return self.config_dir / SETTINGS_FILENAME

    @classmethod
    def from_base_dir(cls, base_dir: str | os.PathLike, **overrides) -> AppConfig:
        """Default layout: content/, config/ and the legacy file under base_dir."""
        base = Path(base_dir).resolve()
        values = {
            "base_dir": base,
            "content_dir": base / "content",
            "config_dir": base / "config",
            "legacy_settings_path": base / SETTINGS_FILENAME,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_env(cls, base_dir: str | os.PathLike | None = None) -> AppConfig:
        """
        Build the config from SUBGEN_BROWSER_* variables.

        base_dir defaults to $SUBGEN_BROWSER_BASE_DIR, then the current directory.
        """
        base = base_dir or _env("BASE_DIR") or os.getcwd()
        content_dir = _env("CONTENT_DIR")
        config_dir = _env("CONFIG_DIR")
        return cls.from_base_dir(
            base,
            content_dir=Path(content_dir).resolve() if content_dir else None,
            config_dir=Path(config_dir).resolve() if config_dir else None,
            port=_env_int("PORT"),
            host=_env("HOST"),
            tree_max_depth=_env_int("TREE_MAX_DEPTH"),
        )


def _env(name: str) -> str | None:
    value = os.environ.get(ENV_PREFIX + name, "").strip()
    return value or None


def _env_int(name: str) -> int | None:
    raw = _env(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


__all__ = ["AppConfig", "DEFAULT_HOST", "DEFAULT_PORT", "SETTINGS_FILENAME"]
