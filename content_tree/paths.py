"""Resolution of user supplied relative paths inside the content root."""

from __future__ import annotations

import os
from pathlib import Path


class InvalidPathError(ValueError):
    """The requested path normalizes to a location outside the content root."""

    def __init__(self, requested: str | None, root: str | os.PathLike):
        super().__init__(f"Path {requested!r} escapes content root {os.fspath(root)!r}")
        self.requested = requested
        self.root = os.fspath(root)


def resolve_content_path(root: str | os.PathLike, requested: str | None) -> Path:
    """
    Join ``requested`` onto ``root`` and normalize ``.``/``..`` segments.

    The normalized path must be the root itself or lie below it, otherwise
    InvalidPathError is raised. This is a textual check on the absolute path:
    symlinks inside the root are not resolved.
    """
    root_str = os.path.abspath(os.fspath(root))
    full = os.path.normpath(os.path.join(root_str, requested or ""))
    if full != root_str and not full.startswith(root_str.rstrip(os.sep) + os.sep):
        raise InvalidPathError(requested, root_str)
    return Path(full)


def to_relative_path(root: str | os.PathLike, path: str | os.PathLike) -> str:
    """Slash-separated path of ``path`` relative to ``root``; the root itself is ``""``."""
    rel = os.path.relpath(os.fspath(path), os.fspath(root))
    if rel == os.curdir:
        return ""
    return rel.replace(os.sep, "/")


__all__ = ["InvalidPathError", "resolve_content_path", "to_relative_path"]
