"""Recursive directory walk producing TreeNode snapshots."""

from __future__ import annotations

import logging
import os
import stat

from .models import TreeNode
from .paths import to_relative_path

logger = logging.getLogger(__name__)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def display_text(name: str) -> str:
    """Undecodable bytes in file names become U+FFFD so nodes stay JSON-safe."""
    return os.fsencode(name).decode("utf-8", "replace")


def build_tree(path: str | os.PathLike, base: str | os.PathLike | None = None, *, max_depth: int | None = None) -> TreeNode | None:
    """
    Build the tree rooted at ``path``.

    Returns None when ``path`` cannot be stat'ed. Paths on every node are
    relative to ``base`` (defaults to ``path``). Folders nested deeper than
    ``max_depth`` levels below ``base`` are returned without children.
    """
    path = os.path.abspath(os.fspath(path))
    base = path if base is None else os.path.abspath(os.fspath(base))
    return _build(path, base, 0, max_depth)


def _build(path: str, base: str, depth: int, max_depth: int | None) -> TreeNode | None:
    try:
        st = os.stat(path)
    except OSError:
        logger.debug("Skipping %s: cannot stat", path)
        return None

    name = display_text(os.path.basename(path))
    rel_path = display_text(to_relative_path(base, path))
    if not stat.S_ISDIR(st.st_mode):
        return TreeNode(name=name, path=rel_path, type="file")

    children: list[TreeNode] = []
    if max_depth is not None and depth >= max_depth:
        logger.debug("Depth limit %d reached at %s", max_depth, path)
    else:
        try:
            entries = os.listdir(path)
        except OSError as exc:
            logger.warning("Cannot list %s, treating it as empty: %s", path, exc)
            entries = []
        for entry in entries:
            if is_hidden(entry):
                continue
            child = _build(os.path.join(path, entry), base, depth + 1, max_depth)
            if child is not None:
                children.append(child)
        children.sort(key=TreeNode.sort_key)

    return TreeNode(name=name, path=rel_path, type="folder", children=children)


__all__ = ["build_tree", "display_text", "is_hidden"]
