"""Content browsing: safe path resolution and directory tree snapshots."""

from .models import NodeType, TreeNode
from .paths import InvalidPathError, resolve_content_path, to_relative_path
from .tree import build_tree

__all__ = [
    "InvalidPathError",
    "NodeType",
    "TreeNode",
    "build_tree",
    "resolve_content_path",
    "to_relative_path",
]
