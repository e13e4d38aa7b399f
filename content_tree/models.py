"""Pydantic models describing a snapshot of the content directory."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

NodeType = Literal["file", "folder"]


class TreeNode(BaseModel):
    """One file or folder, with its children already filtered and sorted."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str = Field(default="", description="Slash-separated path relative to the content root")
    type: NodeType
    children: list[TreeNode] = Field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return self.type == "folder"

    def sort_key(self) -> tuple[int, str, str]:
        """Folders first, then case-insensitive name; lowercase wins a tie."""
        return (0 if self.is_folder else 1, self.name.casefold(), self.name.swapcase())

    def iter_nodes(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()


__all__ = ["NodeType", "TreeNode"]
