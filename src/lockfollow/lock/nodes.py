"""LockNode and edge dataclasses: pure data, no logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from lockfollow.lock.sources import LockedSource


@dataclass(frozen=True)
class Direct:
    target: str  # LockNode.id

    def __str__(self) -> str:
        return self.target


@dataclass(frozen=True)
class FollowsPath:
    path: tuple[str, ...]  # input names walked from root

    def __str__(self) -> str:
        return "/".join(self.path)


Edge = Union[Direct, FollowsPath]


@dataclass
class LockNode:
    id: str
    source: LockedSource | None = None      # None only for the root node
    inputs: dict[str, Edge] = field(default_factory=dict)  # declaration order
    original_spec: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)    # "flake", "parent", ...
