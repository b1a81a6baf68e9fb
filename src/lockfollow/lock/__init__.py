"""Lock graph package: node model, source kinds, graph arena, and codec.

Provides:
    decode(raw) -> LockGraph
    encode(graph, pretty=False) -> str
"""

from __future__ import annotations

from lockfollow.lock.codec import (
    MAX_SUPPORTED_LOCK_VERSION,
    MIN_SUPPORTED_LOCK_VERSION,
    decode,
    encode,
)
from lockfollow.lock.graph import LockGraph
from lockfollow.lock.nodes import Direct, Edge, FollowsPath, LockNode
from lockfollow.lock.sources import LockedSource

__all__ = [
    "Direct",
    "Edge",
    "FollowsPath",
    "LockGraph",
    "LockNode",
    "LockedSource",
    "MAX_SUPPORTED_LOCK_VERSION",
    "MIN_SUPPORTED_LOCK_VERSION",
    "decode",
    "encode",
]
