"""Partition pinned nodes into content-equivalence classes."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from lockfollow.lock.graph import LockGraph
from lockfollow.lock.nodes import LockNode
from lockfollow.lock.sources import PathSource

log = logging.getLogger(__name__)

# (discriminant, ((field, canonical JSON value), ...) sorted by field)
Signature = tuple[str, tuple[tuple[str, str], ...]]

# Minimum pinned node count for hashing signatures in a thread pool
_PARALLEL_THRESHOLD = 256


@dataclass
class EquivalenceClass:
    signature: Signature
    members: list[str]  # BFS discovery order, unreachable nodes last

    @property
    def is_trivial(self) -> bool:
        return len(self.members) < 2


def signature(node: LockNode) -> Signature:
    """Canonical content signature of a node's pin.

    Ignores the node id, the unlocked `original` spec, the node's inputs, and
    carried node fields such as `flake`. A path pin without a `narHash` is
    relative to its `parent`, so the parent takes part in its signature.
    """
    if node.source is None:
        raise ValueError(f"node {node.id!r} has no pin")
    fields = node.source.fields()
    if isinstance(node.source, PathSource) and "narHash" not in fields:
        fields["@parent"] = node.extra.get("parent")
    return (
        node.source.type,
        tuple(sorted((name, _canonical(value)) for name, value in fields.items())),
    )


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def classify(graph: LockGraph, *, workers: int = 1) -> list[EquivalenceClass]:
    """Group every pinned node by signature.

    Class order and member order follow the BFS from root, so the first
    member of every class is its earliest-discovered node.
    """
    bfs = graph.bfs_order()
    seen = set(bfs)
    order = bfs + sorted(nid for nid in graph.node_ids() if nid not in seen)
    candidates = [
        graph.node(nid) for nid in order
        if nid != graph.root and graph.node(nid).source is not None
    ]

    if workers > 1 and len(candidates) >= _PARALLEL_THRESHOLD:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            signatures = list(pool.map(signature, candidates))
    else:
        signatures = [signature(node) for node in candidates]

    groups: dict[Signature, list[str]] = {}
    for node, sig in zip(candidates, signatures):
        groups.setdefault(sig, []).append(node.id)

    classes = [EquivalenceClass(signature=sig, members=members) for sig, members in groups.items()]
    log.info(
        "Classified %d pinned nodes into %d classes (%d with duplicates)",
        len(candidates), len(classes), sum(1 for c in classes if not c.is_trivial),
    )
    return classes
