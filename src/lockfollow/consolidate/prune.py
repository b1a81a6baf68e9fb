"""Drop orphaned nodes and re-key the survivors deterministically."""

from __future__ import annotations

import logging

from lockfollow.lock.graph import LockGraph

log = logging.getLogger(__name__)

ROOT_KEY = "root"


def prune(graph: LockGraph) -> list[str]:
    """Remove every node no edge resolution from root reaches."""
    removed = graph.remove_unreachable()
    for node_id in removed:
        log.debug("Removed orphan %s", node_id)
    if removed:
        log.info("Pruned %d orphaned nodes", len(removed))
    return removed


def rekey(graph: LockGraph) -> dict[str, str]:
    """Rename nodes after the input that first reaches them.

    The root becomes `root`; every other node, in breadth-first order, takes
    the input name it was first reached by, suffixed `_2`, `_3`, ... when that
    key is already taken. The result depends only on the graph's shape, so
    differently-keyed but isomorphic graphs end up with identical keys.

    Returns the old → new key mapping.
    """
    mapping: dict[str, str] = {graph.root: ROOT_KEY}
    taken = {ROOT_KEY}
    for node_id, path in graph.shortest_paths().items():
        if node_id == graph.root:
            continue
        mapping[node_id] = _fresh_key(path[-1], taken)
    for node_id in graph.node_ids():
        if node_id not in mapping:
            mapping[node_id] = _fresh_key(node_id, taken)
    graph.rekey(mapping)
    return mapping


def _fresh_key(name: str, taken: set[str]) -> str:
    key = name
    suffix = 2
    while key in taken:
        key = f"{name}_{suffix}"
        suffix += 1
    taken.add(key)
    return key
