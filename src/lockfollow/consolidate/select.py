"""Pick one canonical node per equivalence class."""

from __future__ import annotations

import logging

from lockfollow.consolidate.classify import EquivalenceClass
from lockfollow.lock.graph import LockGraph

log = logging.getLogger(__name__)


def select_representatives(graph: LockGraph, classes: list[EquivalenceClass]) -> dict[str, str]:
    """Map every member of a multi-member class to its class representative.

    The representative is the member reached first by the breadth-first,
    declaration-ordered walk of Direct edges from root. Members the walk
    never reaches rank after all reached ones, by id.
    """
    rank = {node_id: index for index, node_id in enumerate(graph.bfs_order())}
    unreached = len(rank)

    representatives: dict[str, str] = {}
    for cls in classes:
        if cls.is_trivial:
            continue
        ordered = sorted(cls.members, key=lambda nid: (rank.get(nid, unreached), nid))
        rep = ordered[0]
        for member in ordered:
            representatives[member] = rep
        log.debug("Representative for %s: %s (of %d)", graph.node(rep).source.describe(), rep, len(ordered))
    return representatives
