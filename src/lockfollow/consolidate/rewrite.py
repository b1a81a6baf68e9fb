"""Rewrite edges that pin duplicates into follows paths to the representative."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lockfollow.consolidate.classify import Signature, signature
from lockfollow.consolidate.models import RewriteRecord, SkippedRewrite
from lockfollow.errors import UnresolvableFollows
from lockfollow.lock.codec import encode_edge
from lockfollow.lock.graph import LockGraph
from lockfollow.lock.nodes import Direct, Edge, FollowsPath

log = logging.getLogger(__name__)


@dataclass
class RewritePass:
    rewrites: list[RewriteRecord] = field(default_factory=list)
    skipped: list[SkippedRewrite] = field(default_factory=list)


def rewrite_duplicates(
    graph: LockGraph,
    representatives: dict[str, str],
    *,
    indexed: bool = False,
    pass_number: int = 1,
) -> RewritePass:
    """Point every Direct edge at a duplicate to that duplicate's representative.

    Paths are root-anchored and only step through non-duplicate nodes. Edges
    between non-duplicates are never rewritten, so a path computed once at
    the start of the pass stays valid for the whole pass.

    A rewrite is skipped when the representative has no such path, or when it
    would break (or change the content behind) a follows edge that is already
    in the graph. Skipped edges stay Direct pins.
    """
    duplicates = {nid for nid, rep in representatives.items() if nid != rep}
    result = RewritePass()
    if not duplicates:
        return result

    order = graph.bfs_order()
    paths = graph.shortest_paths(through=lambda nid: nid not in duplicates)
    expected = _follows_targets(graph)

    for node_id in order:
        for name, edge in list(graph.node(node_id).inputs.items()):
            if not isinstance(edge, Direct) or edge.target not in duplicates:
                continue
            dup = edge.target
            rep = representatives[dup]

            path = paths.get(rep)
            if path is None:
                skip = SkippedRewrite(
                    node=node_id, input=name, duplicate=dup, representative=rep,
                    reason="representative_unreachable",
                    detail=_unreachable_detail(graph, rep, duplicates),
                )
                result.skipped.append(skip)
                log.warning(
                    "Keeping %s.%s pinned to %s: representative %s is not reachable (%s)",
                    node_id, name, dup, rep, skip.detail,
                )
                continue

            new_edge: Edge = Direct(rep) if indexed else FollowsPath(path)
            old_edge = graph.replace_edge(node_id, name, new_edge)

            broken = _first_broken(graph, expected)
            if broken is not None:
                graph.replace_edge(node_id, name, old_edge)
                skip = SkippedRewrite(
                    node=node_id, input=name, duplicate=dup, representative=rep,
                    reason="breaks_existing_follows",
                    detail=f"{broken[0]}.{broken[1]}",
                )
                result.skipped.append(skip)
                log.warning(
                    "Keeping %s.%s pinned to %s: rewrite would change follows %s",
                    node_id, name, dup, skip.detail,
                )
                continue

            if isinstance(new_edge, FollowsPath):
                expected[(node_id, name)] = _content_at(graph, rep)
            result.rewrites.append(RewriteRecord(
                node=node_id, input=name, duplicate=dup, representative=rep,
                edge=encode_edge(new_edge), pass_number=pass_number,
            ))
            log.debug("%s.%s: %s -> %s", node_id, name, dup, new_edge)

    log.info(
        "Pass %d: rewrote %d edges, skipped %d",
        pass_number, len(result.rewrites), len(result.skipped),
    )
    return result


def _content_at(graph: LockGraph, node_id: str) -> Signature | None:
    node = graph.node(node_id)
    return signature(node) if node.source is not None else None


def _follows_targets(graph: LockGraph) -> dict[tuple[str, str], Signature | None]:
    """Content every existing follows edge currently resolves to."""
    return {
        (node_id, name): _content_at(graph, graph.resolve_follows(edge.path))
        for node_id, name, edge in graph.follows_edges()
    }


def _first_broken(
    graph: LockGraph,
    expected: dict[tuple[str, str], Signature | None],
) -> tuple[str, str] | None:
    for (node_id, name), content in expected.items():
        edge = graph.node(node_id).inputs[name]
        if not isinstance(edge, FollowsPath):
            continue
        try:
            target = graph.resolve_follows(edge.path)
        except UnresolvableFollows:
            return node_id, name
        if _content_at(graph, target) != content:
            return node_id, name
    return None


def _unreachable_detail(graph: LockGraph, rep: str, duplicates: set[str]) -> str:
    chain = graph.ancestors(rep)
    if not chain:
        return "not reachable from root"
    shadowing = [nid for nid in chain[1:] if nid in duplicates]
    if shadowing:
        return f"only reachable through duplicate {shadowing[-1]!r}"
    return "no path through non-duplicate nodes"
