"""Consolidation driver: decode → classify → select → rewrite → prune → encode."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lockfollow.consolidate.classify import classify
from lockfollow.consolidate.models import ConsolidationReport, ReferenceCounts
from lockfollow.consolidate.prune import prune, rekey
from lockfollow.consolidate.rewrite import rewrite_duplicates
from lockfollow.consolidate.select import select_representatives
from lockfollow.lock.codec import decode, encode
from lockfollow.lock.graph import LockGraph

log = logging.getLogger(__name__)


@dataclass
class ConsolidateOptions:
    """Knobs for a consolidation run."""
    indexed: bool = False   # rewrite to Direct edges on the representative, not follows
    pretty: bool = False    # indented JSON output
    max_passes: int = 32    # upper bound on rewrite passes before giving up on a fixpoint
    workers: int = 1        # signature thread pool size; 1 = sequential


@dataclass
class ConsolidationResult:
    graph: LockGraph
    report: ConsolidationReport = field(default_factory=ConsolidationReport)


def consolidate(graph: LockGraph, options: ConsolidateOptions | None = None) -> ConsolidationResult:
    """Consolidate `graph` in place and re-key it for encoding.

    Passes repeat until one performs no rewrite. Pruning can change which
    member of a class is discovered first, so a single pass is not always a
    fixpoint; iterating makes consolidating the output again a no-op.

    Args:
        graph: Decoded lock graph; mutated in place.
        options: Run options. Defaults to follows mode.

    Returns:
        ConsolidationResult with the (same) graph and a report whose node ids
        are the decoded keys, plus `key_map` to the emitted keys.
    """
    options = options or ConsolidateOptions()
    report = ConsolidationReport(nodes_before=len(graph))

    for pass_number in range(1, options.max_passes + 1):
        classes = classify(graph, workers=options.workers)
        if pass_number == 1:
            report.duplicate_classes = sum(1 for c in classes if not c.is_trivial)

        representatives = select_representatives(graph, classes)
        rewritten = rewrite_duplicates(
            graph,
            representatives,
            indexed=options.indexed,
            pass_number=pass_number,
        )
        report.removed.extend(prune(graph))
        # Inputs of duplicates that were pruned away are not worth reporting
        report.rewrites.extend(r for r in rewritten.rewrites if r.node in graph)
        report.skipped = [s for s in rewritten.skipped if s.node in graph]
        report.passes = pass_number

        if not rewritten.rewrites:
            break
    else:
        log.warning(
            "No fixpoint after %d passes; output may consolidate further",
            options.max_passes,
        )

    report.key_map = rekey(graph)
    report.nodes_after = len(graph)
    log.info(
        "Consolidated %d -> %d nodes in %d passes (%d rewrites, %d skipped)",
        report.nodes_before, report.nodes_after, report.passes,
        len(report.rewrites), len(report.skipped),
    )
    return ConsolidationResult(graph=graph, report=report)


def consolidate_text(
    raw: str | bytes,
    options: ConsolidateOptions | None = None,
) -> tuple[str, ConsolidationReport]:
    """decode → consolidate → encode. Decode errors propagate before any work."""
    options = options or ConsolidateOptions()
    graph = decode(raw)
    result = consolidate(graph, options)
    return encode(result.graph, pretty=options.pretty), result.report


def count_references(graph: LockGraph) -> ReferenceCounts:
    return ReferenceCounts(root=graph.root, counts=graph.reference_counts())
