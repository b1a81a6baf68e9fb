"""Consolidation stages: classify → select → rewrite → prune → rekey."""

from __future__ import annotations

from lockfollow.consolidate.classify import EquivalenceClass, Signature, classify, signature
from lockfollow.consolidate.models import (
    ConsolidationReport,
    ReferenceCounts,
    RewriteRecord,
    SkippedRewrite,
)
from lockfollow.consolidate.prune import prune, rekey
from lockfollow.consolidate.rewrite import RewritePass, rewrite_duplicates
from lockfollow.consolidate.select import select_representatives

__all__ = [
    "ConsolidationReport",
    "EquivalenceClass",
    "ReferenceCounts",
    "RewritePass",
    "RewriteRecord",
    "Signature",
    "SkippedRewrite",
    "classify",
    "prune",
    "rekey",
    "rewrite_duplicates",
    "select_representatives",
    "signature",
]
