"""Pydantic models for consolidation reports."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class RewriteRecord(BaseModel):
    node: str            # id of the node owning the input (pre-rekey)
    input: str
    duplicate: str       # node the input pinned before
    representative: str
    edge: str | list[str]  # new edge as written to the lock
    pass_number: int = 1


class SkippedRewrite(BaseModel):
    node: str
    input: str
    duplicate: str
    representative: str
    reason: Literal["representative_unreachable", "breaks_existing_follows"]
    detail: str = ""


class ConsolidationReport(BaseModel):
    passes: int = 0
    nodes_before: int = 0
    nodes_after: int = 0
    duplicate_classes: int = 0  # multi-member classes seen in the first pass
    rewrites: list[RewriteRecord] = Field(default_factory=list)
    # Only the skips of the final pass: earlier ones may have been resolved later.
    skipped: list[SkippedRewrite] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    key_map: dict[str, str] = Field(default_factory=dict)  # decoded id → emitted id

    @computed_field
    @property
    def deduplicated(self) -> int:
        return self.nodes_before - self.nodes_after


class ReferenceCounts(BaseModel):
    root: str
    counts: dict[str, int] = Field(default_factory=dict)

    @computed_field
    @property
    def orphans(self) -> list[str]:
        return [node for node, count in self.counts.items() if count == 0]
