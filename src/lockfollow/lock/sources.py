"""Pin descriptors: one pydantic model per `locked.type` discriminant.

New source kinds = new registry entries, no codec changes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class LockedSource(BaseModel):
    """Content-level description of what a node pins.

    Only `locked` data lives here; the unlocked `original` spec is kept on the
    node and never takes part in equivalence.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    narHash: str | None = None

    def fields(self) -> dict[str, Any]:
        """All companion fields, declared and extra, without the discriminant."""
        data = self.to_json()
        data.pop("type", None)
        return data

    def to_json(self) -> dict[str, Any]:
        """The `locked` object exactly as decoded, explicit nulls included."""
        data = self.model_dump()
        if "narHash" not in self.model_fields_set:
            data.pop("narHash", None)
        return data

    def describe(self) -> str:
        return self.type


class ForgeSource(LockedSource):
    """github / gitlab / sourcehut repository at a revision."""

    narHash: str
    owner: str
    repo: str
    rev: str

    def describe(self) -> str:
        return f"{self.type}:{self.owner}/{self.repo}/{self.rev[:12]}"


class RepositorySource(LockedSource):
    """git / mercurial repository URL at a revision."""

    narHash: str
    url: str
    rev: str

    def describe(self) -> str:
        return f"{self.type}+{self.url}?rev={self.rev[:12]}"


class PathSource(LockedSource):
    """Local path. Relative paths carry no narHash; the node's `parent` locates them."""

    path: str

    def describe(self) -> str:
        return f"path:{self.path}"


class ArchiveSource(LockedSource):
    """tarball / file URL at a content hash."""

    narHash: str
    url: str

    def describe(self) -> str:
        return f"{self.type}+{self.url}"


# Keyed by the `type` discriminant of a `locked` object
SOURCE_KINDS: dict[str, type[LockedSource]] = {
    "github": ForgeSource,
    "gitlab": ForgeSource,
    "sourcehut": ForgeSource,
    "git": RepositorySource,
    "mercurial": RepositorySource,
    "hg": RepositorySource,
    "path": PathSource,
    "tarball": ArchiveSource,
    "file": ArchiveSource,
}


def source_kind(type_name: str) -> type[LockedSource] | None:
    return SOURCE_KINDS.get(type_name)
