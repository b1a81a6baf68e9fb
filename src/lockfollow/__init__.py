"""lockfollow: consolidate duplicate pins in a flake.lock into follows paths."""

from __future__ import annotations

__version__ = "0.1.0"

from lockfollow.engine import (  # noqa: E402
    ConsolidateOptions,
    ConsolidationResult,
    consolidate,
    consolidate_text,
    count_references,
)
from lockfollow.errors import (  # noqa: E402
    LockfollowError,
    MalformedInput,
    OutputError,
    UnknownSourceKind,
    UnresolvableFollows,
)
from lockfollow.lock import LockGraph, decode, encode  # noqa: E402

__all__ = [
    "ConsolidateOptions",
    "ConsolidationResult",
    "LockGraph",
    "LockfollowError",
    "MalformedInput",
    "OutputError",
    "UnknownSourceKind",
    "UnresolvableFollows",
    "__version__",
    "consolidate",
    "consolidate_text",
    "count_references",
    "decode",
    "encode",
]
