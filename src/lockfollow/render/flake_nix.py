"""Render follows edges as a `flake.nix` inputs block and splice it into a file."""

from __future__ import annotations

import logging
from pathlib import Path

from lockfollow.errors import OutputError
from lockfollow.lock.graph import LockGraph
from lockfollow.lock.nodes import Direct, FollowsPath

log = logging.getLogger(__name__)

START_MARKER = "# START INPUT FOLLOW BLOCK -- DO NOT EDIT MANUALLY"
END_MARKER = "# END INPUT FOLLOW BLOCK -- DO NOT EDIT MANUALLY"


def render_follows_block(graph: LockGraph) -> str:
    """Produce the marker-wrapped `inputs = { ... };` block for every follows edge.

    Walks Direct edges depth-first from root in declaration order; each
    follows edge met on the way becomes one
    `a.inputs.b.follows = "c/d";` line. A node already on the current walk
    is not entered again.
    """
    lines = [START_MARKER, "inputs = {"]

    def walk(node_id: str, prefix: list[str], stack: set[str]) -> None:
        for name, edge in graph.node(node_id).inputs.items():
            attr = prefix + [name]
            if isinstance(edge, FollowsPath):
                target = "/".join(edge.path)
                lines.append(f'    {".inputs.".join(attr)}.follows = "{target}";')
                continue
            if isinstance(edge, Direct) and edge.target not in stack:
                walk(edge.target, attr, stack | {edge.target})

    walk(graph.root, [], {graph.root})
    lines.append("};")
    lines.append(END_MARKER)
    return "\n".join(lines)


def update_flake_nix(path: Path, block: str) -> Path:
    """Replace the marker-delimited block in `path` with `block`.

    Every line of `block` is indented like the line holding the start marker.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise OutputError(
            "flake.nix does not exist.",
            context={"path": str(path)},
        ) from exc

    start = content.find(START_MARKER)
    end = content.find(END_MARKER)
    if start < 0 or end < 0:
        raise OutputError(
            "Could not find the follows block markers in flake.nix.",
            hint=f"Add them manually:\n{START_MARKER}\n{END_MARKER}",
            context={"path": str(path)},
        )
    if start >= end:
        raise OutputError(
            "Follows block start marker comes after the end marker.",
            context={"path": str(path)},
        )

    line_start = content.rfind("\n", 0, start) + 1
    indent = content[line_start:start]
    indented = "\n".join(f"{indent}{line}" if line else line for line in block.splitlines())

    updated = content[:line_start] + indented + content[end + len(END_MARKER):]
    path.write_text(updated, encoding="utf-8")
    log.info("Updated follows block in %s", path)
    return path
