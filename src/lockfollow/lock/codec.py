"""flake.lock decoder and deterministic encoder."""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from lockfollow.errors import MalformedInput, UnknownSourceKind
from lockfollow.lock.graph import LockGraph
from lockfollow.lock.nodes import Direct, Edge, FollowsPath, LockNode
from lockfollow.lock.sources import SOURCE_KINDS, LockedSource, source_kind

log = logging.getLogger(__name__)

MIN_SUPPORTED_LOCK_VERSION = 5
MAX_SUPPORTED_LOCK_VERSION = 7


# ── Document shape ──────────────────────────────────────────────────────────

class RawNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    inputs: dict[StrictStr, Union[StrictStr, list[StrictStr]]] = Field(default_factory=dict)
    locked: dict[StrictStr, Any] | None = None
    original: dict[StrictStr, Any] | None = None


class LockDocument(BaseModel):
    nodes: dict[StrictStr, RawNode]
    root: StrictStr
    version: StrictInt


# ── Decode ──────────────────────────────────────────────────────────────────

def decode(raw: str | bytes) -> LockGraph:
    """Parse a lock document into a fully validated LockGraph.

    Raises:
        MalformedInput: bad JSON, bad shape, unsupported version, dangling
            Direct edge, Direct edge into the root, or a Direct-edge cycle.
        UnknownSourceKind: a `locked.type` with no registered source kind.
        UnresolvableFollows: an input follows path that cannot be walked.
    """
    try:
        doc = LockDocument.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedInput(
            "Invalid lock document.",
            hint=_first_error(exc),
        ) from exc

    if not MIN_SUPPORTED_LOCK_VERSION <= doc.version <= MAX_SUPPORTED_LOCK_VERSION:
        raise MalformedInput(
            f"Unsupported lock version {doc.version}.",
            hint=(
                f"Supported schema versions are {MIN_SUPPORTED_LOCK_VERSION}"
                f" to {MAX_SUPPORTED_LOCK_VERSION}."
            ),
        )
    if doc.root not in doc.nodes:
        raise MalformedInput(
            "Root node is missing from the node table.",
            context={"root": doc.root},
        )

    graph = LockGraph(root=doc.root, version=doc.version)
    for key, raw_node in doc.nodes.items():
        graph.add_node(_build_node(key, raw_node, is_root=key == doc.root))

    _check_direct_edges(graph)
    _check_follows(graph)

    log.info("Decoded lock v%d: %d nodes", graph.version, len(graph))
    return graph


def _build_node(key: str, raw: RawNode, *, is_root: bool) -> LockNode:
    source: LockedSource | None = None
    if raw.locked is not None:
        source = _parse_source(key, raw.locked)
    elif not is_root:
        raise MalformedInput(
            "Node has no `locked` pin.",
            context={"node": key},
        )

    inputs: dict[str, Edge] = {}
    for name, value in raw.inputs.items():
        if isinstance(value, str):
            inputs[name] = Direct(value)
        else:
            inputs[name] = FollowsPath(tuple(value))

    return LockNode(
        id=key,
        source=source,
        inputs=inputs,
        original_spec=raw.original,
        extra=dict(raw.model_extra or {}),
    )


def _parse_source(key: str, locked: dict[str, Any]) -> LockedSource:
    kind = locked.get("type")
    if not isinstance(kind, str) or not kind:
        raise MalformedInput(
            "Invalid `locked.type` value.",
            context={"node": key},
        )
    model = source_kind(kind)
    if model is None:
        raise UnknownSourceKind(
            f"Unknown source kind {kind!r}.",
            hint=f"Known kinds: {', '.join(sorted(SOURCE_KINDS))}.",
            context={"node": key},
        )
    try:
        return model.model_validate(locked)
    except ValidationError as exc:
        raise MalformedInput(
            f"Invalid `locked` pin for source kind {kind!r}.",
            hint=_first_error(exc),
            context={"node": key},
        ) from exc


def _check_direct_edges(graph: LockGraph) -> None:
    for node in graph.all_nodes():
        for name, edge in node.inputs.items():
            if not isinstance(edge, Direct):
                continue
            if edge.target not in graph:
                raise MalformedInput(
                    "Input references a node that does not exist.",
                    context={"node": node.id, "input": name, "target": edge.target},
                )
            if edge.target == graph.root:
                raise MalformedInput(
                    "Input references the root node directly.",
                    hint="Only a follows path may point back at the root.",
                    context={"node": node.id, "input": name},
                )
    cycle = graph.find_direct_cycle()
    if cycle:
        raise MalformedInput(
            "Direct edges form a cycle.",
            context={"cycle": " -> ".join(cycle)},
        )


def _check_follows(graph: LockGraph) -> None:
    for node_id, name, edge in graph.follows_edges():
        log.debug("Resolving %s.%s follows %s", node_id, name, edge)
        graph.resolve_follows(edge.path)


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first.get('msg', '')}" if loc else str(first.get("msg", ""))


# ── Encode ──────────────────────────────────────────────────────────────────

def encode(graph: LockGraph, *, pretty: bool = False) -> str:
    """Serialize a graph; identical graphs always produce identical text.

    Node table: root first, then storage order. Inputs keep declaration
    order; every other object is emitted with sorted keys.
    """
    nodes: dict[str, Any] = {}
    for node in graph.ordered_nodes():
        nodes[node.id] = _encode_node(node, is_root=node.id == graph.root)

    payload = {"nodes": nodes, "root": graph.root, "version": graph.version}
    if pretty:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    else:
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return text + "\n"


def _encode_node(node: LockNode, *, is_root: bool) -> dict[str, Any]:
    fields: dict[str, Any] = {key: _sorted(value) for key, value in node.extra.items()}
    if node.inputs or is_root:
        fields["inputs"] = {name: encode_edge(edge) for name, edge in node.inputs.items()}
    if node.source is not None:
        fields["locked"] = _sorted(node.source.to_json())
    if node.original_spec is not None:
        fields["original"] = _sorted(node.original_spec)
    return {key: fields[key] for key in sorted(fields)}


def encode_edge(edge: Edge) -> str | list[str]:
    if isinstance(edge, Direct):
        return edge.target
    return list(edge.path)


def _sorted(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _sorted(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted(item) for item in value]
    return value
