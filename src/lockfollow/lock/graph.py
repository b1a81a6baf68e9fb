"""LockGraph: node arena, edge resolution, BFS traversal primitives."""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Callable, Iterator

from lockfollow.errors import MalformedInput, UnresolvableFollows
from lockfollow.lock.nodes import Direct, Edge, FollowsPath, LockNode


class LockGraph:
    """Arena of lock nodes addressed by id.

    Nodes never point at each other directly: `Direct` edges hold target ids
    and `FollowsPath` edges hold input names walked from the root, so every
    back-reference is resolved by lookup rather than by object identity.
    """

    def __init__(self, root: str = "root", version: int = 7) -> None:
        self.root = root
        self.version = version
        self._nodes: dict[str, LockNode] = {}

    # ── Arena ───────────────────────────────────────────────────────────

    def add_node(self, node: LockNode) -> None:
        """Add a node (later add wins on an id conflict)."""
        self._nodes[node.id] = node

    def get_node(self, node_id: str) -> LockNode | None:
        return self._nodes.get(node_id)

    def node(self, node_id: str) -> LockNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise MalformedInput(
                "Lock graph references a node that does not exist.",
                context={"node": node_id},
            )
        return node

    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def all_nodes(self) -> list[LockNode]:
        return list(self._nodes.values())

    def ordered_nodes(self) -> list[LockNode]:
        """Root first, then every other node in storage order."""
        nodes = [self._nodes[self.root]] if self.root in self._nodes else []
        nodes.extend(n for n in self._nodes.values() if n.id != self.root)
        return nodes

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def copy(self) -> LockGraph:
        clone = LockGraph(root=self.root, version=self.version)
        for node in self._nodes.values():
            clone.add_node(replace(
                node,
                inputs=dict(node.inputs),
                original_spec=dict(node.original_spec) if node.original_spec is not None else None,
                extra=dict(node.extra),
            ))
        return clone

    # ── Edges ───────────────────────────────────────────────────────────

    def direct_successors(self, node_id: str) -> list[tuple[str, str]]:
        """(input name, target id) for every Direct edge, in declaration order."""
        return [
            (name, edge.target)
            for name, edge in self.node(node_id).inputs.items()
            if isinstance(edge, Direct)
        ]

    def follows_edges(self) -> Iterator[tuple[str, str, FollowsPath]]:
        """(node id, input name, edge) for every FollowsPath edge in the graph."""
        for node in self._nodes.values():
            for name, edge in node.inputs.items():
                if isinstance(edge, FollowsPath):
                    yield node.id, name, edge

    def replace_edge(self, node_id: str, input_name: str, edge: Edge) -> Edge:
        """Swap the edge behind `input_name`, keeping its declaration slot.

        Returns the previous edge so callers can revert.
        """
        node = self.node(node_id)
        if input_name not in node.inputs:
            raise KeyError(f"{node_id!r} has no input {input_name!r}")
        old = node.inputs[input_name]
        node.inputs[input_name] = edge
        return old

    def resolve_follows(self, path: tuple[str, ...] | list[str], anchor: str | None = None) -> str:
        """Walk `path` one input name at a time starting at `anchor` (root by default).

        Intermediate FollowsPath edges are resolved from the root, the same
        scoping rule the lock format uses for every follows declaration.
        """
        return self._walk(tuple(path), anchor or self.root, frozenset())

    def resolve_edge(self, edge: Edge) -> str:
        if isinstance(edge, Direct):
            if edge.target not in self._nodes:
                raise MalformedInput(
                    "Direct edge points at a missing node.",
                    context={"target": edge.target},
                )
            return edge.target
        return self.resolve_follows(edge.path)

    def resolve_input(self, node_id: str, input_name: str) -> str:
        edge = self.node(node_id).inputs.get(input_name)
        if edge is None:
            raise UnresolvableFollows(
                f"Input {input_name!r} does not exist.",
                context={"node": node_id},
            )
        return self.resolve_edge(edge)

    def _walk(self, path: tuple[str, ...], anchor: str, active: frozenset[tuple[str, str]]) -> str:
        current = anchor
        for depth, name in enumerate(path):
            node = self.node(current)
            edge = node.inputs.get(name)
            if edge is None:
                raise UnresolvableFollows(
                    f"Follows path element {name!r} does not exist.",
                    hint="Each element must name an input of the node reached so far.",
                    context={
                        "path": "/".join(path),
                        "step": str(depth),
                        "node": current,
                    },
                )
            if isinstance(edge, Direct):
                current = self.resolve_edge(edge)
                continue
            key = (current, name)
            if key in active:
                raise UnresolvableFollows(
                    "Follows path resolves through itself.",
                    context={"path": "/".join(path), "node": current, "input": name},
                )
            current = self._walk(edge.path, self.root, active | {key})
        return current

    # ── Traversal ───────────────────────────────────────────────────────

    def bfs_tree(
        self,
        through: Callable[[str], bool] | None = None,
    ) -> dict[str, tuple[str, str] | None]:
        """Breadth-first walk from root over Direct edges in declaration order.

        Returns {node id: (parent id, input name)} in discovery order; the root
        maps to None. When `through` is given, nodes failing the predicate are
        neither visited nor expanded.
        """
        parents: dict[str, tuple[str, str] | None] = {self.root: None}
        queue: deque[str] = deque([self.root])
        while queue:
            current = queue.popleft()
            for name, target in self.direct_successors(current):
                if target in parents:
                    continue
                if through is not None and not through(target):
                    continue
                parents[target] = (current, name)
                queue.append(target)
        return parents

    def bfs_order(self, through: Callable[[str], bool] | None = None) -> list[str]:
        return list(self.bfs_tree(through))

    def shortest_paths(
        self,
        through: Callable[[str], bool] | None = None,
    ) -> dict[str, tuple[str, ...]]:
        """Root-anchored input-name path to every node reached by the BFS.

        Shortest first; ties go to the earliest declared input.
        """
        paths: dict[str, tuple[str, ...]] = {}
        for node_id, parent in self.bfs_tree(through).items():
            if parent is None:
                paths[node_id] = ()
            else:
                parent_id, name = parent
                paths[node_id] = paths[parent_id] + (name,)
        return paths

    def ancestors(self, node_id: str) -> list[str]:
        """Node ids from `node_id` up to the root along the BFS tree.

        Empty when the node is not reachable from root via Direct edges.
        """
        parents = self.bfs_tree()
        if node_id not in parents:
            return []
        chain = [node_id]
        parent = parents[node_id]
        while parent is not None:
            chain.append(parent[0])
            parent = parents[parent[0]]
        return chain

    def reachable(self) -> list[str]:
        """Nodes reached from root by resolving every edge, in discovery order."""
        seen: dict[str, None] = {self.root: None}
        queue: deque[str] = deque([self.root])
        while queue:
            current = queue.popleft()
            for edge in self.node(current).inputs.values():
                target = self.resolve_edge(edge)
                if target not in seen:
                    seen[target] = None
                    queue.append(target)
        return list(seen)

    def reference_counts(self) -> dict[str, int]:
        """How many times each node is visited while recursively resolving from root.

        Every node in the arena appears; orphans count zero. A node already on
        the current resolution stack is not descended into again.
        """
        counts = dict.fromkeys(self._nodes, 0)

        def visit(node_id: str, stack: frozenset[str]) -> None:
            counts[node_id] += 1
            if node_id in stack:
                return
            inner = stack | {node_id}
            for edge in self.node(node_id).inputs.values():
                visit(self.resolve_edge(edge), inner)

        visit(self.root, frozenset())
        return counts

    def find_direct_cycle(self) -> list[str] | None:
        """Return one cycle formed purely by Direct edges, or None."""
        state: dict[str, int] = {}
        stack: list[str] = []

        def dfs(node_id: str) -> list[str] | None:
            state[node_id] = 1
            stack.append(node_id)
            for _, target in self.direct_successors(node_id):
                if state.get(target) == 1:
                    return stack[stack.index(target):] + [target]
                if target not in state:
                    found = dfs(target)
                    if found:
                        return found
            stack.pop()
            state[node_id] = 2
            return None

        for node_id in self._nodes:
            if node_id not in state:
                found = dfs(node_id)
                if found:
                    return found
        return None

    # ── Mutation ────────────────────────────────────────────────────────

    def remove_unreachable(self) -> list[str]:
        """Drop every node that resolving from root never reaches."""
        keep = set(self.reachable())
        removed = [node_id for node_id in self._nodes if node_id not in keep]
        for node_id in removed:
            del self._nodes[node_id]
        return removed

    def rekey(self, mapping: dict[str, str]) -> None:
        """Rename nodes; storage order follows `mapping`'s order.

        Every node must appear in `mapping` and new ids must be unique.
        """
        if set(mapping) != set(self._nodes):
            raise ValueError("rekey mapping must cover exactly the graph's nodes")
        if len(set(mapping.values())) != len(mapping):
            raise ValueError("rekey mapping produces duplicate ids")
        renamed: dict[str, LockNode] = {}
        for old_id, new_id in mapping.items():
            node = self._nodes[old_id]
            inputs: dict[str, Edge] = {
                name: Direct(mapping[edge.target]) if isinstance(edge, Direct) else edge
                for name, edge in node.inputs.items()
            }
            renamed[new_id] = replace(node, id=new_id, inputs=inputs)
        self._nodes = renamed
        self.root = mapping[self.root]
