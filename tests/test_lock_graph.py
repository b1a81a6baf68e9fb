"""Tests for LockGraph arena, follows resolution, traversal and mutation."""

from __future__ import annotations

import pytest

from lockfollow.errors import UnresolvableFollows
from lockfollow.lock.graph import LockGraph
from lockfollow.lock.nodes import Direct, FollowsPath, LockNode
from lockfollow.lock.sources import ForgeSource


def make_source(repo: str, rev: str = "r1") -> ForgeSource:
    return ForgeSource(type="github", owner="o", repo=repo, rev=rev, narHash=f"sha256-{repo}-{rev}")


def make_node(nid: str, **inputs) -> LockNode:
    edges = {
        name: FollowsPath(tuple(value)) if isinstance(value, list) else Direct(value)
        for name, value in inputs.items()
    }
    return LockNode(id=nid, source=make_source(nid), inputs=edges)


def make_graph(*nodes: LockNode, **root_inputs) -> LockGraph:
    g = LockGraph()
    g.add_node(LockNode(id="root", inputs={
        name: FollowsPath(tuple(value)) if isinstance(value, list) else Direct(value)
        for name, value in root_inputs.items()
    }))
    for node in nodes:
        g.add_node(node)
    return g


class TestArena:
    def test_add_and_get(self):
        g = make_graph(make_node("a"), a="a")
        assert g.get_node("a").id == "a"
        assert g.get_node("missing") is None
        assert "a" in g
        assert len(g) == 2

    def test_ordered_nodes_puts_root_first(self):
        g = LockGraph()
        g.add_node(make_node("a"))
        g.add_node(LockNode(id="root", inputs={"a": Direct("a")}))
        assert [n.id for n in g.ordered_nodes()] == ["root", "a"]

    def test_copy_is_independent(self):
        g = make_graph(make_node("a"), a="a")
        clone = g.copy()
        clone.replace_edge("root", "a", FollowsPath(()))
        assert g.node("root").inputs["a"] == Direct("a")


class TestResolveFollows:
    def test_walks_from_root(self):
        g = make_graph(make_node("a", b="b"), make_node("b"), a="a")
        assert g.resolve_follows(["a", "b"]) == "b"

    def test_empty_path_is_root(self):
        g = make_graph(make_node("a"), a="a")
        assert g.resolve_follows([]) == "root"

    def test_follows_chain_resolves_from_root(self):
        g = make_graph(
            make_node("a", n=["c"]),
            make_node("c"),
            make_node("d", n=["a", "n"]),
            a="a", c="c", d="d",
        )
        assert g.resolve_follows(["d", "n"]) == "c"
        assert g.resolve_input("d", "n") == "c"

    def test_anchor(self):
        g = make_graph(make_node("a", b="b"), make_node("b"), a="a")
        assert g.resolve_follows(["b"], anchor="a") == "b"

    def test_missing_element_raises(self):
        g = make_graph(make_node("a"), a="a")
        with pytest.raises(UnresolvableFollows) as excinfo:
            g.resolve_follows(["a", "nope"])
        assert excinfo.value.context["node"] == "a"

    def test_self_referential_follows_raises(self):
        g = make_graph(make_node("a", x=["a", "x"]), a="a")
        with pytest.raises(UnresolvableFollows):
            g.resolve_follows(["a", "x"])


class TestTraversal:
    def test_direct_successors_skip_follows(self):
        g = make_graph(make_node("a", b="b", c=["b"]), make_node("b"), a="a")
        assert g.direct_successors("a") == [("b", "b")]

    def test_bfs_order_is_breadth_first_in_declaration_order(self):
        g = make_graph(
            make_node("a", c="c"),
            make_node("b", d="d"),
            make_node("c"),
            make_node("d"),
            a="a", b="b",
        )
        assert g.bfs_order() == ["root", "a", "b", "c", "d"]

    def test_shortest_path_tie_goes_to_earliest_declaration(self):
        g = make_graph(
            make_node("a", shared="s"),
            make_node("b", shared="s"),
            make_node("s"),
            a="a", b="b",
        )
        paths = g.shortest_paths()
        assert paths["root"] == ()
        assert paths["s"] == ("a", "shared")

    def test_shortest_paths_respect_through(self):
        g = make_graph(
            make_node("a", shared="s"),
            make_node("b", shared="s"),
            make_node("s"),
            a="a", b="b",
        )
        paths = g.shortest_paths(through=lambda nid: nid != "a")
        assert "a" not in paths
        assert paths["s"] == ("b", "shared")

    def test_ancestors(self):
        g = make_graph(make_node("a", b="b"), make_node("b"), a="a")
        assert g.ancestors("b") == ["b", "a", "root"]
        assert g.ancestors("root") == ["root"]

    def test_ancestors_of_orphan_is_empty(self):
        g = make_graph(make_node("a"), make_node("orphan"), a="a")
        assert g.ancestors("orphan") == []

    def test_reachable_follows_edges(self):
        g = make_graph(make_node("a", b=["c"]), make_node("c"), make_node("x"), a="a", c="c")
        assert set(g.reachable()) == {"root", "a", "c"}

    def test_reference_counts_diamond(self):
        g = make_graph(
            make_node("a", s="s"),
            make_node("b", s="s"),
            make_node("s"),
            make_node("orphan"),
            a="a", b="b",
        )
        counts = g.reference_counts()
        assert counts["root"] == 1
        assert counts["s"] == 2
        assert counts["orphan"] == 0

    def test_find_direct_cycle(self):
        g = make_graph(make_node("a", b="b"), make_node("b", a="a"), a="a")
        cycle = g.find_direct_cycle()
        assert cycle is not None
        assert cycle[0] == cycle[-1]

    def test_no_cycle_through_follows(self):
        g = make_graph(make_node("a", back=["a"]), a="a")
        assert g.find_direct_cycle() is None


class TestMutation:
    def test_replace_edge_keeps_declaration_slot(self):
        g = make_graph(make_node("a"), make_node("b"), make_node("c"), a="a", b="b", c="c")
        old = g.replace_edge("root", "b", FollowsPath(("a",)))
        assert old == Direct("b")
        assert list(g.node("root").inputs) == ["a", "b", "c"]
        assert g.node("root").inputs["b"] == FollowsPath(("a",))

    def test_replace_missing_input_raises(self):
        g = make_graph(make_node("a"), a="a")
        with pytest.raises(KeyError):
            g.replace_edge("root", "zzz", Direct("a"))

    def test_remove_unreachable(self):
        g = make_graph(make_node("a", b="b"), make_node("b"), make_node("orphan", b="b"), a="a")
        removed = g.remove_unreachable()
        assert removed == ["orphan"]
        assert "orphan" not in g
        assert "b" in g

    def test_rekey_rewrites_direct_targets(self):
        g = make_graph(make_node("a", b="b", f=["a"]), make_node("b"), a="a")
        g.rekey({"root": "top", "b": "first", "a": "second"})
        assert g.root == "top"
        assert g.node_ids() == ["top", "first", "second"]
        assert g.node("second").inputs["b"] == Direct("first")
        assert g.node("second").inputs["f"] == FollowsPath(("a",))

    def test_rekey_rejects_partial_mapping(self):
        g = make_graph(make_node("a"), a="a")
        with pytest.raises(ValueError):
            g.rekey({"root": "root"})
