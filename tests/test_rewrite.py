"""Tests for the follows rewriter and the pruner."""

from __future__ import annotations

import json

from lockfollow.consolidate.classify import classify
from lockfollow.consolidate.prune import prune, rekey
from lockfollow.consolidate.rewrite import rewrite_duplicates
from lockfollow.consolidate.select import select_representatives
from lockfollow.lock.codec import decode
from lockfollow.lock.graph import LockGraph
from lockfollow.lock.nodes import Direct, FollowsPath


def gh(repo: str, rev: str = "r1") -> dict:
    return {"type": "github", "owner": "o", "repo": repo, "rev": rev, "narHash": f"sha256-{repo}-{rev}"}


def lock_doc(root_inputs: dict, nodes: dict) -> str:
    return json.dumps({
        "nodes": {"root": {"inputs": root_inputs}, **nodes},
        "root": "root",
        "version": 7,
    })


def run_pass(graph: LockGraph, *, indexed: bool = False):
    reps = select_representatives(graph, classify(graph))
    return rewrite_duplicates(graph, reps, indexed=indexed)


def test_sibling_duplicates_follow_first_declared():
    g = decode(lock_doc(
        {"a": "a", "b": "b"},
        {"a": {"locked": gh("same")}, "b": {"locked": gh("same")}},
    ))
    result = run_pass(g)

    assert g.node("root").inputs == {"a": Direct("a"), "b": FollowsPath(("a",))}
    assert len(result.rewrites) == 1
    assert result.rewrites[0].edge == ["a"]
    assert result.skipped == []


def test_nested_duplicate_follows_root_input():
    g = decode(lock_doc(
        {"a": "a", "c": "c"},
        {
            "a": {"locked": gh("a"), "inputs": {"b": "b"}},
            "b": {"locked": gh("shared")},
            "c": {"locked": gh("shared")},
        },
    ))
    run_pass(g)
    assert g.node("a").inputs["b"] == FollowsPath(("c",))


def test_representative_deeper_than_root():
    g = decode(lock_doc(
        {"a": "a", "b": "b"},
        {
            "a": {"locked": gh("a"), "inputs": {"lib": "lib1"}},
            "b": {"locked": gh("b"), "inputs": {"x": "x"}},
            "x": {"locked": gh("x"), "inputs": {"lib": "lib2"}},
            "lib1": {"locked": gh("lib")},
            "lib2": {"locked": gh("lib")},
        },
    ))
    run_pass(g)
    assert g.node("x").inputs["lib"] == FollowsPath(("a", "lib"))
    assert g.resolve_input("x", "lib") == "lib1"


def test_indexed_mode_points_directly_at_representative():
    g = decode(lock_doc(
        {"a": "a", "c": "c"},
        {
            "a": {"locked": gh("a"), "inputs": {"b": "b"}},
            "b": {"locked": gh("shared")},
            "c": {"locked": gh("shared")},
        },
    ))
    result = run_pass(g, indexed=True)
    assert g.node("a").inputs["b"] == Direct("c")
    assert result.rewrites[0].edge == "c"


def _shadowed_doc() -> str:
    # q2 duplicates q1 but carries the only path to n1; w follows through q2
    return lock_doc(
        {"x": "q1", "y": "q2", "w": "w", "z": "z"},
        {
            "q1": {"locked": gh("q")},
            "q2": {"locked": gh("q"), "inputs": {"n": "n1"}},
            "w": {"locked": gh("w"), "inputs": {"n": ["y", "n"]}},
            "z": {"locked": gh("z"), "inputs": {"n": "n2"}},
            "n1": {"locked": gh("n")},
            "n2": {"locked": gh("n")},
        },
    )


class TestSoftSkips:
    def test_rewrite_breaking_existing_follows_is_reverted(self):
        g = decode(_shadowed_doc())
        result = run_pass(g)

        assert g.node("root").inputs["y"] == Direct("q2")
        reasons = {(s.node, s.input): s for s in result.skipped}
        skip = reasons[("root", "y")]
        assert skip.reason == "breaks_existing_follows"
        assert skip.detail == "w.n"
        assert g.resolve_input("w", "n") == "n1"

    def test_representative_only_under_duplicate_is_skipped(self):
        g = decode(_shadowed_doc())
        result = run_pass(g)

        assert g.node("z").inputs["n"] == Direct("n2")
        reasons = {(s.node, s.input): s for s in result.skipped}
        skip = reasons[("z", "n")]
        assert skip.reason == "representative_unreachable"
        assert skip.representative == "n1"
        assert "q2" in skip.detail
        assert result.rewrites == []

    def test_representative_lost_after_parent_dedup(self):
        g = decode(lock_doc(
            {"x": "q1", "y": "q2", "z": "z"},
            {
                "q1": {"locked": gh("q")},
                "q2": {"locked": gh("q"), "inputs": {"n": "n1"}},
                "z": {"locked": gh("z"), "inputs": {"n": "n2"}},
                "n1": {"locked": gh("n")},
                "n2": {"locked": gh("n")},
            },
        ))
        result = run_pass(g)
        assert g.node("root").inputs["y"] == FollowsPath(("x",))
        assert g.node("z").inputs["n"] == Direct("n2")
        assert [s.reason for s in result.skipped] == ["representative_unreachable"]

        assert set(prune(g)) == {"q2", "n1"}
        assert g.resolve_input("z", "n") == "n2"


class TestPrune:
    def test_prune_keeps_follows_targets(self):
        g = decode(lock_doc(
            {"a": "a", "b": "b"},
            {"a": {"locked": gh("same")}, "b": {"locked": gh("same")}},
        ))
        run_pass(g)
        assert prune(g) == ["b"]
        assert g.node_ids() == ["root", "a"]

    def test_rekey_uses_first_reaching_input_name(self):
        g = decode(lock_doc(
            {"nixpkgs": "weird-key", "tool": "t"},
            {
                "weird-key": {"locked": gh("nixpkgs")},
                "t": {"locked": gh("tool"), "inputs": {"nixpkgs": "other"}},
                "other": {"locked": gh("nixpkgs", rev="r2")},
            },
        ))
        mapping = rekey(g)
        assert mapping == {"root": "root", "weird-key": "nixpkgs", "t": "tool", "other": "nixpkgs_2"}
        assert g.node("tool").inputs["nixpkgs"] == Direct("nixpkgs_2")

    def test_rekey_avoids_existing_suffixed_names(self):
        g = decode(lock_doc(
            {"a": "k1", "a_2": "k2", "b": "k3"},
            {
                "k1": {"locked": gh("a1")},
                "k2": {"locked": gh("a2")},
                "k3": {"locked": gh("b"), "inputs": {"a": "k4"}},
                "k4": {"locked": gh("a3")},
            },
        ))
        mapping = rekey(g)
        assert mapping["k4"] == "a_3"
        assert g.root == "root"
