"""Tests for monoship.graph."""

from __future__ import annotations

import pytest

from monoship.errors import ResolutionError
from monoship.graph import (
    find_dependencies,
    find_dependents,
    find_project_names,
    reverse_edges,
)
from monoship.models import ProjectGraph, ProjectInfo


def _graph(edges: dict[str, list[str]]) -> ProjectGraph:
    return ProjectGraph(
        projects={
            n: ProjectInfo(path=f"packages/{n}", deps=d) for n, d in edges.items()
        }
    )


class TestFindDependencies:
    def test_chain(self, chain_graph: ProjectGraph) -> None:
        assert find_dependencies(chain_graph, "a") == {"b", "c"}
        assert find_dependencies(chain_graph, "b") == {"c"}

    def test_leaf_has_no_dependencies(self, chain_graph: ProjectGraph) -> None:
        assert find_dependencies(chain_graph, "c") == set()

    def test_diamond_deduplicates(self, diamond_graph: ProjectGraph) -> None:
        assert find_dependencies(diamond_graph, "top") == {"left", "right", "bottom"}

    def test_never_includes_target(self, diamond_graph: ProjectGraph) -> None:
        for name in diamond_graph.projects:
            assert name not in find_dependencies(diamond_graph, name)

    def test_closed_under_transitivity(self, diamond_graph: ProjectGraph) -> None:
        for name in diamond_graph.projects:
            deps = find_dependencies(diamond_graph, name)
            for dep in deps:
                assert find_dependencies(diamond_graph, dep) <= deps

    def test_two_way_cycle_terminates(self) -> None:
        graph = _graph({"a": ["b"], "b": ["a"]})
        assert find_dependencies(graph, "a") == {"b"}
        assert find_dependencies(graph, "b") == {"a"}

    def test_cycle_below_target_terminates(self) -> None:
        graph = _graph({"top": ["x"], "x": ["y"], "y": ["z"], "z": ["x"]})
        assert find_dependencies(graph, "top") == {"x", "y", "z"}

    def test_self_loop_excluded(self) -> None:
        graph = _graph({"a": ["a", "b"], "b": []})
        assert find_dependencies(graph, "a") == {"b"}

    def test_edges_outside_graph_ignored(self) -> None:
        graph = _graph({"a": ["external"], "b": ["a"]})
        assert find_dependencies(graph, "b") == {"a"}

    def test_unknown_project_raises(self, chain_graph: ProjectGraph) -> None:
        with pytest.raises(ResolutionError, match="'nope' not found"):
            find_dependencies(chain_graph, "nope")


class TestFindDependents:
    def test_chain(self, chain_graph: ProjectGraph) -> None:
        assert find_dependents(chain_graph, "c") == {"a", "b"}
        assert find_dependents(chain_graph, "a") == set()

    def test_diamond(self, diamond_graph: ProjectGraph) -> None:
        assert find_dependents(diamond_graph, "bottom") == {"left", "right", "top"}
        assert find_dependents(diamond_graph, "left") == {"top"}

    def test_cycle_terminates(self) -> None:
        graph = _graph({"a": ["b"], "b": ["c"], "c": ["a"]})
        assert find_dependents(graph, "a") == {"b", "c"}

    def test_inverse_of_find_dependencies(self) -> None:
        graph = _graph(
            {
                "app": ["api", "ui"],
                "api": ["core", "db"],
                "ui": ["core"],
                "db": ["core"],
                "core": [],
                "tools": ["db", "tools"],
                "loop-a": ["loop-b"],
                "loop-b": ["loop-a", "core"],
            }
        )
        names = list(graph.projects)
        for p in names:
            dependents = find_dependents(graph, p)
            for q in names:
                assert (q in dependents) == (p in find_dependencies(graph, q))

    def test_unknown_project_raises(self, chain_graph: ProjectGraph) -> None:
        with pytest.raises(ResolutionError):
            find_dependents(chain_graph, "nope")


class TestReverseEdges:
    def test_inverts_edges(self, chain_graph: ProjectGraph) -> None:
        assert reverse_edges(chain_graph) == {"a": [], "b": ["a"], "c": ["b"]}


class TestFindProjectNames:
    def test_sorted_unique(self, diamond_graph: ProjectGraph) -> None:
        assert find_project_names(diamond_graph.projects) == [
            "bottom",
            "left",
            "right",
            "top",
        ]

    def test_duplicates_collapsed(self) -> None:
        assert find_project_names(["b", "a", "b"]) == ["a", "b"]

    def test_empty(self) -> None:
        assert find_project_names({}) == []
