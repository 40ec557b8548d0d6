"""Dependency graph queries.

Pure functions over a ProjectGraph: which projects a target needs, which
projects need the target, and the full list of workspace projects. The
traversals keep an explicit visited set so diamonds are visited once and
cycles terminate.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .errors import ResolutionError
from .models import ProjectGraph


def _reachable(edges: Mapping[str, Iterable[str]], start: str) -> set[str]:
    """Collect every node reachable from start, excluding start itself."""
    visited: set[str] = {start}
    stack = [start]
    while stack:
        node = stack.pop()
        for nxt in edges.get(node, ()):
            # Edges to names outside the graph are ignored
            if nxt in edges and nxt not in visited:
                visited.add(nxt)
                stack.append(nxt)
    visited.discard(start)
    return visited


def _require(graph: ProjectGraph, name: str) -> None:
    if name not in graph:
        known = ", ".join(sorted(graph.projects)) or "<none>"
        raise ResolutionError(
            f"Project {name!r} not found in workspace (known: {known})"
        )


def reverse_edges(graph: ProjectGraph) -> dict[str, list[str]]:
    """Invert depends-on edges into depended-on-by edges."""
    reverse: dict[str, list[str]] = {n: [] for n in graph.projects}
    for name, info in graph.projects.items():
        for dep in info.deps:
            if dep in reverse:
                reverse[dep].append(name)
    return reverse


def find_dependencies(graph: ProjectGraph, name: str) -> set[str]:
    """Return every project that name transitively depends on.

    Example:
        If A depends on B, and B depends on C:
        find_dependencies(g, "A") → {"B", "C"}

    Raises:
        ResolutionError: If name is not in the graph.
    """
    _require(graph, name)
    edges = {n: info.deps for n, info in graph.projects.items()}
    return _reachable(edges, name)


def find_dependents(graph: ProjectGraph, name: str) -> set[str]:
    """Return every project that transitively depends on name.

    Example:
        If A depends on B, and B depends on C:
        find_dependents(g, "C") → {"A", "B"}

    Raises:
        ResolutionError: If name is not in the graph.
    """
    _require(graph, name)
    return _reachable(reverse_edges(graph), name)


def find_project_names(projects: Iterable[str]) -> list[str]:
    """List every workspace project once, in sorted order.

    Accepts a mapping keyed by project name (e.g. ProjectGraph.projects)
    or any iterable of names.
    """
    return sorted(set(projects))
