"""Workspace discovery: build the project graph of a uv workspace.

Reads [tool.uv.workspace].members from the root pyproject.toml to find
project directories, then extracts each project's name and internal
dependencies from its own pyproject.toml.
"""

from __future__ import annotations

import glob
from pathlib import Path

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .errors import ConfigError
from .models import ProjectGraph, ProjectInfo
from .toml import (
    get_all_dependency_strings,
    get_project_name,
    get_workspace_member_globs,
    load_pyproject,
)


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(Requirement(dep_str).name)


def find_member_dirs(root: Path, member_globs: list[str]) -> list[Path]:
    """Expand member globs into project directories that hold a pyproject.toml."""
    member_dirs: list[Path] = []
    for pattern in member_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists() and p not in member_dirs:
                member_dirs.append(p)
    return member_dirs


def discover_workspace(root: Path) -> ProjectGraph:
    """Scan the workspace at root and build its project graph.

    Returns:
        ProjectGraph with every member keyed by canonical name. Only
        dependencies on other members become edges; external packages
        are ignored.

    Raises:
        ConfigError: If the workspace defines no members, a member
            directory matches nothing, or two members share a name.
    """
    root = root.resolve()
    root_doc = load_pyproject(root / "pyproject.toml")
    member_dirs = find_member_dirs(root, get_workspace_member_globs(root_doc))

    if not member_dirs:
        raise ConfigError("No projects found matching workspace members")

    # First pass: collect basic info from each project
    projects: dict[str, ProjectInfo] = {}
    raw_deps: dict[str, list[str]] = {}

    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        name = get_project_name(doc, d.name)
        if name in projects:
            raise ConfigError(
                f"Duplicate project name {name!r} in {projects[name].path} "
                f"and {d.relative_to(root).as_posix()}"
            )
        projects[name] = ProjectInfo(path=d.relative_to(root).as_posix())
        raw_deps[name] = get_all_dependency_strings(doc)

    # Second pass: identify which deps are internal (within workspace)
    for name, deps in raw_deps.items():
        for dep_str in deps:
            try:
                dep_name = dep_canonical_name(dep_str)
            except InvalidRequirement as exc:
                raise ConfigError(
                    f"{name}: invalid dependency {dep_str!r}: {exc}"
                ) from exc
            # A project listing itself (e.g. "pkg[extra]") is not an edge
            if (
                dep_name in projects
                and dep_name != name
                and dep_name not in projects[name].deps
            ):
                projects[name].deps.append(dep_name)

    return ProjectGraph(projects=projects)
