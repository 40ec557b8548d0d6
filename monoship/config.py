"""Ship configuration builder.

Merges invocation options, [tool.monoship] settings and, when a single
project is targeted, the resolved dependency context into one ShipConfig.
"""

from __future__ import annotations

from pathlib import Path

from packaging.utils import canonicalize_name

from .errors import ConfigError
from .graph import find_dependencies, find_dependents, find_project_names
from .models import ProjectGraph, ShipConfig, ShipSettings
from .toml import get_ship_settings, load_pyproject

# Project name meaning "ship the entire workspace"
WORKSPACE = "workspace"


def load_settings(root: Path) -> ShipSettings:
    """Read ship settings from the workspace root pyproject.toml."""
    return get_ship_settings(load_pyproject(root / "pyproject.toml"))


def build_ship_config(
    *,
    source_path: Path,
    repo: str,
    branch: str,
    max_warnings: int | None = None,
    dry_run: bool = False,
    project: str | None = None,
    graph: ProjectGraph | None = None,
    settings: ShipSettings | None = None,
    workdir: Path | None = None,
    clear_workdir: bool = False,
) -> ShipConfig:
    """Assemble the immutable configuration for one ship invocation.

    Single-project fields are only populated when project names a real
    project (not the "workspace" sentinel). For a workspace ship they are
    left as None rather than empty collections.

    Args:
        source_path: Monorepo root.
        repo: Destination repository URL.
        branch: Destination branch.
        max_warnings: Warning threshold; defaults to settings.max_warnings.
        dry_run: Skip the push phase.
        project: Target project name, or None / "workspace".
        graph: Workspace project graph; required when project is set.
        settings: Ship policy; defaults to ShipSettings().
        workdir: Directory to clone into; a temp dir is used when None.
        clear_workdir: Empty a non-empty workdir instead of failing.

    Raises:
        ConfigError: If repo or branch is empty, or a graph is missing.
        ResolutionError: If project is not in the graph.
    """
    if not repo:
        raise ConfigError("A destination repository URL is required")
    if not branch:
        raise ConfigError("A destination branch is required")
    if max_warnings is not None and max_warnings < 0:
        raise ConfigError(f"max-warnings must be >= 0, got {max_warnings}")

    settings = settings or ShipSettings()
    fields: dict[str, object] = {}

    if project and project != WORKSPACE:
        if graph is None:
            raise ConfigError(f"Shipping {project!r} requires the workspace graph")
        # Graph keys are canonical names, so Pkg_A and pkg-a are the same project
        project = canonicalize_name(project)
        dependencies = find_dependencies(graph, project)
        fields = {
            "dependencies": frozenset(dependencies),
            "dependents": frozenset(find_dependents(graph, project)),
            "project": project,
            "project_root": graph.root_of(project),
            "workspace": tuple(find_project_names(graph.projects)),
            "shipped_roots": tuple(
                sorted(graph.root_of(name) for name in {project, *dependencies})
            ),
        }

    return ShipConfig(
        source_path=source_path.resolve(),
        destination_repo_url=repo,
        destination_branch=branch,
        max_warnings=settings.max_warnings if max_warnings is None else max_warnings,
        dry_run=dry_run,
        settings=settings,
        workdir=workdir,
        clear_workdir=clear_workdir,
        **fields,
    )
