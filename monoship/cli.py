"""CLI entry point for monoship."""

from __future__ import annotations

from pathlib import Path

import click
from packaging.utils import canonicalize_name

from monoship.config import WORKSPACE
from monoship.errors import ShipError
from monoship.graph import find_dependencies, find_dependents, find_project_names
from monoship.pipeline import run_ship
from monoship.shell import fatal
from monoship.workspace import discover_workspace

root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root containing the uv workspace pyproject.toml.",
)


@click.group()
@click.version_option(package_name="monoship")
def cli() -> None:
    """Ship monorepo projects, with their dependencies, to their own repos."""


@cli.command("ship")
@click.option("--repo", required=True, help="Destination repository URL.")
@click.option("--branch", required=True, help="Destination branch.")
@click.option(
    "--max-warnings",
    type=click.IntRange(min=0),
    default=None,
    help="Fail when verification finds more warnings than this. "
    "Defaults to [tool.monoship].max-warnings.",
)
@click.option("--dry-run", is_flag=True, help="Do everything except push.")
@click.option(
    "-p",
    "--project",
    default=WORKSPACE,
    show_default=True,
    help="Project to ship; 'workspace' ships the whole monorepo.",
)
@click.option(
    "--workdir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Empty directory to clone into (default: a new temp dir).",
)
@click.option(
    "--force",
    is_flag=True,
    help="Clear a non-empty --workdir before cloning, e.g. to rerun a failed ship.",
)
@root_option
def ship_cmd(
    repo: str,
    branch: str,
    max_warnings: int | None,
    dry_run: bool,
    project: str,
    workdir: Path | None,
    force: bool,
    root: Path,
) -> None:
    """Extract a project (or the workspace) and push it to REPO/BRANCH."""
    try:
        result = run_ship(
            root=root,
            repo=repo,
            branch=branch,
            max_warnings=max_warnings,
            dry_run=dry_run,
            project=project,
            workdir=workdir,
            clear_workdir=force,
        )
    except ShipError as exc:
        raise click.ClickException(str(exc)) from exc

    if not result:
        fatal(f"phase {result.phase} failed: {result.cause}")


@cli.command("deps")
@click.argument("project")
@root_option
def deps_cmd(project: str, root: Path) -> None:
    """Show what PROJECT depends on and what depends on it."""
    project = canonicalize_name(project)
    try:
        graph = discover_workspace(root)
        dependencies = sorted(find_dependencies(graph, project))
        dependents = sorted(find_dependents(graph, project))
    except ShipError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"{project} ({graph.root_of(project)})")
    click.echo(f"  depends on: {', '.join(dependencies) or '<none>'}")
    click.echo(f"  needed by:  {', '.join(dependents) or '<none>'}")


@cli.command("projects")
@root_option
def projects_cmd(root: Path) -> None:
    """List every project in the workspace."""
    try:
        graph = discover_workspace(root)
    except ShipError as exc:
        raise click.ClickException(str(exc)) from exc

    for name in find_project_names(graph.projects):
        info = graph.projects[name]
        deps = f" → [{', '.join(info.deps)}]" if info.deps else ""
        click.echo(f"  {name} ({info.path}){deps}")
