"""Ship pipeline: clone → check → clean → sync → verify → post-process → push.

This module orchestrates the monoship ship process:
1. Discover the workspace graph (only when a single project is shipped)
2. Resolve the project's dependencies and dependents
3. Assemble the immutable ShipConfig
4. Run the phases in order, stopping at the first failure

A dry run executes every phase except the final push, so it still clones,
rewrites and commits in the scratch working copy. Nothing is rolled back
on failure: the working copy is left for inspection and a rerun starts
from a fresh clone. A temp-dir clone is removed after a successful push;
--workdir clones and dry-run clones are always kept.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .config import WORKSPACE, build_ship_config, load_settings
from .errors import PhaseFailed, ShipError
from .models import ShipConfig, ShipContext, ShipResult
from .phases import (
    CleanPhase,
    ClonePhase,
    CorruptionCheckPhase,
    Phase,
    PostProcessPhase,
    PushPhase,
    SyncPhase,
    VerifyRepoPhase,
)
from .shell import describe_failure, step
from .workspace import discover_workspace

PHASES: tuple[type[Phase], ...] = (
    ClonePhase,
    CorruptionCheckPhase,
    CleanPhase,
    SyncPhase,
    VerifyRepoPhase,
    PostProcessPhase,
    PushPhase,
)


def default_phases(dry_run: bool) -> list[type[Phase]]:
    """The standard phase order; the push phase is dropped for dry runs."""
    return [p for p in PHASES if not (dry_run and p is PushPhase)]


def run_phases(
    phases: Sequence[type[Phase]],
    config: ShipConfig,
    context: ShipContext | None = None,
) -> ShipContext:
    """Run phases one after another against a single configuration.

    Each phase is instantiated fresh and must finish before the next one
    starts. The first failure stops the run; later phases never execute
    and earlier ones are not undone.

    Args:
        phases: Phase classes in execution order.
        config: Shared, immutable ship configuration.
        context: Working state to thread through; a new one when None.

    Returns:
        The context after the last phase.

    Raises:
        PhaseFailed: Naming the failed phase and carrying its cause.
    """
    context = context if context is not None else ShipContext()
    total = len(phases)
    for index, phase_cls in enumerate(phases, start=1):
        phase = phase_cls(config, context)
        step(f"[{index}/{total}] {phase.title}")
        try:
            phase.run()
        except subprocess.CalledProcessError as exc:
            raise PhaseFailed(phase.name, ShipError(describe_failure(exc))) from exc
        except Exception as exc:
            raise PhaseFailed(phase.name, exc) from exc
        context.executed.append(phase.name)
    return context


def report_scope(config: ShipConfig) -> None:
    """Print what is about to be shipped, and where."""
    step(f"Shipping {config.scope}")
    print(f"  source:      {config.source_path}")
    print(f"  destination: {config.destination_repo_url} ({config.destination_branch})")
    if config.is_single_project:
        deps = ", ".join(sorted(config.dependencies or ())) or "<none>"
        dependents = ", ".join(sorted(config.dependents or ())) or "<none>"
        print(f"  project:     {config.project} ({config.project_root})")
        print(f"  depends on:  {deps}")
        print(f"  needed by:   {dependents}")
    if config.dry_run:
        print("  dry run:     push will be skipped")


def ship(config: ShipConfig, phases: Sequence[type[Phase]] | None = None) -> ShipResult:
    """Run the ship pipeline and reduce its outcome to a ShipResult.

    Args:
        config: Assembled ship configuration.
        phases: Override the phase list (defaults to default_phases()).
    """
    if phases is None:
        phases = default_phases(config.dry_run)
    context = ShipContext()
    try:
        run_phases(phases, config, context)
    except PhaseFailed as exc:
        if context.checkout is not None:
            print(f"\n  Working copy left at {context.checkout}")
        return ShipResult.failed(exc.phase, str(exc.cause))

    if context.owns_checkout and context.checkout is not None:
        if config.dry_run:
            print(f"\n  Dry-run working copy left at {context.checkout}")
        else:
            _remove_scratch_clone(context.checkout)

    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return ShipResult.ok()


def _remove_scratch_clone(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as exc:
        # Cleanup never fails a ship that was already pushed
        print(f"  Warning: could not remove {path}: {exc}")


def run_ship(
    *,
    root: Path,
    repo: str,
    branch: str,
    max_warnings: int | None = None,
    dry_run: bool = False,
    project: str | None = None,
    workdir: Path | None = None,
    clear_workdir: bool = False,
) -> ShipResult:
    """Resolve configuration for the workspace at root and ship it.

    Configuration and resolution problems are raised before any phase
    runs; phase failures are returned as a failed ShipResult.

    Raises:
        ConfigError: Invalid workspace or options.
        ResolutionError: project is not a workspace member.
    """
    root = root.resolve()
    settings = load_settings(root)
    graph = None
    if project and project != WORKSPACE:
        graph = discover_workspace(root)

    config = build_ship_config(
        source_path=root,
        repo=repo,
        branch=branch,
        max_warnings=max_warnings,
        dry_run=dry_run,
        project=project,
        graph=graph,
        settings=settings,
        workdir=workdir,
        clear_workdir=clear_workdir,
    )
    report_scope(config)
    return ship(config)
