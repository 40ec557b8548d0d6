"""Data models for monoship.

These Pydantic models represent the core data structures used throughout
the ship pipeline.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectInfo(BaseModel):
    """Metadata for a single project in the monorepo workspace.

    Attributes:
        path: Relative path from workspace root to the project directory.
        deps: Direct internal (workspace) dependency names. External deps
              are not tracked since they are never shipped.
    """

    path: str
    deps: list[str] = Field(default_factory=list)


class ProjectGraph(BaseModel):
    """Workspace-wide dependency graph, keyed by canonical project name."""

    projects: dict[str, ProjectInfo] = Field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.projects

    def root_of(self, name: str) -> str:
        return self.projects[name].path


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class ShipSettings(BaseModel):
    """Ship policy read from [tool.monoship] in the workspace pyproject.toml.

    Attributes:
        max_warnings: Default warning threshold when the CLI gives none.
        include: Root-level files shipped along with any project.
        preserve: Destination paths the clean phase never removes.
        required_files: Paths that must exist in the synced tree.
        disallowed: Glob patterns that must never be shipped.
        max_file_size: Files larger than this many bytes raise a warning.
        create_branch: Create the destination branch when it is missing.
        allow_empty: Treat "nothing to commit" as success.
        commit_message: Template with {scope} and {sha} placeholders.
    """

    model_config = ConfigDict(
        alias_generator=_kebab, populate_by_name=True, extra="forbid", frozen=True
    )

    max_warnings: int = Field(default=0, ge=0)
    include: list[str] = Field(default_factory=lambda: ["pyproject.toml", "uv.lock"])
    preserve: list[str] = Field(default_factory=lambda: ["README.md", "LICENSE"])
    required_files: list[str] = Field(default_factory=lambda: ["pyproject.toml"])
    disallowed: list[str] = Field(default_factory=lambda: [".env", "*.pem", "*.key"])
    max_file_size: int = Field(default=1024 * 1024, gt=0)
    create_branch: bool = True
    allow_empty: bool = False
    commit_message: str = "Ship {scope} from {sha}"

    @field_validator("commit_message")
    @classmethod
    def _check_commit_message(cls, value: str) -> str:
        """Reject templates that cannot be filled with {scope} and {sha}."""
        try:
            value.format(scope="pkg", sha="0000000")
        except Exception as exc:
            raise ValueError(
                f"commit-message must only use {{scope}} and {{sha}}: {exc!r}"
            ) from exc
        return value


class ShipConfig(BaseModel):
    """Immutable context shared by every phase of one ship invocation.

    The single-project fields (project, project_root, dependencies,
    dependents, workspace, shipped_roots) are either all set or all None.
    None means the whole workspace is shipped; an empty dependencies set
    means a project with no internal dependencies.
    """

    model_config = ConfigDict(frozen=True)

    source_path: Path
    destination_repo_url: str
    destination_branch: str
    max_warnings: int = Field(ge=0)
    dry_run: bool = False
    settings: ShipSettings = Field(default_factory=ShipSettings)
    workdir: Path | None = None
    clear_workdir: bool = False

    project: str | None = None
    project_root: str | None = None
    dependencies: frozenset[str] | None = None
    dependents: frozenset[str] | None = None
    workspace: tuple[str, ...] | None = None
    shipped_roots: tuple[str, ...] | None = None

    @property
    def is_single_project(self) -> bool:
        return self.project is not None

    @property
    def scope(self) -> str:
        """Human-readable name of what is being shipped."""
        return self.project if self.project is not None else "workspace"


class ShipResult(BaseModel):
    """Outcome of a ship run.

    Attributes:
        success: True when every phase completed.
        phase: Name of the failed phase, None on success.
        cause: Message describing the failure, None on success.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    phase: str | None = None
    cause: str | None = None

    @classmethod
    def ok(cls) -> ShipResult:
        return cls(success=True)

    @classmethod
    def failed(cls, phase: str, cause: str) -> ShipResult:
        return cls(success=False, phase=phase, cause=cause)

    def __bool__(self) -> bool:
        return self.success

    def as_dict(self) -> dict[str, bool]:
        """The plain pass/fail contract, e.g. {"success": True}."""
        return {"success": self.success}


class ShipContext(BaseModel):
    """Working state handed from one phase to the next.

    Attributes:
        checkout: Local clone of the destination repository.
        owns_checkout: True when the clone lives in a temp dir monoship made.
        warnings: Warnings found by the verify phase.
        commit: Commit created by the post-process phase, if any.
        executed: Names of the phases that completed, in order.
    """

    checkout: Path | None = None
    owns_checkout: bool = False
    warnings: list[str] = Field(default_factory=list)
    commit: str | None = None
    executed: list[str] = Field(default_factory=list)
