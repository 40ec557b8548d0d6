"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit

from monoship.models import ProjectGraph, ProjectInfo


def _write_workspace(root: Path, projects: dict[str, list[str]]) -> Path:
    """Create a uv workspace under root with one project per entry.

    Args:
        root: Directory to create the workspace in.
        projects: Map of project name → names of its workspace dependencies.
    """
    root.mkdir(parents=True, exist_ok=True)
    (root / "pyproject.toml").write_text(
        '[project]\nname = "monorepo"\nversion = "0.0.0"\n\n'
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n'
    )
    for name, deps in projects.items():
        pkg_dir = root / "packages" / name
        module = pkg_dir / name.replace("-", "_")
        module.mkdir(parents=True)
        (module / "__init__.py").write_text(f'"""{name}."""\n')
        dep_list = ", ".join(f'"{d}>=0.1"' for d in [*deps, "requests"])
        (pkg_dir / "pyproject.toml").write_text(
            f'[project]\nname = "{name}"\nversion = "0.1.0"\n'
            f"dependencies = [{dep_list}]\n"
        )
    return root


@pytest.fixture
def chain_graph() -> ProjectGraph:
    """A depends on B, B depends on C."""
    return ProjectGraph(
        projects={
            "a": ProjectInfo(path="packages/a", deps=["b"]),
            "b": ProjectInfo(path="packages/b", deps=["c"]),
            "c": ProjectInfo(path="packages/c"),
        }
    )


@pytest.fixture
def diamond_graph() -> ProjectGraph:
    """Diamond: top depends on left and right, both depend on bottom."""
    return ProjectGraph(
        projects={
            "top": ProjectInfo(path="packages/top", deps=["left", "right"]),
            "left": ProjectInfo(path="packages/left", deps=["bottom"]),
            "right": ProjectInfo(path="packages/right", deps=["bottom"]),
            "bottom": ProjectInfo(path="packages/bottom"),
        }
    )


@pytest.fixture
def chain_workspace(tmp_path: Path) -> Path:
    """On-disk workspace with pkg-a → pkg-b → pkg-c and a standalone pkg-d."""
    return _write_workspace(
        tmp_path / "monorepo",
        {
            "pkg-a": ["pkg-b"],
            "pkg-b": ["pkg-c"],
            "pkg-c": [],
            "pkg-d": [],
        },
    )


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "My_Package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0", {include-group = "docs"}]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]

[tool.monoship]
max-warnings = 3
preserve = ["README.md", ".github/CODEOWNERS"]
"""
    return tomlkit.parse(content)


@pytest.fixture
def make_workspace():
    """Factory fixture: make_workspace(root, {name: [deps]}) → root."""
    return _write_workspace
