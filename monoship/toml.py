"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files. This is important for keeping the shipped root pyproject.toml
readable and diff-friendly.
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from packaging.utils import canonicalize_name
from pydantic import ValidationError
from tomlkit.exceptions import ParseError

from .errors import ConfigError
from .models import ShipSettings


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        ConfigError: If the file is missing or is not valid TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except FileNotFoundError as exc:
        raise ConfigError(f"No pyproject.toml found at {path}") from exc
    except ParseError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc))


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical project name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to use if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_all_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect all dependency strings from a pyproject.toml.

    Gathers dependencies from three locations:
    - [project].dependencies (main runtime deps)
    - [project].optional-dependencies.* (extras like [dev], [test])
    - [dependency-groups].* (PEP 735 dependency groups)

    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    """
    project = doc.get("project", {})
    deps: list[str] = list(project.get("dependencies", []))
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(group_deps)
    # PEP 735 groups may contain {include-group = "..."} tables; skip those
    for group_deps in doc.get("dependency-groups", {}).values():
        deps.extend(d for d in group_deps if isinstance(d, str))
    return deps


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace projects.

    Raises:
        ConfigError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise ConfigError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return list(members)


def set_workspace_members(doc: tomlkit.TOMLDocument, members: list[str]) -> bool:
    """Replace [tool.uv.workspace].members in place.

    Returns:
        False if the document has no [tool.uv.workspace] table to update.
    """
    workspace = doc.get("tool", {}).get("uv", {}).get("workspace")
    if workspace is None:
        return False
    array = tomlkit.array()
    array.extend(members)
    array.multiline(len(members) > 1)
    workspace["members"] = array
    return True


def get_ship_settings(doc: tomlkit.TOMLDocument) -> ShipSettings:
    """Read the [tool.monoship] table, falling back to defaults.

    Keys are kebab-case, e.g. ``max-warnings = 3``.

    Raises:
        ConfigError: If the table contains unknown keys or invalid values.
    """
    table = doc.get("tool", {}).get("monoship")
    if table is None:
        return ShipSettings()
    try:
        return ShipSettings.model_validate(table.unwrap())
    except ValidationError as exc:
        raise ConfigError(f"Invalid [tool.monoship] settings:\n{exc}") from exc
