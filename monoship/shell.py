"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running git, plus
output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def git(*args: str, cwd: Path | str | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., rev-parse).

    Returns:
        Stripped stdout from the git command.

    Raises:
        subprocess.CalledProcessError: If check is True and git fails. The
            captured stderr is available on the exception.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=check
    )
    return result.stdout.strip()


def git_ok(*args: str, cwd: Path | str | None = None) -> bool:
    """Run a git command and report whether it exited cleanly."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    return result.returncode == 0


def describe_failure(exc: subprocess.CalledProcessError) -> str:
    """Condense a failed git invocation into a one-line message."""
    cmd = exc.cmd if isinstance(exc.cmd, str) else " ".join(map(str, exc.cmd))
    detail = (exc.stderr or exc.stdout or "").strip().splitlines()
    reason = detail[-1] if detail else f"exit status {exc.returncode}"
    return f"`{cmd}` failed: {reason}"


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of the ship pipeline in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the command.
    """
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
