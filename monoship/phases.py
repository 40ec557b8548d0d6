"""Ship phases: clone → check → clean → sync → verify → post-process → push.

Each phase is constructed fresh for one run with the shared ShipConfig and
the mutable ShipContext left by earlier phases. A phase either finishes
with its side effects on disk or raises a ShipError subclass; it never
continues after a partial failure.
"""

from __future__ import annotations

import fnmatch
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import ClassVar

from .errors import (
    IntegrityError,
    PolicyError,
    PostProcessError,
    ShipError,
    SyncError,
    TransportError,
)
from .models import ShipConfig, ShipContext
from .shell import describe_failure, git, git_ok
from .toml import load_pyproject, save_pyproject, set_workspace_members


class Phase:
    """One stage of the ship pipeline.

    Subclasses set ``name`` and ``title`` and implement ``run()``.
    """

    name: ClassVar[str] = "phase"
    title: ClassVar[str] = "Phase"

    def __init__(self, config: ShipConfig, context: ShipContext) -> None:
        self.config = config
        self.context = context

    @property
    def checkout(self) -> Path:
        """The destination working copy created by the clone phase."""
        if self.context.checkout is None:
            raise ShipError(f"{self.name} needs a checkout; run the clone phase first")
        return self.context.checkout

    def run(self) -> None:
        raise NotImplementedError


def walk_files(root: Path) -> list[str]:
    """List every file under root as a POSIX relative path, skipping .git."""
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d != ".git")
        base = Path(dirpath)
        for filename in sorted(filenames):
            found.append((base / filename).relative_to(root).as_posix())
        # os.walk lists symlinked directories as dirs; report them as entries
        for d in list(dirnames):
            if (base / d).is_symlink():
                found.append((base / d).relative_to(root).as_posix())
                dirnames.remove(d)
    return sorted(found)


class ClonePhase(Phase):
    """Clone the destination repository at the destination branch."""

    name = "clone"
    title = "Cloning destination repository"

    def run(self) -> None:
        url = self.config.destination_repo_url
        branch = self.config.destination_branch
        target = self._prepare_target()
        self.context.checkout = target
        print(f"  {url} → {target}")

        try:
            heads = git("ls-remote", "--heads", url, f"refs/heads/{branch}")
            if heads:
                git("clone", "--branch", branch, "--single-branch", url, str(target))
                print(f"  Checked out {branch}")
                return

            if not self.config.settings.create_branch:
                raise TransportError(f"Branch {branch!r} does not exist in {url}")

            git("clone", url, str(target))
            if git_ok("rev-parse", "--verify", "--quiet", "HEAD", cwd=target):
                git("checkout", "-b", branch, cwd=target)
            else:
                # Empty repository: point the unborn HEAD at the new branch
                git("symbolic-ref", "HEAD", f"refs/heads/{branch}", cwd=target)
            print(f"  Created branch {branch} (not found upstream)")
        except subprocess.CalledProcessError as exc:
            raise TransportError(describe_failure(exc)) from exc

    def _prepare_target(self) -> Path:
        workdir = self.config.workdir
        if workdir is None:
            self.context.owns_checkout = True
            return Path(tempfile.mkdtemp(prefix="monoship-"))
        workdir = workdir.resolve()
        if workdir.exists() and any(workdir.iterdir()):
            if not self.config.clear_workdir:
                raise TransportError(
                    f"Clone directory {workdir} is not empty (use --force to clear it)"
                )
            try:
                shutil.rmtree(workdir)
            except OSError as exc:
                raise TransportError(f"Failed to clear {workdir}: {exc}") from exc
            print(f"  Cleared {workdir}")
        workdir.mkdir(parents=True, exist_ok=True)
        return workdir


class CorruptionCheckPhase(Phase):
    """Verify the clone's object database and branch before any edits."""

    name = "corruption-check"
    title = "Checking repository integrity"

    def run(self) -> None:
        try:
            git("fsck", "--no-progress", "--no-dangling", cwd=self.checkout)
        except subprocess.CalledProcessError as exc:
            raise IntegrityError(describe_failure(exc)) from exc

        branch = self.config.destination_branch
        head = git(
            "symbolic-ref", "--quiet", "--short", "HEAD", cwd=self.checkout, check=False
        )
        if head != branch:
            where = head or "a detached commit"
            raise IntegrityError(f"HEAD is on {where}, expected {branch}")
        print("  OK")


class CleanPhase(Phase):
    """Delete everything in the working copy except .git and preserved paths.

    Sync then recreates the shipped scope, so files that left the scope
    disappear from the destination.
    """

    name = "clean"
    title = "Cleaning working copy"

    def run(self) -> None:
        preserve = {p.strip("/") for p in self.config.settings.preserve}
        try:
            removed = self._clean_dir(self.checkout, "", preserve)
        except OSError as exc:
            raise SyncError(f"Failed to clean {self.checkout}: {exc}") from exc
        print(f"  Removed {removed} entries")

    def _clean_dir(self, directory: Path, prefix: str, preserve: set[str]) -> int:
        removed = 0
        for entry in sorted(directory.iterdir()):
            rel = f"{prefix}{entry.name}"
            if rel == ".git" or rel in preserve:
                continue
            if entry.is_dir() and not entry.is_symlink():
                # Descend when something below this directory is preserved
                if any(p.startswith(rel + "/") for p in preserve):
                    removed += self._clean_dir(entry, rel + "/", preserve)
                    continue
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed += 1
        return removed


class SyncPhase(Phase):
    """Copy the shipped scope from the monorepo into the working copy."""

    name = "sync"
    title = "Syncing shipped files"

    def run(self) -> None:
        source = self.config.source_path
        if not source.is_dir():
            raise SyncError(f"Source path {source} does not exist")

        roots = self.config.shipped_roots
        if roots is not None:
            missing = [r for r in roots if not (source / r).is_dir()]
            if missing:
                raise SyncError(
                    f"Missing project roots in source: {', '.join(missing)}"
                )

        try:
            files = self._candidate_files(source)
        except subprocess.CalledProcessError as exc:
            raise SyncError(describe_failure(exc)) from exc

        copied = 0
        for rel in files:
            if not self._in_scope(rel):
                continue
            src = source / rel
            # Deleted-but-tracked files and submodule directories are skipped
            if not os.path.lexists(src) or (src.is_dir() and not src.is_symlink()):
                continue
            dest = self.checkout / rel
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, dest, follow_symlinks=False)
            except OSError as exc:
                raise SyncError(f"Failed to copy {rel}: {exc}") from exc
            copied += 1

        if roots is None:
            print(f"  Copied {copied} files from the whole workspace")
        else:
            print(f"  Copied {copied} files from {', '.join(roots)}")

    def _candidate_files(self, source: Path) -> list[str]:
        """Tracked plus untracked-but-not-ignored files, relative to source."""
        output = git(
            "ls-files",
            "-z",
            "--cached",
            "--others",
            "--exclude-standard",
            cwd=source,
        )
        return sorted({f for f in output.split("\0") if f})

    def _in_scope(self, rel: str) -> bool:
        roots = self.config.shipped_roots
        if roots is None:
            return True
        if rel in self.config.settings.include:
            return True
        return any(rel.startswith(root.rstrip("/") + "/") for root in roots)


class VerifyRepoPhase(Phase):
    """Check the synced tree against the ship policy.

    Missing required files and disallowed artifacts always fail. Oversized
    files and broken symlinks are warnings; more than max_warnings of them
    fails the run.
    """

    name = "verify-repo"
    title = "Verifying synced repository"

    def run(self) -> None:
        settings = self.config.settings
        files = walk_files(self.checkout)

        problems: list[str] = []
        for required in settings.required_files:
            if not (self.checkout / required).exists():
                problems.append(f"missing required file {required}")
        for root in self.config.shipped_roots or ():
            if not (self.checkout / root).is_dir():
                problems.append(f"missing project root {root}")
        for rel in files:
            name = rel.rsplit("/", 1)[-1]
            for pattern in settings.disallowed:
                if fnmatch.fnmatch(name, pattern) or fnmatch.fnmatch(rel, pattern):
                    problems.append(f"disallowed file {rel} (matches {pattern!r})")
                    break
        if problems:
            raise PolicyError("; ".join(problems))

        warnings = self._collect_warnings(files)
        self.context.warnings = warnings
        for warning in warnings:
            print(f"  Warning: {warning}")

        limit = self.config.max_warnings
        if len(warnings) > limit:
            raise PolicyError(f"{len(warnings)} warnings exceed max-warnings={limit}")
        print(f"  {len(files)} files, {len(warnings)} warnings (max {limit})")

    def _collect_warnings(self, files: list[str]) -> list[str]:
        warnings: list[str] = []
        max_size = self.config.settings.max_file_size
        for rel in files:
            path = self.checkout / rel
            if path.is_symlink():
                if not path.exists():
                    warnings.append(f"{rel} is a broken symlink")
                continue
            size = path.stat().st_size
            if size > max_size:
                warnings.append(f"{rel} is {size} bytes (limit {max_size})")
        return warnings


class PostProcessPhase(Phase):
    """Rewrite workspace paths, stage everything and commit."""

    name = "post-process"
    title = "Committing shipped changes"

    def run(self) -> None:
        if self.config.shipped_roots is not None:
            self._rewrite_workspace_members(list(self.config.shipped_roots))

        try:
            git("add", "-A", cwd=self.checkout)
            staged = git("diff", "--cached", "--name-only", cwd=self.checkout)
        except subprocess.CalledProcessError as exc:
            raise PostProcessError(describe_failure(exc)) from exc

        if not staged:
            if self.config.settings.allow_empty:
                print("  No changes to commit")
                return
            raise PostProcessError("No changes to commit")

        message = self._commit_message()
        summary = "\n".join(f"  {line}" for line in self._summary_lines())
        try:
            git("commit", "-m", message, "-m", summary, cwd=self.checkout)
            self.context.commit = git("rev-parse", "HEAD", cwd=self.checkout)
        except subprocess.CalledProcessError as exc:
            raise PostProcessError(describe_failure(exc)) from exc
        print(f"  {self.context.commit[:12]} {message}")
        print(f"  {len(staged.splitlines())} files changed")

    def _rewrite_workspace_members(self, roots: list[str]) -> None:
        pyproject = self.checkout / "pyproject.toml"
        if not pyproject.exists():
            return
        try:
            doc = load_pyproject(pyproject)
        except ShipError as exc:
            raise PostProcessError(str(exc)) from exc
        if set_workspace_members(doc, roots):
            save_pyproject(pyproject, doc)
            print(f"  Workspace members → [{', '.join(roots)}]")

    def _commit_message(self) -> str:
        sha = git(
            "rev-parse", "--short", "HEAD", cwd=self.config.source_path, check=False
        )
        # The template was checked when ShipSettings was validated
        return self.config.settings.commit_message.format(
            scope=self.config.scope, sha=sha or "unknown"
        )

    def _summary_lines(self) -> list[str]:
        if not self.config.is_single_project:
            return ["Shipped the whole workspace"]
        lines = [f"project: {self.config.project} ({self.config.project_root})"]
        deps = sorted(self.config.dependencies or ())
        lines.append(f"dependencies: {', '.join(deps) or '<none>'}")
        return lines


class PushPhase(Phase):
    """Push the committed working copy to the destination branch."""

    name = "push"
    title = "Pushing to destination"

    def run(self) -> None:
        branch = self.config.destination_branch
        try:
            git("push", "origin", f"HEAD:refs/heads/{branch}", cwd=self.checkout)
        except subprocess.CalledProcessError as exc:
            raise TransportError(describe_failure(exc)) from exc
        print(f"  Pushed to {self.config.destination_repo_url} ({branch})")
