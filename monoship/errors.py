"""Exception types raised while configuring and running a ship."""

from __future__ import annotations


class ShipError(RuntimeError):
    """Base class for every failure monoship raises on purpose."""


class ConfigError(ShipError):
    """Invalid invocation options or [tool.monoship] settings."""


class ResolutionError(ShipError):
    """The target project is not part of the workspace graph."""


class TransportError(ShipError):
    """Cloning from or pushing to the destination repository failed."""


class IntegrityError(ShipError):
    """The cloned destination repository failed its integrity check."""


class SyncError(ShipError):
    """Filesystem error while cleaning or syncing the working copy."""


class PolicyError(ShipError):
    """The synced tree violates the ship policy (user-correctable)."""


class PostProcessError(ShipError):
    """Rewriting, staging or committing the synced tree failed."""


class PhaseFailed(ShipError):
    """A pipeline phase failed; wraps the underlying cause.

    Attributes:
        phase: Name of the phase that failed (e.g., "verify-repo").
        cause: The exception raised by the phase.
    """

    def __init__(self, phase: str, cause: BaseException) -> None:
        super().__init__(f"phase {phase} failed: {cause}")
        self.phase = phase
        self.cause = cause
