"""Failure taxonomy.

Primary failures (root unreadable, rejected input, generator failure) are
raised to the caller. Auxiliary failures never leave the module they happen
in: VCS inspection problems become `VcsStatus.UNKNOWN` and default-branch
problems are only logged. `LaunchError` is raised by the editor launcher but
the creator reports it next to a successful result instead of propagating it.
"""

from __future__ import annotations

from pathlib import Path


class CrateDeckError(Exception):
    """Base class for every error this package raises on purpose."""


class RootUnavailable(CrateDeckError):
    """The configured root directory cannot be listed."""

    def __init__(self, root: Path, reason: str) -> None:
        super().__init__(f"Root directory unavailable: {root} ({reason})")
        self.root = root
        self.reason = reason


class InvalidInput(CrateDeckError):
    """A creation request was rejected before anything was touched."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason


class GenerationFailed(CrateDeckError):
    """The project-generation tool could not be spawned or exited non-zero."""

    def __init__(self, command: list[str], returncode: int | None, details: str) -> None:
        status = "could not be started" if returncode is None else f"exited with {returncode}"
        message = f"`{' '.join(command)}` {status}"
        if details.strip():
            message += f": {details.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.details = details


class LaunchError(CrateDeckError):
    """The editor could not be started for a project."""

    NOT_CONFIGURED = "not_configured"
    SPAWN_FAILED = "spawn_failed"
    EXITED_NONZERO = "exited_nonzero"
    CANCELLED = "cancelled"

    def __init__(self, reason: str, details: str = "") -> None:
        message = f"Editor launch failed ({reason})"
        if details:
            message += f": {details}"
        super().__init__(message)
        self.reason = reason
        self.details = details


class ConfigError(CrateDeckError):
    """The configuration file exists but cannot be used."""


class RootDirectoryInvalid(ConfigError):
    """A root directory failed validation."""

    def __init__(self, path: Path | None, reason: str) -> None:
        super().__init__(f"Root directory invalid: {reason}" + (f" ({path})" if path else ""))
        self.path = path
        self.reason = reason
