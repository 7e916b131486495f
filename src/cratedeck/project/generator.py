"""Invocation of the external project-generation tool (`cargo new`)."""

from __future__ import annotations

import logging
from pathlib import Path

from cratedeck.commands import CommandRunner
from cratedeck.errors import GenerationFailed
from cratedeck.models import Edition, ProjectKind

logger = logging.getLogger(__name__)


class CargoGenerator:
    """Create a new crate directory with `cargo new`.

    `vcs` is passed straight to `cargo new --vcs`. With `"git"` the new
    directory is a repository, which `initializes_vcs` reports so the caller
    knows to inspect it instead of assuming there is no repository.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        executable: str = "cargo",
        vcs: str = "git",
        timeout: float | None = 120.0,
    ) -> None:
        self._runner = runner
        self._executable = executable
        self._vcs = vcs
        self._timeout = timeout

    @property
    def initializes_vcs(self) -> bool:
        return self._vcs != "none"

    def command(self, target: Path, kind: ProjectKind, edition: Edition) -> list[str]:
        return [
            self._executable,
            "new",
            kind.flag,
            "--edition",
            edition.value,
            "--vcs",
            self._vcs,
            target.name,
        ]

    def generate(self, target: Path, kind: ProjectKind, edition: Edition) -> None:
        """Run the generator in `target.parent`.

        Raises:
            GenerationFailed: the tool could not be started, timed out, was
                cancelled or exited non-zero.
        """

        argv = self.command(target, kind, edition)
        logger.info("Executing generator", extra={"argv": argv, "cwd": str(target.parent)})

        result = self._runner.run(argv, cwd=target.parent, timeout=self._timeout)
        if not result.ok:
            details = result.stderr if result.stderr.strip() else (result.error or "")
            raise GenerationFailed(argv, result.returncode, details)
