"""Open a project in the user's configured editor."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from cratedeck.commands import CommandRunner
from cratedeck.errors import LaunchError

logger = logging.getLogger(__name__)


def editor_argv(editor_command: str, path: Path) -> list[str]:
    """Tokenize `editor_command` with shell rules and append `path`.

    Raises:
        LaunchError: the command is blank or cannot be tokenized.
    """

    if not editor_command.strip():
        raise LaunchError(LaunchError.NOT_CONFIGURED, "editor command is empty")
    try:
        parts = shlex.split(editor_command)
    except ValueError as e:
        raise LaunchError(LaunchError.NOT_CONFIGURED, f"cannot parse editor command: {e}") from e
    return [*parts, str(path)]


class EditorLauncher:
    """Start the editor for a project directory.

    By default the editor is spawned and left running (`wait=False`), so an
    interactive surface stays usable. Terminal editors that need the
    foreground should be configured with `wait=True`, in which case the call
    blocks until the editor exits and a non-zero exit is an error.
    """

    def __init__(self, runner: CommandRunner, *, wait: bool = False) -> None:
        self._runner = runner
        self._wait = wait

    def open(self, path: Path, editor_command: str) -> None:
        argv = editor_argv(editor_command, path)
        logger.info(
            "Opening project in editor",
            extra={"path": str(path), "editor_command": editor_command, "wait": self._wait},
        )

        if self._wait:
            result = self._runner.run(argv, cwd=path if path.is_dir() else None)
            if result.cancelled:
                raise LaunchError(LaunchError.CANCELLED)
            if result.returncode is None:
                raise LaunchError(LaunchError.SPAWN_FAILED, result.describe())
            if not result.ok:
                raise LaunchError(LaunchError.EXITED_NONZERO, f"exit status {result.returncode}")
            return

        result = self._runner.spawn(argv, cwd=path if path.is_dir() else None)
        if not result.ok:
            raise LaunchError(LaunchError.SPAWN_FAILED, result.describe())
