"""Git inspection and the global default-branch convenience write."""

from __future__ import annotations

import logging
from pathlib import Path

from cratedeck.commands import CommandResult, CommandRunner
from cratedeck.models import VcsStatus

logger = logging.getLogger(__name__)

REPOSITORY_MARKER = ".git"

# Untracked files are listed individually so a new file inside a new
# directory still counts as a pending change.
STATUS_ARGS = ["status", "--porcelain=v1", "--untracked-files=all", "--ignore-submodules=none"]


class GitInspector:
    """Answer "is this a repository, and is it dirty?" for a directory.

    `inspect` is total: every failure is logged at WARNING and reported as
    `VcsStatus.UNKNOWN` so one broken repository never fails a listing.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        git_executable: str = "git",
        timeout: float | None = 30.0,
    ) -> None:
        self._runner = runner
        self._git = git_executable
        self._timeout = timeout

    def inspect(self, path: Path) -> VcsStatus:
        try:
            if not (path / REPOSITORY_MARKER).exists():
                return VcsStatus.NOT_A_VCS_REPO

            result = self._runner.run(
                [self._git, *STATUS_ARGS], cwd=path, timeout=self._timeout
            )
        except Exception as e:
            logger.warning(
                "VCS inspection failed; status unknown",
                extra={"path": str(path), "error": str(e)},
            )
            return VcsStatus.UNKNOWN

        if not result.ok:
            logger.warning(
                "VCS status query failed; status unknown",
                extra={"path": str(path), "returncode": result.returncode, "error": result.describe()},
            )
            return VcsStatus.UNKNOWN

        return VcsStatus.DIRTY if has_pending_changes(result.stdout) else VcsStatus.CLEAN

    def set_global_default_branch(self, branch: str) -> CommandResult:
        """Best effort `git config --global init.defaultBranch <branch>`.

        The result is informational; callers are free to discard it.
        """

        try:
            result = self._runner.run(
                [self._git, "config", "--global", "init.defaultBranch", branch],
                timeout=self._timeout,
            )
        except Exception as e:
            result = CommandResult(ok=False, error=str(e))

        if result.ok:
            logger.info("Ensured global git default branch", extra={"branch": branch})
        else:
            logger.warning(
                "Unable to set global git default branch",
                extra={"branch": branch, "returncode": result.returncode, "error": result.describe()},
            )
        return result


def has_pending_changes(porcelain: str) -> bool:
    """Whether `git status --porcelain` output lists any entry.

    Staged, unstaged, untracked, renamed, type-changed and conflicted entries
    all produce a line; a clean tree produces none.
    """

    return any(line.strip() for line in porcelain.splitlines())
