"""Project creation.

Steps, in order:
1. Validate the request (name syntax, collision, root usability).
2. Best effort: set git's global default branch.
3. Run the generator. Failure here is fatal to the call.
4. Build the resulting `Project`.
5. Optionally open it in the editor; failure is reported, not raised.

Nothing is rolled back. A directory left behind by a failed generator run is
kept in place and named in a warning.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cratedeck.errors import GenerationFailed, InvalidInput, LaunchError
from cratedeck.models import CreationRequest, Edition, Project, ProjectKind, VcsStatus
from cratedeck.project.stages import CreationProgress, CreationStage, transition

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"

_NAME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_-]*")


class Generator(Protocol):
    @property
    def initializes_vcs(self) -> bool: ...

    def generate(self, target: Path, kind: ProjectKind, edition: Edition) -> None: ...


class VcsInspector(Protocol):
    def inspect(self, path: Path) -> VcsStatus: ...

    def set_global_default_branch(self, branch: str) -> object: ...


class Launcher(Protocol):
    def open(self, path: Path, editor_command: str) -> None: ...


@dataclass(frozen=True, slots=True)
class CreationOutcome:
    """A successfully created project plus any non-fatal editor failure."""

    project: Project
    progress: CreationProgress
    launch_error: LaunchError | None = None

    @property
    def warnings(self) -> list[str]:
        return [str(self.launch_error)] if self.launch_error is not None else []


def validate_name(name: str) -> None:
    """Raise `InvalidInput` unless `name` is a usable crate directory name."""

    if not name.strip():
        raise InvalidInput("name", "name cannot be blank")
    if any(ch.isspace() for ch in name):
        raise InvalidInput("name", "name cannot contain whitespace")
    if not name[0].isascii() or not name[0].isalpha():
        raise InvalidInput("name", "name must start with an ASCII letter")
    if _NAME_PATTERN.fullmatch(name) is None:
        raise InvalidInput("name", "name can only contain ASCII letters, digits, '_' or '-'")


def validate_target(root: Path, name: str) -> Path:
    """Check the root is usable and `name` is free; return the target path."""

    if not root.is_dir():
        raise InvalidInput("root_directory", f"{root} is not an existing directory")
    if not os.access(root, os.W_OK | os.X_OK):
        raise InvalidInput("root_directory", f"{root} is not writable")

    target = root / name
    if target.exists() or target.is_symlink():
        raise InvalidInput("name", f"{target} already exists")
    return target


class ProjectCreator:
    """Create new projects under a root directory."""

    def __init__(
        self,
        *,
        generator: Generator,
        vcs: VcsInspector,
        launcher: Launcher,
        default_branch: str = DEFAULT_BRANCH,
    ) -> None:
        self._generator = generator
        self._vcs = vcs
        self._launcher = launcher
        self._default_branch = default_branch

    def create(
        self,
        request: CreationRequest,
        root_directory: Path,
        preferred_editor: str = "",
    ) -> CreationOutcome:
        """Create the project described by `request` under `root_directory`.

        Raises:
            InvalidInput: the request was rejected; nothing was run or written.
            GenerationFailed: the generator failed; no project is returned.
        """

        root = root_directory.expanduser().absolute()
        logger.info(
            "Starting project creation",
            extra={
                "project": request.name,
                "kind": request.kind.value,
                "edition": request.edition.value,
                "root": str(root),
            },
        )
        progress = CreationProgress()

        validate_name(request.name)
        target = validate_target(root, request.name)
        progress = transition(current=progress, to=CreationStage.VALIDATED)

        self._configure_default_branch()
        progress = transition(current=progress, to=CreationStage.BRANCH_CONFIG_ATTEMPTED)

        try:
            self._generator.generate(target, request.kind, request.edition)
        except GenerationFailed as e:
            logger.error(
                "Project generation failed",
                extra={"project": request.name, "returncode": e.returncode, "details": e.details},
            )
            if target.exists():
                logger.warning(
                    "Generator left a partial project directory in place",
                    extra={"path": str(target)},
                )
            raise
        progress = transition(current=progress, to=CreationStage.GENERATED)

        status = (
            self._vcs.inspect(target) if self._generator.initializes_vcs else VcsStatus.NOT_A_VCS_REPO
        )
        project = Project(name=request.name, path=target, vcs_status=status)
        logger.info("Project created", extra={"path": str(target), "vcs_status": status.value})

        launch_error: LaunchError | None = None
        if request.open_in_editor:
            progress = transition(current=progress, to=CreationStage.EDITOR_LAUNCH_ATTEMPTED)
            launch_error = self.open_in_editor(project, preferred_editor)

        return CreationOutcome(project=project, progress=progress, launch_error=launch_error)

    def _configure_default_branch(self) -> None:
        try:
            self._vcs.set_global_default_branch(self._default_branch)
        except Exception as e:
            logger.warning(
                "Unable to set global git default branch",
                extra={"branch": self._default_branch, "error": str(e)},
            )

    def open_in_editor(self, project: Project, editor_command: str) -> LaunchError | None:
        """Launch the editor for `project`; return the failure instead of raising."""

        try:
            self._launcher.open(project.path, editor_command)
        except LaunchError as e:
            logger.warning(
                "Project created but editor could not be opened",
                extra={"path": str(project.path), "reason": e.reason, "details": e.details},
            )
            return e
        return None
