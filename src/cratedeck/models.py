"""Value types shared by discovery and creation.

`Project` records are rebuilt on every scan and never mutated; the enums
carry the string forms used on the command line and in JSON output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class VcsStatus(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    NOT_A_VCS_REPO = "not_a_vcs_repo"
    UNKNOWN = "unknown"

    @property
    def indicator(self) -> str:
        """Single-character marker shown next to a project name."""

        if self is VcsStatus.DIRTY:
            return "*"
        if self is VcsStatus.UNKNOWN:
            return "?"
        return ""


class ProjectKind(str, Enum):
    BINARY = "bin"
    LIBRARY = "lib"

    @property
    def flag(self) -> str:
        return f"--{self.value}"


class Edition(str, Enum):
    E2015 = "2015"
    E2018 = "2018"
    E2021 = "2021"
    E2024 = "2024"

    @classmethod
    def latest(cls) -> Edition:
        return cls.E2024


@dataclass(frozen=True, slots=True)
class Project:
    """A directory under the root that carries the manifest marker."""

    name: str
    path: Path
    vcs_status: VcsStatus

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Project name must not be empty")

    @property
    def is_dirty(self) -> bool:
        return self.vcs_status is VcsStatus.DIRTY

    def to_json(self) -> dict[str, object]:
        return {"name": self.name, "path": str(self.path), "vcs_status": self.vcs_status.value}


@dataclass(frozen=True, slots=True)
class CreationRequest:
    """User input for a single project creation.

    `open_in_editor` is only meaningful once generation has succeeded; the
    creator never looks at it before that point.
    """

    name: str
    kind: ProjectKind = ProjectKind.BINARY
    edition: Edition = Edition.E2024
    open_in_editor: bool = False
