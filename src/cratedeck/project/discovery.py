"""Scan the root directory for projects.

Rules:
- only immediate children of the root are considered
- a child is a project when it is a directory holding the manifest marker
- VCS status comes from the inspector and degrades to `unknown`, never to
  an error

Only an unreadable root fails the call.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Protocol

from cratedeck.errors import RootUnavailable
from cratedeck.models import Project, VcsStatus

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_MARKER = "Cargo.toml"


class Inspector(Protocol):
    def inspect(self, path: Path) -> VcsStatus: ...


def has_manifest(directory: Path, marker: str = DEFAULT_MANIFEST_MARKER) -> bool:
    """Case-sensitive, exact-name check for the marker file inside `directory`."""

    try:
        return marker in os.listdir(directory) and (directory / marker).is_file()
    except OSError:
        return False


def candidate_directories(root: Path) -> list[Path]:
    """Immediate child directories of `root`.

    Raises:
        RootUnavailable: the root does not exist, is not a directory or
            cannot be listed.
    """

    if not root.exists():
        raise RootUnavailable(root, "does not exist")
    if not root.is_dir():
        raise RootUnavailable(root, "is not a directory")

    try:
        entries = list(os.scandir(root))
    except OSError as e:
        raise RootUnavailable(root, e.strerror or str(e)) from e

    dirs: list[Path] = []
    for entry in entries:
        try:
            if entry.is_dir():
                dirs.append(Path(entry.path))
        except OSError as e:
            logger.warning(
                "Skipping entry whose type cannot be read",
                extra={"path": entry.path, "error": str(e)},
            )
    return dirs


def sort_projects(projects: Iterable[Project]) -> list[Project]:
    """Stable listing order: case-insensitive by name, then exact name."""

    return sorted(projects, key=lambda p: (p.name.casefold(), p.name))


class ProjectDiscovery:
    """Build `Project` records for everything under a root directory.

    Each call rescans from scratch. VCS inspection is independent per project
    and runs on a bounded thread pool when `max_workers > 1`; results are
    re-sorted before being returned so the order never depends on timing.
    """

    def __init__(
        self,
        inspector: Inspector,
        *,
        manifest_marker: str = DEFAULT_MANIFEST_MARKER,
        max_workers: int = 8,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._inspector = inspector
        self._marker = manifest_marker
        self._max_workers = max_workers

    @property
    def manifest_marker(self) -> str:
        return self._marker

    def discover(self, root: Path) -> list[Project]:
        root = root.expanduser().absolute()
        logger.info("Listing projects", extra={"root": str(root), "marker": self._marker})

        project_dirs = [d for d in candidate_directories(root) if has_manifest(d, self._marker)]

        if self._max_workers == 1 or len(project_dirs) <= 1:
            projects = [self._build(d) for d in project_dirs]
        else:
            workers = min(self._max_workers, len(project_dirs))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vcs-inspect") as pool:
                projects = list(pool.map(self._build, project_dirs))

        ordered = sort_projects(projects)
        logger.info("Projects listed", extra={"root": str(root), "count": len(ordered)})
        return ordered

    def _build(self, directory: Path) -> Project:
        try:
            status = self._inspector.inspect(directory)
        except Exception as e:
            logger.warning(
                "VCS inspection raised; status unknown",
                extra={"path": str(directory), "error": str(e)},
            )
            status = VcsStatus.UNKNOWN
        return Project(name=directory.name, path=directory, vcs_status=status)


def discover(
    root: Path,
    inspector: Inspector,
    *,
    manifest_marker: str = DEFAULT_MANIFEST_MARKER,
    max_workers: int = 8,
) -> list[Project]:
    """Convenience wrapper around `ProjectDiscovery.discover`."""

    discovery = ProjectDiscovery(inspector, manifest_marker=manifest_marker, max_workers=max_workers)
    return discovery.discover(root)
