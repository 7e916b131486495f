#!/usr/bin/env python3
"""Programmatic discovery and creation example.

This demonstrates using the components directly instead of the CLI:

* list every project under a directory with its git state
* optionally create a new library crate there and open it in an editor

The root directory is passed as an argument (not read from config.yaml).
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from cratedeck.commands import SubprocessRunner
from cratedeck.editor import EditorLauncher
from cratedeck.errors import GenerationFailed, InvalidInput
from cratedeck.logging import configure_logging
from cratedeck.models import CreationRequest, ProjectKind
from cratedeck.project import ProjectCreator, ProjectDiscovery
from cratedeck.project.generator import CargoGenerator
from cratedeck.vcs import GitInspector


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List and create projects (programmatic example).")
    parser.add_argument("--root", required=True, help="Directory holding the projects")
    parser.add_argument("--create", default="", help="Name of a library crate to create (optional)")
    parser.add_argument("--editor", default="", help='Editor command, e.g. "code -n" (optional)')
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging("WARNING")

    root = Path(args.root)
    runner = SubprocessRunner(default_timeout=60)
    inspector = GitInspector(runner)

    if args.create:
        creator = ProjectCreator(
            generator=CargoGenerator(runner),
            vcs=inspector,
            launcher=EditorLauncher(runner),
        )
        request = CreationRequest(
            name=args.create, kind=ProjectKind.LIBRARY, open_in_editor=bool(args.editor)
        )
        try:
            outcome = creator.create(request, root, args.editor)
        except (InvalidInput, GenerationFailed) as exc:
            print(str(exc))
            return 1
        print(f"Created {outcome.project.name} at {outcome.project.path}")
        for warning in outcome.warnings:
            print(f"Warning: {warning}")

    for project in ProjectDiscovery(inspector).discover(root):
        print(f"{project.name}{project.vcs_status.indicator}\t{project.vcs_status.value}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
