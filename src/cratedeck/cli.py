"""Command-line entrypoint.

Subcommands:
- `list`  scan the root directory and print each project with its git state
- `new`   create a project with `cargo new` and optionally open it
- `setup` persist the root directory and editor command
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from cratedeck import __version__
from cratedeck.commands import CommandRunner, SubprocessRunner
from cratedeck.config import (
    LOG_FILE_NAME,
    ManagerSettings,
    config_dir,
    config_file_path,
    load_settings,
    save_settings,
)
from cratedeck.editor import EditorLauncher
from cratedeck.errors import ConfigError, GenerationFailed, InvalidInput, RootUnavailable
from cratedeck.logging import configure_logging
from cratedeck.models import CreationRequest, Edition, Project, ProjectKind
from cratedeck.project.creator import ProjectCreator
from cratedeck.project.discovery import ProjectDiscovery
from cratedeck.project.generator import CargoGenerator
from cratedeck.vcs import GitInspector

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INVALID_INPUT = 3
EXIT_GENERATION_FAILED = 4
EXIT_ROOT_UNAVAILABLE = 5
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cratedeck",
        description="List and create Rust projects under a single root directory",
    )
    parser.add_argument("--version", action="version", version=f"cratedeck {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_cmd = subparsers.add_parser("list", help="List projects and their git state")
    list_cmd.add_argument(
        "--root",
        default=None,
        help="Directory to scan instead of the configured root directory",
    )
    list_cmd.add_argument("--json", action="store_true", help="Print projects as JSON")

    new_cmd = subparsers.add_parser("new", help="Create a new project under the root directory")
    new_cmd.add_argument("name", help="Project (and directory) name")
    kind = new_cmd.add_mutually_exclusive_group()
    kind.add_argument(
        "--bin",
        dest="kind",
        action="store_const",
        const=ProjectKind.BINARY,
        help="Create a binary crate (default)",
    )
    kind.add_argument(
        "--lib",
        dest="kind",
        action="store_const",
        const=ProjectKind.LIBRARY,
        help="Create a library crate",
    )
    new_cmd.set_defaults(kind=ProjectKind.BINARY)
    new_cmd.add_argument(
        "--edition",
        choices=[e.value for e in Edition],
        default=Edition.latest().value,
        help="Language edition (default: latest)",
    )
    new_cmd.add_argument(
        "--open",
        action="store_true",
        help="Open the project in the configured editor after creation",
    )

    setup_cmd = subparsers.add_parser("setup", help="Save the root directory and editor command")
    setup_cmd.add_argument("--root", required=True, help="Directory holding your projects")
    setup_cmd.add_argument(
        "--editor",
        required=True,
        help="Editor command, e.g. 'code', 'code -n' or 'vim'",
    )

    return parser


def build_discovery(settings: ManagerSettings, runner: CommandRunner) -> ProjectDiscovery:
    inspector = GitInspector(runner, timeout=settings.command_timeout_seconds)
    return ProjectDiscovery(
        inspector,
        manifest_marker=settings.manifest_marker,
        max_workers=settings.scan_workers,
    )


def build_creator(settings: ManagerSettings, runner: CommandRunner) -> ProjectCreator:
    return ProjectCreator(
        generator=CargoGenerator(
            runner,
            executable=settings.generator_command,
            vcs=settings.generator_vcs,
            timeout=settings.command_timeout_seconds,
        ),
        vcs=GitInspector(runner, timeout=settings.command_timeout_seconds),
        launcher=EditorLauncher(runner, wait=settings.editor_wait),
        default_branch=settings.default_branch,
    )


def format_project(project: Project, width: int) -> str:
    label = f"{project.name}{project.vcs_status.indicator}"
    return f"{label:<{width}}  {project.vcs_status.value:<14}  {project.path}"


def _print_projects(projects: list[Project], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([p.to_json() for p in projects], indent=2, ensure_ascii=False))
        return
    if not projects:
        print("No projects found")
        return
    width = max(len(p.name) + 1 for p in projects)
    for project in projects:
        print(format_project(project, width))


def _list_projects(
    discovery: ProjectDiscovery,
    root: Path,
    *,
    as_json: bool,
    prompt: Callable[[str], str] | None,
) -> int:
    while True:
        try:
            projects = discovery.discover(root)
        except RootUnavailable as e:
            logger.error("Root directory unavailable", extra={"root": str(e.root), "reason": e.reason})
            print(str(e), file=sys.stderr)
            if prompt is None:
                return EXIT_ROOT_UNAVAILABLE
            answer = prompt("Directory to list instead (leave blank to cancel): ").strip()
            if not answer:
                return EXIT_ROOT_UNAVAILABLE
            root = Path(answer).expanduser()
            continue

        _print_projects(projects, as_json=as_json)
        return EXIT_OK


def _interactive() -> bool:
    return sys.stdin is not None and sys.stdin.isatty()


def _setup(args: argparse.Namespace) -> int:
    configure_logging("INFO", log_file=config_dir() / LOG_FILE_NAME)
    try:
        settings = save_settings(Path(args.root), args.editor)
    except ConfigError as e:
        print(f"Configuration not saved: {e}", file=sys.stderr)
        return EXIT_CONFIG
    print(f"Saved configuration to {config_file_path()}")
    print(f"  root directory: {settings.root_directory}")
    print(f"  editor command: {settings.editor_command}")
    return EXIT_OK


def main(argv: list[str] | None = None, *, runner: CommandRunner | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "setup":
        return _setup(args)

    try:
        status = load_settings()
    except ConfigError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_CONFIG

    settings = status.settings
    configure_logging(settings.log_level, log_file=settings.resolved_log_file)
    if not status.ready:
        logger.info("Initial setup required", extra={"reason": status.setup_reason})

    subprocess_runner = SubprocessRunner(default_timeout=settings.command_timeout_seconds)
    active_runner = runner if runner is not None else subprocess_runner

    try:
        if args.command == "list":
            if args.root is not None:
                root = Path(args.root).expanduser()
            elif settings.root_directory is not None:
                root = settings.get_root_directory()
            else:
                print("No root directory configured; run `cratedeck setup` first.", file=sys.stderr)
                return EXIT_CONFIG

            prompt = input if _interactive() else None
            return _list_projects(
                build_discovery(settings, active_runner), root, as_json=args.json, prompt=prompt
            )

        if args.command == "new":
            if settings.root_directory is None:
                print("No root directory configured; run `cratedeck setup` first.", file=sys.stderr)
                return EXIT_CONFIG

            request = CreationRequest(
                name=args.name,
                kind=args.kind,
                edition=Edition(args.edition),
                open_in_editor=args.open,
            )
            outcome = build_creator(settings, active_runner).create(
                request, settings.get_root_directory(), settings.get_editor_command()
            )
            project = outcome.project
            print(f"Created {request.kind.value} project '{project.name}' at {project.path}")
            for warning in outcome.warnings:
                print(f"Warning: {warning}", file=sys.stderr)
            return EXIT_OK

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_CONFIG

    except InvalidInput as e:
        logger.warning(str(e), extra={"field": e.field})
        print(str(e), file=sys.stderr)
        return EXIT_INVALID_INPUT

    except GenerationFailed as e:
        print(f"Project generation failed: {e}", file=sys.stderr)
        return EXIT_GENERATION_FAILED

    except KeyboardInterrupt:
        cancelled = subprocess_runner.cancel()
        logger.warning("Interrupted", extra={"cancelled_commands": cancelled})
        return EXIT_INTERRUPTED

    except Exception as e:
        logger.exception("Command failed")
        print(f"Command failed: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
