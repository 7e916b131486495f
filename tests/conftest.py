"""Test configuration and fixtures."""

from __future__ import annotations

import os
import stat
import sys
import shutil
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from cratedeck.commands import CommandResult


@dataclass
class RecordedCall:
    argv: list[str]
    cwd: Path | None
    spawned: bool = False


@dataclass
class FakeRunner:
    """Records every command and answers from a handler (default: success)."""

    handler: Callable[[list[str], Path | None], CommandResult] | None = None
    calls: list[RecordedCall] = field(default_factory=list)

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        args = list(argv)
        self.calls.append(RecordedCall(argv=args, cwd=cwd))
        if self.handler is None:
            return CommandResult(ok=True, returncode=0)
        return self.handler(args, cwd)

    def spawn(self, argv: Sequence[str], *, cwd: Path | None = None) -> CommandResult:
        args = list(argv)
        self.calls.append(RecordedCall(argv=args, cwd=cwd, spawned=True))
        if self.handler is None:
            return CommandResult(ok=True)
        return self.handler(args, cwd)

    def commands(self, program: str) -> list[list[str]]:
        return [c.argv for c in self.calls if c.argv and c.argv[0] == program]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def projects_root(tmp_path: Path) -> Path:
    """Provide an empty root directory for projects."""
    root = tmp_path / "projects"
    root.mkdir()
    return root


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the configuration directory at a temp dir and clear CRATEDECK_* env vars."""
    for key in list(os.environ):
        if key.startswith("CRATEDECK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    cfg_dir = tmp_path / "config"
    monkeypatch.setenv("CRATEDECK_CONFIG_DIR", str(cfg_dir))
    # Keep a developer's .env out of the picture.
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return cfg_dir


def _make_crate(root: Path, name: str, *, marker: str = "Cargo.toml") -> Path:
    path = root / name
    path.mkdir()
    (path / marker).write_text(
        f"[package]\nname = '{name}'\nversion = '0.1.0'\nedition = '2021'\n", encoding="utf-8"
    )
    return path


@pytest.fixture
def make_crate() -> Callable[..., Path]:
    """Create `<root>/<name>/Cargo.toml` (or another marker)."""
    return _make_crate


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
    )


def _init_clean_repo(repo: Path) -> None:
    _git(repo, "init", "-q")
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "init")


@pytest.fixture
def git_repo() -> Callable[[Path], None]:
    """Turn a directory into a git repository with everything committed."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    return _init_clean_repo


@pytest.fixture
def git_cmd() -> Callable[..., None]:
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    return _git


def _make_executable(path: Path, content: bytes) -> Path:
    path.write_bytes(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def unrunnable_executable(tmp_path: Path) -> Path:
    """An executable file the OS refuses to run (exec format error)."""
    if sys.platform == "win32":
        pytest.skip("exec format errors are POSIX-specific")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    return _make_executable(bin_dir / "garbage-exe", b"\x00\x01\x02not a program\xff\xfe")


@pytest.fixture
def fake_cargo(tmp_path: Path) -> Path:
    """Shell script standing in for `cargo new`: creates the last argument as a directory."""
    if sys.platform == "win32" or shutil.which("sh") is None:
        pytest.skip("needs a POSIX shell")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    script = b'#!/bin/sh\nfor arg in "$@"; do last="$arg"; done\nmkdir "$last"\n'
    return _make_executable(bin_dir / "fake-cargo", script)
