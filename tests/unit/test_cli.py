"""Unit tests for the command-line surface."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from cratedeck import cli
from cratedeck.commands import CommandResult
from cratedeck.config import save_settings


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def configured(isolated_config: Path, projects_root: Path) -> Path:
    save_settings(projects_root, "code")
    return projects_root


def test_list_prints_projects(
    configured: Path,
    make_crate: Callable[..., Path],
    fake_runner,
    capsys: pytest.CaptureFixture[str],
) -> None:
    make_crate(configured, "beta")
    make_crate(configured, "alpha")
    (configured / "alpha" / ".git").mkdir()
    fake_runner.handler = lambda argv, cwd: CommandResult(ok=True, returncode=0, stdout=" M x\n")

    code = cli.main(["list"], runner=fake_runner)

    out = capsys.readouterr().out.splitlines()
    assert code == cli.EXIT_OK
    assert out[0].startswith("alpha*")
    assert "dirty" in out[0]
    assert out[1].startswith("beta")
    assert "not_a_vcs_repo" in out[1]


def test_list_json(
    configured: Path,
    make_crate: Callable[..., Path],
    fake_runner,
    capsys: pytest.CaptureFixture[str],
) -> None:
    make_crate(configured, "alpha")

    code = cli.main(["list", "--json"], runner=fake_runner)

    payload = json.loads(capsys.readouterr().out)
    assert code == cli.EXIT_OK
    assert payload == [
        {"name": "alpha", "path": str(configured / "alpha"), "vcs_status": "not_a_vcs_repo"}
    ]


def test_list_unavailable_root_without_tty(
    configured: Path, tmp_path: Path, fake_runner, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(cli, "_interactive", lambda: False)

    code = cli.main(["list", "--root", str(tmp_path / "missing")], runner=fake_runner)

    assert code == cli.EXIT_ROOT_UNAVAILABLE


def test_list_reprompts_for_root(
    configured: Path,
    tmp_path: Path,
    make_crate: Callable[..., Path],
    fake_runner,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    other = tmp_path / "other"
    other.mkdir()
    make_crate(other, "gamma")
    answers = iter([str(other)])
    monkeypatch.setattr(cli, "_interactive", lambda: True)
    monkeypatch.setattr("builtins.input", lambda _prompt: next(answers))

    code = cli.main(["list", "--root", str(tmp_path / "missing")], runner=fake_runner)

    assert code == cli.EXIT_OK
    assert "gamma" in capsys.readouterr().out


def test_new_creates_project(
    configured: Path, fake_runner, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("CRATEDECK_GENERATOR_VCS", "none")

    code = cli.main(["new", "new_lib", "--lib", "--edition", "2021"], runner=fake_runner)

    assert code == cli.EXIT_OK
    assert fake_runner.commands("cargo") == [
        ["cargo", "new", "--lib", "--edition", "2021", "--vcs", "none", "new_lib"]
    ]
    assert "Created lib project 'new_lib'" in capsys.readouterr().out


def test_new_collision_exit_code(configured: Path, fake_runner) -> None:
    (configured / "foo").mkdir()

    code = cli.main(["new", "foo"], runner=fake_runner)

    assert code == cli.EXIT_INVALID_INPUT
    assert fake_runner.calls == []


def test_new_generation_failure_exit_code(configured: Path, fake_runner) -> None:
    fake_runner.handler = lambda argv, cwd: (
        CommandResult(ok=False, returncode=101, stderr="boom")
        if argv[0] == "cargo"
        else CommandResult(ok=True, returncode=0)
    )

    assert cli.main(["new", "app"], runner=fake_runner) == cli.EXIT_GENERATION_FAILED


def test_new_open_reports_editor_warning(
    configured: Path, fake_runner, capsys: pytest.CaptureFixture[str]
) -> None:
    fake_runner.handler = lambda argv, cwd: (
        CommandResult(ok=False, error="not found")
        if argv[0] == "code"
        else CommandResult(ok=True, returncode=0)
    )

    code = cli.main(["new", "app", "--open"], runner=fake_runner)

    assert code == cli.EXIT_OK
    assert "Warning" in capsys.readouterr().err


def test_setup_persists_configuration(
    isolated_config: Path, projects_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = cli.main(["setup", "--root", str(projects_root), "--editor", "vim"])

    assert code == cli.EXIT_OK
    assert (isolated_config / "config.yaml").exists()
    assert str(projects_root) in capsys.readouterr().out


def test_setup_rejects_missing_root(isolated_config: Path, tmp_path: Path) -> None:
    code = cli.main(["setup", "--root", str(tmp_path / "nope"), "--editor", "vim"])

    assert code == cli.EXIT_CONFIG


def test_missing_configuration(isolated_config: Path, fake_runner) -> None:
    assert cli.main(["list"], runner=fake_runner) == cli.EXIT_CONFIG


def test_unknown_log_level_exit_code(
    configured: Path, fake_runner, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("CRATEDECK_LOG_LEVEL", "verbose")

    assert cli.main(["list"], runner=fake_runner) == cli.EXIT_CONFIG
    assert "log_level" in capsys.readouterr().err
