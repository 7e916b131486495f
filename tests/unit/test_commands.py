"""Unit tests for the subprocess-backed command runner."""

from __future__ import annotations

import sys
import threading
import time
from pathlib import Path

from cratedeck.commands import CommandResult, SubprocessRunner


def test_run_captures_output_and_status(tmp_path: Path) -> None:
    runner = SubprocessRunner()

    ok = runner.run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
    assert ok.ok
    assert ok.returncode == 0
    assert ok.stdout.strip() == "hello"

    failed = runner.run(
        [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]
    )
    assert not failed.ok
    assert failed.returncode == 3
    assert failed.describe() == "boom"


def test_missing_executable_is_a_result_not_an_exception() -> None:
    result = SubprocessRunner().run(["definitely-not-a-real-program-cratedeck"])

    assert not result.ok
    assert result.returncode is None
    assert result.error


def test_timeout_kills_the_process() -> None:
    result = SubprocessRunner().run(
        [sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5
    )

    assert not result.ok
    assert result.error is not None
    assert "timed out" in result.error


def test_cancel_stops_a_running_command() -> None:
    runner = SubprocessRunner()
    results: list[CommandResult] = []

    worker = threading.Thread(
        target=lambda: results.append(
            runner.run([sys.executable, "-c", "import time; time.sleep(30)"])
        )
    )
    worker.start()

    deadline = time.monotonic() + 10
    while runner.active == 0 and time.monotonic() < deadline:
        time.sleep(0.01)

    assert runner.cancel() == 1
    worker.join(timeout=10)

    assert not worker.is_alive()
    assert results[0].cancelled
    assert not results[0].ok


def test_spawn_does_not_wait(tmp_path: Path) -> None:
    runner = SubprocessRunner()
    started = time.monotonic()

    result = runner.spawn([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path)

    assert result.ok
    assert time.monotonic() - started < 4


def test_spawn_reports_missing_executable() -> None:
    result = SubprocessRunner().spawn(["definitely-not-a-real-program-cratedeck"])

    assert not result.ok
    assert result.error


def test_exec_format_error_is_a_result_not_an_exception(unrunnable_executable: Path) -> None:
    runner = SubprocessRunner()

    ran = runner.run([str(unrunnable_executable)])
    assert not ran.ok
    assert ran.returncode is None
    assert ran.error

    spawned = runner.spawn([str(unrunnable_executable)])
    assert not spawned.ok
    assert spawned.error


def test_nul_byte_in_argv_is_a_result_not_an_exception() -> None:
    runner = SubprocessRunner()

    assert not runner.run([sys.executable, "-c", "print(1)\x00"]).ok
    assert not runner.spawn([sys.executable, "bad\x00arg"]).ok


def test_finished_detached_children_are_reaped() -> None:
    runner = SubprocessRunner()

    assert runner.spawn([sys.executable, "-c", "pass"]).ok

    deadline = time.monotonic() + 10
    while runner.detached and time.monotonic() < deadline:
        time.sleep(0.05)
    assert runner.detached == 0
