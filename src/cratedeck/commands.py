"""External command port.

Everything that leaves the process (git, the project generator, the editor)
goes through a `CommandRunner`, so tests can swap in a recording fake and
callers never see spawn errors as exceptions.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class CommandResult:
    ok: bool
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.error == CANCELLED

    def describe(self) -> str:
        if self.error:
            return self.error
        if self.stderr.strip():
            return self.stderr.strip()
        return f"exit status {self.returncode}"


class CommandRunner(Protocol):
    """Runs external programs and reports the outcome as a `CommandResult`."""

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult: ...

    def spawn(self, argv: Sequence[str], *, cwd: Path | None = None) -> CommandResult: ...


class SubprocessRunner:
    """`CommandRunner` backed by `subprocess`.

    In-flight processes are tracked so `cancel()` can stop them from another
    thread (for example a UI reacting to a key press). A cancelled `run()`
    returns a result with `error == "cancelled"`.
    """

    def __init__(self, *, default_timeout: float | None = None) -> None:
        self._default_timeout = default_timeout
        self._lock = threading.Lock()
        self._running: set[subprocess.Popen[str]] = set()
        self._cancelled: set[int] = set()
        self._detached: list[subprocess.Popen[bytes]] = []

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        args = list(argv)
        limit = timeout if timeout is not None else self._default_timeout
        logger.debug("Running command", extra={"argv": args, "cwd": str(cwd) if cwd else None})

        try:
            proc = subprocess.Popen(
                args,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except (OSError, ValueError) as exc:
            return CommandResult(ok=False, error=str(exc))

        with self._lock:
            self._running.add(proc)
        try:
            try:
                stdout, stderr = proc.communicate(timeout=limit)
            except subprocess.TimeoutExpired:
                proc.kill()
                stdout, stderr = proc.communicate()
                return CommandResult(
                    ok=False,
                    returncode=proc.returncode,
                    stdout=stdout,
                    stderr=stderr,
                    error=f"timed out after {limit} seconds",
                )
        finally:
            with self._lock:
                self._running.discard(proc)
                was_cancelled = proc.pid in self._cancelled
                self._cancelled.discard(proc.pid)

        if was_cancelled:
            return CommandResult(
                ok=False, returncode=proc.returncode, stdout=stdout, stderr=stderr, error=CANCELLED
            )
        return CommandResult(
            ok=proc.returncode == 0, returncode=proc.returncode, stdout=stdout, stderr=stderr
        )

    def spawn(self, argv: Sequence[str], *, cwd: Path | None = None) -> CommandResult:
        """Start `argv` detached from this process and return immediately.

        Spawned children are kept until they exit; finished ones are reaped
        on the next `spawn` so a long-lived caller does not collect zombies.
        """

        args = list(argv)
        logger.debug("Spawning command", extra={"argv": args, "cwd": str(cwd) if cwd else None})
        self._reap_detached()
        try:
            proc = subprocess.Popen(
                args,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except (OSError, ValueError) as exc:
            return CommandResult(ok=False, error=str(exc))
        with self._lock:
            self._detached.append(proc)
        return CommandResult(ok=True)

    def _reap_detached(self) -> None:
        with self._lock:
            self._detached = [p for p in self._detached if p.poll() is None]

    @property
    def detached(self) -> int:
        """Spawned children that are still running."""

        self._reap_detached()
        with self._lock:
            return len(self._detached)

    @property
    def active(self) -> int:
        with self._lock:
            return len(self._running)

    def cancel(self, *, grace_seconds: float = 3.0) -> int:
        """Terminate every running child. Returns how many were signalled."""

        with self._lock:
            procs = list(self._running)
            self._cancelled.update(p.pid for p in procs)

        for proc in procs:
            logger.warning("Cancelling command", extra={"argv": proc.args, "pid": proc.pid})
            proc.terminate()
        for proc in procs:
            try:
                proc.wait(timeout=grace_seconds)
            except subprocess.TimeoutExpired:
                proc.kill()
        return len(procs)
