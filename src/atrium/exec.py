"""Run external tools (git, systemctl, launchctl, kubectl) behind a small protocol.

Callers build a ``CommandRequest`` and hand it to a ``CommandRunner``; tests
substitute a fake runner instead of patching ``subprocess``.
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol

from . import log

TIMEOUT_RETURNCODE = 124


@dataclass(frozen=True)
class CommandRequest:
    """One external command invocation.

    ``capture_output=False`` lets the child inherit the terminal, which is
    what foreground tools like ``kubectl port-forward`` need.
    """

    argv: tuple[str, ...]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    capture_output: bool = True
    text: bool = True
    timeout_seconds: float | None = None

    def display(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def output(self) -> str:
        """Whatever the command printed, preferring stderr."""
        return (self.stderr or self.stdout or "").strip()


class CommandRunner(Protocol):
    """Anything that can execute a ``CommandRequest``.

    ``run`` returns ``None`` when the executable does not exist.
    """

    def run(self, request: CommandRequest) -> CommandResult | None: ...


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else ""


class SubprocessCommandRunner:
    """``CommandRunner`` backed by ``subprocess.run``."""

    def run(self, request: CommandRequest) -> CommandResult | None:
        options: dict[str, object] = {"cwd": request.cwd, "env": request.env, "check": False}
        if request.capture_output:
            options.update(capture_output=True, text=request.text)
        if request.timeout_seconds is not None:
            options["timeout"] = request.timeout_seconds
        log.trace(f"$ {request.display()}")
        try:
            completed = subprocess.run(list(request.argv), **options)
        except FileNotFoundError:
            return None
        except subprocess.TimeoutExpired as exc:
            return CommandResult(
                argv=request.argv,
                returncode=TIMEOUT_RETURNCODE,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
                timed_out=True,
            )
        return CommandResult(
            argv=request.argv,
            returncode=completed.returncode,
            stdout=_as_text(completed.stdout),
            stderr=_as_text(completed.stderr),
        )


_DEFAULT_COMMAND_RUNNER: CommandRunner = SubprocessCommandRunner()


@dataclass(frozen=True)
class CommandExecutionError(RuntimeError):
    """A command was missing, timed out or exited non-zero."""

    request: CommandRequest
    detail: str
    result: CommandResult | None = None

    def __str__(self) -> str:
        return self.detail


def run_with_runner(
    request: CommandRequest, *, runner: CommandRunner | None = None
) -> CommandResult | None:
    return (runner or _DEFAULT_COMMAND_RUNNER).run(request)


def _failure_detail(request: CommandRequest, result: CommandResult) -> str:
    if result.timed_out:
        headline = f"command timed out after {request.timeout_seconds:g}s: {request.display()}"
    else:
        headline = f"command failed: {' '.join(request.argv)}"
    return f"{headline}\n{result.output}" if result.output else headline


def run_checked(
    request: CommandRequest, *, runner: CommandRunner | None = None
) -> CommandResult:
    """Run ``request`` and return its result when it exits zero.

    Raises:
        CommandExecutionError: The executable is missing, the command timed
            out, or it exited non-zero.
    """
    result = run_with_runner(request, runner=runner)
    if result is None:
        program = request.argv[0] if request.argv else "<empty>"
        raise CommandExecutionError(request=request, detail=f"missing required command: {program}")
    if result.returncode != 0:
        log.debug(f"{request.display()} exited {result.returncode}")
        raise CommandExecutionError(
            request=request, result=result, detail=_failure_detail(request, result)
        )
    return result
