"""Install the recurring ``updatemodel`` task with the OS service manager."""

from __future__ import annotations

import getpass
import os
import plistlib
import shutil
import sys
from pathlib import Path
from typing import Protocol, Sequence

from . import exec as exec_util
from . import log, paths
from .services.errors import (
    ExternalCommandFailedError,
    ServiceFailure,
    UnsupportedPlatformError,
)

UNIT_NAME = "atrium-updatemodel"
LAUNCHD_LABEL = "dev.atrium.updatemodel"


class AutostartInstaller(Protocol):
    """Idempotent install/uninstall of a scheduled task."""

    def install(self) -> None: ...

    def uninstall(self) -> None: ...


def atrium_argv() -> list[str]:
    """Return the argv prefix that re-invokes this CLI."""
    executable = shutil.which("atrium")
    if executable:
        return [executable]
    return [sys.executable, "-m", "atrium"]


def updatemodel_argv(root: Path) -> list[str]:
    return [*atrium_argv(), "updatemodel", "--root", str(root)]


def _run(argv: Sequence[str], runner: exec_util.CommandRunner | None) -> None:
    try:
        exec_util.run_checked(exec_util.CommandRequest(argv=tuple(argv)), runner=runner)
    except exec_util.CommandExecutionError as exc:
        raise ExternalCommandFailedError(str(exc)) from exc


def systemd_quote(arg: str) -> str:
    """Quote one ``ExecStart=`` word for systemd.

    ``%`` and ``$`` are doubled so systemd does not expand them. Words holding
    whitespace, quotes or backslashes are wrapped in double quotes.
    """
    escaped = arg.replace("%", "%%").replace("$", "$$")
    if escaped and not any(char.isspace() or char in "\"'\\" for char in escaped):
        return escaped
    escaped = escaped.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        raise ExternalCommandFailedError(f"failed to remove {path}: {exc}") from exc


def _write(path: Path, content: str | bytes) -> None:
    try:
        paths.ensure_dir(path.parent)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ExternalCommandFailedError(
            f"failed to write {path}: {exc}",
            recovery_hint="re-run with sudo to write system unit files",
        ) from exc


class SystemdInstaller:
    """A oneshot service plus a timer that re-runs it every interval."""

    def __init__(
        self,
        argv: Sequence[str],
        *,
        interval_seconds: int,
        unit_dir: Path = paths.SYSTEMD_UNIT_DIR,
        user: str | None = None,
        runner: exec_util.CommandRunner | None = None,
    ) -> None:
        self._argv = list(argv)
        self._interval_seconds = interval_seconds
        self._unit_dir = unit_dir
        self._user = user
        self._runner = runner

    @property
    def service_path(self) -> Path:
        return self._unit_dir / f"{UNIT_NAME}.service"

    @property
    def timer_path(self) -> Path:
        return self._unit_dir / f"{UNIT_NAME}.timer"

    def service_unit(self) -> str:
        lines = [
            "[Unit]",
            "Description=Atrium repository reconciliation",
            "After=network-online.target",
            "",
            "[Service]",
            "Type=oneshot",
        ]
        if self._user:
            lines.append(f"User={self._user}")
        exec_start = " ".join(systemd_quote(arg) for arg in self._argv)
        lines.append(f"ExecStart={exec_start}")
        return "\n".join(lines) + "\n"

    def timer_unit(self) -> str:
        return (
            "[Unit]\n"
            "Description=Atrium repository reconciliation timer\n"
            "\n"
            "[Timer]\n"
            f"OnBootSec={self._interval_seconds}\n"
            f"OnUnitActiveSec={self._interval_seconds}\n"
            "\n"
            "[Install]\n"
            "WantedBy=timers.target\n"
        )

    def install(self) -> None:
        _write(self.service_path, self.service_unit())
        _write(self.timer_path, self.timer_unit())
        timer = f"{UNIT_NAME}.timer"
        _run(["systemctl", "daemon-reload"], self._runner)
        _run(["systemctl", "enable", timer], self._runner)
        _run(["systemctl", "start", timer], self._runner)

    def uninstall(self) -> None:
        timer = f"{UNIT_NAME}.timer"
        first_error: ServiceFailure | None = None
        for argv in (["systemctl", "stop", timer], ["systemctl", "disable", timer]):
            try:
                _run(argv, self._runner)
            except ServiceFailure as exc:
                first_error = first_error or exc
        for path in (self.timer_path, self.service_path):
            try:
                _remove(path)
            except ServiceFailure as exc:
                first_error = first_error or exc
        if first_error is not None:
            raise first_error


class LaunchdInstaller:
    """A per-user launchd agent with a ``StartInterval``."""

    def __init__(
        self,
        argv: Sequence[str],
        *,
        interval_seconds: int,
        agents_dir: Path | None = None,
        uid: int | None = None,
        runner: exec_util.CommandRunner | None = None,
    ) -> None:
        self._argv = list(argv)
        self._interval_seconds = interval_seconds
        self._agents_dir = agents_dir or paths.launch_agents_dir()
        self._uid = os.getuid() if uid is None else uid
        self._runner = runner

    @property
    def plist_path(self) -> Path:
        return self._agents_dir / f"{LAUNCHD_LABEL}.plist"

    def plist(self) -> bytes:
        return plistlib.dumps(
            {
                "Label": LAUNCHD_LABEL,
                "ProgramArguments": self._argv,
                "RunAtLoad": True,
                "StartInterval": self._interval_seconds,
            }
        )

    def install(self) -> None:
        _write(self.plist_path, self.plist())
        _run(["launchctl", "bootstrap", f"gui/{self._uid}", str(self.plist_path)], self._runner)

    def uninstall(self) -> None:
        first_error: ServiceFailure | None = None
        try:
            _run(["launchctl", "bootout", f"gui/{self._uid}/{LAUNCHD_LABEL}"], self._runner)
        except ServiceFailure as exc:
            first_error = exc
        _remove(self.plist_path)
        if first_error is not None:
            raise first_error


def installer_for_platform(
    root: Path,
    *,
    interval_seconds: int,
    platform: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> AutostartInstaller:
    """Return the installer for the running OS.

    Raises:
        UnsupportedPlatformError: Neither Linux nor macOS.
    """
    current = platform or sys.platform
    argv = updatemodel_argv(root)
    if current.startswith("linux"):
        user = os.environ.get("SUDO_USER") or getpass.getuser()
        return SystemdInstaller(argv, interval_seconds=interval_seconds, user=user, runner=runner)
    if current == "darwin":
        return LaunchdInstaller(argv, interval_seconds=interval_seconds, runner=runner)
    raise UnsupportedPlatformError(
        f"scheduled reconciliation is not supported on {current}",
        recovery_hint="run 'atrium updatemodel' from your own scheduler",
    )


def configure(installer: AutostartInstaller) -> None:
    """Reinstall the scheduled task.

    The uninstall step is best effort: its failure is logged and install runs
    regardless.
    """
    try:
        installer.uninstall()
    except ServiceFailure as exc:
        log.debug(f"ignoring uninstall failure before install: {exc}")
    installer.install()
