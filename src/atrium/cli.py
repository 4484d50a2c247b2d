"""Atrium command-line entry point."""

from __future__ import annotations

import importlib
from types import SimpleNamespace
from typing import Callable, Optional

import typer

from . import __version__
from . import log as atrium_log
from .commands import start as start_cmd
from .commands import updatemodel as updatemodel_cmd
from .io import die
from .services.errors import ServiceFailure

# ``atrium.commands`` re-exports the ``port_forward`` function, which shadows
# the submodule attribute; load the submodule itself.
port_forward_cmd = importlib.import_module(".commands.port_forward", __package__)

app = typer.Typer(
    name="atrium",
    help="Start remote development workspaces and keep their repositories in sync.",
    no_args_is_help=True,
    add_completion=False,
)


def _run(command: Callable[[SimpleNamespace], None], **kwargs: object) -> None:
    try:
        command(SimpleNamespace(**kwargs))
    except ServiceFailure as exc:
        die(str(exc), hint=exc.recovery_hint)


def _validate_log_level(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in atrium_log.LEVEL_NAMES:
        raise typer.BadParameter(
            f"expected one of: {', '.join(atrium_log.LEVEL_NAMES)}",
            param_hint="--log-level",
        )
    return normalized


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"atrium {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        callback=_validate_log_level,
        help="Log level: trace, debug, info, success, warning or error.",
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable coloured output."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    if log_level is not None:
        atrium_log.set_level(log_level)
    if no_color:
        atrium_log.set_no_color(True)


@app.command("start")
def start(
    target: str = typer.Argument(..., help="Existing workspace name, or a git URL to create from."),
    org: Optional[str] = typer.Option(
        None,
        "--org",
        "-o",
        help="Organization name (overrides the active organization).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=0,
        help="Seconds to wait for the workspace to run; 0 waits indefinitely.",
    ),
) -> None:
    """Start a stopped workspace, or create one from a git URL.

    \b
    Examples:
      atrium start my-workspace
      atrium start https://github.com/org/repo
      atrium start git@github.com:org/repo.git --org my-org
    """
    _run(start_cmd.start_workspace, target=target, org=org, timeout=timeout)


@app.command("updatemodel")
def updatemodel(
    configure: bool = typer.Option(
        False, "--configure", "-c", help="Install a scheduled task that reconciles repeatedly."
    ),
    unconfigure: bool = typer.Option(
        False, "--unconfigure", help="Remove the scheduled task."
    ),
    root: Optional[str] = typer.Option(
        None, "--root", "-d", help="Directory to scan and clone into (default: home)."
    ),
    interval: Optional[int] = typer.Option(
        None, "--interval", min=1, help="Seconds between scheduled runs."
    ),
) -> None:
    """Sync this workspace's repositories with the backend manifest."""
    if configure and unconfigure:
        raise typer.BadParameter("--configure and --unconfigure are exclusive")
    _run(
        updatemodel_cmd.update_model,
        configure=configure,
        unconfigure=unconfigure,
        root=root,
        interval=interval,
    )


@app.command("port-forward")
def port_forward(
    pod: str = typer.Argument(..., help="Workspace pod name."),
    ports: list[str] = typer.Argument(..., help="Port mappings, e.g. 8080:80."),
    namespace: str = typer.Option("default", "--namespace", "-n"),
    key_file: Optional[str] = typer.Option(None, "--key-file"),
    cert_file: Optional[str] = typer.Option(None, "--cert-file"),
) -> None:
    """Forward local ports to a workspace pod."""
    _run(
        port_forward_cmd.port_forward,
        pod=pod,
        ports=ports,
        namespace=namespace,
        key_file=key_file,
        cert_file=cert_file,
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
