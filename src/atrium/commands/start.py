"""Start an existing workspace, or create one from a git URL."""

from __future__ import annotations

from .. import config, log, store
from ..io import say
from ..lifecycle import LifecycleController, PollOptions


def start_workspace(args: object) -> None:
    """Create-or-start a workspace and block until it is running.

    Args:
        args: Namespace with ``target`` (workspace name or git URL), ``org``
            (organization name override) and ``timeout`` (seconds, ``None``
            for the configured default, ``0`` to wait without a deadline).
    """
    target = str(getattr(args, "target"))
    org_name = getattr(args, "org", None)
    timeout = getattr(args, "timeout", None)
    settings = config.load_settings()
    poll_options = PollOptions.from_settings(settings, timeout_seconds=timeout)
    with store.open_store(settings) as backend:
        with log.progress("waiting for workspace") as update:
            controller = LifecycleController(
                backend,
                cluster_id=settings.cluster_id,
                poll_options=poll_options,
                on_status=update,
            )
            workspace = controller.start(target, org_name=org_name)
    log.success("Your workspace is ready!")
    say("")
    say("SSH into your machine:")
    say(f"\tssh {workspace.connection_target}")
