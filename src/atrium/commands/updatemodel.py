"""Reconcile workspace repositories, or schedule reconciliation."""

from __future__ import annotations

from pathlib import Path

from .. import autostart, config, log, store
from ..config import DEFAULT_AUTOSTART_INTERVAL_SECONDS
from ..reconcile import ReconcileRequest, ReconcileService


def _root(args: object, settings: config.Settings) -> Path:
    raw = getattr(args, "root", None)
    if raw:
        return Path(str(raw)).expanduser()
    return settings.resolved_repos_root()


def update_model(args: object) -> None:
    """Run one reconciliation, or install/remove the scheduled task.

    Args:
        args: Namespace with ``configure``, ``unconfigure``, ``root`` and
            ``interval``.
    """
    settings = config.load_settings()
    root = _root(args, settings)
    interval = getattr(args, "interval", None) or DEFAULT_AUTOSTART_INTERVAL_SECONDS

    if getattr(args, "unconfigure", False):
        installer = autostart.installer_for_platform(root, interval_seconds=interval)
        installer.uninstall()
        log.success("Removed scheduled repository reconciliation.")
        return

    if getattr(args, "configure", False):
        installer = autostart.installer_for_platform(root, interval_seconds=interval)
        autostart.configure(installer)
        log.success(f"Scheduled repository reconciliation every {interval}s for {root}.")
        return

    request = ReconcileRequest(
        workspace_id=settings.workspace_id,
        root=root,
        max_depth=settings.discovery_depth,
        git_path=settings.git_path,
    )
    with store.open_store(settings) as backend:
        outcome = ReconcileService(backend)(request)
    if not outcome.added and not outcome.cloned:
        log.info("Repositories already in sync.")
        return
    if outcome.cloned:
        log.success(f"Cloned {len(outcome.cloned)} repo(s): {', '.join(outcome.cloned)}")
