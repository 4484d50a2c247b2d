"""Drive a remote workspace from create/start to a running state."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from . import log, resolver
from .config import (
    DEFAULT_CLUSTER_ID,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    Settings,
)
from .models import STATUS_RUNNING, CreateWorkspaceOptions, Workspace
from .services.errors import PollCancelledError, PollTimeoutError
from .store import WorkspaceStore

StatusCallback = Callable[[str], None]
Clock = Callable[[], float]


@dataclass(frozen=True)
class PollOptions:
    """How ``poll_until`` waits.

    Attributes:
        interval_seconds: Delay between status fetches.
        timeout_seconds: Deadline measured from the first fetch; ``None`` or
            ``0`` waits without a deadline.
        cancel: Event that aborts the wait when set.
    """

    interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    timeout_seconds: float | None = DEFAULT_POLL_TIMEOUT_SECONDS
    cancel: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def from_settings(
        cls, settings: Settings, *, timeout_seconds: float | None = None
    ) -> PollOptions:
        timeout = settings.poll_timeout_seconds if timeout_seconds is None else timeout_seconds
        return cls(interval_seconds=settings.poll_interval_seconds, timeout_seconds=timeout)


def status_line(status: str) -> str:
    """Render the progress line for a polled status.

    Example:
        >>> status_line("DEPLOYING")
        'workspace is deploying'
    """
    return f"workspace is {status.lower()}"


def poll_until(
    store: WorkspaceStore,
    workspace_id: str,
    target: str = STATUS_RUNNING,
    *,
    options: PollOptions | None = None,
    on_status: StatusCallback | None = None,
    clock: Clock = time.monotonic,
) -> Workspace:
    """Fetch workspace status until it equals ``target``.

    At least one fetch always happens. A fetch error is not retried.

    Raises:
        BackendCallError: A status fetch failed.
        PollTimeoutError: The deadline passed before ``target`` was seen.
        PollCancelledError: ``options.cancel`` was set while waiting.
    """
    opts = options or PollOptions()
    deadline = clock() + opts.timeout_seconds if opts.timeout_seconds else None
    while True:
        workspace = store.get_workspace(workspace_id)
        log.trace(f"workspace {workspace_id} status {workspace.status}")
        if on_status is not None:
            on_status(status_line(workspace.status))
        if workspace.status == target:
            return workspace
        wait = opts.interval_seconds
        if deadline is not None:
            remaining = deadline - clock()
            if remaining <= 0:
                raise PollTimeoutError(
                    f"workspace {workspace.name or workspace_id} did not reach "
                    f"{target.lower()} within {opts.timeout_seconds:g}s "
                    f"(last status: {workspace.status.lower() or 'unknown'})",
                    recovery_hint="re-run with a larger --timeout, or --timeout 0 to wait",
                )
            wait = min(wait, remaining)
        if opts.cancel.wait(wait):
            raise PollCancelledError(f"stopped waiting for workspace {workspace_id}")


class LifecycleController:
    """Create or start workspaces and wait for them to run."""

    def __init__(
        self,
        store: WorkspaceStore,
        *,
        cluster_id: str = DEFAULT_CLUSTER_ID,
        poll_options: PollOptions | None = None,
        on_status: StatusCallback | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._store = store
        self._cluster_id = cluster_id
        self._poll_options = poll_options or PollOptions()
        self._on_status = on_status
        self._clock = clock

    def poll_until(self, workspace_id: str, target: str = STATUS_RUNNING) -> Workspace:
        return poll_until(
            self._store,
            workspace_id,
            target,
            options=self._poll_options,
            on_status=self._on_status,
            clock=self._clock,
        )

    def start_existing(self, name: str, *, org_name: str | None = None) -> Workspace:
        """Start the caller's workspace named ``name`` and wait for it to run.

        Raises:
            NotFoundError: No such workspace (no start call is made).
            AmbiguousError: Several workspaces share the name (no start call).
        """
        organization = resolver.resolve_organization(self._store, org_name)
        workspace = resolver.find_workspace(self._store, organization, name)
        started = self._store.start_workspace(workspace.id)
        log.info(
            f"Workspace {started.name or workspace.name} is starting. "
            "This can take about a minute.",
            style="yellow",
        )
        return self.poll_until(workspace.id)

    def create_from_url(self, url: str, *, org_name: str | None = None) -> Workspace:
        """Create a workspace for a repository URL and wait for it to run.

        Raises:
            MalformedURLError: ``url`` is not a git URL.
            NoOrgError: No organization exists (no create call is made).
            NotFoundError: ``org_name`` matches no organization.
            AmbiguousError: ``org_name`` matches several organizations.
        """
        intent = resolver.new_workspace_from_url(url)
        organization = resolver.resolve_organization(self._store, org_name)
        options = CreateWorkspaceOptions.for_new_workspace(self._cluster_id, intent)
        log.debug(f"creating workspace {intent.name} for {intent.git_repo}")
        created = self._store.create_workspace(organization.id, options)
        log.info(
            f"Workspace {created.name or intent.name} is starting. "
            "This can take up to 2 minutes the first time.",
            style="yellow",
        )
        return self.poll_until(created.id)

    def start(self, target: str, *, org_name: str | None = None) -> Workspace:
        """Create-or-start based on whether ``target`` is a URL or a name."""
        intent = resolver.classify_target(target)
        if isinstance(intent, resolver.CreateIntent):
            return self.create_from_url(intent.url, org_name=org_name)
        return self.start_existing(intent.name, org_name=org_name)
