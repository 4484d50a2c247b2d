# ruff: noqa: E402

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from atrium import exec as exec_util
from atrium.models import (
    CreateWorkspaceOptions,
    ModifyWorkspaceRequest,
    Organization,
    RepoV1,
    User,
    Workspace,
)
from atrium.services.errors import BackendCallError


def repo(url: str) -> RepoV1:
    return RepoV1.from_ssh_url(url)


def workspace(
    workspace_id: str = "ws-1",
    *,
    name: str = "repo",
    status: str = "RUNNING",
    dns: str = "repo-ws-1.atrium.dev",
    repos: dict[str, RepoV1] | None = None,
) -> Workspace:
    return Workspace(
        id=workspace_id,
        name=name,
        status=status,
        dns=dns,
        repos_v1=repos or {},
    )


@dataclass
class FakeStore:
    """In-memory ``WorkspaceStore`` that records calls.

    ``statuses`` is consumed one entry per ``get_workspace`` call; the last
    entry repeats.
    """

    organizations: list[Organization] = field(
        default_factory=lambda: [Organization(id="org-1", name="acme")]
    )
    workspaces: list[Workspace] = field(default_factory=list)
    statuses: list[str] = field(default_factory=lambda: ["RUNNING"])
    manifest: dict[str, RepoV1] = field(default_factory=dict)
    user: User = field(default_factory=lambda: User(id="user-1", username="dev"))
    get_error: BackendCallError | None = None
    calls: list[tuple] = field(default_factory=list)

    def _status(self) -> str:
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    def get_workspace(self, workspace_id: str) -> Workspace:
        self.calls.append(("get_workspace", workspace_id))
        if self.get_error is not None:
            raise self.get_error
        return workspace(workspace_id, status=self._status(), repos=dict(self.manifest))

    def get_workspaces(
        self,
        organization_id: str,
        *,
        name: str | None = None,
        user_id: str | None = None,
    ) -> list[Workspace]:
        self.calls.append(("get_workspaces", organization_id, name, user_id))
        return [item for item in self.workspaces if name is None or item.name == name]

    def start_workspace(self, workspace_id: str) -> Workspace:
        self.calls.append(("start_workspace", workspace_id))
        return workspace(workspace_id, status="STARTING")

    def create_workspace(
        self, organization_id: str, options: CreateWorkspaceOptions
    ) -> Workspace:
        self.calls.append(("create_workspace", organization_id, options))
        return workspace("ws-new", name=options.name, status="DEPLOYING")

    def modify_workspace(
        self, workspace_id: str, request: ModifyWorkspaceRequest
    ) -> Workspace:
        self.calls.append(("modify_workspace", workspace_id, request))
        self.manifest = dict(request.repos_v1)
        return workspace(workspace_id, repos=dict(self.manifest))

    def get_organizations(self, *, name: str | None = None) -> list[Organization]:
        self.calls.append(("get_organizations", name))
        return [org for org in self.organizations if name is None or org.name == name]

    def get_active_organization_or_default(self) -> Organization | None:
        self.calls.append(("get_active_organization_or_default",))
        return self.organizations[0] if self.organizations else None

    def get_current_user(self) -> User:
        self.calls.append(("get_current_user",))
        return self.user

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeRunner:
    """Command runner that answers from a handler and records argv."""

    def __init__(
        self,
        handler: Callable[[tuple[str, ...]], tuple[int, str]] | None = None,
    ) -> None:
        self._handler = handler or (lambda argv: (0, ""))
        self.requests: list[exec_util.CommandRequest] = []

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [request.argv for request in self.requests]

    def run(self, request: exec_util.CommandRequest) -> exec_util.CommandResult | None:
        self.requests.append(request)
        returncode, output = self._handler(request.argv)
        return exec_util.CommandResult(
            argv=request.argv,
            returncode=returncode,
            stdout=output if returncode == 0 else "",
            stderr="" if returncode == 0 else output,
        )


def make_git_checkout(root: Path, name: str) -> Path:
    path = root / name
    (path / ".git").mkdir(parents=True)
    return path


def remote_handler(
    remotes: dict[str, Iterable[str]],
    *,
    failing_clones: Iterable[str] = (),
) -> Callable[[tuple[str, ...]], tuple[int, str]]:
    """Answer ``git remote`` calls from ``remotes`` (repo dir name -> URLs)."""
    failing = set(failing_clones)

    def handler(argv: tuple[str, ...]) -> tuple[int, str]:
        if "clone" in argv:
            url = argv[argv.index("clone") + 1]
            if url in failing:
                return 128, f"fatal: could not read from remote repository {url}"
            return 0, ""
        if "remote" in argv:
            repo_dir = Path(argv[argv.index("-C") + 1]).name
            urls = list(remotes.get(repo_dir, ()))
            if argv[-1] == "remote":
                return 0, "origin\n" if urls else ""
            return 0, "\n".join(urls) + "\n"
        return 0, ""

    return handler
