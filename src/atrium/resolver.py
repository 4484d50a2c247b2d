"""Resolve a ``start`` argument into a create-or-start intent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, TypeVar

from . import git, log
from .models import NewWorkspace, Organization, Workspace
from .services.errors import AmbiguousError, NoOrgError, NotFoundError
from .store import WorkspaceStore


@dataclass(frozen=True)
class CreateIntent:
    """Create a new workspace from a repository URL."""

    url: str


@dataclass(frozen=True)
class StartIntent:
    """Start an existing workspace by name."""

    name: str


StartTarget = CreateIntent | StartIntent


def classify_target(value: str) -> StartTarget:
    """Classify a CLI argument as a repository URL or a workspace name.

    Example:
        >>> classify_target("https://github.com/org/repo")
        CreateIntent(url='https://github.com/org/repo')
        >>> classify_target(" my-box ")
        StartIntent(name='my-box')
    """
    raw = value.strip()
    if git.is_repo_url(raw):
        return CreateIntent(url=raw)
    return StartIntent(name=raw)


def new_workspace_from_url(url: str) -> NewWorkspace:
    """Build the create intent for a repository URL.

    Example:
        >>> new_workspace_from_url("git@github.com:org/repo.git").git_repo
        'github.com:org/repo.git'
    """
    identity = git.normalize_repo_url(url)
    return NewWorkspace(name=identity.name, git_repo=identity.ssh_url)


T = TypeVar("T")


def _exactly_one(items: Sequence[T], *, kind: str, name: str) -> T:
    if not items:
        raise NotFoundError(f"no {kind} found with name {name}")
    if len(items) > 1:
        raise AmbiguousError(
            f"more than one {kind} found with name {name}",
            recovery_hint=f"rename the duplicate {kind}s so the name is unique",
        )
    return items[0]


def resolve_organization(store: WorkspaceStore, org_name: str | None = None) -> Organization:
    """Resolve the organization a command should act in.

    An explicit ``org_name`` wins over the active-or-default organization.

    Raises:
        NoOrgError: No organization exists.
        NotFoundError: ``org_name`` matches no organization.
        AmbiguousError: ``org_name`` matches several organizations.
    """
    name = (org_name or "").strip()
    if name:
        matches = [org for org in store.get_organizations(name=name) if org.name == name]
        organization = _exactly_one(matches, kind="organization", name=name)
        log.debug(f"using organization {organization.name} ({organization.id})")
        return organization
    organization = store.get_active_organization_or_default()
    if organization is None:
        raise NoOrgError(
            "no organizations exist",
            recovery_hint="create an organization before creating workspaces",
        )
    log.debug(f"using organization {organization.name} ({organization.id})")
    return organization


def find_workspace(store: WorkspaceStore, organization: Organization, name: str) -> Workspace:
    """Return the caller's single workspace named ``name`` in ``organization``.

    Raises:
        NotFoundError: No workspace has that name.
        AmbiguousError: More than one workspace has that name.
    """
    user = store.get_current_user()
    candidates = store.get_workspaces(organization.id, name=name, user_id=user.id)
    matches = [workspace for workspace in candidates if workspace.name == name]
    return _exactly_one(matches, kind="workspace", name=name)
