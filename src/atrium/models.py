"""Pydantic models for backend workspace entities and requests."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

GIT_REPO_TYPE = "git"
RepoType = Literal["git"]

STATUS_RUNNING = "RUNNING"

RepoName = str


class GitRepo(BaseModel):
    """Git repository descriptor.

    Attributes:
        repository: Normalized SSH-style URL (``host.tld:org/name.git``).
    """

    model_config = ConfigDict(extra="allow")

    repository: str

    @field_validator("repository", mode="before")
    @classmethod
    def normalize_repository(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value


class RepoV1(BaseModel):
    """A repository declared in a workspace manifest.

    Identity for reconciliation is ``git_repo.repository``, never the manifest
    key.

    Example:
        >>> repo = RepoV1.from_ssh_url("github.com:org/repo.git")
        >>> repo.name
        'repo'
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: RepoType = GIT_REPO_TYPE
    git_repo: GitRepo = Field(alias="gitRepo")

    @classmethod
    def from_ssh_url(cls, ssh_url: str) -> RepoV1:
        return cls(type=GIT_REPO_TYPE, git_repo=GitRepo(repository=ssh_url))

    @property
    def url(self) -> str:
        return self.git_repo.repository

    @property
    def name(self) -> RepoName:
        """Manifest key derived from the last path segment of the URL."""
        tail = self.url.rstrip("/").rsplit("/", 1)[-1]
        tail = tail.rsplit(":", 1)[-1]
        if tail.lower().endswith(".git"):
            tail = tail[: -len(".git")]
        return tail


class Organization(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    username: str | None = None
    email: str | None = None


class Workspace(BaseModel):
    """Backend workspace snapshot.

    Attributes:
        id: Workspace identifier.
        name: Human-facing workspace name.
        status: Lifecycle status (``RUNNING`` once reachable).
        dns: Reachable address once running.
        organization_id: Owning organization.
        created_by_user_id: Owning user.
        repos_v1: Declared repositories keyed by repo name.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    name: str = ""
    status: str = ""
    dns: str = ""
    organization_id: str | None = Field(default=None, alias="organizationId")
    created_by_user_id: str | None = Field(default=None, alias="createdByUserId")
    repos_v1: dict[RepoName, RepoV1] = Field(default_factory=dict, alias="reposv1")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("dns", "name", mode="before")
    @classmethod
    def normalize_optional_strings(cls, value: object) -> object:
        if value is None:
            return ""
        return value

    @field_validator("repos_v1", mode="before")
    @classmethod
    def normalize_repos(cls, value: object) -> object:
        if value is None:
            return {}
        return value

    @property
    def connection_target(self) -> str:
        """Address to hand to ``ssh`` once the workspace is running."""
        return self.dns or self.name


class NewWorkspace(BaseModel):
    """Create intent produced from a normalized repository URL."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    git_repo: str = Field(alias="gitRepo")


class CreateWorkspaceOptions(BaseModel):
    """Request body for workspace creation."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    cluster_id: str = Field(alias="workspaceClusterId")
    git_repo: str | None = Field(default=None, alias="gitRepo")

    @classmethod
    def for_new_workspace(cls, cluster_id: str, intent: NewWorkspace) -> CreateWorkspaceOptions:
        return cls(name=intent.name, cluster_id=cluster_id, git_repo=intent.git_repo)


class ModifyWorkspaceRequest(BaseModel):
    """Request body for a manifest update."""

    model_config = ConfigDict(populate_by_name=True)

    repos_v1: dict[RepoName, RepoV1] = Field(alias="reposv1")


def dump_api(model: BaseModel) -> dict:
    """Serialize a model with backend (alias) field names.

    Example:
        >>> dump_api(NewWorkspace(name="repo", git_repo="github.com:org/repo.git"))
        {'name': 'repo', 'gitRepo': 'github.com:org/repo.git'}
    """
    return model.model_dump(by_alias=True, exclude_none=True)
