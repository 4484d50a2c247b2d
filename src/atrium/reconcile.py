"""Reconcile a workspace's declared repositories with what is on disk.

``merge`` and ``clone_targets`` are pure; ``ReconcileService`` wires them to
local discovery, the backend manifest and ``git clone``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from . import exec as exec_util
from . import git, log
from .models import ModifyWorkspaceRequest, RepoName, RepoV1
from .services.base import BaseService
from .services.errors import (
    CloneFailedError,
    ConfigError,
    ExternalCommandFailedError,
    MalformedURLError,
)
from .store import WorkspaceStore

Manifest = dict[RepoName, RepoV1]


def repos_from_remote_urls(urls: Iterable[str]) -> list[RepoV1]:
    """Normalize raw remote URLs into repos, dropping duplicates.

    Unparseable URLs are skipped with a warning.

    Example:
        >>> [r.url for r in repos_from_remote_urls([
        ...     "https://github.com/org/a", "git@github.com:org/a.git"])]
        ['github.com:org/a.git']
    """
    repos: list[RepoV1] = []
    seen: set[str] = set()
    for url in urls:
        try:
            identity = git.normalize_repo_url(url)
        except MalformedURLError:
            log.warning(f"skipping remote with unrecognized URL: {url}")
            continue
        if identity.ssh_url in seen:
            continue
        seen.add(identity.ssh_url)
        repos.append(RepoV1.from_ssh_url(identity.ssh_url))
    return repos


def merge(backend_repos: Mapping[RepoName, RepoV1], local_repos: Sequence[RepoV1]) -> Manifest:
    """Return the backend manifest extended with newly discovered repos.

    A local repo is added under its derived name unless that name is already a
    key or its URL is already declared under any key. Existing entries are
    never removed or replaced. Local repos are visited in URL order so the
    result depends only on the set of local URLs.

    Example:
        >>> a = RepoV1.from_ssh_url("gh.com:org/a.git")
        >>> b = RepoV1.from_ssh_url("gh.com:org/b.git")
        >>> sorted(merge({"repoA": a}, [a, b]))
        ['b', 'repoA']
    """
    merged: Manifest = dict(backend_repos)
    declared = {repo.url for repo in merged.values()}
    for repo in sorted(local_repos, key=lambda item: item.url):
        if repo.url in declared:
            continue
        if repo.name in merged:
            log.debug(
                f"not declaring {repo.url}: name {repo.name} already used by "
                f"{merged[repo.name].url}"
            )
            continue
        merged[repo.name] = repo
        declared.add(repo.url)
    return merged


def clone_targets(
    backend_repos: Mapping[RepoName, RepoV1], local_repos: Sequence[RepoV1]
) -> list[tuple[RepoName, RepoV1]]:
    """Return ``(key, repo)`` pairs to clone, in key order.

    A URL that is present locally is skipped. A URL declared under several
    keys is cloned once, under the first key.

    Example:
        >>> a = RepoV1.from_ssh_url("gh.com:org1/a.git")
        >>> fork = RepoV1.from_ssh_url("gh.com:org2/a.git")
        >>> [key for key, _ in clone_targets({"a": a, "a-fork": fork, "alias": a}, [])]
        ['a', 'a-fork']
    """
    seen = {repo.url for repo in local_repos}
    targets: list[tuple[RepoName, RepoV1]] = []
    for key in sorted(backend_repos):
        repo = backend_repos[key]
        if repo.url in seen:
            continue
        seen.add(repo.url)
        targets.append((key, repo))
    return targets


def repos_to_clone(
    backend_repos: Mapping[RepoName, RepoV1], local_repos: Sequence[RepoV1]
) -> list[RepoV1]:
    """Return declared repos whose URL is not present locally, in key order.

    Example:
        >>> c = RepoV1.from_ssh_url("gh.com:org/c.git")
        >>> [r.name for r in repos_to_clone({"c": c}, [])]
        ['c']
    """
    return [repo for _key, repo in clone_targets(backend_repos, local_repos)]


def discover_repo_dirs(root: Path, *, max_depth: int) -> list[Path]:
    """Return git working trees under ``root``, at most ``max_depth`` deep.

    Hidden directories are skipped and the walk does not descend into a
    repository once found.
    """
    found: list[Path] = []
    if not root.is_dir():
        return found
    root_depth = len(root.parts)
    for current, dirnames, _filenames in os.walk(root):
        current_path = Path(current)
        if git.git_is_repo(current_path):
            found.append(current_path)
            dirnames[:] = []
            continue
        if len(current_path.parts) - root_depth >= max_depth:
            dirnames[:] = []
            continue
        dirnames[:] = sorted(name for name in dirnames if not name.startswith("."))
    return found


def discover_local_repos(
    root: Path,
    *,
    max_depth: int,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> list[RepoV1]:
    """Return the repos checked out under ``root``, from their git remotes."""
    urls: list[str] = []
    for repo_dir in discover_repo_dirs(root, max_depth=max_depth):
        try:
            urls.extend(git.git_remote_urls(repo_dir, git_path=git_path, runner=runner))
        except ExternalCommandFailedError as exc:
            log.warning(f"could not read remotes of {repo_dir}: {exc}")
    return repos_from_remote_urls(urls)


@dataclass(frozen=True)
class ReconcileRequest:
    """Input for one reconciliation run.

    Attributes:
        workspace_id: Workspace whose manifest is reconciled.
        root: Directory scanned for repos and cloned into.
        max_depth: Discovery depth below ``root``.
        git_path: Git executable.
    """

    workspace_id: str | None
    root: Path
    max_depth: int = 3
    git_path: str | None = None


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of a successful reconciliation run."""

    manifest: Manifest
    added: tuple[RepoName, ...]
    cloned: tuple[RepoName, ...]


class ReconcileService(BaseService[ReconcileRequest, ReconcileOutcome]):
    """Push newly discovered repos upstream and clone missing ones."""

    def __init__(
        self,
        store: WorkspaceStore,
        *,
        runner: exec_util.CommandRunner | None = None,
    ) -> None:
        self._store = store
        self._runner = runner

    def _run(self, request: ReconcileRequest) -> ReconcileOutcome:
        if not request.workspace_id:
            raise ConfigError(
                "no current workspace ID configured",
                recovery_hint="set ATRIUM_WORKSPACE_ID or workspace_id in the config file",
            )
        local_repos = discover_local_repos(
            request.root,
            max_depth=request.max_depth,
            git_path=request.git_path,
            runner=self._runner,
        )
        log.debug(f"discovered {len(local_repos)} local repo(s) under {request.root}")
        workspace = self._store.get_workspace(request.workspace_id)
        backend_repos = workspace.repos_v1
        manifest = merge(backend_repos, local_repos)
        added = tuple(key for key in manifest if key not in backend_repos)
        if added:
            self._store.modify_workspace(
                request.workspace_id, ModifyWorkspaceRequest(repos_v1=manifest)
            )
            log.info(f"declared {len(added)} new repo(s): {', '.join(added)}")
        cloned = self._clone_missing(
            clone_targets(backend_repos, local_repos),
            root=request.root,
            git_path=request.git_path,
        )
        return ReconcileOutcome(manifest=manifest, added=added, cloned=cloned)

    def _clone_missing(
        self,
        targets: Sequence[tuple[RepoName, RepoV1]],
        *,
        root: Path,
        git_path: str | None,
    ) -> tuple[RepoName, ...]:
        cloned: list[RepoName] = []
        failures: list[tuple[str, str]] = []
        for key, repo in targets:
            # Keys are unique, so clones never share a destination.
            destination = root / key
            log.info(f"cloning {repo.url} into {destination}")
            try:
                git.git_clone(
                    git.to_clone_url(repo.url),
                    destination,
                    git_path=git_path,
                    runner=self._runner,
                )
            except ExternalCommandFailedError as exc:
                log.debug(f"clone of {repo.url} failed: {exc}")
                failures.append((repo.url, str(exc)))
                continue
            cloned.append(key)
        if failures:
            raise CloneFailedError(failures)
        return tuple(cloned)
