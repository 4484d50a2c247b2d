"""Git URL normalization and the small amount of git plumbing Atrium needs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from . import exec as exec_util
from .services.errors import ExternalCommandFailedError, MalformedURLError

URL_SCHEMES = ("https", "http", "ssh", "git+ssh")
URL_MARKERS = ("https://", "http://", "ssh://", "git@")

_SCP_RE = re.compile(r"^(?P<user>[^@/\s]+)@(?P<host>[^:/\s]+):(?P<path>.+)$")


@dataclass(frozen=True)
class RepoIdentity:
    """Canonical identity for a git repository.

    Attributes:
        host: Lower-cased host name.
        path: Repository path without ``.git`` (``org/repo``).
        name: Last path segment (``repo``).
        ssh_url: Canonical ``host:path.git`` form.
    """

    host: str
    path: str
    name: str
    ssh_url: str


def strip_git_suffix(path: str) -> str:
    """Remove a trailing ``.git`` suffix from a path string.

    Args:
        path: Git URL or path.

    Returns:
        Path without a trailing ``.git``.

    Example:
        >>> strip_git_suffix("example/repo.git")
        'example/repo'
    """
    normalized = path.strip().rstrip("/")
    if normalized.lower().endswith(".git"):
        return normalized[: -len(".git")]
    return normalized


def is_repo_url(value: str) -> bool:
    """Return whether a CLI argument looks like a repository URL.

    Example:
        >>> is_repo_url("git@github.com:org/repo.git")
        True
        >>> is_repo_url("my-workspace")
        False
    """
    return any(marker in value for marker in URL_MARKERS)


def _split_url(raw: str) -> tuple[str, str] | None:
    scp_match = _SCP_RE.match(raw)
    if scp_match and "://" not in raw:
        return scp_match.group("host"), scp_match.group("path")
    if "://" in raw:
        parsed = urlparse(raw)
        scheme = (parsed.scheme or "").lower()
        if scheme in URL_SCHEMES and parsed.hostname:
            return parsed.hostname, parsed.path or ""
    return None


def normalize_repo_url(value: str) -> RepoIdentity:
    """Normalize an HTTPS or SSH git URL into its canonical identity.

    HTTPS, ``ssh://`` and SCP-style forms of the same repository normalize to
    the same identity, for any host name.

    Args:
        value: Raw git URL.

    Returns:
        ``RepoIdentity`` with the canonical ``host:path.git`` SSH URL.

    Raises:
        MalformedURLError: When the URL has no scheme or ``user@host:``
            marker, or is missing a host or path.

    Example:
        >>> normalize_repo_url("https://github.com/org/repo").ssh_url
        'github.com:org/repo.git'
        >>> normalize_repo_url("git@gitlab.example.co.uk:team/tool.git").name
        'tool'
    """
    raw = value.strip()
    parts = _split_url(raw)
    if parts is None:
        raise MalformedURLError(
            f"not a git repository URL: {value!r}",
            recovery_hint="use https://host/org/repo or git@host:org/repo.git",
        )
    host, path = parts
    host = host.lower()
    path = strip_git_suffix(path.strip().lstrip("/"))
    if not host or not path:
        raise MalformedURLError(f"repository URL is missing a host or path: {value!r}")
    name = path.rsplit("/", 1)[-1]
    return RepoIdentity(host=host, path=path, name=name, ssh_url=f"{host}:{path}.git")


def to_clone_url(ssh_url: str) -> str:
    """Return a git-cloneable URL for a canonical ``host:path.git`` value.

    Example:
        >>> to_clone_url("github.com:org/repo.git")
        'git@github.com:org/repo.git'
    """
    if is_repo_url(ssh_url):
        return ssh_url
    return f"git@{ssh_url}"


def git_command(args: list[str], *, git_path: str | None = None) -> list[str]:
    """Build a git command using an optional executable path."""
    resolved = git_path.strip() if isinstance(git_path, str) else ""
    if not resolved:
        resolved = "git"
    return [resolved, *args]


def git_is_repo(path: Path) -> bool:
    """Return whether ``path`` is the top of a git working tree."""
    return (path / ".git").exists()


def _run_git(
    args: list[str],
    *,
    cwd: Path | None = None,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> exec_util.CommandResult:
    request = exec_util.CommandRequest(argv=tuple(git_command(args, git_path=git_path)), cwd=cwd)
    try:
        return exec_util.run_checked(request, runner=runner)
    except exec_util.CommandExecutionError as exc:
        raise ExternalCommandFailedError(str(exc)) from exc


def git_remote_urls(
    repo_dir: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> list[str]:
    """Return every fetch URL of every remote configured in ``repo_dir``."""
    remotes = _run_git(
        ["-C", str(repo_dir), "remote"], git_path=git_path, runner=runner
    ).stdout.split()
    urls: list[str] = []
    for remote in remotes:
        result = _run_git(
            ["-C", str(repo_dir), "remote", "get-url", "--all", remote],
            git_path=git_path,
            runner=runner,
        )
        urls.extend(line.strip() for line in result.stdout.splitlines() if line.strip())
    return urls


def git_clone(
    url: str,
    destination: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> None:
    """Clone ``url`` into ``destination``.

    Raises:
        ExternalCommandFailedError: When git is missing or the clone fails.
    """
    _run_git(["clone", url, str(destination)], git_path=git_path, runner=runner)
