"""Configuration helpers for Atrium.

Settings are read from ``config.json`` in the user config directory,
validated with Pydantic, and overridden by ``ATRIUM_*`` environment
variables.

Example:
    >>> Settings().poll_interval_seconds
    5.0
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from . import paths
from .services.errors import ConfigError

DEFAULT_API_URL = "https://api.atrium.dev"
DEFAULT_CLUSTER_ID = "default"
DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_POLL_TIMEOUT_SECONDS = 900.0
DEFAULT_AUTOSTART_INTERVAL_SECONDS = 5
DEFAULT_DISCOVERY_DEPTH = 3

ENV_OVERRIDES = {
    "ATRIUM_API_URL": "api_url",
    "ATRIUM_TOKEN": "token",
    "ATRIUM_CLUSTER_ID": "cluster_id",
    "ATRIUM_ORG_ID": "active_org_id",
    "ATRIUM_WORKSPACE_ID": "workspace_id",
    "ATRIUM_POLL_INTERVAL": "poll_interval_seconds",
    "ATRIUM_POLL_TIMEOUT": "poll_timeout_seconds",
    "ATRIUM_REPOS_ROOT": "repos_root",
}


class Settings(BaseModel):
    """Resolved Atrium settings.

    Attributes:
        api_url: Backend base URL.
        token: Bearer token for the backend.
        cluster_id: Default provisioning cluster for new workspaces.
        active_org_id: Active organization; first org when unset.
        workspace_id: ID of the workspace this machine is (for updatemodel).
        poll_interval_seconds: Delay between status checks.
        poll_timeout_seconds: Polling deadline; ``0`` waits forever.
        repos_root: Directory scanned and cloned into by updatemodel.
        discovery_depth: How deep below ``repos_root`` to look for repos.
        git_path: Git executable.
    """

    model_config = ConfigDict(extra="ignore")

    api_url: str = DEFAULT_API_URL
    token: str | None = None
    cluster_id: str = DEFAULT_CLUSTER_ID
    active_org_id: str | None = None
    workspace_id: str | None = None
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    poll_timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS
    repos_root: Path | None = None
    discovery_depth: int = DEFAULT_DISCOVERY_DEPTH
    git_path: str = "git"

    @field_validator("api_url", mode="before")
    @classmethod
    def normalize_api_url(cls, value: object) -> object:
        if value is None:
            return DEFAULT_API_URL
        if isinstance(value, str):
            return value.strip().rstrip("/") or DEFAULT_API_URL
        return value

    @field_validator("token", "active_org_id", "workspace_id", mode="before")
    @classmethod
    def normalize_optional_strings(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or None
        return value

    @field_validator("poll_interval_seconds", "poll_timeout_seconds")
    @classmethod
    def reject_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("repos_root", mode="before")
    @classmethod
    def expand_root(cls, value: object) -> object:
        if value in (None, ""):
            return None
        return Path(str(value)).expanduser()

    def resolved_repos_root(self) -> Path:
        return self.repos_root or Path.home()


def load_json(path: Path) -> dict | None:
    """Load a JSON file if it exists.

    Example:
        >>> load_json(Path("missing.json")) is None
        True
    """
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def load_settings(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> Settings:
    """Load settings from the config file and environment.

    Args:
        path: Config file path; defaults to the user config path.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        ConfigError: When the file is not valid JSON or fails validation.
    """
    source = path or paths.config_path()
    env = os.environ if environ is None else environ
    try:
        payload = load_json(source) or {}
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"failed to read config at {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"config at {source} must be a JSON object")
    merged = dict(payload)
    for env_name, field in ENV_OVERRIDES.items():
        raw = env.get(env_name)
        if raw is not None and raw.strip():
            merged[field] = raw
    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(
            f"invalid config at {source}: {exc}",
            recovery_hint=f"fix or remove {source}",
        ) from exc
