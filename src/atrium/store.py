"""Backend workspace API client."""

from __future__ import annotations

from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from . import log
from .config import Settings
from .models import (
    CreateWorkspaceOptions,
    ModifyWorkspaceRequest,
    Organization,
    User,
    Workspace,
    dump_api,
)
from .services.errors import BackendCallError

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


class WorkspaceStore(Protocol):
    """Backend operations the lifecycle controller and reconciler depend on."""

    def get_workspace(self, workspace_id: str) -> Workspace: ...

    def get_workspaces(
        self,
        organization_id: str,
        *,
        name: str | None = None,
        user_id: str | None = None,
    ) -> list[Workspace]: ...

    def start_workspace(self, workspace_id: str) -> Workspace: ...

    def create_workspace(
        self, organization_id: str, options: CreateWorkspaceOptions
    ) -> Workspace: ...

    def modify_workspace(
        self, workspace_id: str, request: ModifyWorkspaceRequest
    ) -> Workspace: ...

    def get_organizations(self, *, name: str | None = None) -> list[Organization]: ...

    def get_active_organization_or_default(self) -> Organization | None: ...

    def get_current_user(self) -> User: ...


class HttpWorkspaceStore:
    """``WorkspaceStore`` backed by the HTTP API.

    Every failure (transport, non-2xx status, unexpected payload) is raised as
    ``BackendCallError`` naming the call that failed.
    """

    def __init__(self, settings: Settings, *, client: httpx.Client | None = None) -> None:
        self._settings = settings
        if client is None:
            headers = {"Accept": "application/json"}
            if settings.token:
                headers["Authorization"] = f"Bearer {settings.token}"
            client = httpx.Client(
                base_url=settings.api_url,
                timeout=DEFAULT_TIMEOUT,
                headers=headers,
            )
        self._client = client

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpWorkspaceStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        call: str,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        log.trace(f"{method} {url}")
        try:
            response = self._client.request(method, url, params=params, json=json)
        except httpx.HTTPError as exc:
            raise BackendCallError(call, f"request failed: {exc}") from exc
        if response.is_error:
            body = response.text[:200] if response.text else ""
            detail = f"{response.status_code} {response.reason_phrase}"
            if body:
                detail = f"{detail}: {body}"
            hint = "check ATRIUM_TOKEN" if response.status_code in (401, 403) else None
            raise BackendCallError(
                call, detail, status_code=response.status_code, recovery_hint=hint
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendCallError(call, f"invalid JSON response: {exc}") from exc

    @staticmethod
    def _parse(call: str, model_type: type[ModelT], payload: Any) -> ModelT:
        try:
            return model_type.model_validate(payload)
        except ValidationError as exc:
            raise BackendCallError(call, f"unexpected response: {exc}") from exc

    @classmethod
    def _parse_list(cls, call: str, model_type: type[ModelT], payload: Any) -> list[ModelT]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise BackendCallError(call, "unexpected response: expected a JSON list")
        return [cls._parse(call, model_type, item) for item in payload]

    def get_workspace(self, workspace_id: str) -> Workspace:
        payload = self._request("get_workspace", "GET", f"/api/workspaces/{workspace_id}")
        return self._parse("get_workspace", Workspace, payload)

    def get_workspaces(
        self,
        organization_id: str,
        *,
        name: str | None = None,
        user_id: str | None = None,
    ) -> list[Workspace]:
        params: dict[str, str] = {}
        if name:
            params["name"] = name
        if user_id:
            params["userId"] = user_id
        payload = self._request(
            "get_workspaces",
            "GET",
            f"/api/organizations/{organization_id}/workspaces",
            params=params or None,
        )
        return self._parse_list("get_workspaces", Workspace, payload)

    def start_workspace(self, workspace_id: str) -> Workspace:
        payload = self._request(
            "start_workspace", "PUT", f"/api/workspaces/{workspace_id}/start"
        )
        return self._parse("start_workspace", Workspace, payload)

    def create_workspace(
        self, organization_id: str, options: CreateWorkspaceOptions
    ) -> Workspace:
        payload = self._request(
            "create_workspace",
            "POST",
            f"/api/organizations/{organization_id}/workspaces",
            json=dump_api(options),
        )
        return self._parse("create_workspace", Workspace, payload)

    def modify_workspace(
        self, workspace_id: str, request: ModifyWorkspaceRequest
    ) -> Workspace:
        payload = self._request(
            "modify_workspace",
            "PUT",
            f"/api/workspaces/{workspace_id}",
            json=dump_api(request),
        )
        return self._parse("modify_workspace", Workspace, payload)

    def get_organizations(self, *, name: str | None = None) -> list[Organization]:
        params = {"name": name} if name else None
        payload = self._request("get_organizations", "GET", "/api/organizations", params=params)
        return self._parse_list("get_organizations", Organization, payload)

    def get_active_organization_or_default(self) -> Organization | None:
        organizations = self.get_organizations()
        active_id = self._settings.active_org_id
        if active_id:
            for organization in organizations:
                if organization.id == active_id:
                    return organization
            log.warning(f"active organization {active_id} not found; using default")
        return organizations[0] if organizations else None

    def get_current_user(self) -> User:
        payload = self._request("get_current_user", "GET", "/api/me")
        return self._parse("get_current_user", User, payload)


def open_store(settings: Settings) -> HttpWorkspaceStore:
    """Return an HTTP store for ``settings``; use it as a context manager."""
    return HttpWorkspaceStore(settings)
