from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from atrium.config import Settings
from atrium.models import CreateWorkspaceOptions, ModifyWorkspaceRequest, RepoV1
from atrium.services.errors import BackendCallError
from atrium.store import HttpWorkspaceStore

Handler = Callable[[httpx.Request], httpx.Response]


def _store(handler: Handler, **settings: object) -> HttpWorkspaceStore:
    resolved = Settings(api_url="https://api.test", token="secret", **settings)
    client = httpx.Client(
        base_url=resolved.api_url,
        transport=httpx.MockTransport(handler),
        headers={"Authorization": f"Bearer {resolved.token}"},
    )
    return HttpWorkspaceStore(resolved, client=client)


WORKSPACE_PAYLOAD = {
    "id": "ws-1",
    "name": "repo",
    "status": "running",
    "dns": "repo-ws-1.atrium.dev",
    "organizationId": "org-1",
    "reposv1": {
        "repo": {"type": "git", "gitRepo": {"repository": "github.com:org/repo.git"}},
    },
}


def test_get_workspace_parses_backend_payload() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=WORKSPACE_PAYLOAD)

    with _store(handler) as store:
        result = store.get_workspace("ws-1")

    assert requests[0].method == "GET"
    assert requests[0].url.path == "/api/workspaces/ws-1"
    assert requests[0].headers["Authorization"] == "Bearer secret"
    assert result.status == "RUNNING"
    assert result.organization_id == "org-1"
    assert result.repos_v1["repo"].url == "github.com:org/repo.git"


def test_get_workspaces_sends_filters() -> None:
    seen: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=[WORKSPACE_PAYLOAD])

    result = _store(handler).get_workspaces("org-1", name="repo", user_id="user-1")

    request = seen["request"]
    assert request.url.path == "/api/organizations/org-1/workspaces"
    assert request.url.params["name"] == "repo"
    assert request.url.params["userId"] == "user-1"
    assert [item.id for item in result] == ["ws-1"]


def test_create_workspace_posts_alias_fields() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": "ws-2", "name": "repo", "status": "DEPLOYING"})

    options = CreateWorkspaceOptions(
        name="repo", cluster_id="cluster-1", git_repo="github.com:org/repo.git"
    )
    created = _store(handler).create_workspace("org-1", options)

    assert seen["method"] == "POST"
    assert seen["body"] == {
        "name": "repo",
        "workspaceClusterId": "cluster-1",
        "gitRepo": "github.com:org/repo.git",
    }
    assert created.id == "ws-2"


def test_modify_workspace_puts_manifest() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=WORKSPACE_PAYLOAD)

    manifest = {"repo": RepoV1.from_ssh_url("github.com:org/repo.git")}
    _store(handler).modify_workspace("ws-1", ModifyWorkspaceRequest(repos_v1=manifest))

    assert seen["method"] == "PUT"
    assert seen["path"] == "/api/workspaces/ws-1"
    assert seen["body"] == {
        "reposv1": {"repo": {"type": "git", "gitRepo": {"repository": "github.com:org/repo.git"}}}
    }


def test_start_workspace_uses_start_endpoint() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["call"] = (request.method, request.url.path)
        return httpx.Response(200, json={"id": "ws-1", "status": "STARTING"})

    assert _store(handler).start_workspace("ws-1").status == "STARTING"
    assert seen["call"] == ("PUT", "/api/workspaces/ws-1/start")


def test_active_organization_prefers_configured_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json=[{"id": "org-1", "name": "acme"}, {"id": "org-2", "name": "labs"}]
        )

    assert _store(handler).get_active_organization_or_default().id == "org-1"
    configured = _store(handler, active_org_id="org-2")
    assert configured.get_active_organization_or_default().id == "org-2"


def test_active_organization_is_none_without_orgs() -> None:
    store = _store(lambda request: httpx.Response(200, json=[]))

    assert store.get_active_organization_or_default() is None


def test_get_current_user() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/me"
        return httpx.Response(200, json={"id": "user-1", "username": "dev"})

    assert _store(handler).get_current_user().id == "user-1"


def test_http_error_is_reported_with_call_name() -> None:
    store = _store(lambda request: httpx.Response(503, text="maintenance"))

    with pytest.raises(BackendCallError) as excinfo:
        store.get_workspace("ws-1")

    assert excinfo.value.call == "get_workspace"
    assert excinfo.value.status_code == 503
    assert "maintenance" in str(excinfo.value)
    assert excinfo.value.recovery_hint is None


def test_unauthorized_suggests_token() -> None:
    store = _store(lambda request: httpx.Response(401, json={"error": "unauthorized"}))

    with pytest.raises(BackendCallError) as excinfo:
        store.get_current_user()

    assert excinfo.value.recovery_hint == "check ATRIUM_TOKEN"


def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendCallError, match="get_organizations: request failed"):
        _store(handler).get_organizations()


def test_unexpected_payload_is_wrapped() -> None:
    store = _store(lambda request: httpx.Response(200, json={"name": "missing id"}))

    with pytest.raises(BackendCallError, match="unexpected response"):
        store.get_workspace("ws-1")


def test_list_endpoint_rejects_non_list_payload() -> None:
    store = _store(lambda request: httpx.Response(200, json={"id": "org-1"}))

    with pytest.raises(BackendCallError, match="expected a JSON list"):
        store.get_organizations()
