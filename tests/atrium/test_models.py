from __future__ import annotations

import pytest

from atrium.models import (
    CreateWorkspaceOptions,
    NewWorkspace,
    RepoV1,
    Workspace,
    dump_api,
)


def test_workspace_parses_backend_aliases() -> None:
    workspace = Workspace.model_validate(
        {
            "id": "ws-1",
            "name": "repo",
            "status": " deploying ",
            "dns": None,
            "createdByUserId": "user-1",
            "reposv1": None,
            "extraField": True,
        }
    )

    assert workspace.status == "DEPLOYING"
    assert workspace.dns == ""
    assert workspace.created_by_user_id == "user-1"
    assert workspace.repos_v1 == {}
    assert workspace.connection_target == "repo"


def test_connection_target_prefers_dns() -> None:
    workspace = Workspace(id="ws-1", name="repo", dns="repo.atrium.dev")

    assert workspace.connection_target == "repo.atrium.dev"


@pytest.mark.parametrize(
    ("url", "name"),
    [
        ("github.com:org/repo.git", "repo"),
        ("github.com:repo.git", "repo"),
        ("gitlab.example.co.uk:team/sub/tool.git", "tool"),
        ("github.com:org/repo", "repo"),
    ],
)
def test_repo_name_is_last_path_segment(url: str, name: str) -> None:
    assert RepoV1.from_ssh_url(url).name == name


def test_repo_round_trips_through_alias_dump() -> None:
    repo = RepoV1.model_validate({"type": "git", "gitRepo": {"repository": " gh.com:o/r.git "}})

    assert repo.url == "gh.com:o/r.git"
    assert dump_api(repo) == {"type": "git", "gitRepo": {"repository": "gh.com:o/r.git"}}


def test_create_options_for_new_workspace() -> None:
    intent = NewWorkspace(name="repo", git_repo="github.com:org/repo.git")

    options = CreateWorkspaceOptions.for_new_workspace("cluster-1", intent)

    assert dump_api(options) == {
        "name": "repo",
        "workspaceClusterId": "cluster-1",
        "gitRepo": "github.com:org/repo.git",
    }
