# ruff: noqa: E402

import sys
from pathlib import Path

import pytest
from _pytest.doctest import DoctestModule

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import atrium.log as atrium_log

DOCTEST_MODULES = {
    ROOT / "src" / "atrium" / "__init__.py",
    ROOT / "src" / "atrium" / "config.py",
    ROOT / "src" / "atrium" / "git.py",
    ROOT / "src" / "atrium" / "lifecycle.py",
    ROOT / "src" / "atrium" / "models.py",
    ROOT / "src" / "atrium" / "paths.py",
    ROOT / "src" / "atrium" / "portforward.py",
    ROOT / "src" / "atrium" / "reconcile.py",
    ROOT / "src" / "atrium" / "resolver.py",
}


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        "ATRIUM_API_URL",
        "ATRIUM_TOKEN",
        "ATRIUM_CLUSTER_ID",
        "ATRIUM_ORG_ID",
        "ATRIUM_WORKSPACE_ID",
        "ATRIUM_POLL_INTERVAL",
        "ATRIUM_POLL_TIMEOUT",
        "ATRIUM_REPOS_ROOT",
        "ATRIUM_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ATRIUM_NO_COLOR", "1")
    monkeypatch.setattr("atrium.paths.config_path", lambda: tmp_path / "config.json")
    monkeypatch.setattr(atrium_log, "_configured_level", None)
    monkeypatch.setattr(atrium_log, "_no_color_override", None)
    monkeypatch.setattr(atrium_log, "_status_console", None)


def pytest_collect_file(
    parent: pytest.Collector, file_path: Path
) -> DoctestModule | None:
    path = file_path if isinstance(file_path, Path) else Path(str(file_path))
    if path in DOCTEST_MODULES:
        return DoctestModule.from_parent(parent, path=path)
    return None
