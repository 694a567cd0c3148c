"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import subprocess
from typing import TYPE_CHECKING, NamedTuple, Protocol

import pytest

from project_launcher.core.config import LauncherConfig
from project_launcher.core.orchestrator import GitOrchestrator
from tests.repo_controller import RepositoryController, run_git

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_git(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's git configuration and credentials out of every test."""
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    monkeypatch.setenv("GIT_MERGE_AUTOEDIT", "no")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.delenv("PROJECT_LAUNCHER_TOKEN", raising=False)


class Remote(NamedTuple):
    """A bare remote and a separate working copy used to push upstream changes to it."""

    url: str
    upstream: RepositoryController


@pytest.fixture
def remote(tmp_path: Path) -> Remote:
    """A bare ``origin.git`` with ``main`` and ``feature`` branches."""
    bare = tmp_path / "origin.git"
    bare.mkdir()
    run_git("init", "--bare", "-b", "main", cwd=bare)

    upstream = RepositoryController.init(tmp_path / "upstream")
    run_git("remote", "add", "origin", str(bare), cwd=upstream.path)
    upstream.push("-u", "origin", "main")
    upstream.create_branch("feature")
    upstream.add_and_commit("feature.txt", "feature work\n", "Add feature")
    upstream.push("-u", "origin", "feature")
    upstream.checkout("main")
    return Remote(url=str(bare), upstream=upstream)


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    return tmp_path / "Repo"


@pytest.fixture
def orchestrator(base_dir: Path) -> GitOrchestrator:
    return GitOrchestrator(LauncherConfig(base_dir=base_dir))


@pytest.fixture
async def cloned(orchestrator: GitOrchestrator, remote: Remote) -> RepositoryController:
    """A working copy cloned by the orchestrator under the base directory."""
    result = await orchestrator.clone_or_update(remote.url, "project")
    assert result.success, result.message
    return RepositoryController(result.repo_path)


class CompletedProcessFactory(Protocol):
    """Callable that builds a CompletedProcess as returned by run_command."""

    def __call__(self, stdout: str = "", stderr: str = "", returncode: int = 0) -> subprocess.CompletedProcess[str]: ...


@pytest.fixture
def completed() -> CompletedProcessFactory:
    def _factory(stdout: str = "", stderr: str = "", returncode: int = 0) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(["git"], returncode, stdout, stderr)

    return _factory
