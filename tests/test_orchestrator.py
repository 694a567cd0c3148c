"""Workflow tests against real git repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from project_launcher.core.config import LauncherConfig
from project_launcher.core.orchestrator import GitOrchestrator
from project_launcher.core.result import FileStatus, Outcome
from tests.repo_controller import RepositoryController

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import Remote

pytestmark = pytest.mark.slow


def _make_conflict(remote: Remote, cloned: RepositoryController) -> None:
    """Commit diverging edits of the same line upstream and locally."""
    remote.upstream.add_and_commit("shared.txt", "upstream line\n", "Upstream edit")
    remote.upstream.push("origin", "main")
    cloned.add_and_commit("shared.txt", "local line\n", "Local edit")


# =============================================================================
# CONSTRUCTION / CLONE-OR-UPDATE
# =============================================================================


def test_construction_creates_base_dir(base_dir: Path) -> None:
    assert not base_dir.exists()
    GitOrchestrator(LauncherConfig(base_dir=base_dir))
    assert base_dir.is_dir()


async def test_clone_then_update_is_idempotent(orchestrator: GitOrchestrator, remote: Remote) -> None:
    first = await orchestrator.clone_or_update(remote.url, "project")
    assert first.success, first.message
    assert "cloned" in first.message
    assert first.outcome is Outcome.CLONED
    assert first.repo_path == orchestrator.base_dir / "project"
    assert (first.repo_path / "README.md").is_file()
    assert orchestrator.is_installed("project")

    second = await orchestrator.clone_or_update(remote.url, "project")
    assert second.success, second.message
    assert second.outcome is Outcome.UP_TO_DATE
    assert "already up to date" in second.message


async def test_update_pulls_new_upstream_commits(
    orchestrator: GitOrchestrator, remote: Remote, cloned: RepositoryController
) -> None:
    remote.upstream.add_and_commit("news.txt", "fresh\n", "Upstream news")
    remote.upstream.push("origin", "main")

    result = await orchestrator.clone_or_update(remote.url, "project")

    assert result.success, result.message
    assert "updated" in result.message
    assert (cloned.path / "news.txt").is_file()


async def test_clone_failure_is_reported(orchestrator: GitOrchestrator, tmp_path: Path) -> None:
    result = await orchestrator.clone_or_update(str(tmp_path / "does-not-exist.git"), "ghost")
    assert not result.success
    assert "Failed to clone 'ghost'" in result.message


async def test_clone_rejects_names_escaping_base_dir(orchestrator: GitOrchestrator, remote: Remote) -> None:
    result = await orchestrator.clone_or_update(remote.url, "../escape")
    assert not result.success
    assert "Invalid repository name" in result.message


async def test_missing_git_executable_becomes_failed_result(base_dir: Path, remote: Remote) -> None:
    orchestrator = GitOrchestrator(LauncherConfig(base_dir=base_dir, git_executable="git-does-not-exist"))
    assert await orchestrator.is_git_installed() is False

    result = await orchestrator.clone_or_update(remote.url, "project")

    assert not result.success
    assert result.message


# =============================================================================
# QUERIES
# =============================================================================


async def test_list_branches(orchestrator: GitOrchestrator, cloned: RepositoryController) -> None:
    branches = await orchestrator.list_branches(cloned.path)

    assert [(b.display_name, b.is_current, b.is_remote) for b in branches] == [
        ("main", True, False),
        ("origin/feature", False, True),
    ]
    assert await orchestrator.current_branch(cloned.path) == "main"


async def test_queries_fail_open_outside_a_repository(orchestrator: GitOrchestrator, tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    assert await orchestrator.current_branch(plain) is None
    assert await orchestrator.list_branches(plain) == []
    assert await orchestrator.list_modified_files(plain) == []
    assert await orchestrator.has_uncommitted_changes(plain) is False
    assert await orchestrator.is_merge_in_progress(plain) is False


async def test_list_modified_files(orchestrator: GitOrchestrator, cloned: RepositoryController) -> None:
    assert await orchestrator.has_uncommitted_changes(cloned.path) is False
    cloned.add_file("README.md", "# Changed\n")
    cloned.add_file("notes.txt", "todo\n")

    entries = await orchestrator.list_modified_files(cloned.path)

    assert {(e.path, e.status) for e in entries} == {
        ("README.md", FileStatus.MODIFIED),
        ("notes.txt", FileStatus.UNTRACKED),
    }
    assert await orchestrator.has_uncommitted_changes(cloned.path) is True


# =============================================================================
# CHECKOUT
# =============================================================================


async def test_checkout_remote_branch_creates_tracking_branch(
    orchestrator: GitOrchestrator, cloned: RepositoryController
) -> None:
    result = await orchestrator.checkout(cloned.path, "remotes/origin/feature")

    assert result.success, result.message
    assert "feature" in result.message
    assert cloned.current_branch() == "feature"
    assert (cloned.path / "feature.txt").is_file()


async def test_checkout_remote_branch_reuses_existing_local_branch(
    orchestrator: GitOrchestrator, cloned: RepositoryController
) -> None:
    cloned.create_branch("feature")
    cloned.checkout("main")

    result = await orchestrator.checkout(cloned.path, "remotes/origin/feature")

    assert result.success, result.message
    assert cloned.current_branch() == "feature"
    assert cloned.local_branches().count("feature") == 1


async def test_checkout_refuses_with_uncommitted_changes(
    orchestrator: GitOrchestrator, cloned: RepositoryController
) -> None:
    cloned.add_file("README.md", "# Dirty\n")

    result = await orchestrator.checkout(cloned.path, "remotes/origin/feature")

    assert not result.success
    assert "uncommitted changes" in result.message
    assert cloned.current_branch() == "main"
    assert "feature" not in cloned.local_branches()


async def test_checkout_unknown_branch_fails(orchestrator: GitOrchestrator, cloned: RepositoryController) -> None:
    result = await orchestrator.checkout(cloned.path, "no-such-branch")
    assert not result.success
    assert "Failed to switch branch" in result.message


# =============================================================================
# FETCH-AND-PULL / MERGE LIFECYCLE
# =============================================================================


async def test_fetch_and_pull_up_to_date(orchestrator: GitOrchestrator, cloned: RepositoryController) -> None:
    result = await orchestrator.fetch_and_pull(cloned.path)
    assert result.success, result.message
    assert result.outcome is Outcome.UP_TO_DATE


async def test_fetch_and_pull_fast_forward(
    orchestrator: GitOrchestrator, remote: Remote, cloned: RepositoryController
) -> None:
    remote.upstream.add_and_commit("news.txt", "fresh\n", "Upstream news")
    remote.upstream.push("origin", "main")

    result = await orchestrator.fetch_and_pull(cloned.path)

    assert result.success, result.message
    assert result.outcome is Outcome.FAST_FORWARD
    assert (cloned.path / "news.txt").is_file()


async def test_conflict_then_complete_merge(
    orchestrator: GitOrchestrator, remote: Remote, cloned: RepositoryController
) -> None:
    _make_conflict(remote, cloned)

    pulled = await orchestrator.fetch_and_pull(cloned.path)

    assert not pulled.success
    assert pulled.is_conflict
    assert "shared.txt" in pulled.message
    assert await orchestrator.is_merge_in_progress(cloned.path)

    switched = await orchestrator.checkout(cloned.path, "remotes/origin/feature")
    assert not switched.success
    assert "merge is in progress" in switched.message

    cloned.add_file("shared.txt", "resolved line\n")
    completed = await orchestrator.complete_merge_and_push(cloned.path)

    assert completed.success, completed.message
    assert not await orchestrator.is_merge_in_progress(cloned.path)
    assert await orchestrator.has_uncommitted_changes(cloned.path) is False
    remote.upstream.pull()
    assert (remote.upstream.path / "shared.txt").read_text() == "resolved line\n"
    assert remote.upstream.last_commit_message().startswith("Merge")


async def test_fetch_failure_skips_pull(orchestrator: GitOrchestrator, cloned: RepositoryController) -> None:
    cloned._run_git("remote", "set-url", "origin", str(cloned.path.parent / "gone.git"))

    result = await orchestrator.fetch_and_pull(cloned.path)

    assert not result.success
    assert result.message.startswith("Fetch failed")


# =============================================================================
# COMMIT-AND-PUSH
# =============================================================================


async def test_commit_and_push(orchestrator: GitOrchestrator, remote: Remote, cloned: RepositoryController) -> None:
    cloned.add_file("app.py", "print('hi')\n")

    result = await orchestrator.commit_and_push(cloned.path, 'Add "app"', "Entry point for the app.")

    assert result.success, result.message
    assert result.outcome is Outcome.PUSHED
    assert cloned.is_clean()
    remote.upstream.pull()
    assert remote.upstream.last_commit_message() == 'Add "app"\n\nEntry point for the app.'


async def test_commit_with_nothing_to_commit_fails_before_push(
    orchestrator: GitOrchestrator, cloned: RepositoryController
) -> None:
    result = await orchestrator.commit_and_push(cloned.path, "Nothing here")
    assert not result.success
    assert result.message.startswith("Failed to commit")


async def test_push_rejected_when_remote_moved(
    orchestrator: GitOrchestrator, remote: Remote, cloned: RepositoryController
) -> None:
    remote.upstream.add_and_commit("upstream.txt", "x\n", "Upstream moved")
    remote.upstream.push("origin", "main")
    cloned.add_file("local.txt", "y\n")

    result = await orchestrator.commit_and_push(cloned.path, "Local work")

    assert not result.success
    assert result.outcome is Outcome.REJECTED
    assert "try pushing again" in result.message


# =============================================================================
# SETUP SCRIPT
# =============================================================================


async def test_setup_script_missing(orchestrator: GitOrchestrator, cloned: RepositoryController) -> None:
    result = await orchestrator.run_setup_script(cloned.path)
    assert not result.success
    assert orchestrator.config.setup_script in result.message
