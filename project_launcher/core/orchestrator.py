"""Git workflow orchestration for project-launcher.

Each public coroutine is one workflow step. Steps run their git commands strictly
one after another and stop at the first failing command. Mutating steps never
raise: every error becomes a failed ``OperationResult``. Read-only queries degrade
to an empty or negative answer instead.

Nothing here serializes work on a repository. Callers must not run two
operations against the same working copy at once; operations on different
working copies may run concurrently.
"""

from __future__ import annotations

import shlex
import subprocess
import sys
from typing import TYPE_CHECKING

from loguru import logger

from project_launcher.core import parsers
from project_launcher.core.result import BranchInfo, ModifiedFileEntry, OperationResult, Outcome
from project_launcher.core.tools.git import GitController, redact
from project_launcher.core.tools.subprocess import run_command, run_interactive
from project_launcher.models.repository import RepositoryLocation

if TYPE_CHECKING:
    from pathlib import Path

    from project_launcher.core.config import LauncherConfig

_UNCOMMITTED_CHANGES_MSG = (
    "You have uncommitted changes. Commit or discard them before switching branches."
)
_MERGE_IN_PROGRESS_MSG = (
    "A merge is in progress. Complete the merge before switching branches."
)


class GitOrchestrator:
    """Runs the repository workflow steps under one base directory."""

    def __init__(self, config: LauncherConfig) -> None:
        """Initialize the orchestrator and create the base directory if missing."""
        self.config = config
        self.base_dir = config.base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _git(self, repo_path: Path) -> GitController:
        return GitController(repo_path, executable=self.config.git_executable)

    def location(self, name: str) -> RepositoryLocation:
        return RepositoryLocation(base_dir=self.base_dir, name=name)

    def repo_path(self, name: str) -> Path:
        """Working copy path for a repository name."""
        return self.location(name).path

    def is_installed(self, name: str) -> bool:
        """Whether the repository has already been cloned under the base directory."""
        try:
            return self.location(name).exists
        except ValueError:
            return False

    async def is_git_installed(self) -> bool:
        """Check that the git executable can be started."""
        try:
            result = await run_command([self.config.git_executable, "--version"])
        except OSError:
            logger.warning(f"git executable {self.config.git_executable!r} could not be started")
            return False
        return result.returncode == 0

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    async def clone_or_update(self, clone_url: str, name: str, token: str | None = None) -> OperationResult:
        """Clone the repository, or pull it if its directory already exists.

        Args:
            clone_url: Clone URL without credentials.
            name: Repository name, used as the directory name under the base directory.
            token: Access token for the clone; defaults to the configured token.

        """
        repo_path = self.base_dir / name
        try:
            location = self.location(name)
            repo_path = location.path
            if location.exists:
                logger.info(f"Repository {name!r} already present, pulling")
                return await self._update(repo_path, name)
            logger.info(f"Cloning {redact(clone_url)} into {repo_path}")
            return await self._clone(clone_url, location, token or self.config.token_value)
        except Exception as e:  # noqa: BLE001
            logger.exception(f"clone-or-update of {name!r} failed")
            return OperationResult.fail(repo_path, f"Error while cloning or updating '{name}': {e}")

    async def _clone(self, clone_url: str, location: RepositoryLocation, token: str | None) -> OperationResult:
        url = parsers.authenticated_url(clone_url, token)
        result = await self._git(self.base_dir).execute("clone", url, str(location.path))
        if result.returncode != 0:
            error = redact(parsers.failure_text(result))
            return OperationResult.fail(location.path, f"Failed to clone '{location.name}':\n{error}")
        return OperationResult.ok(location.path, f"Repository '{location.name}' cloned.", Outcome.CLONED)

    async def _update(self, repo_path: Path, name: str) -> OperationResult:
        report = parsers.classify_pull(await self._git(repo_path).pull())
        if report.outcome is Outcome.UP_TO_DATE:
            return OperationResult.ok(repo_path, f"Repository '{name}' is already up to date.", report.outcome)
        if report.success:
            return OperationResult.ok(repo_path, f"Repository '{name}' updated.\n{report.message}", report.outcome)
        return OperationResult.fail(repo_path, f"Failed to update '{name}':\n{report.message}", report.outcome)

    # ------------------------------------------------------------------
    # Read-only queries
    # ------------------------------------------------------------------

    async def current_branch(self, repo_path: Path) -> str | None:
        """Name of the checked-out branch, or None if it cannot be determined."""
        try:
            result = await self._git(repo_path).show_current_branch()
        except (OSError, subprocess.CalledProcessError) as e:
            logger.debug(f"Could not read current branch of {repo_path}: {e}")
            return None
        return result.stdout.strip() or None

    async def list_branches(self, repo_path: Path) -> list[BranchInfo]:
        """Local and remote branches, current first; empty on any error."""
        try:
            current = await self.current_branch(repo_path)
            result = await self._git(repo_path).list_all_branches()
        except OSError as e:
            logger.warning(f"Could not list branches of {repo_path}: {e}")
            return []
        if result.returncode != 0:
            logger.warning(f"Could not list branches of {repo_path}: {parsers.failure_text(result)}")
            return []
        return parsers.parse_branches(result.stdout, current)

    async def list_modified_files(self, repo_path: Path) -> list[ModifiedFileEntry]:
        """Working-tree changes; empty when the status cannot be read."""
        try:
            result = await self._git(repo_path).status()
        except OSError as e:
            logger.warning(f"Could not read status of {repo_path}: {e}")
            return []
        if result.returncode != 0:
            logger.warning(f"Could not read status of {repo_path}: {parsers.failure_text(result)}")
            return []
        return parsers.parse_status(result.stdout)

    async def has_uncommitted_changes(self, repo_path: Path) -> bool:
        return bool(await self.list_modified_files(repo_path))

    async def is_merge_in_progress(self, repo_path: Path) -> bool:
        return parsers.is_merge_in_progress(repo_path)

    # ------------------------------------------------------------------
    # Mutating steps
    # ------------------------------------------------------------------

    async def checkout(self, repo_path: Path, branch_name: str) -> OperationResult:
        """Switch branches, creating a local tracking branch for a remote-only ref.

        Refuses before any checkout command when a merge is in progress or the
        working tree has uncommitted changes.
        """
        try:
            if parsers.is_merge_in_progress(repo_path):
                logger.warning(f"Refusing checkout of {branch_name!r} in {repo_path}: merge in progress")
                return OperationResult.fail(repo_path, _MERGE_IN_PROGRESS_MSG)
            if await self.has_uncommitted_changes(repo_path):
                logger.warning(f"Refusing checkout of {branch_name!r} in {repo_path}: uncommitted changes")
                return OperationResult.fail(repo_path, _UNCOMMITTED_CHANGES_MSG)
            return await self._switch(repo_path, branch_name, allow_retry=True)
        except Exception as e:  # noqa: BLE001
            logger.exception(f"Checkout of {branch_name!r} failed")
            return OperationResult.fail(repo_path, f"Error while switching branch: {e}")

    async def _switch(self, repo_path: Path, branch_name: str, *, allow_retry: bool) -> OperationResult:
        git = self._git(repo_path)
        info = BranchInfo(name=branch_name, display_name=branch_name, is_remote=branch_name.startswith("remotes/"))
        local_name = info.local_name
        if info.is_remote:
            result = await git.checkout(local_name, start_point=branch_name)
        else:
            result = await git.checkout(branch_name)

        if parsers.checkout_succeeded(result):
            logger.info(f"Switched {repo_path.name} to {local_name!r}")
            return OperationResult.ok(repo_path, f"Switched to branch '{local_name}'.")
        if info.is_remote and allow_retry and parsers.branch_already_exists(result):
            logger.info(f"Local branch {local_name!r} already exists, switching to it instead")
            return await self._switch(repo_path, local_name, allow_retry=False)
        return OperationResult.fail(repo_path, f"Failed to switch branch:\n{parsers.failure_text(result)}")

    async def fetch_and_pull(self, repo_path: Path) -> OperationResult:
        """Fetch, then pull; the pull never starts if the fetch failed."""
        try:
            git = self._git(repo_path)
            fetch = await git.fetch()
            if fetch.returncode != 0:
                return OperationResult.fail(repo_path, f"Fetch failed:\n{parsers.failure_text(fetch)}")
            report = parsers.classify_pull(await git.pull())
            if report.outcome is Outcome.CONFLICT:
                logger.warning(f"Pull into {repo_path} stopped on conflicts")
            return OperationResult(
                success=report.success, message=report.message, repo_path=repo_path, outcome=report.outcome
            )
        except Exception as e:  # noqa: BLE001
            logger.exception(f"fetch-and-pull in {repo_path} failed")
            return OperationResult.fail(repo_path, f"Error while fetching: {e}")

    async def commit_and_push(self, repo_path: Path, title: str, description: str = "") -> OperationResult:
        """Stage everything, commit with the given title and description, then push.

        The caller is expected to have checked that there is something to commit.
        """
        try:
            if not title.strip():
                return OperationResult.fail(repo_path, "A commit title is required.")
            message = parsers.build_commit_message(title, description)
            return await self._stage_commit_push(repo_path, message, f"Committed and pushed '{title.strip()}'.")
        except Exception as e:  # noqa: BLE001
            logger.exception(f"commit-and-push in {repo_path} failed")
            return OperationResult.fail(repo_path, f"Error while committing: {e}")

    async def complete_merge_and_push(self, repo_path: Path) -> OperationResult:
        """Commit a merge whose conflicts were resolved by hand, with git's merge message, then push."""
        try:
            return await self._stage_commit_push(repo_path, None, "Merge completed and pushed.")
        except Exception as e:  # noqa: BLE001
            logger.exception(f"Completing the merge in {repo_path} failed")
            return OperationResult.fail(repo_path, f"Error while completing the merge: {e}")

    async def _stage_commit_push(self, repo_path: Path, message: str | None, success_message: str) -> OperationResult:
        git = self._git(repo_path)

        staged = await git.add_all()
        if staged.returncode != 0:
            return OperationResult.fail(repo_path, f"Failed to stage changes:\n{parsers.failure_text(staged)}")

        committed = await git.commit(message)
        if committed.returncode != 0:
            return OperationResult.fail(repo_path, f"Failed to commit:\n{parsers.failure_text(committed)}")

        report = parsers.classify_push(await git.push())
        if not report.success:
            return OperationResult.fail(repo_path, report.message, report.outcome)
        logger.info(f"{repo_path.name}: {success_message}")
        return OperationResult.ok(repo_path, success_message, report.outcome)

    async def run_setup_script(self, repo_path: Path) -> OperationResult:
        """Run the repository's setup script in a visible terminal and wait for it.

        A non-zero exit is reported as a failure, but the caller should carry on
        with the next step.
        """
        script = repo_path / self.config.setup_script
        if not script.is_file():
            return OperationResult.fail(repo_path, f"No {self.config.setup_script} found in this project.")
        try:
            logger.info(f"Running {script}")
            exit_code = await run_interactive(setup_command(script), cwd=repo_path)
        except Exception as e:  # noqa: BLE001
            logger.exception(f"Running {script} failed")
            return OperationResult.fail(repo_path, f"Error while running {self.config.setup_script}: {e}")
        if exit_code == 0:
            return OperationResult.ok(repo_path, "Dependencies installed.")
        return OperationResult.fail(
            repo_path,
            f"{self.config.setup_script} finished with exit code {exit_code}. "
            "The project can still be opened; continuing anyway.",
        )


def setup_command(script: Path) -> str:
    """Shell command that runs a setup script in its own directory."""
    if sys.platform == "win32":
        return f'cmd.exe /K ""{script.name}" && exit"'
    return f"sh {shlex.quote(script.name)}"
