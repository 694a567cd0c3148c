"""Git command controller for a single working copy."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from loguru import logger

from project_launcher.core.tools.subprocess import run_command

if TYPE_CHECKING:
    import subprocess
    from pathlib import Path

_CREDENTIAL_PATTERN = re.compile(r"(://)[^/@\s]+@")


def redact(text: str) -> str:
    """Hide credentials embedded in URLs (``https://TOKEN@host`` -> ``https://***@host``)."""
    return _CREDENTIAL_PATTERN.sub(r"\1***@", text)


class GitController:
    """Runs git commands inside one repository directory."""

    def __init__(self, repo_path: Path, executable: str = "git") -> None:
        """Initialize GitController with repository path."""
        self.repo_path = repo_path
        self.executable = executable

    async def execute(self, *args: str, check: bool = False) -> subprocess.CompletedProcess[str]:
        """Run a git command in the repository directory."""
        cmd = [self.executable, *args]
        logger.debug(f"[{self.repo_path.name}] {redact(' '.join(cmd))}")
        result = await run_command(cmd, cwd=self.repo_path, check=check, log_on_error=check)
        logger.debug(f"[{self.repo_path.name}] exit code {result.returncode}")
        return result

    async def add_all(self) -> subprocess.CompletedProcess[str]:
        """Stage every change in the working tree."""
        return await self.execute("add", "-A")

    async def commit(self, message: str | None = None) -> subprocess.CompletedProcess[str]:
        """Commit staged changes; without a message git's prepared message is kept."""
        if message is None:
            return await self.execute("commit", "--no-edit")
        return await self.execute("commit", "-m", message)

    async def push(self) -> subprocess.CompletedProcess[str]:
        return await self.execute("push")

    async def fetch(self) -> subprocess.CompletedProcess[str]:
        return await self.execute("fetch", "--prune")

    async def pull(self) -> subprocess.CompletedProcess[str]:
        """Pull with a merge, never a rebase, so conflicts leave a merge in progress."""
        return await self.execute("pull", "--no-rebase", "--no-edit")

    async def status(self) -> subprocess.CompletedProcess[str]:
        """Get git status in porcelain format."""
        return await self.execute("status", "--porcelain")

    async def show_current_branch(self) -> subprocess.CompletedProcess[str]:
        return await self.execute("branch", "--show-current", check=True)

    async def list_all_branches(self) -> subprocess.CompletedProcess[str]:
        return await self.execute("branch", "-a", "--no-color")

    async def checkout(self, branch_name: str, *, start_point: str | None = None) -> subprocess.CompletedProcess[str]:
        """Switch to a branch, creating it from ``start_point`` when one is given."""
        if start_point is None:
            return await self.execute("checkout", branch_name)
        return await self.execute("checkout", "-b", branch_name, start_point)
