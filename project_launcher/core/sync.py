"""Bring every configured repository up to date."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn

from project_launcher.core.result import SyncResult

if TYPE_CHECKING:
    from rich.console import Console

    from project_launcher.core.orchestrator import GitOrchestrator
    from project_launcher.models.repository import RemoteRepository


async def _sync_one(
    orchestrator: GitOrchestrator,
    repo: RemoteRepository,
    progress: Progress,
    task_id: TaskID,
) -> SyncResult:
    """Clone or update a single repository and return its summary row."""
    was_installed = orchestrator.is_installed(repo.name)
    result = await orchestrator.clone_or_update(repo.clone_url, repo.name)
    if not result.success:
        progress.update(task_id, description=f"[red]✗ {repo.name} failed[/red]")
        return SyncResult(name=repo.name, status="failed", message=result.message)

    status = "updated" if was_installed else "cloned"
    progress.update(task_id, description=f"[green]✓ {repo.name} {status}[/green]")
    return SyncResult(name=repo.name, status=status, message=result.message.splitlines()[0])


async def sync_repositories(
    orchestrator: GitOrchestrator,
    repositories: list[RemoteRepository],
    console: Console,
) -> list[SyncResult]:
    """Clone or update all repositories, concurrently, one task per working copy."""
    names = [repo.name for repo in repositories]
    if len(set(names)) != len(names):
        msg = "Repository names must be unique; two syncs would share one working copy"
        raise ValueError(msg)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        tasks = []
        for repo in repositories:
            task_id = progress.add_task(f"Syncing {repo.name}...", total=None)
            tasks.append(_sync_one(orchestrator, repo, progress, task_id))
        results = await asyncio.gather(*tasks)

    failed = sum(1 for r in results if r.status == "failed")
    logger.info(f"Synced {len(results) - failed}/{len(results)} repositories")
    return list(results)
