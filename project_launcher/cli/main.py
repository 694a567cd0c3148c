"""CLI entry point for project-launcher."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from typer import Exit

from project_launcher.core.config import DEFAULT_CONFIG_FILE, ConfigError, LauncherConfig, load_config
from project_launcher.core.orchestrator import GitOrchestrator
from project_launcher.core.result import ModifiedFileEntry, OperationResult
from project_launcher.core.sync import sync_repositories
from project_launcher.ui.rich_ui import RichUI

app = typer.Typer(
    name="project-launcher",
    help="Clone, update and work on a fleet of git repositories",
    no_args_is_help=True,
)


def _config(ctx: typer.Context) -> LauncherConfig:
    config: LauncherConfig = ctx.obj
    return config


def _orchestrator(ctx: typer.Context, ui: RichUI) -> GitOrchestrator:
    orchestrator = GitOrchestrator(_config(ctx))
    if not asyncio.run(orchestrator.is_git_installed()):
        ui.print_error("git is not installed or not on PATH")
        raise Exit(code=1)
    return orchestrator


def _installed_repo_path(orchestrator: GitOrchestrator, name: str, ui: RichUI) -> Path:
    """Resolve a repository name to its working copy, which must already be cloned."""
    if not orchestrator.is_installed(name):
        ui.print_error(f"Repository '{name}' is not installed under {orchestrator.base_dir}. Run `sync` first.")
        raise Exit(code=1)
    return orchestrator.repo_path(name)


def _finish(result: OperationResult, ui: RichUI) -> None:
    ui.print_result(result)
    if not result.success:
        raise Exit(code=1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE),
        "--config",
        "-c",
        help="Path to the launcher TOML configuration",
    ),
    verbose: bool = typer.Option(  # noqa: FBT001
        False,  # noqa: FBT003
        "--verbose",
        "-v",
        help="Log every git command",
    ),
) -> None:
    """Load configuration shared by every command."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    try:
        ctx.obj = load_config(config)
    except ConfigError as e:
        RichUI().print_error(str(e))
        raise Exit(code=1) from e


@app.command("list")
def list_repositories(ctx: typer.Context) -> None:
    """Show configured repositories and whether they are installed."""
    ui = RichUI()
    config = _config(ctx)
    orchestrator = GitOrchestrator(config)
    installed = {repo.name for repo in config.repositories if orchestrator.is_installed(repo.name)}
    ui.print_repositories(config.repositories, installed)


@app.command()
def sync(
    ctx: typer.Context,
    names: list[str] = typer.Argument(None, help="Repositories to sync (default: all configured)"),  # noqa: B008
) -> None:
    """Clone missing repositories and pull the ones already present."""
    ui = RichUI()
    config = _config(ctx)
    repositories = config.repositories
    if names:
        unknown = [name for name in names if config.find_repository(name) is None]
        if unknown:
            ui.print_error(f"Unknown repositories: {', '.join(unknown)}")
            raise Exit(code=1)
        repositories = [repo for repo in repositories if repo.name in names]
    if not repositories:
        ui.print_warning("No repositories configured")
        return

    orchestrator = _orchestrator(ctx, ui)
    ui.print_info(f"[bold]Syncing {len(repositories)} repositories into {orchestrator.base_dir}[/bold]")
    results = asyncio.run(sync_repositories(orchestrator, repositories, ui.console))
    ui.print_summary(results)
    if any(r.status == "failed" for r in results):
        raise Exit(code=1)


@app.command()
def branches(ctx: typer.Context, name: str = typer.Argument(..., help="Repository name")) -> None:
    """List local and remote branches."""
    ui = RichUI()
    orchestrator = _orchestrator(ctx, ui)
    repo_path = _installed_repo_path(orchestrator, name, ui)
    found = asyncio.run(orchestrator.list_branches(repo_path))
    if not found:
        ui.print_warning("No branches found")
        return
    ui.print_branches(found)


@app.command()
def checkout(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Repository name"),
    branch: str = typer.Argument(..., help="Branch name, as listed by `branches`"),
) -> None:
    """Switch branch, creating a local tracking branch for a remote-only one."""
    ui = RichUI()
    orchestrator = _orchestrator(ctx, ui)
    repo_path = _installed_repo_path(orchestrator, name, ui)

    async def _run() -> OperationResult:
        listing = await orchestrator.list_branches(repo_path)
        match = next((b for b in listing if branch in {b.name, b.display_name}), None)
        if match is not None and match.is_current:
            return OperationResult.ok(repo_path, f"Already on '{match.local_name}'.")
        return await orchestrator.checkout(repo_path, match.name if match else branch)

    ui.print_info(f"Switching {name} to '{branch}'...")
    _finish(asyncio.run(_run()), ui)


@app.command()
def pull(ctx: typer.Context, name: str = typer.Argument(..., help="Repository name")) -> None:
    """Fetch and pull the latest remote changes."""
    ui = RichUI()
    orchestrator = _orchestrator(ctx, ui)
    repo_path = _installed_repo_path(orchestrator, name, ui)
    ui.print_info("Fetching latest changes from remote...")
    result = asyncio.run(orchestrator.fetch_and_pull(repo_path))
    ui.print_result(result)
    if result.is_conflict:
        ui.print_info("After resolving the conflicts in your editor, run `commit` to complete the merge.")
    if not result.success:
        raise Exit(code=1)


@app.command()
def status(ctx: typer.Context, name: str = typer.Argument(..., help="Repository name")) -> None:
    """Show uncommitted changes and whether a merge is in progress."""
    ui = RichUI()
    orchestrator = _orchestrator(ctx, ui)
    repo_path = _installed_repo_path(orchestrator, name, ui)

    async def _run() -> tuple[bool, list[ModifiedFileEntry]]:
        return await orchestrator.is_merge_in_progress(repo_path), await orchestrator.list_modified_files(repo_path)

    merging, entries = asyncio.run(_run())
    ui.print_status(entries, merging=merging)


@app.command()
def commit(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Repository name"),
    title: str | None = typer.Option(None, "--title", "-t", help="Commit title (ignored when completing a merge)"),
    description: str = typer.Option("", "--description", "-d", help="Commit description"),
) -> None:
    """Commit and push all changes, or complete an in-progress merge."""
    ui = RichUI()
    orchestrator = _orchestrator(ctx, ui)
    repo_path = _installed_repo_path(orchestrator, name, ui)

    if asyncio.run(orchestrator.is_merge_in_progress(repo_path)):
        ui.print_info("Merge in progress detected. Completing merge...")
        _finish(asyncio.run(orchestrator.complete_merge_and_push(repo_path)), ui)
        return

    if not asyncio.run(orchestrator.has_uncommitted_changes(repo_path)):
        ui.print_warning("No changes to commit.")
        return
    if not title or not title.strip():
        ui.print_error("Please give a commit title with --title.")
        raise Exit(code=1)

    ui.print_info("Committing and pushing changes...")
    _finish(asyncio.run(orchestrator.commit_and_push(repo_path, title, description)), ui)


@app.command()
def setup(ctx: typer.Context, name: str = typer.Argument(..., help="Repository name")) -> None:
    """Run the repository's setup script in the terminal."""
    ui = RichUI()
    orchestrator = _orchestrator(ctx, ui)
    repo_path = _installed_repo_path(orchestrator, name, ui)
    ui.print_info(f"Running {orchestrator.config.setup_script} (this can take several minutes)...")
    result = asyncio.run(orchestrator.run_setup_script(repo_path))
    ui.print_result(result)
    if not result.success:
        raise Exit(code=1)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
