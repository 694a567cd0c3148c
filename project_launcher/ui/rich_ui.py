"""Rich-based UI implementation for project-launcher."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from project_launcher.core.result import BranchInfo, ModifiedFileEntry, OperationResult, SyncResult
    from project_launcher.models.repository import RemoteRepository


class RichUI:
    """Rich-based UI implementation."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize Rich UI."""
        self.console = console or Console()

    def print_info(self, message: str) -> None:
        self.console.print(message)

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]Error:[/red] {message}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]{message}[/yellow]")

    def print_result(self, result: OperationResult) -> None:
        """Print an operation result, highlighting conflicts."""
        message = escape(result.message)
        if result.success:
            self.print_success(message)
        elif result.is_conflict:
            self.print_warning(message)
        else:
            self.print_error(message)

    def print_repositories(self, repositories: list[RemoteRepository], installed: set[str]) -> None:
        """Print configured repositories split into installed and available."""
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Repository", style="cyan")
        table.add_column("State", style="bold")
        table.add_column("Visibility")
        table.add_column("Description")
        for repo in sorted(repositories, key=lambda r: r.name.lower()):
            state = "[green]installed[/green]" if repo.name in installed else "[blue]available[/blue]"
            table.add_row(repo.name, state, "private" if repo.private else "public", escape(repo.description))
        self.console.print(table)
        self.console.print(f"\n{len(installed)} installed, {len(repositories) - len(installed)} available")

    def print_branches(self, branches: list[BranchInfo]) -> None:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("", width=2)
        table.add_column("Branch", style="cyan")
        table.add_column("Ref")
        for branch in branches:
            icon = "[green]*[/green]" if branch.is_current else ("🌐" if branch.is_remote else "")
            label = f"{branch.display_name} (current)" if branch.is_current else branch.display_name
            table.add_row(icon, label, branch.name)
        self.console.print(table)

    def print_status(self, entries: list[ModifiedFileEntry], *, merging: bool) -> None:
        """Print the working-tree status, or the merge-in-progress banner."""
        if merging:
            self.print_warning("Merge in progress - once conflicts are resolved, run `commit` to complete it.")
        if not entries:
            if not merging:
                self.print_success("Working tree clean")
            return
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("", width=2, style="bold")
        table.add_column("File")
        table.add_column("Status")
        for entry in entries:
            table.add_row(entry.code, escape(entry.path), entry.status.value)
        self.console.print(table)
        self.console.print(f"[red]{len(entries)} uncommitted change(s)[/red]")

    def print_summary(self, results: list[SyncResult]) -> None:
        """Print summary table of a sync run."""
        self.console.print("\n[bold]Summary:[/bold]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Repository", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Message")

        for result in results:
            status_style = {
                "cloned": "[green]✓ Cloned[/green]",
                "updated": "[green]✓ Updated[/green]",
                "failed": "[red]✗ Failed[/red]",
            }.get(result.status, result.status)
            table.add_row(result.name, status_style, escape(result.message))

        self.console.print(table)

        failed_count = sum(1 for r in results if r.status == "failed")
        if failed_count:
            self.console.print(f"\n[red]✗ {failed_count} repository(ies) failed[/red]")
        else:
            self.console.print(f"\n[green]✓ {len(results)} repository(ies) in sync[/green]")
