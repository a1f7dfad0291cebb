# clsync Console Output
# Rich-based console output for user-friendly display

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from clsync.errors import ClsyncError, ConflictError, PushError
from clsync.remote.registry import RegistryEntry
from clsync.remote.sync import PreparedPush, PulledRepo, PullResult, PushResult
from clsync.sync.engine import EngineStatus
from clsync.sync.item import Item, ItemType
from clsync.sync.mover import MoveResult, ReconcileResult
from clsync.sync.staging import StageResult

_TYPE_STYLES = {
    ItemType.SKILL: "cyan",
    ItemType.AGENT: "magenta",
    ItemType.OUTPUT_STYLE: "yellow",
}


class Console:
    """
    Console output manager using Rich.

    Every message can also be appended to a plain-text log file.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True, log_file: Optional[str] = None):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
            log_file: Optional file every message is appended to.
        """
        self.verbose = verbose
        self.log_file = Path(log_file) if log_file else None
        self._console = RichConsole(no_color=not colored, highlight=colored)

    def _log(self, level: str, message: str) -> None:
        if self.log_file is None:
            return
        timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(f"{timestamp} {level:<7} {message}\n")
        except OSError as e:
            self.log_file = None
            self._console.print(f"[yellow]Warning:[/yellow] Log file disabled: {escape(str(e))}")

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._log("ERROR", message)
        self._console.print(f"[red]Error:[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._log("WARNING", message)
        self._console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._log("INFO", message)
        self._console.print(f"[green]✓[/green] {escape(message)}")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._log("INFO", message)
        self._console.print(f"[blue]{escape(message)}[/blue]")

    def print_debug(self, message: str) -> None:
        """Print only in verbose mode. Always logged."""
        self._log("DEBUG", message)
        if self.verbose:
            self._console.print(f"[dim]{escape(message)}[/dim]")

    def print_exception(self, error: ClsyncError) -> None:
        """
        Print an engine error with resolution hints.

        Args:
            error: Error raised by an engine operation.
        """
        self.print_error(error.message)
        if isinstance(error, ConflictError):
            self._console.print(f"  [dim]→ Suggested name: {escape(error.suggested_name)}[/dim]")
        elif isinstance(error, PushError) and error.temp_path:
            self._console.print(f"  [dim]→ Prepared files: {escape(error.temp_path)}[/dim]")

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _type_label(self, item_type: ItemType) -> str:
        style = _TYPE_STYLES.get(item_type, "white")
        return f"[{style}]{item_type.value}[/{style}]"

    def print_items(self, items: list[Item], *, title: Optional[str] = None) -> None:
        """
        Print a table of items.

        Args:
            items: Items to list.
            title: Optional table title.
        """
        if not items:
            self._console.print(f"[dim]No items{' in ' + escape(title) if title else ''}[/dim]")
            return

        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Type")
        table.add_column("Name", style="bold")
        table.add_column("Description", style="dim")
        if self.verbose:
            table.add_column("Path", style="dim")
            table.add_column("Updated", style="dim")

        for item in items:
            row = [self._type_label(item.item_type), escape(item.name), escape(item.description)]
            if self.verbose:
                row.extend([item.path, item.updated_at or "-"])
            table.add_row(*row)

        self._console.print(table)

    def print_repos(self, repos: list[PulledRepo]) -> None:
        """Print pulled repositories from the manifest."""
        if not repos:
            self._console.print("[dim]No repositories pulled yet[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Repository", style="bold")
        table.add_column("Items", justify="right")
        table.add_column("Last pulled", style="dim")
        table.add_column("Cache", style="dim")

        for repo in repos:
            cache = str(repo.cache_dir) if repo.exists else "[red]missing[/red]"
            table.add_row(repo.slug, str(len(repo.items)), repo.entry.last_pulled or "-", cache)

        self._console.print(table)

    def print_registry(self, entries: list[RegistryEntry]) -> None:
        """Print repositories listed in the online registry."""
        if not entries:
            self._console.print("[dim]No repositories found in the online registry[/dim]")
            return

        table = Table(title=f"Online registry ({len(entries)})", show_header=True, header_style="bold")
        table.add_column("Name", style="bold")
        table.add_column("Description", style="dim")
        table.add_column("URL")
        if self.verbose:
            table.add_column("Source", style="dim")
            table.add_column("Added", style="dim")

        for entry in entries:
            row = [escape(entry.name), escape(entry.description or "-"), escape(entry.url)]
            if self.verbose:
                row.extend([escape(entry.source or "-"), escape(entry.added_at or "-")])
            table.add_row(*row)

        self._console.print(table)
        self._console.print("[dim]→ Pull one with 'clsync online NAME'[/dim]")

    def print_scopes(self, scopes: dict[str, list[Item]]) -> None:
        """Print project and user items side by side with overlap markers."""
        project = {item.key for item in scopes.get("project", [])}
        user = {item.key for item in scopes.get("user", [])}

        table = Table(show_header=True, header_style="bold")
        table.add_column("Type")
        table.add_column("Name", style="bold")
        table.add_column("Project", justify="center")
        table.add_column("User", justify="center")

        for item_type, name in sorted(project | user, key=lambda key: (list(ItemType).index(key[0]), key[1])):
            key = (item_type, name)
            table.add_row(
                self._type_label(item_type),
                escape(name),
                "[green]●[/green]" if key in project else "[dim]-[/dim]",
                "[green]●[/green]" if key in user else "[dim]-[/dim]",
            )

        if not project and not user:
            self._console.print("[dim]No items in project or user scope[/dim]")
            return
        self._console.print(table)

    def print_status(self, status: EngineStatus) -> None:
        """Print the engine status overview."""
        lines = [f"Home: {status.home}"]
        for root in status.roots:
            lines.append(f"{root.label.capitalize()}: {len(root.items)} item(s) [dim]({root.path})[/dim]")
        lines.append(f"Pulled repos: {len(status.repos)}")
        lines.append(f"Linked repo: {status.linked_repo or '[dim]none[/dim]'}")

        self._console.print(Panel("\n".join(lines), title="clsync status", border_style="blue"))

        for root in status.roots:
            for error in root.errors:
                self.print_warning(f"Could not read {error.directory}: {error.message}")

        if status.pending_moves:
            self.print_warning(
                f"{len(status.pending_moves)} interrupted move(s) in the journal. Run 'clsync reconcile'."
            )

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def print_stage_results(self, results: list[StageResult], *, verb: str = "Staged") -> None:
        """
        Print per-item results of a batch stage or apply.

        Args:
            results: One result per item.
            verb: Past-tense verb for successful items.
        """
        ok = [r for r in results if r.success]
        failed = [r for r in results if not r.success]

        for result in ok:
            self._log("INFO", f"{verb} {result.item.item_type.value} {result.item.name}")
            self._console.print(f"  [green]✓[/green] {self._type_label(result.item.item_type)} {escape(result.item.name)}")
        for result in failed:
            self._log("ERROR", f"{result.item.name}: {result.error}")
            self._console.print(f"  [red]✗[/red] {escape(result.item.name)}: {escape(result.error or '')}")

        border = "green" if not failed else "yellow"
        self._console.print(
            Panel(f"{verb}: {len(ok)}   Failed: {len(failed)}", title="Summary", border_style=border)
        )

    def print_pull_result(self, result: PullResult) -> None:
        """Print the outcome of a pull."""
        if self.verbose:
            for path in result.files:
                self._console.print(f"  [green]↓[/green] {escape(path)}")
        for path in result.failed:
            self._console.print(f"  [red]✗[/red] {escape(path)}")

        self._log(
            "INFO",
            f"Pulled {result.repo}: {result.downloaded} downloaded, {result.skipped} skipped, {len(result.failed)} failed",
        )
        self._console.print(
            Panel(
                f"Downloaded: {result.downloaded}   Skipped: {result.skipped}   Failed: {len(result.failed)}\n"
                f"Cache: {result.cache_dir}",
                title=f"Pulled {result.repo}",
                border_style="yellow" if result.has_failures else "green",
            )
        )
        if result.skipped and not result.downloaded:
            self._console.print("[dim]→ Already up to date. Use --force to re-download.[/dim]")

    def print_push_result(self, result: PushResult | PreparedPush) -> None:
        """Print the outcome of a push or a prepared push."""
        if isinstance(result, PushResult):
            self.print_success(f"Pushed {result.pushed} item(s) to {result.repo}")
            return

        self.print_success(f"Prepared {result.prepared} item(s)")
        self._console.print(Panel(escape(result.instructions), title="Manual push", border_style="blue"))

    def print_move_result(self, result: MoveResult) -> None:
        """Print the outcome of a promote or demote."""
        name = result.new_name if not result.renamed else f"{result.original_name} → {result.new_name}"
        self.print_success(f"Moved {result.item.item_type.value} {name}: {result.source} → {result.destination}")
        if self.verbose and result.path:
            self._console.print(f"  [dim]{result.path}[/dim]")

    def print_reconcile_results(self, results: list[ReconcileResult]) -> None:
        """Print what reconcile did per journal entry."""
        if not results:
            self._console.print("[dim]No interrupted moves[/dim]")
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Item", style="bold")
        table.add_column("From", style="dim")
        table.add_column("To", style="dim")
        table.add_column("Action")

        for result in results:
            entry = result.entry
            table.add_row(f"{entry.item_type} {entry.name}", entry.source, entry.destination, result.action)
            self._log("INFO", f"Reconciled {entry.item_type} {entry.name}: {result.action}")

        self._console.print(table)


def create_console(*, verbose: bool = False, colored: bool = True, log_file: Optional[str] = None) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.
        log_file: Optional log file path.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored, log_file=log_file)
