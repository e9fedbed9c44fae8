"""
ConsoleUI - Rich-based console output.

Results go to stdout; warnings, errors and diagnostics go to stderr.
"""

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich import box
from rich.markup import escape

from ..protocol.setting import BatchSummary, VerificationStatus


QUIET, NORMAL, VERBOSE, DEBUG = range(4)

STATUS_STYLES = {
    VerificationStatus.VERIFIED: "green",
    VerificationStatus.ALREADY_CORRECT: "cyan",
    VerificationStatus.UNVERIFIED: "bold red",
}


class ConsoleUI:
    """
    Rich console interface for pg_setconf.
    """

    def __init__(
        self,
        level: int = NORMAL,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.level = level
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    @classmethod
    def from_flags(cls, quiet: bool = False, verbose: bool = False, debug: bool = False, **kwargs) -> "ConsoleUI":
        if quiet:
            level = QUIET
        elif debug:
            level = DEBUG
        elif verbose:
            level = VERBOSE
        else:
            level = NORMAL
        return cls(level=level, **kwargs)

    @property
    def quiet(self) -> bool:
        return self.level == QUIET

    def print(self, *args, **kwargs):
        """Print to stdout unless quiet."""
        if self.level >= NORMAL:
            self.console.print(*args, **kwargs)

    def info(self, message: str):
        """Step message, shown with --verbose."""
        if self.level >= VERBOSE:
            self.err_console.print(f"[dim]>[/] {escape(message)}")

    def debug(self, message: str):
        if self.level >= DEBUG:
            self.err_console.print(f"[dim]DEBUG {escape(message)}[/]", highlight=False)

    def print_warning(self, message: str):
        if self.level >= NORMAL:
            self.err_console.print(f"[yellow]WARNING[/] {escape(message)}")

    def print_error(self, message: str):
        """Errors are shown at every level."""
        self.err_console.print(f"[bold red]Error:[/] {escape(message)}")

    def print_log_file(self, size: int, path: str):
        if not path:
            self.print("[dim]Current log file: (none found)[/]")
            return
        self.print(f"Current log file: [bold]{escape(path)}[/] ({size:,} bytes)")

    def print_summary(self, summary: BatchSummary):
        """Per-setting outcome table (shown even with --quiet)."""
        if not summary.results:
            return

        title = "Planned changes (dry run)" if summary.dry_run else "Settings"
        table = Table(title=title, box=box.SIMPLE)
        table.add_column("Setting", style="bold")
        table.add_column("Previous")
        table.add_column("Requested")
        table.add_column("Actual")
        table.add_column("Status")

        for result in summary.results.values():
            if summary.dry_run:
                status = "would change" if result.name in summary.changed else "unchanged"
                style = "yellow" if result.name in summary.changed else "dim"
            else:
                status = result.status.value.lower().replace("_", " ")
                style = STATUS_STYLES.get(result.status, "white")
                if result.status == VerificationStatus.UNVERIFIED and result.message:
                    status += f" ({result.message})"

            table.add_row(
                escape(result.name),
                escape(result.previous_value or ""),
                escape(result.requested_value),
                escape(result.actual_value or ""),
                f"[{style}]{escape(status)}[/]",
            )

        self.console.print(table)

        if summary.backup_path:
            self.print(f"Backup written to {escape(summary.backup_path)}")
