"""Rich-based progress display for export jobs.

Example:
    >>> from photo_export.ui.progress import ProgressDisplayManager
    >>>
    >>> manager = ProgressDisplayManager(quiet=False)
    >>> progress = manager.create_export_progress(title="Exporting library")
    >>> progress.start()
    >>> progress.update(3, 120, "Exported IMG_0003.HEIC into Trip")
    >>> progress.finish()
    >>> progress.show_summary(summary)
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Generator

    from photo_export.core.types import ExportSummary


def format_elapsed(seconds: float) -> str:
    """Format a duration as "1h 2m 3s", "2m 3s" or "3s"."""
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@dataclass
class ExportProgressDisplay:
    """Progress bar for an export job.

    Example display:
        Exporting library [##########..........] 50% 60/120 | 0:01:02 | 0:01:00
        Exported IMG_0060.HEIC into Trip

    Attributes:
        title: Label shown before the bar.
        console: Rich console for output.
    """

    title: str = "Exporting"
    console: Console = field(default_factory=Console)
    _progress: Progress | None = field(default=None, init=False, repr=False)
    _task_id: TaskID | None = field(default=None, init=False, repr=False)
    _error_count: int = field(default=0, init=False, repr=False)

    def start(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}[/bold blue]"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            MofNCompleteColumn(),
            TextColumn("[dim]|[/dim]"),
            TimeElapsedColumn(),
            TextColumn("[dim]|[/dim]"),
            TimeRemainingColumn(),
            TextColumn("[red]{task.fields[errors]}[/red]"),
            TextColumn("\n[dim]{task.fields[message]}[/dim]"),
            console=self.console,
            expand=False,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(
            self.title, total=None, message="Preparing...", errors=""
        )

    def update(self, processed: int, total: int, message: str) -> None:
        """Update the bar from an engine progress notification."""
        if self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            completed=processed,
            total=total,
            message=escape(message),
        )

    def report_error(self, message: str) -> None:
        """Count an engine error notification.

        The message itself reaches the console through the log handler.
        """
        _ = message
        self._error_count += 1
        if self._progress is not None and self._task_id is not None:
            noun = "error" if self._error_count == 1 else "errors"
            self._progress.update(self._task_id, errors=f"{self._error_count} {noun}")

    def finish(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def show_summary(self, summary: ExportSummary) -> None:
        """Display a summary panel for a finished job."""
        self.console.print()

        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Label", style="dim")
        table.add_column("Value", style="bold")

        table.add_row("Processed:", f"{summary.processed_count} / {summary.total_count}")
        table.add_row("Exported:", f"[green]{summary.exported}[/green]")
        if summary.skipped:
            table.add_row("Already exported:", f"[cyan]{summary.skipped}[/cyan]")
        if summary.no_resource:
            table.add_row("No resource:", f"[yellow]{summary.no_resource}[/yellow]")
        if summary.error_count:
            table.add_row("Errors:", f"[red]{summary.error_count}[/red]")
        table.add_row("Elapsed time:", format_elapsed(summary.duration_seconds))

        if summary.cancelled:
            title, style = "[bold yellow]Export Cancelled[/bold yellow]", "yellow"
        elif summary.error_count:
            title, style = "[bold red]Export Finished with Errors[/bold red]", "red"
        else:
            title, style = "[bold green]Export Complete[/bold green]", "green"

        self.console.print(Panel(table, title=title, border_style=style))

    @property
    def error_count(self) -> int:
        return self._error_count


@dataclass
class IndeterminateSpinner:
    """Spinner for operations without measurable progress, such as opening the library.

    Attributes:
        message: Message to display next to the spinner.
        console: Rich console for output.
    """

    message: str
    console: Console = field(default_factory=Console)
    _progress: Progress | None = field(default=None, init=False, repr=False)
    _task_id: TaskID | None = field(default=None, init=False, repr=False)

    def start(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}[/bold blue]"),
            console=self.console,
            expand=False,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(self.message, total=None)

    def update(self, message: str) -> None:
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, description=message)

    def finish(self, success_message: str | None = None) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

        if success_message:
            self.console.print(f"[green]{success_message}[/green]")


@dataclass
class ProgressDisplayManager:
    """Creates progress displays that respect quiet mode.

    Attributes:
        quiet: If True, suppress all progress output.
        console: Rich console for output.
    """

    quiet: bool = False
    console: Console = field(default_factory=Console)

    def create_export_progress(self, title: str = "Exporting") -> ExportProgressDisplay | _NullExportProgress:
        if self.quiet:
            return _NullExportProgress()
        return ExportProgressDisplay(title=title, console=self.console)

    def create_spinner(self, message: str) -> IndeterminateSpinner | _NullSpinner:
        if self.quiet:
            return _NullSpinner()
        return IndeterminateSpinner(message=message, console=self.console)

    @contextmanager
    def spinner(self, message: str) -> Generator[IndeterminateSpinner | _NullSpinner, None, None]:
        """Context manager that starts and stops a spinner."""
        spinner = self.create_spinner(message)
        spinner.start()
        try:
            yield spinner
        finally:
            spinner.finish()


@dataclass
class _NullExportProgress:
    """Null object for ExportProgressDisplay when quiet mode is enabled."""

    _error_count: int = field(default=0, init=False, repr=False)

    def start(self) -> None:
        """No-op."""

    def update(self, processed: int, total: int, message: str) -> None:
        """No-op."""

    def report_error(self, message: str) -> None:
        self._error_count += 1

    def finish(self) -> None:
        """No-op."""

    def show_summary(self, summary: ExportSummary) -> None:
        """No-op."""

    @property
    def error_count(self) -> int:
        return self._error_count


@dataclass
class _NullSpinner:
    """Null object for IndeterminateSpinner when quiet mode is enabled."""

    def start(self) -> None:
        """No-op."""

    def update(self, message: str) -> None:
        """No-op."""

    def finish(self, success_message: str | None = None) -> None:
        """No-op."""


__all__ = [
    "ExportProgressDisplay",
    "IndeterminateSpinner",
    "ProgressDisplayManager",
    "format_elapsed",
]
