"""
Progress reporting for spot-library using the Rich library.

The aggregator reports through the small ProgressReporter protocol so it
never depends on a terminal. LibraryProgressBar is the Rich implementation
used by the CLI:

    Playlists       listing...               ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    Tracks          ✓ 41  ✗ 1                ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━  88%

Each started()/stopped() pair owns one Rich Progress. Rich refreshes the
display from a background thread; stopped() stops that thread and joins
it, so no refresh thread outlives the phase that started it.

Usage:
    reporter = LibraryProgressBar()
    reporter.started("Tracks", total=len(playlists))
    try:
        for playlist in playlists:
            reporter.advance(failed=not fetch(playlist))
    finally:
        reporter.stopped()
"""

from typing import Optional, Protocol

from rich import get_console
from rich.console import JustifyMethod, OverflowMethod
from rich.highlighter import Highlighter
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
)
from rich.style import StyleType
from rich.text import Text
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(165,66,129)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(165,66,129)",
    "progress.percentage": "white",
})


class ProgressReporter(Protocol):
    """Sink for aggregation progress. Has no effect on control flow."""

    def started(self, description: str, total: Optional[int] = None) -> None:
        ...

    def advance(self, failed: bool = False) -> None:
        ...

    def stopped(self) -> None:
        ...


class SizedTextColumn(ProgressColumn):
    """
    Text column truncated (with ellipsis) to a fixed width.
    """

    def __init__(
        self,
        text_format: str,
        style: StyleType = "none",
        justify: JustifyMethod = "left",
        markup: bool = True,
        highlighter: Optional[Highlighter] = None,
        overflow: Optional[OverflowMethod] = None,
        width: int = 20,
    ) -> None:
        self.text_format = text_format
        self.justify: JustifyMethod = justify
        self.style = style
        self.markup = markup
        self.highlighter = highlighter
        self.overflow: Optional[OverflowMethod] = overflow
        self.width = width
        super().__init__()

    def render(self, task: Task) -> Text:
        _text = self.text_format.format(task=task)
        if self.markup:
            text = Text.from_markup(_text, style=self.style, justify=self.justify)
        else:
            text = Text(_text, style=self.style, justify=self.justify)
        if self.highlighter:
            self.highlighter.highlight(text)

        text.truncate(max_width=self.width, overflow=self.overflow, pad=True)
        return text


class LibraryProgressBar:
    """
    Rich progress bar implementing ProgressReporter.

    With a total, the bar counts finished items and shows ✓ ok / ✗ failed.
    Without a total (the playlist listing, whose size is unknown until the
    first page arrives) the bar pulses.

    Attributes:
        completed: Items finished in the current phase.
        succeeded: Items finished without failure.
        failed: Items that failed.
    """

    def __init__(self, status_width: int = 25) -> None:
        self.status_width = status_width
        self.console = get_console()
        self.completed = 0
        self.succeeded = 0
        self.failed = 0
        self.total: Optional[int] = None
        self.progress: Optional[Progress] = None
        self.task_id: Optional[TaskID] = None

    def __enter__(self) -> "LibraryProgressBar":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stopped()

    @property
    def is_running(self) -> bool:
        return self.progress is not None

    def started(self, description: str, total: Optional[int] = None) -> None:
        """Start a new phase, stopping the previous one if still running."""
        self.stopped()

        self.completed = 0
        self.succeeded = 0
        self.failed = 0
        self.total = total

        columns: list = [
            SizedTextColumn("[white]{task.description}", overflow="ellipsis", width=15),
            SizedTextColumn("{task.fields[status]}", width=self.status_width, style="white"),
            BarColumn(bar_width=40, finished_style="green"),
        ]
        if total is not None:
            columns.append("[progress.percentage]{task.percentage:>3.0f}%")

        self.console.push_theme(PROGRESS_THEME)
        self.progress = Progress(
            *columns,
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )
        self.progress.start()
        self.task_id = self.progress.add_task(
            description=description,
            total=total,
            status=self._get_status_text(),
        )

    def advance(self, failed: bool = False) -> None:
        self.completed += 1
        if failed:
            self.failed += 1
        else:
            self.succeeded += 1

        if self.progress is not None and self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._get_status_text(),
            )

    def stopped(self) -> None:
        """Stop the display and join Rich's refresh thread. Idempotent."""
        if self.progress is None:
            return
        self.progress.stop()
        self.console.pop_theme()
        self.progress = None
        self.task_id = None

    def log(self, message: str) -> None:
        """Print a message above the progress bar."""
        self.console.print(message, highlight=False)

    def _get_status_text(self) -> str:
        if self.total is None:
            return "listing..."
        return f"[green]✓ {self.succeeded}[/green]  [red]✗ {self.failed}[/red]"


__all__ = [
    "PROGRESS_THEME",
    "ProgressReporter",
    "SizedTextColumn",
    "LibraryProgressBar",
]
