"""Console output for sync operations."""

import threading
from typing import Optional

from rich.console import Console
from rich.markup import escape

MESSAGE_PREFIX = "S3 Sync: "


class OutputFormatter:
    """Writes status lines and progress dots to the terminal.

    Progress dots are written without a newline, so a run of ticks shows
    up as ``.....`` on a single line. ``print_dot`` may be called from
    worker threads.
    """

    def __init__(
        self,
        quiet: bool = False,
        no_color: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            quiet: Suppress everything except errors
            no_color: Disable colour markup
            console: Console to write to (defaults to stdout)
        """
        self.quiet = quiet
        self.console = console or Console(no_color=no_color, highlight=False)
        self.error_console = Console(stderr=True, no_color=no_color, highlight=False)
        self._lock = threading.Lock()

    def print(self, message: str = "") -> None:
        """Print a plain line."""
        if self.quiet:
            return
        with self._lock:
            self.console.print(escape(message))

    def info(self, message: str) -> None:
        if self.quiet:
            return
        with self._lock:
            self.console.print(escape(message))

    def status(self, message: str, color: str = "yellow") -> None:
        """Print a status line with the ``S3 Sync:`` prefix."""
        if self.quiet:
            return
        with self._lock:
            self.console.print(
                f"{MESSAGE_PREFIX}[{color}]{escape(message)}[/{color}]"
            )

    def warning(self, message: str) -> None:
        if self.quiet:
            return
        with self._lock:
            self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        """Print an error; shown even in quiet mode."""
        with self._lock:
            self.error_console.print(f"{MESSAGE_PREFIX}[red]{escape(message)}[/red]")

    def print_dot(self) -> None:
        """Print a single progress tick."""
        if self.quiet:
            return
        with self._lock:
            self.console.print(".", end="")
