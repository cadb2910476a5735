"""Progress reporting for sync and clear operations."""

import threading
from typing import Callable, Optional

TickCallback = Callable[[int], None]
"""Called with the newly reached percentage (10, 20, ..., 100)."""


class ProgressReporter:
    """Turns ``(amount, total)`` updates into decile ticks.

    The fraction is rounded down to the nearest 10%. A tick is emitted only
    when that decile is higher than the last one emitted, so each decile is
    reported at most once and ticks never go backwards. A total of zero
    emits nothing.

    Examples:
        >>> ticks = []
        >>> reporter = ProgressReporter(ticks.append)
        >>> for amount in (5, 15, 12, 100):
        ...     _ = reporter.report(amount, 100)
        >>> ticks
        [10, 100]
    """

    def __init__(self, on_tick: TickCallback):
        self._on_tick = on_tick
        self._last_decile = 0
        self._lock = threading.Lock()

    @property
    def last_decile(self) -> int:
        return self._last_decile

    def report(self, amount: int, total: int) -> Optional[int]:
        """Report cumulative progress.

        Args:
            amount: Units done so far
            total: Units overall

        Returns:
            The decile ticked, or None if no tick was emitted
        """
        if total <= 0:
            return None
        decile = min(100, (max(amount, 0) * 10 // total) * 10)

        with self._lock:
            if decile <= self._last_decile:
                return None
            self._last_decile = decile
            # Emit under the lock so concurrent reporters cannot reorder ticks
            self._on_tick(decile)
        return decile


class SyncProgressTracker:
    """Accumulates progress from concurrent transfers of one job.

    Uploads advance by bytes sent and deletions by one unit per key, so the
    total is the byte size of all uploads plus the number of deletions.
    """

    def __init__(self, total: int, reporter: ProgressReporter):
        """Initialize tracker.

        Args:
            total: Units expected for the whole job
            reporter: Reporter receiving the cumulative amount
        """
        self.total = total
        self.reporter = reporter
        self._amount = 0
        self._lock = threading.Lock()

    @property
    def amount(self) -> int:
        return self._amount

    def advance(self, amount: int) -> None:
        """Add ``amount`` units and report the new cumulative value."""
        with self._lock:
            self._amount += amount
            current = self._amount
        self.reporter.report(current, self.total)
