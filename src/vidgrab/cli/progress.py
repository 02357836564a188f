"""Rich-based progress display for the transfer engine.

:class:`RichProgressReporter` satisfies the core
:class:`~vidgrab.core.progress.ProgressReporter` protocol: each transfer
attempt gets its own Rich task, rendered as a bar when the size is known
and as a pulsing bar otherwise.

Design
------
* One Rich :class:`~rich.progress.Progress` per reporter, started and
  stopped around the whole download.
* Shutdown-safe: observers created while the display is stopped are
  silently ignored.
* No ``print()`` — Rich handles all rendering.
"""

from __future__ import annotations

from typing import Any

from vidgrab.cli.console import get_rich_console
from vidgrab.core.progress import ProgressMode, ProgressObserver
from vidgrab.exceptions import EnvironmentError

_MAX_DESCRIPTION: int = 50


def _short_name(description: str) -> str:
    if len(description) > _MAX_DESCRIPTION:
        return description[: _MAX_DESCRIPTION - 3] + "..."
    return description


class _RichTaskObserver:
    """Advances one Rich task."""

    def __init__(self, reporter: RichProgressReporter, task_id: Any) -> None:
        self._reporter = reporter
        self._task_id = task_id

    def on_progress(self, bytes_so_far: int) -> None:
        if self._reporter.started:
            self._reporter.progress.update(self._task_id, completed=bytes_so_far)

    def on_finish(self) -> None:
        if self._reporter.started:
            self._reporter.progress.stop_task(self._task_id)


class _IgnoredObserver:
    def on_progress(self, bytes_so_far: int) -> None:
        pass

    def on_finish(self) -> None:
        pass


class RichProgressReporter:
    """Progress reporter rendering transfers as Rich progress bars.

    Usage::

        with RichProgressReporter() as reporter:
            engine = TransferEngine(source, reporter=reporter)
            ...
    """

    def __init__(self) -> None:
        try:
            from rich.progress import (
                BarColumn,
                DownloadColumn,
                Progress,
                SpinnerColumn,
                TextColumn,
                TimeRemainingColumn,
                TransferSpeedColumn,
            )
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "rich is not installed. Install with: pip install rich",
            ) from exc

        self.progress: Any = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=get_rich_console(),
            transient=False,
        )
        self.started: bool = False

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> RichProgressReporter:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        if not self.started:
            self.progress.start()
            self.started = True

    def stop(self) -> None:
        """Stop the Rich progress display (idempotent)."""
        if self.started:
            self.progress.stop()
            self.started = False

    # ------------------------------------------------------------------
    # ProgressReporter
    # ------------------------------------------------------------------

    def begin(
        self,
        description: str,
        mode: ProgressMode,
        total: int | None = None,
    ) -> ProgressObserver:
        if not self.started:
            return _IgnoredObserver()
        task_total = total if mode is ProgressMode.DETERMINATE else None
        task_id = self.progress.add_task(_short_name(description), total=task_total)
        return _RichTaskObserver(self, task_id)
