"""Progress reporting capability.

A :class:`ProgressReporter` is chosen once, when the service is built
(silent → :class:`NullReporter`, interactive → the Rich reporter from the
CLI layer, several targets → :class:`MultiReporter`).  For each transfer
attempt the engine asks it for a :class:`ProgressObserver` in one of two
modes:

* **determinate** — the response declared a positive content length;
* **indeterminate** — the total is unknown.

Observers are purely observational.  :class:`GuardedObserver` makes sure
a misbehaving observer cannot break a transfer.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from typing import Protocol

logger = logging.getLogger(__name__)


class ProgressMode(enum.Enum):
    DETERMINATE = "determinate"
    INDETERMINATE = "indeterminate"


def progress_mode_for(content_length: int | None) -> ProgressMode:
    """Determinate only when a positive length was declared."""
    if content_length is not None and content_length > 0:
        return ProgressMode.DETERMINATE
    return ProgressMode.INDETERMINATE


class ProgressObserver(Protocol):
    """Receives byte counts for a single transfer attempt."""

    def on_progress(self, bytes_so_far: int) -> None:
        ...  # pragma: no cover

    def on_finish(self) -> None:
        ...  # pragma: no cover


class ProgressReporter(Protocol):
    """Factory of per-attempt observers."""

    def begin(
        self,
        description: str,
        mode: ProgressMode,
        total: int | None = None,
    ) -> ProgressObserver:
        """Start observing a transfer.

        *total* is only meaningful in :attr:`ProgressMode.DETERMINATE`.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Silent
# ---------------------------------------------------------------------------

class _NullObserver:
    def on_progress(self, bytes_so_far: int) -> None:
        pass

    def on_finish(self) -> None:
        pass


class NullReporter:
    """Reporter used when output is silenced."""

    def begin(
        self,
        description: str,
        mode: ProgressMode,
        total: int | None = None,
    ) -> ProgressObserver:
        return _NullObserver()


# ---------------------------------------------------------------------------
# Fan-out
# ---------------------------------------------------------------------------

class _MultiObserver:
    def __init__(self, observers: Sequence[ProgressObserver]) -> None:
        self._observers = tuple(observers)

    def on_progress(self, bytes_so_far: int) -> None:
        for observer in self._observers:
            observer.on_progress(bytes_so_far)

    def on_finish(self) -> None:
        for observer in self._observers:
            observer.on_finish()


class MultiReporter:
    """Forward every event to several reporters, in order."""

    def __init__(self, *reporters: ProgressReporter) -> None:
        self._reporters: tuple[ProgressReporter, ...] = reporters

    def begin(
        self,
        description: str,
        mode: ProgressMode,
        total: int | None = None,
    ) -> ProgressObserver:
        return _MultiObserver(
            [reporter.begin(description, mode, total) for reporter in self._reporters],
        )


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------

class GuardedObserver:
    """Wrap an observer so its failures never reach the transfer loop.

    The first exception is logged and the wrapped observer is dropped
    for the rest of the attempt.
    """

    def __init__(self, inner: ProgressObserver) -> None:
        self._inner: ProgressObserver | None = inner

    def on_progress(self, bytes_so_far: int) -> None:
        if self._inner is None:
            return
        try:
            self._inner.on_progress(bytes_so_far)
        except Exception as exc:
            self._disable(exc)

    def on_finish(self) -> None:
        if self._inner is None:
            return
        try:
            self._inner.on_finish()
        except Exception as exc:
            self._disable(exc)
        self._inner = None

    def _disable(self, exc: Exception) -> None:
        logger.warning("Progress display failed and was disabled: %s", exc)
        self._inner = None
