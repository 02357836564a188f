"""Resilient single-stream transfer to disk.

State machine
-------------
``Attempting(1)`` → ``Succeeded(bytes)``
                  → ``RetryableFailure`` → sleep → ``Attempting(n + 1)``
                    (while ``n < max_attempts``, else ``MaxRetriesExceeded``)
                  → ``FatalFailure`` (raised unchanged)

Every attempt truncates the destination and starts from byte zero; there
is no range resume.  Attempts are strictly sequential, so the
destination file is only ever written by one attempt at a time.

Cancelling the task that runs :meth:`TransferEngine.transfer` leaves the
destination in whatever state the last write produced; callers that need
a clean slate must delete it themselves.
"""

from __future__ import annotations

import asyncio
import errno
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from vidgrab.core.progress import (
    GuardedObserver,
    NullReporter,
    ProgressMode,
    ProgressObserver,
    ProgressReporter,
    progress_mode_for,
)
from vidgrab.core.protocols import ByteResponse, ByteSource
from vidgrab.exceptions import (
    DirectoryCreateError,
    DownloadInterruptedError,
    EnvironmentError,
    FileWriteError,
    HTTPStatusError,
    MaxRetriesExceededError,
    VidgrabError,
)

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_SECONDS: float = 2.0
DEFAULT_CHUNK_SIZE: int = 64 * 1024

_FATAL_WRITE_ERRNOS: frozenset[int] = frozenset(
    code
    for code in (
        getattr(errno, name, None)
        for name in ("ENOSPC", "EDQUOT", "EFBIG", "EACCES", "EPERM", "EROFS")
    )
    if code is not None
)

Sleep = Callable[[float], Awaitable[None]]


def _write_failure(path: Path, exc: OSError) -> VidgrabError:
    """Classify a mid-stream write error.

    Disk-full and permission problems will not go away on retry; other
    I/O hiccups are treated like an interrupted stream.
    """
    if isinstance(exc, PermissionError) or exc.errno in _FATAL_WRITE_ERRNOS:
        return FileWriteError(path, str(exc))
    return DownloadInterruptedError(f"write to {path} failed: {exc}")


class TransferEngine:
    """Downloads one URL to one file with bounded, fixed-interval retries.

    Parameters
    ----------
    source:
        Any object satisfying the :class:`ByteSource` protocol.
    reporter:
        Progress capability; defaults to :class:`NullReporter`.
    backoff:
        Seconds to wait between a retryable failure and the next attempt.
    chunk_size:
        Read size requested from the response body.
    sleep:
        Awaitable used for the backoff; injectable for tests.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        reporter: ProgressReporter | None = None,
        backoff: float = DEFAULT_BACKOFF_SECONDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._source: ByteSource = source
        self._reporter: ProgressReporter = reporter if reporter is not None else NullReporter()
        self._backoff: float = backoff
        self._chunk_size: int = chunk_size
        self._sleep: Sleep = sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def transfer(
        self,
        source_url: str,
        destination_path: Path | str,
        max_attempts: int,
    ) -> int:
        """Download *source_url* into *destination_path*.

        Returns
        -------
        int
            Number of bytes written by the successful attempt.

        Raises
        ------
        HTTPStatusError
            On a non-2xx response; never retried.
        FileSystemError
            When the directory or file cannot be created or written.
        MaxRetriesExceededError
            When every attempt failed with a retryable error, or when
            *max_attempts* is zero.
        """
        destination = Path(destination_path)
        self._ensure_parent(destination)

        last_error: VidgrabError | None = None
        for attempt in range(1, max_attempts + 1):
            logger.debug("Attempt %d/%d: %s", attempt, max_attempts, source_url)
            try:
                written = await self._attempt(source_url, destination)
            except VidgrabError as exc:
                if not exc.is_retryable():
                    raise
                last_error = exc
                if attempt < max_attempts:
                    logger.warning(
                        "Attempt %d/%d failed: %s; retrying in %.1fs",
                        attempt,
                        max_attempts,
                        exc,
                        self._backoff,
                    )
                    await self._sleep(self._backoff)
                continue

            logger.debug("Wrote %d bytes to %s", written, destination)
            return written

        if last_error is None:
            raise MaxRetriesExceededError(max_attempts, "no download attempt was made")

        logger.error(
            "Giving up on %s after %d attempts: %s",
            source_url,
            max_attempts,
            last_error,
        )
        raise MaxRetriesExceededError(max_attempts, str(last_error)) from last_error

    # ------------------------------------------------------------------
    # One attempt
    # ------------------------------------------------------------------

    async def _attempt(self, url: str, destination: Path) -> int:
        async with self._source.open(url) as response:
            if not 200 <= response.status < 300:
                raise HTTPStatusError(response.status, response.reason)

            length = response.content_length
            mode = progress_mode_for(length)
            total = length if mode is ProgressMode.DETERMINATE else None
            observer = self._begin_progress(destination.name, mode, total)
            try:
                return await self._stream_to_file(response, destination, observer)
            finally:
                observer.on_finish()

    async def _stream_to_file(
        self,
        response: ByteResponse,
        destination: Path,
        observer: ProgressObserver,
    ) -> int:
        try:
            import aiofiles
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "aiofiles is not installed. Install with: pip install aiofiles",
            ) from exc

        try:
            handle = await aiofiles.open(destination, "wb")
        except OSError as exc:
            raise FileWriteError(destination, str(exc)) from exc

        written = 0
        try:
            async for chunk in response.iter_chunks(self._chunk_size):
                if not chunk:
                    continue
                try:
                    await handle.write(chunk)
                except OSError as exc:
                    raise _write_failure(destination, exc) from exc
                written += len(chunk)
                observer.on_progress(written)
        except OSError as exc:
            # Raised by the source while reading, never by the file.
            raise DownloadInterruptedError(f"read from source failed: {exc}") from exc
        finally:
            try:
                await handle.close()
            except OSError as exc:
                raise _write_failure(destination, exc) from exc
        return written

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _begin_progress(
        self,
        description: str,
        mode: ProgressMode,
        total: int | None,
    ) -> ProgressObserver:
        try:
            observer = self._reporter.begin(description, mode, total)
        except Exception as exc:
            logger.warning("Progress display unavailable: %s", exc)
            return NullReporter().begin(description, mode, total)
        return GuardedObserver(observer)

    @staticmethod
    def _ensure_parent(destination: Path) -> None:
        parent = destination.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreateError(parent, str(exc)) from exc
