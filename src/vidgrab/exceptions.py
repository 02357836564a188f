"""Custom exception hierarchy for vidgrab.

All exceptions that cross layer boundaries must inherit from
:class:`VidgrabError`.  Raw third-party exceptions (yt-dlp, aiohttp,
``OSError``) must NEVER propagate beyond the layer that triggered them —
they are caught there and re-raised as a typed subclass defined here.

Every class carries an :class:`ErrorKind`.  Retry decisions are made
from the kind alone (see :func:`is_retryable`), never from the message.

Hierarchy
---------
VidgrabError
├── InvalidURLError
├── MetadataExtractionError
│   └── VideoUnavailableError
├── FormatSelectionError
│   └── QualityNotAvailableError
├── TransferError
│   ├── HTTPStatusError
│   ├── ConnectionFailedError
│   ├── TransferTimeoutError
│   ├── NetworkError
│   ├── DownloadInterruptedError
│   └── MaxRetriesExceededError
├── FileSystemError
│   ├── FileWriteError
│   └── DirectoryCreateError
├── DownloadFailedError
├── EncodingError
└── EnvironmentError
    ├── FfmpegNotFoundError
    └── EnvironmentCheckError
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from pathlib import Path


class ErrorKind(enum.Enum):
    """Coarse classification used for retry and reporting decisions."""

    RETRYABLE_TRANSPORT = "retryable_transport"
    FATAL_TRANSPORT = "fatal_transport"
    SELECTION = "selection"
    FILESYSTEM = "filesystem"
    EXHAUSTION = "exhaustion"
    EXTRACTION = "extraction"
    ENCODING = "encoding"
    ENVIRONMENT = "environment"
    OTHER = "other"


def is_retryable(error: BaseException) -> bool:
    """Return ``True`` when *error* may be recovered by another attempt.

    Only connection-level, timeout, generic network and interrupted-stream
    failures qualify.  HTTP status failures are deliberately excluded.
    """
    return getattr(error, "kind", None) is ErrorKind.RETRYABLE_TRANSPORT


class VidgrabError(Exception):
    """Base exception for all vidgrab errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""

    def is_retryable(self) -> bool:
        return is_retryable(self)


# --- URL validation / extraction -------------------------------------------

class InvalidURLError(VidgrabError):
    """Raised when the provided URL fails validation."""

    kind = ErrorKind.EXTRACTION


class MetadataExtractionError(VidgrabError):
    """Raised when the extractor fails to produce a rendition catalog."""

    kind = ErrorKind.EXTRACTION


class VideoUnavailableError(MetadataExtractionError):
    """Raised when the target video is unavailable (private, removed, etc.)."""


# --- Stream selection ------------------------------------------------------

class FormatSelectionError(VidgrabError):
    """Raised when no suitable stream can be determined."""

    kind = ErrorKind.SELECTION


class QualityNotAvailableError(FormatSelectionError):
    """Raised when the requested quality has no matching stream.

    Carries the full list of qualities the catalog does offer so the
    user can pick again.
    """

    def __init__(
        self,
        requested: str,
        available: Sequence[str],
        *,
        hint: str | None = None,
    ) -> None:
        self.requested: str = requested
        self.available: list[str] = list(available)
        listed = ", ".join(f'"{q}"' for q in self.available)
        super().__init__(
            f"Quality not available: {requested} (available: [{listed}])",
            hint=hint,
        )


# --- Transfer --------------------------------------------------------------

class TransferError(VidgrabError):
    """Base class for failures while moving bytes from a source URL."""

    kind = ErrorKind.RETRYABLE_TRANSPORT


class HTTPStatusError(TransferError):
    """Raised when the byte source answers with a non-2xx status."""

    kind = ErrorKind.FATAL_TRANSPORT

    def __init__(self, status: int, reason: str = "", *, hint: str | None = None) -> None:
        self.status: int = status
        self.reason: str = reason or "Unexpected status"
        super().__init__(
            f"HTTP request failed: {self.reason} (status code: {status})",
            hint=hint,
        )


class ConnectionFailedError(TransferError):
    """Raised when a connection to the byte source cannot be established."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Connection failed: {detail}")


class TransferTimeoutError(TransferError):
    """Raised when the transport reports a timeout."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Request timeout: {detail}")


class NetworkError(TransferError):
    """Raised for generic network failures reported by the transport."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Network error: {detail}")


class DownloadInterruptedError(TransferError):
    """Raised when a response body stops before it is complete."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Download interrupted: {detail}")


class MaxRetriesExceededError(TransferError):
    """Raised when every permitted attempt ended in a retryable failure."""

    kind = ErrorKind.EXHAUSTION

    def __init__(self, attempts: int, message: str) -> None:
        self.attempts: int = attempts
        self.message: str = message
        super().__init__(
            f"Download failed after {attempts} attempts: {message}",
            hint="Check your network connection and try again.",
        )


# --- Filesystem ------------------------------------------------------------

class FileSystemError(VidgrabError):
    """Base class for local read/write failures; always fatal."""

    kind = ErrorKind.FILESYSTEM
    action: str = "access"

    def __init__(self, path: Path | str, detail: str | None = None) -> None:
        self.path: Path = Path(path)
        message = f"Failed to {self.action}: {self.path}"
        super().__init__(message, hint=detail)


class FileWriteError(FileSystemError):
    """Raised when the destination file cannot be created or written."""

    action = "write file"


class DirectoryCreateError(FileSystemError):
    """Raised when the destination directory cannot be created."""

    action = "create directory"


# --- Orchestration / post-processing ---------------------------------------

class DownloadFailedError(VidgrabError):
    """Raised when the download pipeline fails for an unexpected reason."""


class EncodingError(VidgrabError):
    """Raised when post-download conversion fails."""

    kind = ErrorKind.ENCODING


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(VidgrabError):
    """Raised when a required runtime dependency is not available."""

    kind = ErrorKind.ENVIRONMENT


class FfmpegNotFoundError(EnvironmentError):
    """Raised when ffmpeg cannot be located on the system PATH."""


class EnvironmentCheckError(EnvironmentError):
    """Raised when a required environment precondition is not met."""


def append_ytdlp_upgrade_suggestion(hint: str) -> str:
    """Append yt-dlp upgrade guidance to an existing hint text.

    The suggestion is appended only once and preserves the original
    hint content verbatim.
    """
    marker = "Also try updating yt-dlp:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    pip install --upgrade yt-dlp",
        )
    )
