"""yt-dlp backed implementation of :class:`~vidgrab.core.protocols.MetadataProvider`.

This module is the **only** place in the codebase that imports ``yt_dlp``.
yt-dlp is used purely as an extractor: it resolves the page into direct
stream URLs, and the bytes are fetched by the transfer engine.  All
yt-dlp exceptions are caught here and re-raised as typed
:class:`~vidgrab.exceptions.VidgrabError` subclasses.
"""

from __future__ import annotations

import logging
from typing import Any

from vidgrab.exceptions import (
    EnvironmentError,
    MetadataExtractionError,
    VideoUnavailableError,
    append_ytdlp_upgrade_suggestion,
)

logger = logging.getLogger(__name__)


class _YtDlpLogger:
    """Route yt-dlp's own messages into :mod:`logging` instead of stdout."""

    def debug(self, msg: str) -> None:
        logger.debug(msg)

    def info(self, msg: str) -> None:
        logger.debug(msg)

    def warning(self, msg: str) -> None:
        logger.debug("yt-dlp: %s", msg)

    def error(self, msg: str) -> None:
        logger.debug("yt-dlp: %s", msg)


class YtDlpMetadataProvider:
    """Concrete :class:`MetadataProvider` backed by the yt-dlp Python API.

    Usage::

        provider = YtDlpMetadataProvider(socket_timeout=15)
        info = provider.fetch_info("https://www.youtube.com/watch?v=...")

    Parameters
    ----------
    socket_timeout:
        Seconds yt-dlp waits on its own page/API requests.
    """

    # Substrings in yt-dlp error messages that indicate the video itself
    # is unavailable (as opposed to a transient or extraction error).
    _UNAVAILABLE_SIGNALS: tuple[str, ...] = (
        "unavailable",
        "private video",
        "removed",
        "not available",
        "account terminated",
        "this video is no longer available",
        "sign in to confirm your age",
        "blocked it in your country",
    )

    def __init__(self, *, socket_timeout: float = 30.0) -> None:
        self._socket_timeout: float = socket_timeout

    def _build_opts(self) -> dict[str, Any]:
        """Return yt-dlp options for catalog-only extraction."""
        return {
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "skip_download": True,
            "noplaylist": True,
            "socket_timeout": self._socket_timeout,
            "logger": _YtDlpLogger(),
        }

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def fetch_info(self, url: str) -> dict[str, Any]:
        """Extract the raw info dict for *url* without downloading.

        Raises
        ------
        EnvironmentError
            When yt-dlp is not installed.
        VideoUnavailableError
            When yt-dlp reports the video as unavailable / private / removed.
        MetadataExtractionError
            For all other extraction failures.
        """
        try:
            import yt_dlp
            import yt_dlp.utils
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "yt-dlp is not installed. Install with: pip install yt-dlp",
            ) from exc

        logger.debug("Extracting %s with yt-dlp", url)
        try:
            with yt_dlp.YoutubeDL(self._build_opts()) as ydl:
                info: Any = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as exc:
            self._raise_mapped(exc)
        except Exception as exc:
            raise MetadataExtractionError(
                f"Unexpected yt-dlp error: {exc}",
            ) from exc

        if info is None:
            raise MetadataExtractionError(
                "yt-dlp returned no metadata for the given URL.",
                hint="The URL may not point to a valid video.",
            )

        if not isinstance(info, dict):
            raise MetadataExtractionError(
                "yt-dlp returned an unexpected data structure.",
            )

        if info.get("_type") == "playlist":
            raise MetadataExtractionError(
                "Playlists are not supported; pass a single video URL.",
            )

        return dict(info)

    # ------------------------------------------------------------------
    # Exception mapping
    # ------------------------------------------------------------------

    @classmethod
    def _raise_mapped(cls, exc: Exception) -> None:
        """Translate a yt-dlp ``DownloadError`` into a domain exception."""
        message = str(exc)
        msg_lower = message.lower()
        if any(signal in msg_lower for signal in cls._UNAVAILABLE_SIGNALS):
            raise VideoUnavailableError(
                message,
                hint="The video may be private, removed, or geo-restricted.",
            ) from exc
        raise MetadataExtractionError(
            message,
            hint=append_ytdlp_upgrade_suggestion("The site may have changed."),
        ) from exc
