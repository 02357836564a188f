"""Core metadata service — turns raw extractor output into a catalog.

This service satisfies the :class:`~vidgrab.core.protocols.Extractor`
contract on top of a :class:`~vidgrab.core.protocols.MetadataProvider`
injected at construction time (dependency inversion), keeping the core
free of any external-system imports.

Guarantees
----------
* Pure orchestration — no I/O, no ``print()``, no filesystem access.
* Only :class:`~vidgrab.exceptions.VidgrabError` subclasses escape.
* All parsing logic is deterministic and stateless.
"""

from __future__ import annotations

import datetime
from typing import Any

from vidgrab.core.models import RenditionCatalog, Stream
from vidgrab.core.protocols import MetadataProvider
from vidgrab.exceptions import (
    InvalidURLError,
    MetadataExtractionError,
    VidgrabError,
)

_DIRECT_PROTOCOLS: frozenset[str] = frozenset({"http", "https"})


class MetadataService:
    """Stateless service that extracts and parses rendition catalogs.

    Parameters
    ----------
    provider:
        Any object satisfying the :class:`MetadataProvider` protocol.
    """

    def __init__(self, provider: MetadataProvider) -> None:
        self._provider: MetadataProvider = provider

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_info(self, url: str) -> RenditionCatalog:
        """Return the rendition catalog for *url*.

        Raises
        ------
        InvalidURLError
            If *url* is empty or malformed.
        MetadataExtractionError
            If the backend fails to return metadata.
        VideoUnavailableError
            If the video is confirmed unavailable.
        """
        self._validate_url(url)
        info = self._fetch(url.strip())
        return self._parse_catalog(info)

    # ------------------------------------------------------------------
    # URL validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_url(url: str) -> None:
        """Raise :class:`InvalidURLError` for empty or non-HTTP URLs."""
        stripped = url.strip()
        if not stripped:
            raise InvalidURLError("URL must not be empty.")
        if not stripped.startswith(("http://", "https://")):
            raise InvalidURLError(
                f"Invalid URL: {stripped}",
                hint="URL must start with http:// or https://",
            )

    # ------------------------------------------------------------------
    # Provider delegation (safe boundary)
    # ------------------------------------------------------------------

    def _fetch(self, url: str) -> dict[str, Any]:
        """Call the provider and ensure only our exceptions escape."""
        try:
            return self._provider.fetch_info(url)
        except VidgrabError:
            # Already one of ours.
            raise
        except Exception as exc:
            raise MetadataExtractionError(
                f"Unexpected provider error: {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Raw-dict → domain-model parsers (pure)
    # ------------------------------------------------------------------

    @classmethod
    def _parse_catalog(cls, info: dict[str, Any]) -> RenditionCatalog:
        """Convert a raw info dict into a :class:`RenditionCatalog`."""
        raw_duration = info.get("duration")
        duration = max(int(raw_duration), 0) if raw_duration is not None else 0
        channel = info.get("channel") or info.get("uploader")

        streams = tuple(
            stream
            for stream in (cls._parse_stream(raw) for raw in cls._extract_raw_formats(info))
            if stream is not None
        )

        return RenditionCatalog(
            id=str(info.get("id", "")),
            title=str(info.get("title", "Unknown")),
            duration=duration,
            streams=streams,
            channel=str(channel) if channel else None,
            publish_date=cls._parse_date(info.get("upload_date")),
            webpage_url=str(info.get("webpage_url", "")),
        )

    @staticmethod
    def _extract_raw_formats(info: dict[str, Any]) -> list[dict[str, Any]]:
        """Safely pull the ``formats`` list from a raw info dict."""
        raw: object = info.get("formats")
        if not isinstance(raw, list):
            return []
        # Each element is expected to be a dict; skip malformed entries.
        return [entry for entry in raw if isinstance(entry, dict)]

    @staticmethod
    def _parse_date(raw: object) -> datetime.date | None:
        """Parse yt-dlp's ``YYYYMMDD`` upload date."""
        if not isinstance(raw, str):
            return None
        try:
            return datetime.datetime.strptime(raw, "%Y%m%d").date()
        except ValueError:
            return None

    @staticmethod
    def _codec(raw: object) -> str | None:
        if not raw or raw == "none":
            return None
        return str(raw)

    @staticmethod
    def _quality_label(raw: dict[str, Any], *, audio_only: bool, fps: int | None) -> str:
        """Pick the display label for a format.

        ``format_note`` wins (``"1080p60"``, ``"medium"``); otherwise the
        label is rebuilt from height and frame rate.
        """
        note = raw.get("format_note")
        if isinstance(note, str) and note.strip():
            return note.strip()
        height = raw.get("height")
        if isinstance(height, int) and height > 0:
            suffix = str(fps) if fps is not None and fps > 30 else ""
            return f"{height}p{suffix}"
        return "audio" if audio_only else "unknown"

    @classmethod
    def _parse_stream(cls, raw: dict[str, Any]) -> Stream | None:
        """Convert one raw format dict, or ``None`` if it has no direct URL."""
        url = raw.get("url")
        protocol = str(raw.get("protocol") or "https")
        if not isinstance(url, str) or protocol not in _DIRECT_PROTOCOLS:
            return None

        video_codec = cls._codec(raw.get("vcodec"))
        audio_codec = cls._codec(raw.get("acodec"))
        audio_only = video_codec is None and audio_codec is not None

        raw_fps = raw.get("fps")
        fps: int | None = round(raw_fps) if isinstance(raw_fps, (int, float)) else None

        raw_size = raw.get("filesize")
        if raw_size is None:
            raw_size = raw.get("filesize_approx")
        file_size: int | None = int(raw_size) if raw_size is not None else None

        raw_bitrate = raw.get("abr") if audio_only else None
        if raw_bitrate is None:
            raw_bitrate = raw.get("tbr")
        bitrate: int | None = (
            round(raw_bitrate) if isinstance(raw_bitrate, (int, float)) else None
        )

        return Stream(
            url=url,
            quality=cls._quality_label(raw, audio_only=audio_only, fps=fps),
            format=str(raw.get("ext", "")),
            video_codec=video_codec,
            audio_codec=audio_codec,
            is_audio_only=audio_only,
            file_size=file_size,
            bitrate=bitrate,
            fps=fps,
        )
