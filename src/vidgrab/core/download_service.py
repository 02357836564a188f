"""Core download service — orchestrates the download pipeline.

This service wires together the collaborators injected at construction
time:

* an :class:`~vidgrab.core.protocols.Extractor` for the catalog,
* a :class:`~vidgrab.core.transfer.TransferEngine` for the bytes,
* an optional :class:`~vidgrab.core.protocols.Encoder` for audio
  conversion.

It is responsible for choosing the stream, naming the file, and
ensuring only :class:`~vidgrab.exceptions.VidgrabError` subclasses
escape.

Guarantees
----------
* No ``print()`` — progress goes through the engine's reporter.
* No yt-dlp, aiohttp or subprocess import.
* Blocking collaborators (extractor, encoder) run in worker threads so
  the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from vidgrab.core.filename import resolve_filename
from vidgrab.core.models import (
    DownloadResult,
    FilenameMetadata,
    FilterKind,
    RenditionCatalog,
    Stream,
)
from vidgrab.core.options import DownloadOptions
from vidgrab.core.protocols import Encoder, Extractor
from vidgrab.core.quality import (
    available_qualities,
    best_audio_stream,
    select,
    select_stream,
)
from vidgrab.core.transfer import TransferEngine
from vidgrab.exceptions import (
    DownloadFailedError,
    QualityNotAvailableError,
    VidgrabError,
)

logger = logging.getLogger(__name__)


class DownloadService:
    """Drives one download from URL to file on disk.

    Parameters
    ----------
    extractor:
        Any object satisfying the :class:`Extractor` protocol.
    engine:
        The transfer engine (already bound to a byte source and reporter).
    encoder:
        Optional converter for audio-only downloads.
    options:
        Per-operation settings; defaults to :class:`DownloadOptions()`.
    """

    def __init__(
        self,
        extractor: Extractor,
        engine: TransferEngine,
        *,
        encoder: Encoder | None = None,
        options: DownloadOptions | None = None,
    ) -> None:
        self._extractor: Extractor = extractor
        self._engine: TransferEngine = engine
        self._encoder: Encoder | None = encoder
        self._options: DownloadOptions = options if options is not None else DownloadOptions()

    @property
    def options(self) -> DownloadOptions:
        return self._options

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def download(self, url: str) -> DownloadResult:
        """Download the stream that best matches the configured options.

        Raises
        ------
        VidgrabError
            Any typed failure from extraction, selection, transfer or
            conversion; everything else is wrapped in
            :class:`DownloadFailedError`.
        """
        try:
            return await self._run(url)
        except VidgrabError:
            # Already one of ours.
            raise
        except Exception as exc:
            raise DownloadFailedError(
                f"Unexpected download error: {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(self, url: str) -> DownloadResult:
        options = self._options
        catalog = await asyncio.to_thread(self._extractor.get_info, url)
        logger.info("Found %d streams for %r", len(catalog), catalog.title)

        stream = self.choose_stream(catalog)
        logger.info("Selected stream: %s", stream.description())

        metadata = FilenameMetadata(
            title=catalog.title,
            id=catalog.id,
            date=catalog.publish_date,
            duration=str(catalog.duration) if catalog.duration > 0 else None,
        )
        filename = resolve_filename(options.filename_template, metadata, stream.format)
        destination = options.output_dir / filename

        written = await self._engine.transfer(
            stream.url,
            destination,
            options.retry_attempts,
        )

        if self._should_convert(stream):
            target = options.output_dir / resolve_filename(
                options.filename_template,
                metadata,
                options.audio_format,
            )
            destination, written = await self._convert(destination, target)

        return DownloadResult(
            file_path=destination,
            file_size=written,
            video_id=catalog.id,
            video_title=catalog.title,
        )

    # ------------------------------------------------------------------
    # Stream choice (pure)
    # ------------------------------------------------------------------

    def choose_stream(self, catalog: RenditionCatalog) -> Stream:
        """Apply the configured quality and container preferences.

        Raises
        ------
        QualityNotAvailableError
            When nothing suitable exists.
        """
        options = self._options
        if options.audio_only:
            audio = best_audio_stream(catalog)
            if audio is None:
                raise QualityNotAvailableError(
                    "audio",
                    available_qualities(catalog),
                    hint="This resource has no audio-only stream.",
                )
            return audio

        if (
            options.fallback_to_best
            and options.quality.kind is not FilterKind.BEST
            and select(catalog, options.quality) is None
        ):
            logger.warning(
                "Quality %s not available, falling back to best",
                options.quality.label,
            )

        chosen = select_stream(
            catalog,
            options.quality,
            fallback_to_best=options.fallback_to_best,
        )
        return self._prefer_container(catalog, chosen)

    def _prefer_container(self, catalog: RenditionCatalog, chosen: Stream) -> Stream:
        """Swap *chosen* for a stream with the same label in the preferred container."""
        wanted = self._options.video_format
        if chosen.format == wanted:
            return chosen
        label = chosen.quality.lower()
        for stream in catalog.video_streams:
            if stream.quality.lower() == label and stream.format == wanted:
                return stream
        return chosen

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _should_convert(self, stream: Stream) -> bool:
        options = self._options
        return (
            self._encoder is not None
            and options.audio_only
            and options.convert_audio
            and stream.format != options.audio_format
        )

    async def _convert(self, source: Path, target: Path) -> tuple[Path, int]:
        assert self._encoder is not None
        logger.info("Converting %s to %s", source.name, target.suffix.lstrip("."))
        converted = await asyncio.to_thread(self._encoder.convert, source, target)
        try:
            source.unlink()
        except OSError as exc:
            logger.warning("Could not remove intermediate file %s: %s", source, exc)
        return converted, converted.stat().st_size
