"""Tests for DownloadService (core/download_service.py).

The extractor and encoder are mocked; the transfer engine is real but
driven by a fake byte source, so no network and no real backoff.

Coverage:
* Stream choice (quality, fallback, container preference, audio).
* Filename resolution into the output directory.
* Optional audio conversion and intermediate cleanup.
* Error propagation and wrapping.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from vidgrab.core.download_service import DownloadService
from vidgrab.core.models import QualityFilter, RenditionCatalog, Stream
from vidgrab.core.options import DownloadOptions
from vidgrab.core.transfer import TransferEngine
from vidgrab.exceptions import (
    DownloadFailedError,
    EncodingError,
    MaxRetriesExceededError,
    NetworkError,
    QualityNotAvailableError,
    VideoUnavailableError,
)

URL = "https://www.youtube.com/watch?v=abc123"


# ---------------------------------------------------------------------------
# Fakes and helpers
# ---------------------------------------------------------------------------

class _Body:
    status = 200
    reason = "OK"

    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self.content_length = len(payload)

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        yield self._payload


class _Source:
    def __init__(self, payload: bytes = b"media-bytes", error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.urls: list[str] = []

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[_Body]:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        yield _Body(self.payload)


async def _no_sleep(_seconds: float) -> None:
    return None


def _video(quality: str, fmt: str = "mp4") -> Stream:
    return Stream(
        url=f"https://cdn.example.com/{quality}.{fmt}",
        quality=quality,
        format=fmt,
        video_codec="avc1",
    )


def _audio(bitrate: int, fmt: str = "m4a") -> Stream:
    return Stream(
        url=f"https://cdn.example.com/audio{bitrate}.{fmt}",
        quality="audio",
        format=fmt,
        audio_codec="mp4a",
        is_audio_only=True,
        bitrate=bitrate,
    )


def _catalog(*streams: Stream) -> RenditionCatalog:
    return RenditionCatalog(
        id="abc123",
        title="My Video!",
        duration=212,
        streams=streams,
        publish_date=datetime.date(2024, 3, 9),
    )


def _extractor(catalog: RenditionCatalog | Exception) -> MagicMock:
    extractor = MagicMock()
    if isinstance(catalog, Exception):
        extractor.get_info.side_effect = catalog
    else:
        extractor.get_info.return_value = catalog
    return extractor


def _service(
    catalog: RenditionCatalog | Exception,
    options: DownloadOptions,
    *,
    source: _Source | None = None,
    encoder: object | None = None,
) -> tuple[DownloadService, _Source]:
    source = source or _Source()
    engine = TransferEngine(source, sleep=_no_sleep)
    service = DownloadService(
        _extractor(catalog),
        engine,
        encoder=encoder,  # type: ignore[arg-type]
        options=options,
    )
    return service, source


class _FakeEncoder:
    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []

    def convert(self, source: Path, target: Path) -> Path:
        self.calls.append((source, target))
        target.write_bytes(b"converted-audio")
        return target


# ---------------------------------------------------------------------------
# Video downloads
# ---------------------------------------------------------------------------

class TestVideoDownload:
    def test_best_stream_downloaded(self, tmp_path: Path) -> None:
        catalog = _catalog(_video("720p"), _video("1080p"), _video("480p"))
        service, source = _service(catalog, DownloadOptions(output_dir=tmp_path))

        result = asyncio.run(service.download(URL))

        assert source.urls == ["https://cdn.example.com/1080p.mp4"]
        assert result.file_path == tmp_path / "My_Video.mp4"
        assert result.file_path.read_bytes() == b"media-bytes"
        assert result.file_size == len(b"media-bytes")
        assert result.video_id == "abc123"
        assert result.video_title == "My Video!"

    def test_template_and_nested_output(self, tmp_path: Path) -> None:
        options = DownloadOptions(
            output_dir=tmp_path / "nested" / "dir",
            filename_template="{title}_{id}_{date}",
        )
        service, _ = _service(_catalog(_video("720p")), options)

        result = asyncio.run(service.download(URL))

        assert result.file_path == tmp_path / "nested" / "dir" / "My_Video_abc123_2024-03-09.mp4"
        assert result.file_path.exists()

    def test_unknown_duration_leaves_placeholder_empty(self, tmp_path: Path) -> None:
        catalog = replace(_catalog(_video("720p")), duration=0)
        options = DownloadOptions(output_dir=tmp_path, filename_template="{id}_{duration}")
        service, _ = _service(catalog, options)

        result = asyncio.run(service.download(URL))

        assert result.file_path == tmp_path / "abc123.mp4"

    def test_known_duration_fills_placeholder(self, tmp_path: Path) -> None:
        options = DownloadOptions(output_dir=tmp_path, filename_template="{id}_{duration}")
        service, _ = _service(_catalog(_video("720p")), options)
        result = asyncio.run(service.download(URL))
        assert result.file_path == tmp_path / "abc123_212.mp4"

    def test_fallback_to_best_logs_warning(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture,
    ) -> None:
        catalog = _catalog(_video("720p"), _video("1080p"))
        options = DownloadOptions(output_dir=tmp_path, quality=QualityFilter.exact(2160))
        service, source = _service(catalog, options)

        with caplog.at_level(logging.WARNING, logger="vidgrab"):
            asyncio.run(service.download(URL))

        assert source.urls == ["https://cdn.example.com/1080p.mp4"]
        assert "falling back to best" in caplog.text

    def test_no_fallback_raises(self, tmp_path: Path) -> None:
        catalog = _catalog(_video("720p"), _video("1080p"))
        options = DownloadOptions(
            output_dir=tmp_path,
            quality=QualityFilter.exact(2160),
            fallback_to_best=False,
        )
        service, source = _service(catalog, options)

        with pytest.raises(QualityNotAvailableError) as exc_info:
            asyncio.run(service.download(URL))

        assert exc_info.value.available == ["1080p", "720p"]
        assert source.urls == []

    def test_preferred_container_wins_at_same_height(self, tmp_path: Path) -> None:
        catalog = _catalog(_video("1080p", "mp4"), _video("1080p", "webm"))
        service, source = _service(catalog, DownloadOptions(output_dir=tmp_path))

        result = asyncio.run(service.download(URL))

        assert source.urls == ["https://cdn.example.com/1080p.mp4"]
        assert result.file_path.suffix == ".mp4"

    def test_container_preference_keeps_exact_label(self, tmp_path: Path) -> None:
        catalog = _catalog(_video("1080p60", "mp4"), _video("1080p", "webm"))
        options = DownloadOptions(output_dir=tmp_path, quality=QualityFilter.exact(1080))
        service, _ = _service(catalog, options)

        chosen = service.choose_stream(catalog)

        assert chosen.quality == "1080p"
        assert chosen.format == "webm"

    def test_container_preference_needs_same_label(self, tmp_path: Path) -> None:
        catalog = _catalog(_video("1080p60", "mp4"), _video("1080p", "webm"))
        service, _ = _service(catalog, DownloadOptions(output_dir=tmp_path))
        assert service.choose_stream(catalog).quality == "1080p"

    def test_container_preference_never_lowers_quality(self, tmp_path: Path) -> None:
        catalog = _catalog(_video("720p", "mp4"), _video("1080p", "webm"))
        service, source = _service(catalog, DownloadOptions(output_dir=tmp_path))

        result = asyncio.run(service.download(URL))

        assert source.urls == ["https://cdn.example.com/1080p.webm"]
        assert result.file_path.suffix == ".webm"


# ---------------------------------------------------------------------------
# Audio downloads
# ---------------------------------------------------------------------------

class TestAudioDownload:
    def test_best_audio_converted(self, tmp_path: Path) -> None:
        catalog = _catalog(_video("1080p"), _audio(64), _audio(160))
        encoder = _FakeEncoder()
        options = DownloadOptions(output_dir=tmp_path, audio_only=True)
        service, source = _service(catalog, options, encoder=encoder)

        result = asyncio.run(service.download(URL))

        assert source.urls == ["https://cdn.example.com/audio160.m4a"]
        assert encoder.calls == [(tmp_path / "My_Video.m4a", tmp_path / "My_Video.mp3")]
        assert result.file_path == tmp_path / "My_Video.mp3"
        assert result.file_size == len(b"converted-audio")
        assert not (tmp_path / "My_Video.m4a").exists()

    def test_no_conversion_when_disabled(self, tmp_path: Path) -> None:
        encoder = _FakeEncoder()
        options = DownloadOptions(output_dir=tmp_path, audio_only=True, convert_audio=False)
        service, _ = _service(_catalog(_audio(128)), options, encoder=encoder)

        result = asyncio.run(service.download(URL))

        assert encoder.calls == []
        assert result.file_path == tmp_path / "My_Video.m4a"

    def test_no_conversion_when_already_target_format(self, tmp_path: Path) -> None:
        encoder = _FakeEncoder()
        options = DownloadOptions(output_dir=tmp_path, audio_only=True, audio_format="m4a")
        service, _ = _service(_catalog(_audio(128)), options, encoder=encoder)

        result = asyncio.run(service.download(URL))

        assert encoder.calls == []
        assert result.file_path.suffix == ".m4a"

    def test_no_conversion_without_encoder(self, tmp_path: Path) -> None:
        options = DownloadOptions(output_dir=tmp_path, audio_only=True)
        service, _ = _service(_catalog(_audio(128)), options)
        result = asyncio.run(service.download(URL))
        assert result.file_path.suffix == ".m4a"

    def test_no_audio_stream_raises(self, tmp_path: Path) -> None:
        options = DownloadOptions(output_dir=tmp_path, audio_only=True)
        service, _ = _service(_catalog(_video("720p")), options)

        with pytest.raises(QualityNotAvailableError) as exc_info:
            asyncio.run(service.download(URL))
        assert exc_info.value.requested == "audio"

    def test_encoding_error_propagates(self, tmp_path: Path) -> None:
        encoder = MagicMock()
        encoder.convert.side_effect = EncodingError("ffmpeg exited with status 1")
        options = DownloadOptions(output_dir=tmp_path, audio_only=True)
        service, _ = _service(_catalog(_audio(128)), options, encoder=encoder)

        with pytest.raises(EncodingError):
            asyncio.run(service.download(URL))


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestErrors:
    def test_extractor_error_propagates(self, tmp_path: Path) -> None:
        service, _ = _service(VideoUnavailableError("private"), DownloadOptions(output_dir=tmp_path))
        with pytest.raises(VideoUnavailableError):
            asyncio.run(service.download(URL))

    def test_unexpected_error_wrapped(self, tmp_path: Path) -> None:
        service, _ = _service(RuntimeError("kaboom"), DownloadOptions(output_dir=tmp_path))
        with pytest.raises(DownloadFailedError, match="kaboom") as exc_info:
            asyncio.run(service.download(URL))
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_transfer_exhaustion_propagates(self, tmp_path: Path) -> None:
        options = replace(DownloadOptions(output_dir=tmp_path), retry_attempts=2)
        source = _Source(error=NetworkError("down"))
        service, _ = _service(_catalog(_video("720p")), options, source=source)

        with pytest.raises(MaxRetriesExceededError) as exc_info:
            asyncio.run(service.download(URL))

        assert exc_info.value.attempts == 2
        assert len(source.urls) == 2
