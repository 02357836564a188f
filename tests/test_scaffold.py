"""Smoke tests — verify scaffold wiring.

These tests prove that:
* The CLI entry point is importable and callable.
* The exception hierarchy is correctly structured and classified.
* Version is accessible.
* Exit codes are defined.
* Arguments are routed to the right handler and the error boundary
  maps failures onto exit codes.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from unittest.mock import patch

import pytest

from vidgrab import __version__
from vidgrab.cli import app as app_module
from vidgrab.cli import exit_codes
from vidgrab.cli.app import cli, main
from vidgrab.core.models import DownloadResult, QualityFilter
from vidgrab.core.options import DownloadOptions
from vidgrab.exceptions import (
    ConnectionFailedError,
    DirectoryCreateError,
    DownloadFailedError,
    DownloadInterruptedError,
    EncodingError,
    EnvironmentCheckError,
    ErrorKind,
    FfmpegNotFoundError,
    FileWriteError,
    FormatSelectionError,
    HTTPStatusError,
    InvalidURLError,
    MaxRetriesExceededError,
    MetadataExtractionError,
    NetworkError,
    QualityNotAvailableError,
    TransferTimeoutError,
    VidgrabError,
    VideoUnavailableError,
    append_ytdlp_upgrade_suggestion,
    is_retryable,
)

URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_version_is_string(self) -> None:
        assert isinstance(__version__, str)

    def test_version_is_semver_like(self) -> None:
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class TestExceptions:
    @pytest.mark.parametrize(
        "exc_class",
        [
            InvalidURLError,
            MetadataExtractionError,
            VideoUnavailableError,
            FormatSelectionError,
            QualityNotAvailableError,
            HTTPStatusError,
            MaxRetriesExceededError,
            FileWriteError,
            DownloadFailedError,
            EncodingError,
            FfmpegNotFoundError,
            EnvironmentCheckError,
        ],
    )
    def test_all_exceptions_inherit_from_base(
        self, exc_class: type[VidgrabError]
    ) -> None:
        assert issubclass(exc_class, VidgrabError)

    def test_base_inherits_from_exception(self) -> None:
        assert issubclass(VidgrabError, Exception)

    def test_hint_is_stored(self) -> None:
        err = VidgrabError("boom", hint="try this")
        assert str(err) == "boom"
        assert err.hint == "try this"

    def test_hint_defaults_to_none(self) -> None:
        assert VidgrabError("boom").hint is None

    @pytest.mark.parametrize(
        "err",
        [
            ConnectionFailedError("refused"),
            TransferTimeoutError("read"),
            NetworkError("dns"),
            DownloadInterruptedError("reset"),
        ],
    )
    def test_transport_failures_are_retryable(self, err: VidgrabError) -> None:
        assert err.kind is ErrorKind.RETRYABLE_TRANSPORT
        assert is_retryable(err)
        assert err.is_retryable()

    @pytest.mark.parametrize(
        "err",
        [
            HTTPStatusError(404, "Not Found"),
            HTTPStatusError(503, "Service Unavailable"),
            MaxRetriesExceededError(3, "x"),
            FileWriteError("/tmp/x"),
            QualityNotAvailableError("720p", []),
            EncodingError("x"),
            ValueError("x"),
        ],
    )
    def test_other_failures_are_not_retryable(self, err: BaseException) -> None:
        assert not is_retryable(err)

    def test_http_status_message(self) -> None:
        err = HTTPStatusError(404, "Not Found")
        assert str(err) == "HTTP request failed: Not Found (status code: 404)"
        assert err.status == 404

    def test_filesystem_messages(self) -> None:
        assert str(FileWriteError("/tmp/out.mp4")) == f"Failed to write file: {Path('/tmp/out.mp4')}"
        assert str(DirectoryCreateError("/tmp/d")).startswith("Failed to create directory:")

    def test_upgrade_suggestion_appended_once(self) -> None:
        once = append_ytdlp_upgrade_suggestion("The site may have changed.")
        assert once.startswith("The site may have changed.")
        assert append_ytdlp_upgrade_suggestion(once) == once


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_success_is_zero(self) -> None:
        assert exit_codes.SUCCESS == 0

    def test_general_error_is_one(self) -> None:
        assert exit_codes.GENERAL_ERROR == 1

    def test_keyboard_interrupt_is_130(self) -> None:
        assert exit_codes.KEYBOARD_INTERRUPT == 130

    def test_unexpected_error_is_two(self) -> None:
        assert exit_codes.UNEXPECTED_ERROR == 2


# ---------------------------------------------------------------------------
# CLI routing
# ---------------------------------------------------------------------------

class TestCLIRouting:
    def test_no_args_returns_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == exit_codes.SUCCESS
        assert "vidgrab" in capsys.readouterr().out

    def test_version_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0

    def test_silent_and_verbose_conflict(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([URL, "-s", "-v"])
        assert exc_info.value.code == 2

    def test_url_routes_to_download(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[str] = []

        def fake_download(url: str, args: argparse.Namespace) -> int:
            seen.append(url)
            return exit_codes.SUCCESS

        monkeypatch.setattr(app_module, "_handle_download", fake_download)
        assert main([URL]) == exit_codes.SUCCESS
        assert seen == [URL]

    def test_info_routes_with_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[str] = []
        monkeypatch.setattr(
            app_module, "_handle_info", lambda url: seen.append(url) or exit_codes.SUCCESS,
        )
        assert main(["info", URL]) == exit_codes.SUCCESS
        assert seen == [URL]

    def test_info_without_url_is_usage_error(self) -> None:
        assert main(["info"]) == exit_codes.USAGE_ERROR

    def test_unknown_command_is_usage_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["fetch", URL]) == exit_codes.USAGE_ERROR
        assert "unknown command" in capsys.readouterr().err


class TestOptionsFromArgs:
    def _parse(self, *argv: str) -> DownloadOptions:
        args = app_module._build_parser().parse_args([URL, *argv])
        return app_module._options_from_args(args)

    def test_defaults(self) -> None:
        assert self._parse() == DownloadOptions()

    def test_flags(self) -> None:
        options = self._parse(
            "-q", "720p", "-o", "out", "-t", "{id}", "-f", "webm",
            "-a", "--audio-format", "flac", "--no-convert", "--no-fallback", "-r", "5",
        )
        assert options.quality == QualityFilter.max_height(720)
        assert options.output_dir == Path("out")
        assert options.filename_template == "{id}"
        assert options.video_format == "webm"
        assert options.audio_only is True
        assert options.audio_format == "flac"
        assert options.convert_audio is False
        assert options.fallback_to_best is False
        assert options.retry_attempts == 5

    def test_retries_at_least_one(self) -> None:
        assert self._parse("-r", "0").retry_attempts == 1

    def test_invalid_container_rejected(self) -> None:
        with pytest.raises(SystemExit):
            self._parse("-f", "avi")


class TestHandleDownload:
    def test_silent_download(
        self,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        calls: list[tuple[str, DownloadOptions]] = []

        async def fake_run(url: str, options: DownloadOptions, reporter: object) -> DownloadResult:
            calls.append((url, options))
            return DownloadResult(Path("v.mp4"), 10, "abc", "V")

        monkeypatch.setattr(app_module, "_run_download", fake_run)

        code = main([URL, "-s", "-o", str(tmp_path), "-q", "480p"])

        assert code == exit_codes.SUCCESS
        ((url, options),) = calls
        assert url == URL
        assert options.output_dir == tmp_path
        assert options.quality == QualityFilter.max_height(480)
        assert "Download complete" not in capsys.readouterr().err

    def test_completion_message(
        self,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        async def fake_run(url: str, options: DownloadOptions, reporter: object) -> DownloadResult:
            return DownloadResult(Path("v.mp4"), 2048, "abc", "V")

        monkeypatch.setattr(app_module, "_run_download", fake_run)

        assert main([URL, "-o", str(tmp_path)]) == exit_codes.SUCCESS
        err = capsys.readouterr().err
        assert "Download complete." in err
        assert "2.00 KB" in err


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    def _exit_code(self, side_effect: BaseException) -> int:
        with patch.object(app_module, "main", side_effect=side_effect):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        return int(exc_info.value.code)

    def test_success(self) -> None:
        with patch.object(app_module, "main", return_value=exit_codes.SUCCESS):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.SUCCESS

    def test_domain_error_shows_message_and_hint(
        self, capsys: pytest.CaptureFixture[str],
    ) -> None:
        err = QualityNotAvailableError("2160p", ["1080p"], hint="Pick one of the listed qualities.")
        assert self._exit_code(err) == exit_codes.GENERAL_ERROR

        output = capsys.readouterr().err
        assert "Quality not available: 2160p" in output
        assert "Pick one of the listed qualities." in output

    def test_keyboard_interrupt(self) -> None:
        assert self._exit_code(KeyboardInterrupt()) == exit_codes.KEYBOARD_INTERRUPT

    def test_unexpected_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert self._exit_code(RuntimeError("kaboom")) == exit_codes.UNEXPECTED_ERROR
        assert "RuntimeError: kaboom" in capsys.readouterr().err
