"""CLI application entry point and command routing for vidgrab.

This module is the **sole error boundary** for the entire application.
It catches :class:`~vidgrab.exceptions.VidgrabError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Architecture notes
------------------
* No business logic lives here — all work is delegated to the core/service
  and infrastructure layers.
* ``print()`` is forbidden outside the CLI layer; Rich console is used
  exclusively.
* This module is the only place that runs the event loop and translates
  between the domain world and the OS process exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from typing import TYPE_CHECKING, Any

from vidgrab.cli import exit_codes
from vidgrab.cli.console import console
from vidgrab.core.options import AUDIO_FORMATS, VIDEO_FORMATS
from vidgrab.exceptions import VidgrabError
from vidgrab.utils.logging import configure_logging
from vidgrab.version import __version__

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from vidgrab.core.models import DownloadResult
    from vidgrab.core.options import DownloadOptions
    from vidgrab.core.progress import ProgressReporter

_COMMANDS: tuple[str, ...] = ("info", "doctor")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser.

    The CLI supports:
    * ``vidgrab <url> [options]`` — download one video
    * ``vidgrab info <url>``      — list the available streams
    * ``vidgrab doctor``          — environment diagnostics
    * ``vidgrab --version``
    """
    parser = argparse.ArgumentParser(
        prog="vidgrab",
        description="Download a video (or its audio) at the quality you ask for.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="Video URL to download, or 'info <url>' / 'doctor'.",
    )
    parser.add_argument("url", nargs="?", default=None, help=argparse.SUPPRESS)

    parser.add_argument(
        "-q",
        "--quality",
        default="best",
        help="best, worst, 1080p (at most), =1080p (exactly) or 4k (default: best).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=".",
        help="Output directory (default: current directory).",
    )
    parser.add_argument(
        "-t",
        "--template",
        default="{title}",
        help="Filename template using {title}, {id}, {date}, {duration}.",
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="video_format",
        default="mp4",
        choices=VIDEO_FORMATS,
        help="Preferred video container (default: mp4).",
    )
    parser.add_argument("-a", "--audio-only", action="store_true", help="Download audio only.")
    parser.add_argument(
        "--audio-format",
        default="mp3",
        choices=AUDIO_FORMATS,
        help="Target audio format for --audio-only (default: mp3).",
    )
    parser.add_argument(
        "--no-convert",
        action="store_true",
        help="Keep the audio in its original container (no ffmpeg needed).",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Fail instead of downloading the best stream when the quality is missing.",
    )
    parser.add_argument(
        "-r",
        "--retries",
        type=int,
        default=3,
        help="Total download attempts (default: 3).",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-s", "--silent", action="store_true", help="No progress or info output.")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def _options_from_args(args: argparse.Namespace) -> DownloadOptions:
    from vidgrab.core.options import DownloadOptions

    return DownloadOptions.from_mapping(
        {
            "output_dir": args.output,
            "quality": args.quality,
            "video_format": args.video_format,
            "audio_format": args.audio_format,
            "audio_only": args.audio_only,
            "filename_template": args.template,
            "retry_attempts": max(args.retries, 1),
            "fallback_to_best": not args.no_fallback,
            "convert_audio": not args.no_convert,
        }
    )


# ---------------------------------------------------------------------------
# Command dispatch (no business logic)
# ---------------------------------------------------------------------------

async def _run_download(
    url: str,
    options: DownloadOptions,
    reporter: ProgressReporter,
) -> DownloadResult:
    """Wire infra adapters into the core service and run one download."""
    from vidgrab.core.download_service import DownloadService
    from vidgrab.core.metadata_service import MetadataService
    from vidgrab.core.transfer import TransferEngine
    from vidgrab.infra.ffmpeg_encoder import FfmpegEncoder
    from vidgrab.infra.http_source import AiohttpByteSource
    from vidgrab.infra.ytdlp_provider import YtDlpMetadataProvider

    encoder = FfmpegEncoder() if options.audio_only and options.convert_audio else None

    async with AiohttpByteSource() as source:
        service = DownloadService(
            MetadataService(YtDlpMetadataProvider()),
            TransferEngine(source, reporter=reporter),
            encoder=encoder,
            options=options,
        )
        return await service.download(url)


def _handle_download(url: str, args: argparse.Namespace) -> int:
    """Dispatch a single download.

    Flow:
    1. Build the options value from the flags.
    2. Choose the progress reporter (silent → none, else Rich).
    3. Run the async pipeline to completion.
    4. Report where the file went.
    """
    from vidgrab.core.progress import NullReporter
    from vidgrab.utils.formatting import format_bytes

    options = _options_from_args(args)

    if args.silent:
        reporter: ProgressReporter = NullReporter()
        display: Any = contextlib.nullcontext()
    else:
        from vidgrab.cli.progress import RichProgressReporter

        reporter = display = RichProgressReporter()
        console.print(f"\n[bold]Fetching metadata…[/bold]  {url}\n")

    with display:
        result = asyncio.run(_run_download(url, options, reporter))

    if not args.silent:
        console.print(
            f"\n[bold green]Download complete.[/bold green]  "
            f"{result.file_path} ({format_bytes(result.file_size)})"
        )
    return exit_codes.SUCCESS


def _handle_info(url: str) -> int:
    """Dispatch the ``info`` command."""
    from vidgrab.cli.info import render_catalog
    from vidgrab.core.metadata_service import MetadataService
    from vidgrab.infra.ytdlp_provider import YtDlpMetadataProvider

    catalog = MetadataService(YtDlpMetadataProvider()).get_info(url)
    render_catalog(catalog)
    return exit_codes.SUCCESS


def _handle_doctor() -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from vidgrab.cli.doctor import run_doctor

    return run_doctor()


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the vidgrab CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, silent=args.silent)

    if args.target is None:
        parser.print_help()
        return exit_codes.SUCCESS

    command = args.target.lower()
    if command == "doctor":
        return _handle_doctor()

    if command == "info":
        if args.url is None:
            console.print("[bold red]Error:[/bold red] info requires a URL.")
            return exit_codes.USAGE_ERROR
        return _handle_info(args.url)

    if args.url is not None:
        console.print(
            f"[bold red]Error:[/bold red] unknown command {args.target!r} "
            f"(expected one of: {', '.join(_COMMANDS)})."
        )
        return exit_codes.USAGE_ERROR

    return _handle_download(args.target, args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except VidgrabError as exc:
        logger.debug("Command failed", exc_info=exc)
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
