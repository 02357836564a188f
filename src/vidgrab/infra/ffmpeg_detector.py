"""Infrastructure: ffmpeg detection and platform guidance.

ffmpeg is only needed when an audio-only download is converted to a
different container, so its absence is reported, not fatal, until a
conversion is actually requested.

Rules
-----
* Detection via :func:`shutil.which` only — no subprocess.
* No automatic installation.
* No ``print()`` — callers handle user-facing output.
"""

from __future__ import annotations

import platform
import shutil
from dataclasses import dataclass
from pathlib import Path

from vidgrab.exceptions import FfmpegNotFoundError


@dataclass(frozen=True, slots=True)
class FfmpegStatus:
    """Result of an ffmpeg detection probe.

    ``install_commands`` is empty when ffmpeg is already present.
    """

    found: bool
    path: Path | None
    detail: str
    install_commands: tuple[str, ...]


def detect_ffmpeg(executable: str = "ffmpeg") -> FfmpegStatus:
    """Probe PATH for *executable*; never raises."""
    located = shutil.which(executable)
    if located is None:
        return FfmpegStatus(
            found=False,
            path=None,
            detail="not found",
            install_commands=_platform_install_commands(),
        )

    resolved = Path(located).resolve()
    return FfmpegStatus(
        found=True,
        path=resolved,
        detail=f"found at {resolved}",
        install_commands=(),
    )


def require_ffmpeg() -> Path:
    """Locate ffmpeg or raise :class:`FfmpegNotFoundError` with install hints."""
    status = detect_ffmpeg()
    if status.found and status.path is not None:
        return status.path

    hint: str | None = None
    if status.install_commands:
        hint = "\n".join(
            ["Install ffmpeg using one of:"]
            + [f"  {cmd}" for cmd in status.install_commands]
            + ["Or pass --no-convert to keep the original audio container."]
        )
    raise FfmpegNotFoundError("ffmpeg is not installed or not on PATH.", hint=hint)


_INSTALL_COMMANDS: dict[str, tuple[str, ...]] = {
    "windows": ("winget install Gyan.FFmpeg", "choco install ffmpeg"),
    "linux": (
        "sudo apt install ffmpeg",
        "sudo dnf install ffmpeg",
        "sudo pacman -S ffmpeg",
    ),
    "darwin": ("brew install ffmpeg",),
}


def _platform_install_commands() -> tuple[str, ...]:
    return _INSTALL_COMMANDS.get(
        platform.system().lower(),
        ("Please install ffmpeg from https://ffmpeg.org/download.html",),
    )
