"""ffmpeg backed implementation of :class:`~vidgrab.core.protocols.Encoder`.

Used for one job: turning a downloaded audio-only stream (``m4a``,
``webm``) into the container the user asked for.  The target format is
implied by the target file's extension.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from vidgrab.exceptions import EncodingError
from vidgrab.infra.ffmpeg_detector import require_ffmpeg

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES: int = 5


class FfmpegEncoder:
    """Run ``ffmpeg -y -i <source> [-vn] <target>`` as a subprocess.

    Parameters
    ----------
    audio_only:
        Drop any video track (``-vn``).
    """

    def __init__(self, *, audio_only: bool = True) -> None:
        self._audio_only: bool = audio_only

    def build_command(self, ffmpeg: Path | str, source: Path, target: Path) -> list[str]:
        cmd = [str(ffmpeg), "-y", "-i", str(source)]
        if self._audio_only:
            cmd.append("-vn")
        cmd.append(str(target))
        return cmd

    def convert(self, source: Path, target: Path) -> Path:
        """Convert *source* into *target*.

        Raises
        ------
        FfmpegNotFoundError
            When ffmpeg is not on PATH.
        EncodingError
            When the input is missing or ffmpeg exits non-zero.
        """
        if not source.is_file() or source.stat().st_size == 0:
            raise EncodingError(f"Input file is missing or empty: {source}")

        ffmpeg = require_ffmpeg()
        cmd = self.build_command(ffmpeg, source, target)
        logger.debug("Running %s", " ".join(cmd))

        try:
            completed = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            raise EncodingError(f"Could not start ffmpeg: {exc}") from exc

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="ignore").strip()
            tail = "\n".join(stderr.splitlines()[-_STDERR_TAIL_LINES:])
            raise EncodingError(
                f"ffmpeg exited with status {completed.returncode}",
                hint=tail or None,
            )
        return target
