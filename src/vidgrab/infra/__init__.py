"""Infrastructure layer — external system integration.

This layer wraps all interaction with yt-dlp, aiohttp, the operating
system, and ffmpeg.  Every raw third-party exception must be caught here
and re-raised as a :class:`~vidgrab.exceptions.VidgrabError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.

``aiohttp`` is imported by :mod:`vidgrab.infra.http_source` only; import
that module directly so the metadata path does not pay for it.
"""

from vidgrab.infra.ffmpeg_detector import FfmpegStatus, detect_ffmpeg, require_ffmpeg
from vidgrab.infra.ffmpeg_encoder import FfmpegEncoder
from vidgrab.infra.ytdlp_provider import YtDlpMetadataProvider

__all__: list[str] = [
    "FfmpegEncoder",
    "FfmpegStatus",
    "YtDlpMetadataProvider",
    "detect_ffmpeg",
    "require_ffmpeg",
]
