"""Download options — one immutable value per operation.

Variants are produced with :func:`dataclasses.replace`; nothing here
mutates after construction.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vidgrab.core.models import QualityFilter
from vidgrab.core.quality import parse_quality_filter
from vidgrab.utils.formatting import expand_path

VIDEO_FORMATS: tuple[str, ...] = ("mp4", "mkv", "webm")
AUDIO_FORMATS: tuple[str, ...] = ("mp3", "m4a", "flac", "wav", "opus")

DEFAULT_VIDEO_FORMAT: str = "mp4"
DEFAULT_AUDIO_FORMAT: str = "mp3"
DEFAULT_RETRY_ATTEMPTS: int = 3
DEFAULT_TEMPLATE: str = "{title}"


def parse_video_format(text: str) -> str:
    """Normalise a video container name; unknown names give ``mp4``."""
    value = text.strip().lower()
    return value if value in VIDEO_FORMATS else DEFAULT_VIDEO_FORMAT


def parse_audio_format(text: str) -> str:
    """Normalise an audio format name; unknown names give ``mp3``."""
    value = text.strip().lower()
    return value if value in AUDIO_FORMATS else DEFAULT_AUDIO_FORMAT


@dataclass(frozen=True, slots=True)
class DownloadOptions:
    """Everything a single download needs to know up front."""

    output_dir: Path = field(default_factory=lambda: Path("."))
    quality: QualityFilter = field(default_factory=QualityFilter.best)
    video_format: str = DEFAULT_VIDEO_FORMAT
    audio_format: str = DEFAULT_AUDIO_FORMAT
    audio_only: bool = False
    filename_template: str = DEFAULT_TEMPLATE

    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    """Total attempts, the first one included."""

    fallback_to_best: bool = True
    """Download the best stream when the requested quality is missing."""

    convert_audio: bool = True
    """Re-encode audio-only downloads to :attr:`audio_format`."""

    def __post_init__(self) -> None:
        if self.retry_attempts < 0:
            raise ValueError("retry_attempts must not be negative")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> DownloadOptions:
        """Build options from plain values, e.g. parsed config or CLI flags.

        Missing keys and ``None`` values keep the defaults.
        """
        kwargs: dict[str, Any] = {}

        output_dir = values.get("output_dir")
        if output_dir is not None:
            kwargs["output_dir"] = expand_path(output_dir)

        quality = values.get("quality")
        if isinstance(quality, QualityFilter):
            kwargs["quality"] = quality
        elif quality is not None:
            kwargs["quality"] = parse_quality_filter(str(quality))

        video_format = values.get("video_format")
        if video_format is not None:
            kwargs["video_format"] = parse_video_format(str(video_format))

        audio_format = values.get("audio_format")
        if audio_format is not None:
            kwargs["audio_format"] = parse_audio_format(str(audio_format))

        template = values.get("filename_template")
        if template:
            kwargs["filename_template"] = str(template)

        retries = values.get("retry_attempts")
        if retries is not None:
            kwargs["retry_attempts"] = int(retries)

        for flag in ("audio_only", "fallback_to_best", "convert_audio"):
            if values.get(flag) is not None:
                kwargs[flag] = bool(values[flag])

        return cls(**kwargs)
