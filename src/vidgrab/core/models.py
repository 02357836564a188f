"""Domain models for vidgrab.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and cheap derived properties.  They carry
zero I/O, zero dependencies on external packages, and must remain pure
across the entire lifecycle.
"""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, field
from pathlib import Path

from vidgrab.utils.formatting import format_bytes


# ---------------------------------------------------------------------------
# Quality ladder
# ---------------------------------------------------------------------------

QUALITY_LADDER: tuple[int, ...] = (144, 240, 360, 480, 720, 1080, 1440, 2160)
"""Canonical video heights, lowest first."""


def quality_to_height(label: str) -> int:
    """Map a free-form quality label to a ladder height.

    Matching is a case-insensitive substring test from the top rung down,
    so ``"1080p60"`` is 1080 and ``"4K"`` is 2160.  Labels that match no
    rung (``"medium"``, ``"audio"``, ``""``) map to ``0``.
    """
    lowered = label.lower()
    if "4k" in lowered:
        return 2160
    for height in reversed(QUALITY_LADDER):
        if str(height) in lowered:
            return height
    return 0


# ---------------------------------------------------------------------------
# Streams and catalogs
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Stream:
    """One encoded rendition of a resource.

    ``quality`` is kept verbatim for display and exact matching;
    ``height`` is derived from it once at construction for ordering.
    """

    url: str
    """Direct byte-source URL."""

    quality: str
    """Free-form label such as ``"720p"``, ``"1080p60"`` or ``"audio"``."""

    format: str
    """Container tag (e.g. ``mp4``, ``webm``, ``m4a``)."""

    video_codec: str | None = None
    audio_codec: str | None = None
    is_audio_only: bool = False

    file_size: int | None = None
    """Size in bytes, when the extractor knows it."""

    bitrate: int | None = None
    """Bitrate in kbit/s, when known."""

    fps: int | None = None

    height: int = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "height", quality_to_height(self.quality))

    def description(self) -> str:
        """Return a one-line summary, e.g. ``"1080p60 avc1 60fps mp4"``."""
        parts = [self.quality]
        if self.video_codec:
            parts.append(self.video_codec)
        if self.fps is not None and self.fps > 30:
            parts.append(f"{self.fps}fps")
        parts.append(self.format)
        return " ".join(parts)

    def formatted_size(self) -> str | None:
        if self.file_size is None:
            return None
        return format_bytes(self.file_size)


@dataclass(frozen=True, slots=True)
class RenditionCatalog:
    """Everything the extractor found for one resource.

    The tuple guarantees immutability.  Stream order carries no meaning
    beyond tie-breaking during selection.
    """

    id: str
    title: str
    duration: int
    """Duration in whole seconds (non-negative)."""

    streams: tuple[Stream, ...] = ()
    channel: str | None = None
    publish_date: datetime.date | None = None
    webpage_url: str = ""

    def __len__(self) -> int:
        return len(self.streams)

    def __bool__(self) -> bool:
        return len(self.streams) > 0

    @property
    def video_streams(self) -> tuple[Stream, ...]:
        return tuple(s for s in self.streams if not s.is_audio_only)

    @property
    def audio_streams(self) -> tuple[Stream, ...]:
        return tuple(s for s in self.streams if s.is_audio_only)


# ---------------------------------------------------------------------------
# Quality preference
# ---------------------------------------------------------------------------

class FilterKind(enum.Enum):
    BEST = "best"
    WORST = "worst"
    EXACT = "exact"
    MAX_HEIGHT = "max_height"


class TieBreak(enum.Enum):
    """Which stream wins when several share the extreme height."""

    FIRST = "first"
    LAST = "last"


@dataclass(frozen=True, slots=True)
class QualityFilter:
    """A requested quality: best, worst, an exact label, or a height cap."""

    kind: FilterKind
    height: int | None = None

    def __post_init__(self) -> None:
        needs_height = self.kind in (FilterKind.EXACT, FilterKind.MAX_HEIGHT)
        if needs_height and self.height is None:
            raise ValueError(f"{self.kind.value} filter requires a height")

    @classmethod
    def best(cls) -> QualityFilter:
        return cls(FilterKind.BEST)

    @classmethod
    def worst(cls) -> QualityFilter:
        return cls(FilterKind.WORST)

    @classmethod
    def exact(cls, height: int) -> QualityFilter:
        return cls(FilterKind.EXACT, height)

    @classmethod
    def max_height(cls, height: int) -> QualityFilter:
        return cls(FilterKind.MAX_HEIGHT, height)

    @property
    def label(self) -> str:
        """Human-readable form used in error messages."""
        if self.kind is FilterKind.EXACT:
            return f"{self.height}p"
        if self.kind is FilterKind.MAX_HEIGHT:
            return f"<={self.height}p"
        return self.kind.value


# ---------------------------------------------------------------------------
# Filename metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FilenameMetadata:
    """Values available to filename templates."""

    title: str
    id: str
    date: datetime.date | None = None
    """Publish date; templates fall back to today when ``None``."""

    duration: str | None = None


# ---------------------------------------------------------------------------
# Download outcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DownloadResult:
    """What a finished download produced."""

    file_path: Path
    file_size: int
    video_id: str
    video_title: str
