"""Pure rendition selection against the quality ladder.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.

Selection rules:

* Audio-only streams never take part in video selection; they have their
  own pool ranked by bitrate (:func:`best_audio_stream`).
* ``Best`` / ``Worst`` / ``MaxHeight`` compare the parsed numeric height.
* ``Exact`` compares the raw label against ``"{height}p"``
  case-insensitively, so ``"1080p60"`` does not satisfy ``Exact(1080)``.
* Among equal heights the :class:`TieBreak` decides; ``LAST`` keeps the
  last stream in catalog order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from vidgrab.core.models import (
    QUALITY_LADDER,
    FilterKind,
    QualityFilter,
    RenditionCatalog,
    Stream,
    TieBreak,
    quality_to_height,
)
from vidgrab.exceptions import QualityNotAvailableError

__all__: list[str] = [
    "available_qualities",
    "best_audio_stream",
    "parse_quality_filter",
    "quality_to_height",
    "select",
    "select_stream",
]


# ---------------------------------------------------------------------------
# Extremum helpers
# ---------------------------------------------------------------------------

def _pick(
    streams: Iterable[Stream],
    key: Callable[[Stream], int],
    *,
    highest: bool,
    tie_break: TieBreak,
) -> Stream | None:
    """Return the stream with the highest (or lowest) *key*.

    A later stream replaces the current pick on equality only when
    *tie_break* is :attr:`TieBreak.LAST`.
    """
    chosen: Stream | None = None
    chosen_key = 0
    for stream in streams:
        value = key(stream)
        if chosen is None:
            chosen, chosen_key = stream, value
            continue
        better = value > chosen_key if highest else value < chosen_key
        if better or (value == chosen_key and tie_break is TieBreak.LAST):
            chosen, chosen_key = stream, value
    return chosen


def _height(stream: Stream) -> int:
    return stream.height


def _bitrate(stream: Stream) -> int:
    return stream.bitrate or 0


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def select(
    catalog: RenditionCatalog,
    quality_filter: QualityFilter,
    *,
    tie_break: TieBreak = TieBreak.LAST,
) -> Stream | None:
    """Pick one video stream for *quality_filter*, or ``None``."""
    videos = catalog.video_streams

    if quality_filter.kind is FilterKind.BEST:
        return _pick(videos, _height, highest=True, tie_break=tie_break)

    if quality_filter.kind is FilterKind.WORST:
        return _pick(videos, _height, highest=False, tie_break=tie_break)

    if quality_filter.kind is FilterKind.EXACT:
        wanted = f"{quality_filter.height}p"
        return next(
            (s for s in videos if s.quality.lower() == wanted.lower()),
            None,
        )

    limit = quality_filter.height if quality_filter.height is not None else 0
    capped = [s for s in videos if s.height <= limit]
    return _pick(capped, _height, highest=True, tie_break=tie_break)


def available_qualities(catalog: RenditionCatalog) -> list[str]:
    """List distinct video labels, highest parsed height first.

    Duplicates keep their first occurrence; equal heights keep
    discovery order (``sorted`` is stable).
    """
    seen: set[str] = set()
    labels: list[str] = []
    for stream in catalog.video_streams:
        if stream.quality not in seen:
            seen.add(stream.quality)
            labels.append(stream.quality)
    return sorted(labels, key=lambda label: -quality_to_height(label))


def select_stream(
    catalog: RenditionCatalog,
    quality_filter: QualityFilter,
    *,
    fallback_to_best: bool = False,
    tie_break: TieBreak = TieBreak.LAST,
) -> Stream:
    """Select a stream or raise :class:`QualityNotAvailableError`.

    With *fallback_to_best*, a filter that matches nothing is retried as
    ``Best`` before giving up.
    """
    chosen = select(catalog, quality_filter, tie_break=tie_break)
    if chosen is None and fallback_to_best and quality_filter.kind is not FilterKind.BEST:
        chosen = select(catalog, QualityFilter.best(), tie_break=tie_break)

    if chosen is None:
        raise QualityNotAvailableError(
            quality_filter.label,
            available_qualities(catalog),
            hint="Pick one of the available qualities with --quality.",
        )
    return chosen


def best_audio_stream(
    catalog: RenditionCatalog,
    *,
    tie_break: TieBreak = TieBreak.LAST,
) -> Stream | None:
    """Return the audio-only stream with the highest known bitrate."""
    return _pick(catalog.audio_streams, _bitrate, highest=True, tie_break=tie_break)


# ---------------------------------------------------------------------------
# User input
# ---------------------------------------------------------------------------

_NAMED_HEIGHTS: dict[str, int] = {
    **{f"{height}p": height for height in QUALITY_LADDER},
    "4k": 2160,
}


def parse_quality_filter(text: str) -> QualityFilter:
    """Translate user text into a :class:`QualityFilter`.

    ``"720p"`` caps the height at 720, ``"=720p"`` demands that exact
    label, ``"worst"`` picks the lowest rung, and anything unrecognised
    means ``best``.
    """
    value = text.strip().lower()
    exact = value.startswith("=")
    if exact:
        value = value[1:]

    if value == "worst":
        return QualityFilter.worst()

    height = _NAMED_HEIGHTS.get(value)
    if height is None:
        return QualityFilter.best()
    if exact:
        return QualityFilter.exact(height)
    return QualityFilter.max_height(height)
