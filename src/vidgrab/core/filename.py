"""Destination filename construction.

Templates understand four placeholders — ``{title}``, ``{id}``,
``{date}`` and ``{duration}``.  Anything else in braces is copied through
untouched; there is no escaping syntax.
"""

from __future__ import annotations

import datetime
import re

from vidgrab.core.models import FilenameMetadata

_SAFE_PUNCTUATION = frozenset("._- ")
_WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_filename(name: str) -> str:
    """Make *name* safe for every common filesystem.

    Characters other than letters, digits, ``.``, ``-``, ``_`` and space
    become ``_``; runs of ``_`` (including ones separated only by
    whitespace) collapse to one, leading/trailing underscores disappear,
    then surrounding whitespace is stripped.  Applying it twice changes
    nothing.
    """
    replaced = "".join(
        ch if ch.isalnum() or ch in _SAFE_PUNCTUATION else "_"
        for ch in name
    )
    pieces = [piece for piece in replaced.split("_") if piece.strip()]
    return "_".join(pieces).strip()


def apply_template(template: str, metadata: FilenameMetadata) -> str:
    """Substitute the known placeholders in *template*."""
    date = metadata.date or datetime.date.today()
    return (
        template
        .replace("{title}", sanitize_filename(metadata.title))
        .replace("{id}", metadata.id)
        .replace("{date}", date.strftime("%Y-%m-%d"))
        .replace("{duration}", metadata.duration or "")
    )


def resolve_filename(
    template: str,
    metadata: FilenameMetadata,
    extension: str,
    *,
    restrict: bool = True,
) -> str:
    """Build the final file name, extension included.

    With *restrict* (the default) whitespace is replaced by ``_`` as
    well, so ``"{title}_{id}"`` for ``"My Video!"`` / ``"abc123"`` gives
    ``"My_Video_abc123"``.
    """
    base = apply_template(template, metadata)
    if restrict:
        base = _WHITESPACE_RUN.sub("_", base.strip())
        base = "_".join(piece for piece in base.split("_") if piece)

    ext = extension.lstrip(".")
    if not ext:
        return base
    return f"{base}.{ext}"
