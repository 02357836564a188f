"""Human-readable formatting and path helpers."""

from __future__ import annotations

from pathlib import Path

_UNIT: int = 1024
_PREFIXES: str = "KMGTPE"


def format_bytes(size: int) -> str:
    """Render *size* in binary units: ``"512 B"``, ``"1.50 KB"``, ``"3.00 GB"``."""
    if size < _UNIT:
        return f"{size} B"
    exponent = 0
    value = float(size)
    while value >= _UNIT and exponent < len(_PREFIXES):
        value /= _UNIT
        exponent += 1
    return f"{value:.2f} {_PREFIXES[exponent - 1]}B"


def format_duration(total_seconds: int) -> str:
    """Render seconds as ``HH:MM:SS``."""
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def expand_path(path: str | Path) -> Path:
    """Expand a leading ``~`` to the user's home directory."""
    return Path(path).expanduser()
