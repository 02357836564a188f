"""``vidgrab info <url>`` — show what a resource offers without downloading.

All display-related logic lives here — no selection, no transfer.
"""

from __future__ import annotations

from typing import Any

from vidgrab.cli.console import console
from vidgrab.core.models import RenditionCatalog, Stream
from vidgrab.core.quality import available_qualities
from vidgrab.exceptions import EnvironmentError
from vidgrab.utils.formatting import format_duration


def _import_rich_table() -> type[Any]:
    """Import rich table lazily for catalog rendering."""
    try:
        from rich.table import Table
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "rich is not installed. Install with: pip install rich",
        ) from exc
    return Table


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms, no I/O)
# ---------------------------------------------------------------------------

def _cell(value: object | None) -> str:
    return "—" if value is None else str(value)


def stream_row(stream: Stream) -> tuple[str, ...]:
    """Cells for one table row."""
    codec = stream.audio_codec if stream.is_audio_only else stream.video_codec
    bitrate = f"{stream.bitrate}k" if stream.bitrate is not None else None
    return (
        stream.quality,
        stream.format,
        _cell(codec),
        _cell(stream.fps),
        _cell(bitrate),
        stream.formatted_size() or "Unknown",
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_catalog(catalog: RenditionCatalog) -> None:
    """Print the catalog header, a stream table and the quality list."""
    table_class = _import_rich_table()

    console.print()
    console.print(f"[bold cyan]Title:[/bold cyan]    {catalog.title}")
    console.print(f"[bold cyan]ID:[/bold cyan]       {catalog.id}")
    if catalog.channel:
        console.print(f"[bold cyan]Channel:[/bold cyan]  {catalog.channel}")
    console.print(f"[bold cyan]Duration:[/bold cyan] {format_duration(catalog.duration)}")
    if catalog.publish_date is not None:
        console.print(f"[bold cyan]Date:[/bold cyan]     {catalog.publish_date.isoformat()}")
    console.print()

    table = table_class(
        title=f"Streams ({len(catalog)})",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("Quality", justify="left", min_width=8)
    table.add_column("Container", justify="left", min_width=6)
    table.add_column("Codec", justify="left")
    table.add_column("FPS", justify="right")
    table.add_column("Bitrate", justify="right")
    table.add_column("Size", justify="right", min_width=10)

    for stream in (*catalog.video_streams, *catalog.audio_streams):
        table.add_row(*stream_row(stream))

    console.print(table)

    qualities = available_qualities(catalog)
    if qualities:
        console.print(f"[bold]Available qualities:[/bold] {', '.join(qualities)}")
    else:
        console.print("[yellow]No video streams found.[/yellow]")
    console.print()
