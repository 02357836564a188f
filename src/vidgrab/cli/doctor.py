"""``vidgrab doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies vidgrab's requirements.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import enum
import importlib
import importlib.metadata
import platform
import sys
from dataclasses import dataclass
from typing import Any

from vidgrab.cli import exit_codes
from vidgrab.cli.console import console
from vidgrab.infra.ffmpeg_detector import detect_ffmpeg
from vidgrab.version import __version__


class CheckStatus(enum.Enum):
    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"

    @property
    def markup(self) -> str:
        colour = {"OK": "green", "WARN": "yellow", "FAIL": "red"}[self.value]
        return f"[{colour}]{self.value}[/{colour}]"


@dataclass(frozen=True, slots=True)
class Check:
    """One row of the doctor table."""

    component: str
    value: str
    status: CheckStatus
    note: str = ""


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _vidgrab_check() -> Check:
    return Check("vidgrab", __version__, CheckStatus.OK)


def _python_check() -> Check:
    ok = sys.version_info[:2] >= (3, 10)
    return Check(
        "Python",
        platform.python_version(),
        CheckStatus.OK if ok else CheckStatus.FAIL,
        "" if ok else ">=3.10 required",
    )


def _package_check(
    component: str,
    module: str,
    distribution: str,
    *,
    required: bool = True,
) -> Check:
    """Import *module* and report the installed version of *distribution*."""
    try:
        imported = importlib.import_module(module)
    except ImportError:
        status = CheckStatus.FAIL if required else CheckStatus.WARN
        return Check(component, "NOT INSTALLED", status, f"pip install {distribution}")

    try:
        version = importlib.metadata.version(distribution)
    except importlib.metadata.PackageNotFoundError:
        version = str(getattr(imported, "__version__", "unknown"))
    return Check(component, version, CheckStatus.OK)


def _ffmpeg_check() -> Check:
    status = detect_ffmpeg()
    if status.found:
        return Check("ffmpeg", str(status.path), CheckStatus.OK)
    return Check("ffmpeg", "not found", CheckStatus.WARN, "needed for audio conversion")


def _os_check() -> Check:
    system_raw = platform.system()
    system_display = {"Darwin": "macOS"}.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return Check("OS", value, CheckStatus.OK)


def collect_checks() -> list[Check]:
    """Run every probe, in display order."""
    return [
        _vidgrab_check(),
        _python_check(),
        _package_check("yt-dlp", "yt_dlp", "yt-dlp"),
        _package_check("aiohttp", "aiohttp", "aiohttp"),
        _package_check("aiofiles", "aiofiles", "aiofiles"),
        _package_check("rich", "rich", "rich", required=False),
        _ffmpeg_check(),
        _os_check(),
    ]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _print_plain_doctor_table(checks: list[Check]) -> None:
    """Render doctor output without Rich."""
    print("\nvidgrab doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<12} {'Value':<36} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for check in checks:
        print(f"{check.component:<12} {check.value:<36} {check.status.value:<8}", file=sys.stderr)
    print(file=sys.stderr)


def _print_rich_doctor_table(table_class: type[Any], checks: list[Check]) -> None:
    table = table_class(
        title="vidgrab doctor",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Component", style="bold", min_width=12)
    table.add_column("Value", min_width=20)
    table.add_column("Status", justify="center", min_width=8)
    table.add_column("Note", style="dim")

    for check in checks:
        table.add_row(check.component, check.value, check.status.markup, check.note)

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor() -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when no check failed,
        :data:`exit_codes.GENERAL_ERROR` otherwise.  Warnings do not fail.
    """
    checks = collect_checks()
    has_failure = any(check.status is CheckStatus.FAIL for check in checks)

    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_doctor_table(checks)
    else:
        _print_rich_doctor_table(Table, checks)

    ffmpeg_status = detect_ffmpeg()
    if not ffmpeg_status.found and ffmpeg_status.install_commands:
        console.print("[yellow]ffmpeg is not installed.[/yellow]")
        console.print("Install using one of the following commands:\n")
        for cmd in ffmpeg_status.install_commands:
            console.print(f"  [bold]{cmd}[/bold]")
        console.print()

    if has_failure:
        console.print("[bold red]Some checks failed.[/bold red]")
        return exit_codes.GENERAL_ERROR

    console.print("[bold green]All checks passed.[/bold green]")
    return exit_codes.SUCCESS
