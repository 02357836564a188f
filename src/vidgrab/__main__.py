"""Allow ``python -m vidgrab`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m vidgrab`` behaves identically to the ``vidgrab``
console script.
"""

from __future__ import annotations

from vidgrab.cli.app import cli

if __name__ == "__main__":
    cli()
