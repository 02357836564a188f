"""Logging setup for the CLI layer.

Library modules only ever call ``logging.getLogger(__name__)``; handlers
are installed here, once, by the CLI entry point.  Rendering goes through
Rich when it is importable and falls back to a plain stderr handler
otherwise.
"""

from __future__ import annotations

import logging

_LOGGER_NAME = "vidgrab"


def resolve_level(*, verbose: bool = False, silent: bool = False) -> int:
    """Map CLI verbosity flags to a logging level (silent wins)."""
    if silent:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def configure_logging(*, verbose: bool = False, silent: bool = False) -> logging.Logger:
    """Attach a single handler to the ``vidgrab`` logger and set its level.

    Calling this again replaces the previous handler rather than
    stacking a second one.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(resolve_level(verbose=verbose, silent=silent))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler: logging.Handler
    try:
        from rich.console import Console
        from rich.logging import RichHandler
    except ImportError:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(levelname)s %(name)s: %(message)s"),
        )
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=verbose,
            markup=False,
            rich_tracebacks=verbose,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    return logger
