"""Shared pytest fixtures and configuration for the vidgrab test suite.

Guidelines
----------
* No internet access in any test.
* yt-dlp and aiohttp must be mocked at the infra boundary.
* Core tests must be pure — no side effects outside ``tmp_path``.
* Tests must not depend on OS state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def _reset_vidgrab_logger() -> Iterator[None]:
    """Drop handlers installed by ``configure_logging`` during a test."""
    yield
    logger = logging.getLogger("vidgrab")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
