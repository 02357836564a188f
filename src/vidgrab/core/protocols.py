"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Any, Protocol

from vidgrab.core.models import RenditionCatalog


class MetadataProvider(Protocol):
    """Contract for raw metadata extraction backends.

    Any object that implements :meth:`fetch_info` with the correct
    signature satisfies this protocol structurally (no explicit
    inheritance required).
    """

    def fetch_info(self, url: str) -> dict[str, Any]:
        """Fetch raw metadata for *url* and return a provider-specific dict.

        The returned dict must contain at least:

        * ``"id"`` — video identifier (``str``)
        * ``"title"`` — video title (``str``)
        * ``"formats"`` — list of format dicts (``list[dict]``)

        Implementations must map all backend-specific exceptions to
        :class:`~vidgrab.exceptions.VidgrabError` subclasses.

        Raises
        ------
        MetadataExtractionError
            When the backend fails to extract metadata.
        VideoUnavailableError
            When the target video is confirmed unavailable.
        """
        ...  # pragma: no cover


class Extractor(Protocol):
    """Produces the rendition catalog for a resource URL."""

    def get_info(self, url: str) -> RenditionCatalog:
        """Return the catalog for *url*.

        Raises
        ------
        InvalidURLError
            If *url* is empty or malformed.
        MetadataExtractionError
            If the backend fails or returns something unparsable.
        VideoUnavailableError
            If the resource is private, removed or region-blocked.
        """
        ...  # pragma: no cover


class ByteResponse(Protocol):
    """An open streaming response from a byte source."""

    @property
    def status(self) -> int:
        ...  # pragma: no cover

    @property
    def reason(self) -> str:
        ...  # pragma: no cover

    @property
    def content_length(self) -> int:
        """Declared body size in bytes; ``0`` when not declared."""
        ...  # pragma: no cover

    def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Yield body chunks in arrival order.

        Transport failures while reading surface as retryable
        :class:`~vidgrab.exceptions.TransferError` subclasses.
        """
        ...  # pragma: no cover


class ByteSource(Protocol):
    """Issues streaming GET requests."""

    def open(self, url: str) -> AbstractAsyncContextManager[ByteResponse]:
        """Connect to *url* and yield the response headers and body stream.

        Raises
        ------
        ConnectionFailedError, TransferTimeoutError, NetworkError
            When the request cannot be issued.
        """
        ...  # pragma: no cover


class Encoder(Protocol):
    """Post-download media conversion."""

    def convert(self, source: Path, target: Path) -> Path:
        """Convert *source* into *target* and return *target*.

        Raises
        ------
        FfmpegNotFoundError
            When the conversion tool is not installed.
        EncodingError
            When conversion fails.
        """
        ...  # pragma: no cover
