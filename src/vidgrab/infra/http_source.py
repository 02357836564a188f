"""aiohttp backed implementation of :class:`~vidgrab.core.protocols.ByteSource`.

This module is the **only** place in the codebase that imports
``aiohttp``.  Transport failures are translated into the retryable
:class:`~vidgrab.exceptions.TransferError` family both while connecting
and while the body streams; status codes are passed through untouched
for the transfer engine to judge.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp

from vidgrab.exceptions import (
    ConnectionFailedError,
    DownloadInterruptedError,
    NetworkError,
    TransferError,
    TransferTimeoutError,
)
from vidgrab.version import __version__

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_TIMEOUT: float | None = None
DEFAULT_CONNECT_TIMEOUT: float = 30.0
DEFAULT_READ_TIMEOUT: float = 60.0
USER_AGENT: str = f"vidgrab/{__version__}"


def map_transport_error(exc: BaseException) -> TransferError:
    """Translate an aiohttp / asyncio failure into a typed transfer error."""
    if isinstance(exc, asyncio.TimeoutError):
        return TransferTimeoutError(str(exc) or "no response within the time limit")
    if isinstance(exc, (aiohttp.ClientConnectorError, aiohttp.ServerDisconnectedError)):
        return ConnectionFailedError(str(exc) or type(exc).__name__)
    if isinstance(exc, aiohttp.ClientPayloadError):
        return DownloadInterruptedError(str(exc) or "response body ended early")
    return NetworkError(str(exc) or type(exc).__name__)


class _AiohttpResponse:
    """Adapts :class:`aiohttp.ClientResponse` to the ``ByteResponse`` protocol."""

    def __init__(self, response: aiohttp.ClientResponse) -> None:
        self._response = response

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def reason(self) -> str:
        return self._response.reason or ""

    @property
    def content_length(self) -> int:
        raw = self._response.headers.get("Content-Length")
        try:
            return max(int(raw), 0) if raw is not None else 0
        except ValueError:
            return 0

    async def iter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.content.iter_chunked(chunk_size):
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise map_transport_error(exc) from exc


class AiohttpByteSource:
    """Streaming GET requests over one shared :class:`aiohttp.ClientSession`.

    The session is created lazily on first use and must be released with
    :meth:`close` (or by using the source as an async context manager).

    Parameters
    ----------
    total_timeout:
        Overall limit per request in seconds; ``None`` disables it so
        large files are not cut off.
    connect_timeout:
        Limit for establishing the connection.
    read_timeout:
        Limit for waiting on any single read.
    user_agent:
        Value of the ``User-Agent`` header.
    """

    def __init__(
        self,
        *,
        total_timeout: float | None = DEFAULT_TOTAL_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(
            total=total_timeout,
            connect=connect_timeout,
            sock_read=read_timeout,
        )
        self._headers: dict[str, str] = {"User-Agent": user_agent}
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AiohttpByteSource:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers=self._headers,
            )
        return self._session

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[_AiohttpResponse]:
        """Issue a GET for *url* and yield the streaming response."""
        session = self._get_session()
        logger.debug("GET %s", url)
        try:
            response = await session.get(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise map_transport_error(exc) from exc

        try:
            yield _AiohttpResponse(response)
        finally:
            response.release()

    async def close(self) -> None:
        """Close the underlying session (idempotent)."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
