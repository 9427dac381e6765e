"""HTTP client helper."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import aiohttp

from ..core.exceptions import TransportError
from ..core.response import Response

if TYPE_CHECKING:
    from ..core.request import Request, WireRequest


class HTTPClient:
    """Async HTTP client wrapper owning one ``aiohttp.ClientSession``.

    The session (and its connection pool) is shared by every request sent
    through this client and is safe for concurrent use.
    """

    def __init__(self, timeout: float = 20.0) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def send(self, wire: WireRequest, request: Request | None = None) -> Response:
        """Send a wire request and return once the response headers arrive.

        The body is left unread; ``Response.read()`` fetches it lazily.

        Raises:
            TransportError: On connection, timeout or transport I/O failure
        """
        try:
            raw = await self.session.request(
                wire.method,
                wire.url,
                headers=wire.headers,
                data=wire.body,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise TransportError(f"{wire.method} {wire.url} failed: {type(e).__name__}: {e}") from e
        return Response(raw, request)

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
