"""Logical request and its materialized wire form.

A ``Request`` is the caller's declarative description of one HTTP call. It
is configured through chained mutators and turned into a ``WireRequest``
exactly once by ``materialize()``; after that the cached wire request is
reused by every attempt and every later execution.

A ``Request`` is not safe for concurrent execution: the wire-request cache
and the timestamps are unsynchronized. Do not hand the same instance to two
executors at once.
"""

from __future__ import annotations

import json as _json
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from multidict import CIMultiDict, MultiDict
from yarl import URL

from .config import ServiceConfig
from .exceptions import ConfigurationError, MaterializationError
from .hooks import AfterResponseFn, AfterResponseHook, BeforeSendFn, BeforeSendHook, HookSet

if TYPE_CHECKING:
    from ..runtime.http_client import HTTPClient
    from .response import ResultEnvelope
    from .service import Service

# RFC 9110 token characters
_METHOD_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_SCHEMES = frozenset({"http", "https"})
# RFC 3986 reg-name and IP literal characters, without percent-encoding
_HOST_RE = re.compile(r"[A-Za-z0-9\-._~!$&'()*+,;=:]+")


@dataclass
class WireRequest:
    """Materialized request handed to the transport.

    Before-send hooks may mutate ``headers`` (and the other fields) in place.
    """

    method: str
    url: URL
    headers: CIMultiDict[str]
    body: bytes | None = None

    def __str__(self) -> str:
        return f"{self.method} {self.url}"


def pairs(items: tuple[str, ...], what: str) -> list[tuple[str, str]]:
    """Split a flat key/value argument list into pairs.

    Raises:
        ConfigurationError: If the number of items is odd
    """
    if len(items) % 2 != 0:
        raise ConfigurationError(f"{what} are not pairs: got {len(items)} values")
    return [(items[i], items[i + 1]) for i in range(0, len(items), 2)]


def _seconds(delay: float | timedelta) -> float:
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


class Request:
    """Declarative description of one HTTP call.

    Example:
        >>> req = (Request("GET", "https://api.example.com/items")
        ...     .params("page", "2")
        ...     .header("Accept", "application/json")
        ...     .retry_delay(0.5, 1.0))
        >>> envelope = await req.execute()
    """

    def __init__(
        self,
        method: str = "GET",
        uri: str = "",
        *,
        headers: CIMultiDict[str] | dict[str, str] | None = None,
        config: ServiceConfig | None = None,
        service: Service | None = None,
    ) -> None:
        self.method = method
        self.uri = uri
        self.headers: CIMultiDict[str] = CIMultiDict(headers or {})
        self.query: MultiDict[str] = MultiDict()
        self.config = config or ServiceConfig()
        self.service = service
        self.retries: tuple[float, ...] = ()
        self.hooks = HookSet()
        self.started_at: datetime | None = None
        self.ended_at: datetime | None = None
        self._body: bytes | None = None
        self._wire: WireRequest | None = None
        self._client: HTTPClient | None = None

    def __repr__(self) -> str:
        return f"Request(method={self.method!r}, uri={self.uri!r})"

    # Fluent configuration

    def retry_delay(self, *delays: float | timedelta) -> Request:
        """Replace the retry delay list. An empty list disables retries."""
        self.retries = tuple(_seconds(d) for d in delays)
        return self

    def params(self, *params: str) -> Request:
        """Append query parameters given as flat key/value pairs."""
        for key, value in pairs(params, "params"):
            self.query.add(key, value)
        return self

    def header(self, key: str, value: str) -> Request:
        self.headers.add(key, value)
        return self

    def raw_header(self, key: str, value: str) -> Request:
        """Replace every value of ``key`` with ``value``."""
        self.headers[key] = value
        return self

    def body(self, data: bytes | str) -> Request:
        self._body = data.encode("utf-8") if isinstance(data, str) else data
        return self

    def json(self, obj: Any) -> Request:
        self._body = _json.dumps(obj).encode("utf-8")
        self.headers["Content-Type"] = "application/json"
        return self

    def before_send(self, *hooks: BeforeSendHook | BeforeSendFn) -> Request:
        self.hooks.add_before(*hooks)
        return self

    def after_response(self, *hooks: AfterResponseHook | AfterResponseFn) -> Request:
        self.hooks.add_after(*hooks)
        return self

    # Materialization

    @property
    def materialized(self) -> bool:
        return self._wire is not None

    def materialize(self) -> WireRequest:
        """Build the wire request once and reuse it afterwards.

        Returns:
            The cached WireRequest

        Raises:
            MaterializationError: If the method or URI is malformed
        """
        if self._wire is not None:
            return self._wire

        method = (self.method or "GET").upper()
        if not _METHOD_RE.fullmatch(method):
            raise MaterializationError(f"Invalid HTTP method: {self.method!r}", method=self.method, uri=self.uri)

        try:
            url = URL(self.uri)
        except (TypeError, ValueError) as e:
            raise MaterializationError(f"Invalid URI {self.uri!r}: {e}", method=method, uri=self.uri) from e
        if not url.is_absolute() or url.scheme not in _SCHEMES or not url.host:
            raise MaterializationError(f"URI must be an absolute http(s) URL: {self.uri!r}", method=method, uri=self.uri)
        if not _HOST_RE.fullmatch(url.raw_host or ""):
            raise MaterializationError(f"Invalid host in URI: {self.uri!r}", method=method, uri=self.uri)

        if self.query:
            query: MultiDict[str] = MultiDict(url.query)
            query.extend(self.query)
            url = url.with_query(query)

        self.method = method
        self._wire = WireRequest(method=method, url=url, headers=CIMultiDict(self.headers), body=self._body)
        return self._wire

    @property
    def wire(self) -> WireRequest | None:
        return self._wire

    # Timing

    @property
    def elapsed(self) -> timedelta | None:
        """Duration of the last execution (end minus start)."""
        if self.started_at is None or self.ended_at is None:
            return None
        return self.ended_at - self.started_at

    # Execution

    @property
    def client(self) -> HTTPClient:
        """Shared service client, or a client owned by this request."""
        if self.service is not None:
            return self.service.client
        if self._client is None:
            from ..runtime.http_client import HTTPClient

            self._client = HTTPClient(timeout=self.config.timeout)
        return self._client

    async def execute(self) -> ResultEnvelope:
        """Execute this request with its retry delays and hooks."""
        from ..runtime.executor import RequestExecutor

        return await RequestExecutor.for_request(self).execute(self)

    async def close(self) -> None:
        """Close the client owned by this request, if any."""
        if self._client is not None:
            await self._client.close()

    async def __aenter__(self) -> Request:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
