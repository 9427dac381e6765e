"""Service: shared configuration for a family of requests.

A ``Service`` holds what many requests against one API have in common: a
host prefix, named paths, default headers, shared-scope hooks, a config and
a single ``HTTPClient`` whose connection pool every request shares.
"""

from __future__ import annotations

from multidict import CIMultiDict

from ..runtime.http_client import HTTPClient
from .config import ServiceConfig
from .exceptions import ConfigurationError
from .hooks import AfterResponseFn, AfterResponseHook, BeforeSendFn, BeforeSendHook, HookSet
from .request import Request, pairs


class Service:
    """Factory for requests sharing a host, headers, hooks and a client.

    Example:
        >>> svc = (Service("https://api.example.com")
        ...     .paths("list", "/items", "show", "/items/{id}")
        ...     .header("Accept", "application/json"))
        >>> req = svc.method("GET", "list").params("page", "1")
    """

    def __init__(self, host: str = "", config: ServiceConfig | None = None) -> None:
        self.host = host
        self.config = config or ServiceConfig()
        self.headers: CIMultiDict[str] = CIMultiDict()
        self.hooks = HookSet()
        self._paths: dict[str, str] = {}
        self._client: HTTPClient | None = None

    def __repr__(self) -> str:
        return f"Service(host={self.host!r})"

    @property
    def client(self) -> HTTPClient:
        """Shared HTTP client (created lazily)."""
        if self._client is None:
            self._client = HTTPClient(timeout=self.config.timeout)
        return self._client

    def paths(self, *method_and_path: str) -> Service:
        """Register named paths given as flat name/path pairs."""
        for name, path in pairs(method_and_path, "method and path"):
            self._paths[name] = path
        return self

    def path(self, name: str) -> str:
        try:
            return self._paths[name]
        except KeyError:
            raise ConfigurationError(f"Path not found: {name!r}") from None

    def header(self, key: str, value: str) -> Service:
        self.headers.add(key, value)
        return self

    def raw_header(self, key: str, value: str) -> Service:
        self.headers[key] = value
        return self

    def before_send(self, *hooks: BeforeSendHook | BeforeSendFn) -> Service:
        self.hooks.add_before(*hooks)
        return self

    def after_response(self, *hooks: AfterResponseHook | AfterResponseFn) -> Service:
        self.hooks.add_after(*hooks)
        return self

    def request(self, method: str, uri: str) -> Request:
        """Create a request for ``host + uri`` bound to this service."""
        return Request(
            method,
            self.host + uri,
            headers=self.headers,
            config=self.config,
            service=self,
        )

    def method(self, method: str, key: str) -> Request:
        """Create a request for a registered path name."""
        return self.request(method, self.path(key))

    def get(self, uri: str) -> Request:
        return self.request("GET", uri)

    def post(self, uri: str) -> Request:
        return self.request("POST", uri)

    def rest(self, method: str, *parts: str) -> Request:
        """Create a request whose URI is ``parts`` joined with ``/``."""
        return self.request(method, "/".join(parts))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def __aenter__(self) -> Service:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
