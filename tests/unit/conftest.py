"""Shared fixtures for unit tests: fake aiohttp responses and transports."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import HttpVersion11
from multidict import CIMultiDict, CIMultiDictProxy
from yarl import URL

from laakhay.httpr.core.exceptions import TransportError
from laakhay.httpr.core.response import Response


def fake_raw_response(
    *,
    status: int = 200,
    body: bytes = b"{}",
    reason: str = "OK",
    headers: dict[str, str] | None = None,
    content_type: str = "application/json",
    url: str = "https://api.example.com/items",
    read_error: Exception | None = None,
) -> MagicMock:
    raw = MagicMock()
    raw.status = status
    raw.reason = reason
    raw.headers = CIMultiDictProxy(CIMultiDict(headers or {"Content-Type": content_type}))
    raw.content_type = content_type
    raw.charset = None
    raw.version = HttpVersion11
    raw.url = URL(url)
    if read_error is not None:
        raw.read = AsyncMock(side_effect=read_error)
    else:
        raw.read = AsyncMock(return_value=body)
    raw.release = MagicMock()
    return raw


class ScriptedClient:
    """Transport double that fails a fixed number of times, then succeeds.

    Args:
        failures: Number of initial sends that raise TransportError
        status: Status of successful responses
        body: Body of successful responses
        delay: Seconds to wait before each send completes
    """

    def __init__(
        self,
        failures: int = 0,
        *,
        status: int = 200,
        body: bytes = b"{}",
        delay: float = 0.0,
    ) -> None:
        self.failures = failures
        self.status = status
        self.body = body
        self.delay = delay
        self.sent: list[Any] = []

    @property
    def attempts(self) -> int:
        return len(self.sent)

    async def send(self, wire, request=None) -> Response:
        self.sent.append(wire)
        if self.delay:
            await asyncio.sleep(self.delay)
        if len(self.sent) <= self.failures:
            raise TransportError(f"attempt {len(self.sent)} failed")
        return Response(fake_raw_response(status=self.status, body=self.body, url=str(wire.url)), request)


class PathClient:
    """Transport double keyed by URL path.

    Args:
        delays: Seconds to wait per path before completing
        fail_paths: Paths that always raise TransportError
    """

    def __init__(self, delays: dict[str, float] | None = None, fail_paths: set[str] | None = None) -> None:
        self.delays = delays or {}
        self.fail_paths = fail_paths or set()
        self.sent: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, wire, request=None) -> Response:
        path = wire.url.path
        self.sent.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(path, 0))
        finally:
            self.in_flight -= 1
        if path in self.fail_paths:
            raise TransportError(f"{path} unreachable")
        return Response(fake_raw_response(url=str(wire.url)), request)


class SleepRecorder:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def make_raw_response() -> Callable[..., MagicMock]:
    """Factory for fake aiohttp.ClientResponse objects."""
    return fake_raw_response


@pytest.fixture
def make_client() -> type[ScriptedClient]:
    """Factory for scripted transports."""
    return ScriptedClient


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_path_client() -> type[PathClient]:
    """Factory for path-keyed transports."""
    return PathClient
