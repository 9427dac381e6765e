"""Response wrapper and result envelope."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar
from xml.etree import ElementTree

import aiohttp
from multidict import CIMultiDictProxy
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import DecodingError, TransportError

if TYPE_CHECKING:
    from .request import Request

ModelT = TypeVar("ModelT", bound=BaseModel)


class Response:
    """Wraps an ``aiohttp.ClientResponse`` produced by one request.

    The body is read lazily on first access and cached together with any
    read error, so the network stream is consumed at most once. Decoding
    helpers and ``dump()`` only ever look at the cached bytes.
    """

    def __init__(self, raw: aiohttp.ClientResponse, request: Request | None = None) -> None:
        self.raw = raw
        self.request = request
        self._body: bytes | None = None
        self._error: Exception | None = None
        self._consumed = False
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Response(status_code={self.status_code}, url={str(self.raw.url)!r})"

    @property
    def status_code(self) -> int:
        return self.raw.status

    @property
    def reason(self) -> str | None:
        return self.raw.reason

    @property
    def headers(self) -> CIMultiDictProxy[str]:
        return self.raw.headers

    @property
    def ok(self) -> bool:
        return self.raw.status < 400

    async def read(self) -> bytes:
        """Return the body bytes, reading the stream only on the first call.

        A read cancelled part-way leaves the stream unusable, so the
        cancellation is cached as a TransportError before it propagates.

        Raises:
            TransportError: If reading the body failed (cached and re-raised)
        """
        async with self._lock:
            if not self._consumed:
                self._consumed = True
                try:
                    self._body = await self.raw.read()
                except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                    self._error = TransportError(f"Failed to read response body: {e}")
                    self._error.__cause__ = e
                    self.raw.release()
                except asyncio.CancelledError:
                    self._error = TransportError("Response body read was cancelled")
                    self.raw.release()
                    raise
        if self._error is not None:
            raise self._error
        return self._body or b""

    async def text(self, encoding: str | None = None) -> str:
        body = await self.read()
        return body.decode(encoding or self.raw.charset or "utf-8", errors="replace")

    async def to_json(self, model: type[ModelT] | None = None) -> Any:
        """Decode the body as JSON, optionally validating into a pydantic model.

        Args:
            model: Optional pydantic model class to validate into

        Returns:
            Decoded JSON value, or a model instance when ``model`` is given

        Raises:
            DecodingError: If the body is not valid JSON or fails validation
        """
        body = await self.read()
        try:
            data = json.loads(body)
        except ValueError as e:
            raise DecodingError(f"Invalid JSON body: {e}", content_type=self.raw.content_type) from e
        if model is None:
            return data
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise DecodingError(
                f"Body does not match {model.__name__}: {e}", content_type=self.raw.content_type
            ) from e

    async def to_xml(self) -> ElementTree.Element:
        """Parse the body as an XML document.

        Raises:
            DecodingError: If the body is not well-formed XML
        """
        body = await self.read()
        try:
            return ElementTree.fromstring(body)
        except ElementTree.ParseError as e:
            raise DecodingError(f"Invalid XML body: {e}", content_type=self.raw.content_type) from e

    async def dump(self) -> str:
        """Render the request, the response and a timing summary as text.

        Never re-executes the request; the body comes from the cache.
        """
        lines: list[str] = []
        request = self.request
        wire = request.wire if request is not None else None
        if wire is not None:
            lines.append(f"{wire.method} {wire.url.raw_path_qs} HTTP/1.1")
            lines.append(f"Host: {wire.url.raw_authority}")
            lines.extend(f"{k}: {v}" for k, v in wire.headers.items())
            lines.append("")
            if wire.body:
                lines.append(wire.body.decode("utf-8", errors="replace"))
            lines.append("")

        version = self.raw.version
        version_text = f"HTTP/{version.major}.{version.minor}" if version else "HTTP/1.1"
        lines.append(f"{version_text} {self.status_code} {self.reason or ''}".rstrip())
        lines.extend(f"{k}: {v}" for k, v in self.headers.items())
        lines.append("")
        try:
            lines.append((await self.read()).decode("utf-8", errors="replace"))
        except TransportError as e:
            lines.append(f"<body unavailable: {e}>")

        if request is not None and request.started_at and request.ended_at:
            lines.append("")
            lines.append(
                f"Summary: start at {request.started_at.isoformat()}, "
                f"end at {request.ended_at.isoformat()}, cost {request.elapsed}"
            )
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class ResultEnvelope:
    """Outcome of one executed request.

    Attributes:
        response: Response, or None when the request failed
        error: Error, or None on success
        halted: True when an after-response hook signalled stop
    """

    response: Response | None = None
    error: Exception | None = None
    halted: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
