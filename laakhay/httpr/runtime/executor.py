"""Retrying single-request executor with the before/after hook pipeline.

Architecture:
    ``RequestExecutor.execute()`` drives one ``Request`` through a fixed
    sequence of steps:
    1. Materialize the wire request (idempotent). Failure returns an error
       envelope immediately: no hooks, no network call, no retry.
    2. Run before-send hooks, shared scope then request scope.
    3. Record the start time and send.
    4. On transport failure, walk the request's retry delays in order:
       sleep, retry once, stop at the first success.
    5. Record the end time regardless of outcome.
    6. Run after-response hooks until one signals stop.
    7. Return the ``ResultEnvelope``.

Design Decisions:
    - Request errors are values: execute() returns them in the envelope and
      never raises for a failed request.
    - Fixed delays only: the executor has no backoff curve or jitter.
    - Sleep is injectable so the delay sequence can be observed in tests.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ..core.exceptions import MaterializationError, TransportError
from ..core.hooks import HookSet
from ..core.response import ResultEnvelope
from .telemetry import (
    log_attempt_failed,
    log_request_completed,
    log_request_failed,
    log_retry_scheduled,
)

if TYPE_CHECKING:
    from ..core.request import Request, WireRequest
    from ..core.response import Response
    from .http_client import HTTPClient

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RequestExecutor:
    """Executes requests with fixed-delay retries and lifecycle hooks."""

    def __init__(
        self,
        client: HTTPClient,
        *,
        log: logging.Logger | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize executor.

        Args:
            client: Transport used for every attempt
            log: Logger for telemetry (defaults to this module's logger)
            sleep: Coroutine used to wait between attempts
        """
        self._client = client
        self._log = log or logger
        self._sleep = sleep

    @classmethod
    def for_request(cls, request: Request, **kwargs) -> RequestExecutor:
        """Executor bound to the request's service client or its own client."""
        return cls(request.client, **kwargs)

    @property
    def client(self) -> HTTPClient:
        return self._client

    async def execute(self, request: Request) -> ResultEnvelope:
        """Execute a request and return its result envelope.

        Args:
            request: Request to execute. Must not be executed concurrently
                elsewhere.

        Returns:
            ResultEnvelope with either a response or an error
        """
        try:
            wire = request.materialize()
        except MaterializationError as e:
            log_request_failed(
                self._log,
                request=f"{request.method} {request.uri}",
                attempts=0,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return ResultEnvelope(error=e)

        shared = request.service.hooks if request.service is not None else None
        hooks = HookSet.compose(shared, request.hooks)
        hooks.run_before_send(wire, log=self._log)

        request.started_at = _now()
        response, error, attempts = await self._send_with_retries(request, wire)
        request.ended_at = _now()

        if error is not None:
            log_request_failed(
                self._log,
                request=str(wire),
                attempts=attempts,
                error_type=type(error).__name__,
                error_message=str(error),
            )
        elif response is not None:
            log_request_completed(
                self._log,
                request=str(wire),
                status_code=response.status_code,
                attempts=attempts,
                elapsed=request.elapsed,
                debug=request.config.debug,
            )

        halted = hooks.run_after_response(request, response, log=self._log)
        return ResultEnvelope(response=response, error=error, halted=halted)

    async def _send_with_retries(
        self, request: Request, wire: WireRequest
    ) -> tuple[Response | None, TransportError | None, int]:
        attempts = 0
        error: TransportError | None = None
        delays = (None, *request.retries)

        for delay in delays:
            if delay is not None:
                log_retry_scheduled(self._log, request=str(wire), attempt=attempts + 1, delay=delay)
                await self._sleep(delay)
            attempts += 1
            try:
                response = await self._client.send(wire, request)
            except TransportError as e:
                error = e
                log_attempt_failed(
                    self._log,
                    request=str(wire),
                    attempt=attempts,
                    error_type=type(e.__cause__ or e).__name__,
                    error_message=str(e),
                )
                continue
            return response, None, attempts

        if error is not None:
            error.attempts = attempts
        return None, error, attempts
