"""Multi-request orchestration: gated sequential and parallel fan-in streams.

Architecture:
    A ``Group`` holds an ordered list of requests and offers two ways to
    consume them, each producing a ``ResultStream``:

    - ``sequential()``: one background task executes the requests in list
      order. After each execution it creates a fresh ``StepGate``, hands the
      envelope to the consumer (rendezvous, so at most one envelope is in
      flight) and waits until the consumer calls ``advance()`` or ``stop()``.
    - ``parallel()``: one task per request, all started at once, each
      sending its envelope as soon as it completes. A coordinator task
      waits for all of them and closes the stream.

    Streams are created lazily on first call. While a stream of a given mode
    is active, calling that mode again returns the same stream. When the
    producing task finishes, the stream is closed and the group's reference
    cleared so a later call starts fresh.

Design Decisions:
    - Failures are data: an error envelope never ends a sequence or batch.
    - Parallel mode has no fail-fast; every started request runs to the end.
    - ``stop()`` takes effect after the current wait and before the next
      request starts; it cannot abort a request in flight.
    - The after-response stop signal is advisory. It is surfaced as
      ``envelope.halted`` in both modes; only a sequential consumer can act
      on it (by calling ``stop()``).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

from ..core.response import ResultEnvelope
from .executor import RequestExecutor
from .stream import ResultStream, StepGate
from .telemetry import log_group_request_error, log_stream_closed

if TYPE_CHECKING:
    from ..core.request import Request

logger = logging.getLogger(__name__)


class Group:
    """Ordered set of requests consumed as a sequential or parallel stream.

    Example:
        >>> group = Group(svc.get("/a"), svc.get("/b"), svc.get("/c"))
        >>> stream = group.sequential()
        >>> async for envelope in stream:
        ...     handle(envelope)
        ...     group.advance()

    Standalone requests (not created from a Service) each own a client;
    use the group as an async context manager or call ``close()`` to
    release them.
    """

    def __init__(
        self,
        *requests: Request,
        executor: RequestExecutor | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize group.

        Args:
            requests: Requests in execution order (sequential mode)
            executor: Executor used for every request; by default each
                request gets one bound to its own service client
            log: Logger for telemetry
        """
        self.requests: list[Request] = list(requests)
        self._executor = executor
        self._log = log or logger
        self._sequential: ResultStream | None = None
        self._parallel: ResultStream | None = None
        self._gate: StepGate | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self.requests)

    # Control

    def advance(self) -> None:
        """Let the sequential stream move on to the next request.

        No-op when no delivery is pending.
        """
        if self._gate is not None:
            self._gate.advance()

    def stop(self) -> None:
        """End the sequential stream after the current wait.

        No further requests are executed and the stream closes.
        """
        if self._gate is not None:
            self._gate.stop()

    # Streams

    def sequential(self) -> ResultStream:
        """Start (or return the active) gated sequential stream."""
        if self._sequential is not None:
            return self._sequential
        stream = ResultStream(rendezvous=True)
        self._spawn(self._run_sequential(stream))
        self._sequential = stream
        return stream

    def parallel(self) -> ResultStream:
        """Start (or return the active) parallel fan-in stream."""
        if self._parallel is not None:
            return self._parallel
        stream = ResultStream()
        self._spawn(self._run_parallel(stream))
        self._parallel = stream
        return stream

    async def wait_closed(self) -> None:
        """Wait until every background task of this group has finished."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel unfinished streams and close clients owned by the requests.

        Requests created from a ``Service`` share its client, which is left
        open; only standalone requests own a client of their own.
        """
        self.stop()
        for task in list(self._tasks):
            task.cancel()
        await self.wait_closed()
        for request in self.requests:
            await request.close()

    async def __aenter__(self) -> Group:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # Internals

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        # Keep a strong reference until the task is done
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute(self, request: Request) -> ResultEnvelope:
        executor = self._executor or RequestExecutor.for_request(request, log=self._log)
        try:
            return await executor.execute(request)
        except Exception as e:
            log_group_request_error(self._log, request=repr(request), error_type=type(e).__name__)
            return ResultEnvelope(error=e)

    async def _run_sequential(self, stream: ResultStream) -> None:
        delivered = 0
        try:
            for request in self.requests:
                envelope = await self._execute(request)
                gate = StepGate()
                self._gate = gate
                await stream.send(envelope)
                delivered += 1
                if not await gate.wait():
                    break
        finally:
            self._gate = None
            stream.close()
            if self._sequential is stream:
                self._sequential = None
            log_stream_closed(self._log, mode="sequential", delivered=delivered, total=len(self.requests))

    async def _run_parallel(self, stream: ResultStream) -> None:
        async def run_one(request: Request) -> None:
            await stream.send(await self._execute(request))

        try:
            await asyncio.gather(*(run_one(request) for request in self.requests))
        finally:
            stream.close()
            if self._parallel is stream:
                self._parallel = None
            log_stream_closed(self._log, mode="parallel", delivered=len(self.requests), total=len(self.requests))
