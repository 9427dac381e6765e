"""One-way result streams and the sequential step gate."""

from __future__ import annotations

import asyncio

from ..core.response import ResultEnvelope


class ResultStream:
    """Closable one-way stream of ``ResultEnvelope`` values.

    Producers ``send()`` and finally ``close()``; consumers ``receive()`` or
    iterate with ``async for``. ``receive()`` returns None once the stream is
    closed and drained.

    In rendezvous mode ``send()`` returns only after a consumer has received
    the envelope, so at most one envelope is ever in flight.
    """

    def __init__(self, *, rendezvous: bool = False) -> None:
        self._queue: asyncio.Queue[ResultEnvelope | None] = asyncio.Queue()
        self._rendezvous = rendezvous
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, envelope: ResultEnvelope) -> None:
        """Publish an envelope.

        Raises:
            RuntimeError: If the stream is already closed
        """
        if self._closed:
            raise RuntimeError("send on closed ResultStream")
        self._queue.put_nowait(envelope)
        if self._rendezvous:
            await self._queue.join()

    def close(self) -> None:
        """Close the stream. Idempotent."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    async def receive(self) -> ResultEnvelope | None:
        """Wait for the next envelope; None when the stream is closed."""
        item = await self._queue.get()
        self._queue.task_done()
        if item is None:
            # Leave the close marker for any other receiver
            self._queue.put_nowait(None)
        return item

    async def collect(self) -> list[ResultEnvelope]:
        """Drain the stream until it closes."""
        return [envelope async for envelope in self]

    def __aiter__(self) -> ResultStream:
        return self

    async def __anext__(self) -> ResultEnvelope:
        item = await self.receive()
        if item is None:
            raise StopAsyncIteration
        return item


class StepGate:
    """Single-shot continue/stop rendezvous for one sequential step.

    A fresh gate is created before every wait. The first of ``advance()`` or
    ``stop()`` decides the outcome; later calls are no-ops.
    """

    def __init__(self) -> None:
        self._decision: asyncio.Future[bool] = asyncio.get_running_loop().create_future()

    @property
    def decided(self) -> bool:
        return self._decision.done()

    def advance(self) -> None:
        if not self._decision.done():
            self._decision.set_result(True)

    def stop(self) -> None:
        if not self._decision.done():
            self._decision.set_result(False)

    async def wait(self) -> bool:
        """Block until decided. Returns True to continue, False to stop."""
        return await self._decision
