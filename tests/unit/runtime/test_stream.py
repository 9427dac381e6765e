"""Unit tests for ResultStream and StepGate."""

from __future__ import annotations

import asyncio

import pytest

from laakhay.httpr.core import ResultEnvelope
from laakhay.httpr.runtime import ResultStream, StepGate


class TestResultStream:
    """Test ResultStream delivery and close semantics."""

    @pytest.mark.asyncio
    async def test_send_receive_close(self):
        """Test envelopes arrive in send order and None follows close."""
        stream = ResultStream()
        first, second = ResultEnvelope(), ResultEnvelope()

        await stream.send(first)
        await stream.send(second)
        stream.close()

        assert await stream.receive() is first
        assert await stream.receive() is second
        assert await stream.receive() is None
        assert await stream.receive() is None

    @pytest.mark.asyncio
    async def test_async_iteration_ends_at_close(self):
        """Test async for stops once the stream is closed."""
        stream = ResultStream()
        await stream.send(ResultEnvelope())
        stream.close()
        assert len([e async for e in stream]) == 1

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self):
        """Test sending on a closed stream is an error."""
        stream = ResultStream()
        stream.close()
        with pytest.raises(RuntimeError):
            await stream.send(ResultEnvelope())

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        """Test closing twice leaves one close marker behaviour."""
        stream = ResultStream()
        stream.close()
        stream.close()
        assert stream.closed
        assert await stream.collect() == []

    @pytest.mark.asyncio
    async def test_rendezvous_send_waits_for_receiver(self):
        """Test rendezvous send only returns after the envelope is received."""
        stream = ResultStream(rendezvous=True)
        send_task = asyncio.create_task(stream.send(ResultEnvelope()))

        await asyncio.sleep(0.02)
        assert not send_task.done()

        await stream.receive()
        await asyncio.wait_for(send_task, timeout=1.0)

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_receivers(self):
        """Test every pending receiver sees the close."""
        stream = ResultStream()
        receivers = [asyncio.create_task(stream.receive()) for _ in range(3)]
        await asyncio.sleep(0)

        stream.close()

        assert await asyncio.wait_for(asyncio.gather(*receivers), timeout=1.0) == [None, None, None]


class TestStepGate:
    """Test single-shot continue/stop decisions."""

    @pytest.mark.asyncio
    async def test_advance(self):
        gate = StepGate()
        gate.advance()
        assert gate.decided
        assert await gate.wait() is True

    @pytest.mark.asyncio
    async def test_stop(self):
        gate = StepGate()
        gate.stop()
        assert await gate.wait() is False

    @pytest.mark.asyncio
    async def test_first_decision_wins(self):
        """Test later calls are no-ops."""
        gate = StepGate()
        gate.stop()
        gate.advance()
        gate.stop()
        assert await gate.wait() is False

    @pytest.mark.asyncio
    async def test_wait_blocks_until_decided(self):
        """Test wait() does not return before a decision."""
        gate = StepGate()
        waiter = asyncio.create_task(gate.wait())
        await asyncio.sleep(0.02)
        assert not waiter.done()

        gate.advance()
        assert await asyncio.wait_for(waiter, timeout=1.0) is True
