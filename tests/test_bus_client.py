"""Unit tests for TradeBusClient handler bookkeeping, without a NATS server."""

import asyncio

from gemtrader import TradeBusClient


class FakeSubscription:
    """Push subscription yielding a fixed list of messages."""

    def __init__(self, messages: list[object]) -> None:
        self._messages = messages

    @property
    async def messages(self):
        for msg in self._messages:
            yield msg


class TestHandlerTasks:
    async def test_running_handlers_are_tracked(self):
        client = TradeBusClient(request_timeout=0.1)
        release = asyncio.Event()
        handled: list[object] = []

        async def handler(msg: object) -> None:
            await release.wait()
            handled.append(msg)

        await client._consume(FakeSubscription(["a", "b"]), handler)
        assert client.pending_handlers == 2

        release.set()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert handled == ["a", "b"]
        assert client.pending_handlers == 0

    async def test_close_waits_for_running_handlers(self):
        client = TradeBusClient(request_timeout=1.0)
        handled: list[object] = []

        async def handler(msg: object) -> None:
            await asyncio.sleep(0.01)
            handled.append(msg)

        await client._consume(FakeSubscription(["offer"]), handler)
        await client.close()

        assert handled == ["offer"]
        assert client.pending_handlers == 0

    async def test_close_cancels_stuck_handlers(self):
        client = TradeBusClient(request_timeout=0.05)
        cancelled = asyncio.Event()

        async def handler(msg: object) -> None:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        await client._consume(FakeSubscription(["stuck"]), handler)
        await client.close()
        await asyncio.sleep(0)

        assert cancelled.is_set()
        assert client.pending_handlers == 0
