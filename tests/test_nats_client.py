"""Integration tests for TradeBusClient. Requires NATS running."""

import asyncio

import nats
import pytest
from fakes import BOT, USER

from gemtrader import (
    ChatReceived,
    Envelope,
    MessageType,
    PlatformError,
    Reply,
    SetStatus,
    Topics,
    TradeBusClient,
    create_message,
    to_nats_subject,
)

pytestmark = pytest.mark.integration


class TestTradeBusClient:
    async def test_connect_and_disconnect(self, bus_client: TradeBusClient):
        assert bus_client.is_connected
        await bus_client.close()
        assert not bus_client.is_connected

    async def test_publish_and_subscribe_event(self, bus_client: TradeBusClient):
        received: list[Envelope] = []
        event = asyncio.Event()

        async def handler(env: Envelope) -> None:
            received.append(env)
            event.set()

        await bus_client.subscribe(Topics.CHAT, handler)
        await asyncio.sleep(0.3)  # Let subscription settle

        chat = ChatReceived(sender=USER, text="!prices")
        env = create_message(
            from_agent="gateway",
            topic=Topics.CHAT,
            msg_type=MessageType.CHAT_RECEIVED,
            payload=chat,
        )
        await bus_client.publish(Topics.CHAT, env)

        await asyncio.wait_for(event.wait(), timeout=5.0)
        assert received[0].from_agent == "gateway"
        assert received[0].payload["text"] == "!prices"

    async def test_request_reply(self, bus_client: TradeBusClient, nats_url: str):
        gateway = await nats.connect(nats_url)

        async def answer(msg) -> None:
            request = Envelope.model_validate_json(msg.data)
            reply = create_message(
                from_agent="gateway",
                topic=request.topic,
                msg_type=MessageType.REPLY,
                payload=Reply(data={"echo": request.payload["text"]}),
            )
            await msg.respond(reply.model_dump_json(by_alias=True).encode())

        await gateway.subscribe(to_nats_subject(Topics.STATUS), cb=answer)
        try:
            env = create_message(
                from_agent=BOT,
                topic=Topics.STATUS,
                msg_type=MessageType.SET_STATUS,
                payload=SetStatus(text="hello"),
            )
            answer_env = await bus_client.request(Topics.STATUS, env, timeout=2.0)
            assert answer_env.payload["data"] == {"echo": "hello"}
        finally:
            await gateway.drain()

    async def test_request_without_gateway_fails(self, bus_client: TradeBusClient):
        env = create_message(
            from_agent=BOT,
            topic=Topics.GRIND,
            msg_type=MessageType.SET_STATUS,
            payload=SetStatus(text="nobody home"),
        )
        with pytest.raises(PlatformError):
            await bus_client.request(Topics.GRIND, env, timeout=0.5)
