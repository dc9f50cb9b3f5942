"""TradeBusClient — async wrapper around NATS for the gem trader."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import nats
from nats.aio.client import Client as NATSClient
from nats.aio.msg import Msg
from nats.errors import NoRespondersError
from nats.errors import TimeoutError as NATSTimeoutError
from nats.js.api import DeliverPolicy
from nats.js.client import JetStreamContext

from gemtrader.errors import PlatformError
from gemtrader.models.envelope import Envelope
from gemtrader.models.topics import to_nats_subject

logger = logging.getLogger(__name__)

STREAM_NAME = "GEMTRADER"
# Only platform events are persisted; request subjects must stay out of the
# stream or JetStream would answer requests with its own publish acks.
STREAM_SUBJECTS = ["events.>"]

DEFAULT_REQUEST_TIMEOUT = 10.0


class TradeBusClient:
    """Async NATS client for the gem trader message bus.

    Usage:
        client = TradeBusClient("nats://localhost:4222")
        await client.connect()
        await client.subscribe(Topics.CHAT, handler)
        reply = await client.request(Topics.INVENTORY, envelope)
        await client.close()
    """

    def __init__(
        self,
        url: str = "nats://localhost:4222",
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._url = url
        self._request_timeout = request_timeout
        self._nc: NATSClient | None = None
        self._js: JetStreamContext | None = None
        self._subscriptions: list[Any] = []
        self._consumers: list[asyncio.Task[None]] = []
        self._handlers: set[asyncio.Task[None]] = set()

    @property
    def pending_handlers(self) -> int:
        """Event handlers still running."""
        return len(self._handlers)

    @property
    def is_connected(self) -> bool:
        return self._nc is not None and self._nc.is_connected

    async def connect(self) -> None:
        """Connect to NATS and set up the JetStream event stream."""
        self._nc = await nats.connect(
            self._url,
            reconnected_cb=self._on_reconnect,
            disconnected_cb=self._on_disconnect,
            error_cb=self._on_error,
            max_reconnect_attempts=10,
            reconnect_time_wait=2,
        )
        self._js = self._nc.jetstream()

        try:
            await self._js.find_stream_name_by_subject(STREAM_SUBJECTS[0])
            logger.info("JetStream stream '%s' already exists", STREAM_NAME)
        except Exception:
            await self._js.add_stream(name=STREAM_NAME, subjects=STREAM_SUBJECTS)
            logger.info("Created JetStream stream '%s'", STREAM_NAME)

    async def publish(self, topic: str, envelope: Envelope) -> None:
        """Publish an envelope to a topic.

        Event topics go through JetStream; everything else is core NATS.
        """
        if self._nc is None:
            raise RuntimeError("Not connected. Call connect() first.")

        subject = to_nats_subject(topic)
        data = envelope.model_dump_json(by_alias=True).encode()
        if self._js is not None and _in_stream(subject):
            await self._js.publish(subject, data)
        else:
            await self._nc.publish(subject, data)
        logger.debug("Published to %s: %s", subject, envelope.id)

    async def request(
        self, topic: str, envelope: Envelope, timeout: float | None = None
    ) -> Envelope:
        """Send a request envelope and wait for the reply envelope.

        Raises:
            PlatformError: If nobody answers in time or the reply is unreadable.
        """
        if self._nc is None:
            raise RuntimeError("Not connected. Call connect() first.")

        subject = to_nats_subject(topic)
        data = envelope.model_dump_json(by_alias=True).encode()
        try:
            msg = await self._nc.request(
                subject, data, timeout=timeout or self._request_timeout
            )
        except NATSTimeoutError as e:
            raise PlatformError(f"Request to {subject} timed out") from e
        except NoRespondersError as e:
            raise PlatformError(f"No responders on {subject}") from e

        try:
            return Envelope.model_validate_json(msg.data)
        except ValueError as e:
            raise PlatformError(f"Malformed reply on {subject}: {e}") from e

    async def subscribe(
        self,
        topic: str,
        handler: Callable[[Envelope], Coroutine[Any, Any, None]],
        durable: str | None = None,
    ) -> None:
        """Subscribe to a topic. Tries JetStream first, falls back to core NATS.

        Args:
            topic: Topic path (e.g., `/events/chat`).
            handler: Async callback receiving an Envelope.
            durable: Optional durable consumer name for JetStream.
        """
        subject = to_nats_subject(topic)

        async def _msg_handler(msg: Msg) -> None:
            try:
                envelope = Envelope.model_validate_json(msg.data)
                await handler(envelope)
            except Exception:
                logger.exception("Error handling message on %s", subject)
            finally:
                if msg._ackd is not True and msg.reply and _in_stream(subject):
                    try:
                        await msg.ack()
                    except Exception:
                        logger.debug("Ack failed on %s", subject)

        if self._js is not None and _in_stream(subject):
            try:
                sub = await self._js.subscribe(
                    subject,
                    durable=durable,
                    manual_ack=True,
                    deliver_policy=DeliverPolicy.NEW if durable is None else None,
                )
                self._subscriptions.append(sub)
                self._consumers.append(
                    asyncio.ensure_future(self._consume(sub, _msg_handler))
                )
                logger.info("JetStream subscribed to %s", subject)
                return
            except Exception:
                logger.debug("JetStream subscribe failed for %s, falling back to core", subject)

        if self._nc is None:
            raise RuntimeError("Not connected. Call connect() first.")
        sub = await self._nc.subscribe(subject, cb=_msg_handler)
        self._subscriptions.append(sub)
        logger.info("Core NATS subscribed to %s", subject)

    async def _consume(self, sub: Any, handler: Callable[[Msg], Coroutine[Any, Any, None]]) -> None:
        """Consume messages from a JetStream push subscription."""
        try:
            async for msg in sub.messages:
                # Each event is handled as its own flow so a slow offer
                # does not hold up chat commands.
                task = asyncio.ensure_future(handler(msg))
                self._handlers.add(task)
                task.add_done_callback(self._handlers.discard)
        except Exception:
            logger.debug("Subscription consumer stopped")

    async def close(self) -> None:
        """Unsubscribe from all topics and disconnect."""
        for sub in self._subscriptions:
            try:
                await sub.unsubscribe()
            except Exception:
                logger.debug("Unsubscribe failed during close")
        self._subscriptions.clear()
        for task in self._consumers:
            task.cancel()
        self._consumers.clear()
        if self._handlers:
            await asyncio.wait(self._handlers, timeout=self._request_timeout)
        for task in list(self._handlers):
            task.cancel()
        self._handlers.clear()

        if self._nc is not None:
            await self._nc.drain()
            self._nc = None
            self._js = None
        logger.info("Disconnected from NATS")

    async def _on_reconnect(self, _: Any = None) -> None:
        logger.info("Reconnected to NATS at %s", self._url)

    async def _on_disconnect(self, _: Any = None) -> None:
        logger.warning("Disconnected from NATS")

    async def _on_error(self, e: Exception) -> None:
        logger.error("NATS error: %s", e)


def _in_stream(subject: str) -> bool:
    return any(subject.startswith(s.rstrip(">")) for s in STREAM_SUBJECTS)
