"""TraderAgent — subscribes to platform events and runs the trading bot."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from gemtrader import (
    BusPlatform,
    ChatReceived,
    Envelope,
    FriendRelationship,
    MessageType,
    OfferChanged,
    Platform,
    Relationship,
    RetryExecutor,
    RetryingPlatform,
    Topics,
    TradeBusClient,
    TradeOffer,
)

from services.trader.autogem import GemSweeper
from services.trader.blocklist import BlockList
from services.trader.builder import TradeBuilder
from services.trader.commands import CommandDispatcher
from services.trader.config import TraderConfig
from services.trader.inventory import InventoryAccessor
from services.trader.ledger import LedgerScheduler, ProfitLedger
from services.trader.reconciler import OfferReconciler
from services.trader.spam import SpamFilter, SpamState
from services.trader.status import StatusReporter

logger = logging.getLogger(__name__)


class TraderAgent:
    """The trading bot.

    It subscribes to the gateway's event topics (new offers, offer state
    changes, chat, friend list) and answers through the `Platform`
    capabilities. Background loops run the spam filter, the weekly
    liquidation sweep and the ledger window resets.
    """

    def __init__(
        self,
        config: TraderConfig,
        nats_url: str = "nats://localhost:4222",
        platform: Platform | None = None,
        executor: RetryExecutor | None = None,
    ) -> None:
        self._config = config
        self._bus = TradeBusClient(nats_url)
        raw_platform = platform or BusPlatform(self._bus, config.bot_id)
        self._platform: Platform = RetryingPlatform(raw_platform, executor)
        self._running = False
        self._tasks: list[asyncio.Task[None]] = []

        self._inventory = InventoryAccessor(self._platform, config)
        self._ledger = ProfitLedger(config.storage.ledger_path)
        self._scheduler = LedgerScheduler(self._ledger)
        self._blocklist = BlockList(
            config.storage.blocklist_path, config.admins, seed=config.ignore
        )
        self._status = StatusReporter(self._platform, self._inventory, config.bot_id)
        self._spam = SpamFilter(
            self._platform,
            SpamState(max_per_window=config.max_messages_per_second, admins=config.admins),
        )
        self._reconciler = OfferReconciler(
            self._platform, config, self._inventory, self._ledger, self._blocklist, self._status
        )
        self._builder = TradeBuilder(self._platform, config, self._inventory)
        self._commands = CommandDispatcher(
            self._platform, config, self._inventory, self._builder, self._ledger, self._blocklist
        )
        self._sweeper = GemSweeper(self._platform, config, self._inventory)

    @property
    def ledger(self) -> ProfitLedger:
        """Expose state for testing."""
        return self._ledger

    @property
    def blocklist(self) -> BlockList:
        return self._blocklist

    @property
    def spam(self) -> SpamFilter:
        return self._spam

    async def start(self) -> None:
        """Connect to NATS, subscribe to platform events and start the loops."""
        await self._bus.connect()
        logger.info("Trader connected to NATS")

        await self._bus.subscribe(Topics.NEW_OFFER, self._on_new_offer)
        await self._bus.subscribe(Topics.OFFER_CHANGED, self._on_offer_changed)
        await self._bus.subscribe(Topics.CHAT, self._on_chat)
        await self._bus.subscribe(Topics.FRIENDS, self._on_friend)
        logger.info("Trader subscribed to %d event topics", len(Topics.events()))

        self._running = True
        self._tasks = [
            asyncio.create_task(self._every(self._config.timing.spam_interval, self._spam.tick)),
            asyncio.create_task(self._every(self._config.timing.sweep_interval, self._sweep)),
            asyncio.create_task(
                self._every(self._config.timing.ledger_check_interval, self._reset_windows)
            ),
        ]
        await self._accept_pending_friends()
        await self._refresh_status()
        logger.info("Trader started as %s", self._config.bot_id)

    async def stop(self) -> None:
        """Clean shutdown."""
        self._running = False
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        await self._bus.close()
        logger.info("Trader stopped")

    async def _every(self, interval: float, job: Callable[[], Awaitable[object]]) -> None:
        """Run `job` now and then every `interval` seconds until stopped."""
        while self._running:
            try:
                await job()
            except Exception:
                logger.exception("Periodic job %s failed", getattr(job, "__name__", job))
            await asyncio.sleep(interval)

    async def _sweep(self) -> None:
        await self._sweeper.run_sweep()

    async def _reset_windows(self) -> None:
        self._scheduler.run_due_resets()

    async def _refresh_status(self) -> None:
        try:
            await self._status.refresh()
        except Exception:
            logger.warning("Could not publish status", exc_info=True)

    async def _accept_pending_friends(self) -> None:
        try:
            friends = await self._platform.list_friends()
        except Exception:
            logger.exception("Could not load friend list")
            return
        for party, rel in friends.items():
            if rel == Relationship.REQUEST_RECIPIENT and party not in self._blocklist:
                await self._add_friend(party)

    # --- Event handlers ---

    async def _on_new_offer(self, envelope: Envelope) -> None:
        if envelope.type != MessageType.NEW_OFFER:
            return
        offer = TradeOffer.model_validate(envelope.payload)
        await self._reconciler.handle_offer(offer)

    async def _on_offer_changed(self, envelope: Envelope) -> None:
        if envelope.type != MessageType.OFFER_CHANGED:
            return
        event = OfferChanged.model_validate(envelope.payload)
        quote = await self._reconciler.handle_state_change(event)
        if quote is not None:
            await self._refresh_status()

    async def _on_chat(self, envelope: Envelope) -> None:
        if envelope.type != MessageType.CHAT_RECEIVED:
            return
        chat = ChatReceived.model_validate(envelope.payload)
        if chat.sender in self._blocklist:
            return
        logger.info("[Incoming Chat Message] %s > %s : %s", chat.sender_name, chat.sender, chat.text)
        self._spam.record_message(chat.sender)
        await self._commands.handle(chat.sender, chat.text)

    async def _on_friend(self, envelope: Envelope) -> None:
        if envelope.type != MessageType.FRIEND_RELATIONSHIP:
            return
        event = FriendRelationship.model_validate(envelope.payload)
        if event.party in self._blocklist:
            return

        if event.relationship == Relationship.REQUEST_RECIPIENT:
            logger.info("[New Friend] %s > %s", event.name, event.party)
            await self._add_friend(event.party)
        elif event.relationship == Relationship.FRIEND:
            if self._config.group_id:
                try:
                    await self._platform.invite_to_group(event.party, self._config.group_id)
                except Exception:
                    logger.warning("Group invite for %s failed", event.party, exc_info=True)
            await self._platform.send_message(event.party, self._config.messages.welcome)

    async def _add_friend(self, party: str) -> None:
        try:
            await self._platform.add_friend(party)
        except Exception:
            logger.exception("Could not accept friend request from %s", party)
