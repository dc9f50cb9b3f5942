"""Trade builder — constructs and sends offers for `!SellTF` / `!BuyTF`.

Construction never books profit: the ledger is updated when the platform
reports the offer completed (see `OfferReconciler.handle_state_change`).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from gemtrader import ItemRef, Platform

from services.trader.config import TraderConfig
from services.trader.inventory import InventoryAccessor
from services.trader.rates import (
    affordable_count,
    quote_key_buy,
    quote_key_sell,
    within_limit,
)

logger = logging.getLogger(__name__)

SENT_REPLY = "Trade Offer Sent! Please check your Steam Mobile App to accept it."
RETRY_REPLY = "Inventory refresh in session. Try again shortly please."
BUSY_REPLY = "I'm still processing your previous request. Please wait for it to finish."
HOLD_REPLY = "Make sure you do not have any Trade Holds."
ESCROW_ERROR_REPLY = (
    "An error occurred while getting your trade holds. Please Enable your Steam Guard!"
)


class BuildOutcome(StrEnum):
    SENT = "sent"
    INVALID_AMOUNT = "invalid_amount"
    OVER_LIMIT = "over_limit"
    BUSY = "busy"
    TRADE_HOLD = "trade_hold"
    INSUFFICIENT_GEMS = "insufficient_gems"
    INSUFFICIENT_KEYS = "insufficient_keys"
    FAILED = "failed"


class TradeBuilder:
    """Builds key-for-Gems offers requested over chat.

    Only one construction per counterpart runs at a time; a second request
    arriving mid-flight is refused rather than queued.
    """

    def __init__(
        self,
        platform: Platform,
        config: TraderConfig,
        inventory: InventoryAccessor,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._platform = platform
        self._config = config
        self._inventory = inventory
        self._sleep = sleep
        self._in_flight: set[str] = set()

    def is_busy(self, partner: str) -> bool:
        return partner in self._in_flight

    async def sell_keys(self, partner: str, n: int | None) -> BuildOutcome:
        """User sells `n` keys for the bot's Gems."""
        limit = self._config.limits.max_sell
        if n is None or n <= 0:
            await self._say(partner, "Please provide a valid amount of Keys -> !SellTF [Number of Keys]")
            return BuildOutcome.INVALID_AMOUNT
        if not within_limit(n, limit):
            await self._say(partner, f"You can only Sell up to {limit} TF2 Keys to me at a time!")
            return BuildOutcome.OVER_LIMIT
        return await self._guarded(partner, lambda: self._build_sell(partner, n))

    async def buy_keys(self, partner: str, n: int | None) -> BuildOutcome:
        """User buys `n` of the bot's keys with Gems."""
        limit = self._config.limits.max_buy
        if n is None or n <= 0:
            await self._say(partner, "Please provide a valid amount of Keys -> !BuyTF [Number of Keys]")
            return BuildOutcome.INVALID_AMOUNT
        if not within_limit(n, limit):
            await self._say(partner, f"You can only Buy up to {limit} TF2 Keys from me at a time!")
            return BuildOutcome.OVER_LIMIT
        return await self._guarded(partner, lambda: self._build_buy(partner, n))

    async def _guarded(
        self, partner: str, flow: Callable[[], Awaitable[BuildOutcome]]
    ) -> BuildOutcome:
        if partner in self._in_flight:
            await self._say(partner, BUSY_REPLY)
            return BuildOutcome.BUSY
        self._in_flight.add(partner)
        try:
            return await flow()
        finally:
            self._in_flight.discard(partner)

    async def _escrow_clear(self, partner: str) -> bool | None:
        """True if neither side has a trade hold, None if it could not be checked."""
        try:
            status = await self._platform.get_escrow_status(partner)
        except Exception:
            logger.exception("Error getting trade holds for %s", partner)
            return None
        return status.is_clear

    async def _preflight(self, partner: str, announce: str) -> BuildOutcome | None:
        clear = await self._escrow_clear(partner)
        if clear is None:
            await self._say(partner, ESCROW_ERROR_REPLY)
            return BuildOutcome.FAILED
        if not clear:
            await self._say(partner, HOLD_REPLY)
            return BuildOutcome.TRADE_HOLD

        delay = self._config.trading.progress_delay
        await self._say(partner, announce)
        for line in ("Trade Processing", "Please hold..."):
            await self._sleep(delay)
            await self._say(partner, line)
        await self._sleep(delay)
        return None

    async def _build_sell(self, partner: str, n: int) -> BuildOutcome:
        rate = self._config.rates.key_sell
        gems = quote_key_sell(n, self._config.rates)
        bot_id = self._config.bot_id

        aborted = await self._preflight(
            partner, f"You Requested To Sell Your {n} TF2 Keys for My {gems} Gems"
        )
        if aborted is not None:
            return aborted

        try:
            stack = await self._inventory.get_currency_stack(bot_id)
        except Exception:
            logger.exception("[!SellTF] Could not load bot Gem inventory")
            await self._say(partner, RETRY_REPLY)
            return BuildOutcome.FAILED

        balance = stack.amount if stack is not None else 0
        if stack is None or balance < gems:
            sellable = affordable_count(balance, rate)
            tip = (
                f"\nTip: Try using !SellTF {sellable}"
                if sellable > 0
                else ", I'll restock soon!"
            )
            await self._say(
                partner,
                f"Sorry, I don't have enough Gems to make this trade: {balance} / {gems}{tip}",
            )
            return BuildOutcome.INSUFFICIENT_GEMS

        try:
            keys = await self._inventory.get_keys(partner)
        except Exception:
            logger.exception("[!SellTF] Could not load TF2 inventory of %s", partner)
            await self._say(
                partner,
                "I can't load your TF2 Inventory. Is it private? If not, please try again in a few seconds.",
            )
            return BuildOutcome.FAILED

        if len(keys) < n:
            tip = f"\nTip: Try using !SellTF {len(keys)}" if keys else ""
            await self._say(
                partner,
                f"You don't have enough TF2 keys to make this trade: {len(keys)} / {n}{tip}",
            )
            return BuildOutcome.INSUFFICIENT_KEYS

        return await self._submit(
            partner,
            bot_items=[stack.with_amount(gems)],
            partner_items=keys[:n],
            message="Your Gems Are Ready! Enjoy :)",
            label="!SellTF",
        )

    async def _build_buy(self, partner: str, n: int) -> BuildOutcome:
        rate = self._config.rates.key_buy
        gems = quote_key_buy(n, self._config.rates)
        bot_id = self._config.bot_id

        aborted = await self._preflight(
            partner, f"You Requested To Buy My {n} TF2 Keys for your {gems} Gems"
        )
        if aborted is not None:
            return aborted

        try:
            stack = await self._inventory.get_currency_stack(partner)
        except Exception:
            logger.exception("[!BuyTF] Could not load Gem inventory of %s", partner)
            await self._say(
                partner,
                "I can't load your Steam Inventory. Is it private? If not, please try again in a few seconds.",
            )
            return BuildOutcome.FAILED

        balance = stack.amount if stack is not None else 0
        if stack is None or balance < gems:
            buyable = affordable_count(balance, rate)
            tip = f"\nTip: Try using !BuyTF {buyable}" if buyable > 0 else ""
            await self._say(
                partner,
                f"You don't have enough Gems to make this trade: {balance} / {gems}{tip}",
            )
            return BuildOutcome.INSUFFICIENT_GEMS

        try:
            keys = await self._inventory.get_keys(bot_id)
        except Exception:
            logger.exception("[!BuyTF] Could not load bot TF2 inventory")
            await self._say(partner, RETRY_REPLY)
            return BuildOutcome.FAILED

        if len(keys) < n:
            tip = (
                f"\nTip: Try using !BuyTF {len(keys)}" if keys else ", I'll restock soon!"
            )
            await self._say(
                partner,
                f"Sorry, I don't have enough TF2 keys to make this trade: {len(keys)} / {n}{tip}",
            )
            return BuildOutcome.INSUFFICIENT_KEYS

        return await self._submit(
            partner,
            bot_items=keys[:n],
            partner_items=[stack.with_amount(gems)],
            message="Enjoy your TF2 Keys :)",
            label="!BuyTF",
        )

    async def _submit(
        self,
        partner: str,
        bot_items: list[ItemRef],
        partner_items: list[ItemRef],
        message: str,
        label: str,
    ) -> BuildOutcome:
        try:
            handle = await self._platform.submit_offer(partner, bot_items, partner_items, message)
        except Exception:
            logger.exception("[%s] Error sending trade offer to %s", label, partner)
            await self._say(partner, RETRY_REPLY)
            return BuildOutcome.FAILED
        logger.info("[%s] Trade Offer %s sent to %s", label, handle.offer_id, partner)
        await self._say(partner, SENT_REPLY)
        return BuildOutcome.SENT

    async def _say(self, partner: str, text: str) -> None:
        await self._platform.send_message(partner, text)
