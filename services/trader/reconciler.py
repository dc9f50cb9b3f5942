"""Offer reconciler — accept/decline decisions for incoming trade offers.

`evaluate_offer` is the pure part: it prices a classified offer against the
configured rates. `OfferReconciler` performs the live checks and the
platform side effects, and books profit once the platform reports the
trade as completed.
"""

import logging
from collections import deque
from dataclasses import dataclass

from gemtrader import OfferChanged, OfferState, Platform, TradeOffer

from services.trader.blocklist import BlockList
from services.trader.classifier import Classification, Direction, OfferShape, classify_offer
from services.trader.config import TraderConfig
from services.trader.inventory import InventoryAccessor
from services.trader.ledger import LedgerCategory, ProfitLedger
from services.trader.rates import collectible_profit, key_profit
from services.trader.status import StatusReporter

logger = logging.getLogger(__name__)

DONATION_REPLY = "Your donation is appreciated!"
INVALID_REPLY = "Trade declined. I only trade TF2 Keys and Backgrounds/Emotes for Gems. Type !help for details."
ACCEPT_FAILED_REPLY = "An error occurred while accepting the trade. Please try again."

# Booked offer ids kept for duplicate detection
BOOKED_HISTORY = 1000


@dataclass(frozen=True)
class Quote:
    """Priced terms of a key or collectible trade."""

    category: LedgerCategory
    item_count: int
    rate: int
    required: int
    offered: int
    bot_pays: bool
    profit: int


@dataclass(frozen=True)
class Decision:
    accept: bool
    reason: str | None = None
    quote: Quote | None = None


def evaluate_offer(
    offer: TradeOffer,
    classification: Classification,
    config: TraderConfig,
    inventory: InventoryAccessor,
) -> Decision:
    """Check a key/collectible offer's contents against the configured rates.

    The paying side must be exactly one Gems stack and the goods side only
    qualifying items; the Gems amount must match the quote exactly.
    """
    if not classification.is_priced:
        return Decision(False, INVALID_REPLY)

    bot_sells = classification.direction == Direction.BOT_SELLS
    goods = offer.items_to_give if bot_sells else offer.items_to_receive
    payment = offer.items_to_receive if bot_sells else offer.items_to_give
    rates = config.rates

    if classification.shape == OfferShape.KEY_TRADE:
        qualifies = inventory.is_tradable_key
        noun, unit = "TF2 Keys", "key"
        if bot_sells:
            category, rate = LedgerCategory.KEY_BUY, rates.key_buy
        else:
            category, rate = LedgerCategory.KEY_SELL, rates.key_sell
    else:
        qualifies = inventory.is_tradable_collectible
        noun, unit = "Backgrounds or Emotes", "item"
        if bot_sells:
            category, rate = LedgerCategory.COLLECTIBLE_SELL, rates.collectible_sell
        else:
            category, rate = LedgerCategory.COLLECTIBLE_BUY, rates.collectible_buy

    matched = [item for item in goods if qualifies(item)]
    if not matched:
        if bot_sells:
            return Decision(False, f"Trade declined. I must include valid {noun} for you to buy from me.")
        return Decision(False, f"Trade declined. You must include valid {noun} for me to buy.")

    if len(matched) != len(goods) or len(payment) != 1 or not payment[0].is_gems:
        if bot_sells:
            return Decision(False, "Trade declined. Please offer ONLY the correct amount of Gems for these items.")
        return Decision(
            False,
            "Trade declined. Please take ONLY the correct amount of Gems from my inventory "
            "(I give Gems, you give items).",
        )

    count = len(matched)
    required = count * rate
    offered = payment[0].amount
    if offered != required:
        who = "You offered" if bot_sells else "You asked for"
        return Decision(
            False,
            f"Trade declined. {who} {offered} Gems, but {count} {noun} are worth "
            f"{required} Gems at my flat rate of {rate} Gems/{unit}.",
        )

    if classification.shape == OfferShape.KEY_TRADE:
        profit = key_profit(count, rates)
    else:
        profit = collectible_profit(count, rates)

    return Decision(
        True,
        quote=Quote(
            category=category,
            item_count=count,
            rate=rate,
            required=required,
            offered=offered,
            bot_pays=not bot_sells,
            profit=profit,
        ),
    )


class OfferReconciler:
    """Handles incoming offers and their settlement events."""

    def __init__(
        self,
        platform: Platform,
        config: TraderConfig,
        inventory: InventoryAccessor,
        ledger: ProfitLedger,
        blocklist: BlockList,
        status: StatusReporter,
    ) -> None:
        self._platform = platform
        self._config = config
        self._inventory = inventory
        self._ledger = ledger
        self._blocklist = blocklist
        self._status = status
        self._booked: set[str] = set()
        self._booked_order: deque[str] = deque()

    @property
    def booked_count(self) -> int:
        return len(self._booked)

    async def handle_offer(self, offer: TradeOffer) -> Classification | None:
        """Decide on a new incoming offer. Returns its classification, or None if ignored."""
        partner = offer.partner
        if partner in self._blocklist:
            logger.info("Ignoring offer %s from blocked %s", offer.offer_id, partner)
            return None

        classification = classify_offer(offer, self._config)
        logger.info("[New Trade Offer] %s from %s: %s", offer.offer_id, partner, classification.shape)

        if classification.shape == OfferShape.ADMIN:
            await self._accept(offer, reply=None)
        elif classification.shape == OfferShape.DONATION:
            await self._accept(offer, reply=DONATION_REPLY)
        elif classification.shape == OfferShape.INVALID:
            await self._decline(offer, INVALID_REPLY)
        else:
            await self._reconcile(offer, classification)
        return classification

    async def _reconcile(self, offer: TradeOffer, classification: Classification) -> None:
        decision = evaluate_offer(offer, classification, self._config, self._inventory)
        if not decision.accept or decision.quote is None:
            await self._decline(offer, decision.reason)
            return

        quote = decision.quote
        payer = self._config.bot_id if quote.bot_pays else offer.partner
        balance = await self._inventory.get_balance(payer)
        if balance < quote.required:
            logger.warning(
                "Offer %s: %s holds %d Gems, %d required",
                offer.offer_id,
                payer,
                balance,
                quote.required,
            )
            if quote.bot_pays:
                reason = (
                    "Trade declined. I do not have enough Gems in my inventory right now. "
                    "Please try again later."
                )
            else:
                reason = (
                    "Trade declined. You do not have enough Gems in your inventory right now. "
                    "Please try again later."
                )
            await self._decline(offer, reason)
            return

        if await self._accept(offer, reply=None):
            logger.info(
                "[%s Accepted] %s from %s: %d item(s) for %d Gems",
                quote.category,
                offer.offer_id,
                offer.partner,
                quote.item_count,
                quote.required,
            )
            await self._comment(offer.partner)
            await self._refresh_status()

    async def _accept(self, offer: TradeOffer, reply: str | None) -> bool:
        try:
            await self._platform.accept_offer(offer.offer_id)
        except Exception:
            logger.exception("Error accepting offer %s from %s", offer.offer_id, offer.partner)
            await self._platform.send_message(offer.partner, ACCEPT_FAILED_REPLY)
            return False
        logger.info("[Accepted Offer] %s | %s", offer.offer_id, offer.partner)
        if reply:
            await self._platform.send_message(offer.partner, reply)
        return True

    async def _decline(self, offer: TradeOffer, reason: str | None) -> None:
        if reason:
            await self._platform.send_message(offer.partner, reason)
        try:
            await self._platform.decline_offer(offer.offer_id)
        except Exception:
            logger.exception("Error declining offer %s from %s", offer.offer_id, offer.partner)
            return
        logger.info("[Declined Offer] %s | %s: %s", offer.offer_id, offer.partner, reason)

    async def _comment(self, partner: str) -> None:
        text = self._config.comment_after_trade
        if not text:
            return
        try:
            await self._platform.post_profile_comment(partner, text)
        except Exception:
            logger.warning("Could not comment on %s's profile", partner, exc_info=True)

    async def _refresh_status(self) -> None:
        try:
            await self._status.refresh()
        except Exception:
            logger.warning("Status refresh failed", exc_info=True)

    async def handle_state_change(self, event: OfferChanged) -> Quote | None:
        """Book profit when an offer reaches the completed state.

        Only the completed state books: an accepted offer can still fail to
        settle. Each offer id is booked at most once.
        """
        offer = event.offer
        if offer.state != OfferState.COMPLETED:
            if offer.state.is_terminal:
                logger.info("Offer %s from %s ended as %s", offer.offer_id, offer.partner, offer.state)
            return None

        if offer.offer_id in self._booked:
            logger.debug("Offer %s already booked", offer.offer_id)
            return None

        classification = classify_offer(offer, self._config)
        if not classification.is_priced:
            logger.info("Offer %s completed (%s), nothing to book", offer.offer_id, classification.shape)
            return None

        decision = evaluate_offer(offer, classification, self._config, self._inventory)
        if decision.quote is None:
            logger.warning(
                "Completed offer %s does not match current rates, not booked: %s",
                offer.offer_id,
                decision.reason,
            )
            return None

        self._remember_booked(offer.offer_id)
        self._ledger.record(decision.quote.category, decision.quote.profit)
        logger.info(
            "[Trade Completed] %s with %s: %s %+d Gems profit",
            offer.offer_id,
            offer.partner,
            decision.quote.category,
            decision.quote.profit,
        )
        return decision.quote

    def _remember_booked(self, offer_id: str) -> None:
        self._booked.add(offer_id)
        self._booked_order.append(offer_id)
        while len(self._booked_order) > BOOKED_HISTORY:
            self._booked.discard(self._booked_order.popleft())
