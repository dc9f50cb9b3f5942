"""Offer classifier — decides which kind of trade an offer is.

Pure function of the offer and configuration: classifying the same offer
twice always gives the same answer.
"""

from dataclasses import dataclass
from enum import StrEnum

from gemtrader import KEY_APP_ID, ItemRef, TradeOffer

from services.trader.config import TraderConfig


class OfferShape(StrEnum):
    ADMIN = "admin"
    DONATION = "donation"
    KEY_TRADE = "key_trade"
    COLLECTIBLE_TRADE = "collectible_trade"
    INVALID = "invalid"


class Direction(StrEnum):
    """Which way the goods move. The other side pays in Gems."""

    BOT_SELLS = "bot_sells"  # bot gives the items
    BOT_BUYS = "bot_buys"  # partner gives the items


@dataclass(frozen=True)
class Classification:
    shape: OfferShape
    direction: Direction | None = None

    @property
    def is_priced(self) -> bool:
        """True for trades that are checked against the configured rates."""
        return self.shape in (OfferShape.KEY_TRADE, OfferShape.COLLECTIBLE_TRADE)


def is_key_item(item: ItemRef, config: TraderConfig) -> bool:
    """A TF2 item whose name is on the key allow-list."""
    return item.app_id == KEY_APP_ID and config.is_key_name(item.market_hash_name)


def is_collectible_item(item: ItemRef) -> bool:
    return item.is_collectible


def classify_offer(offer: TradeOffer, config: TraderConfig) -> Classification:
    """Classify an offer. Rules are applied in order, first match wins:

    1. partner is an owner -> ADMIN
    2. bot gives nothing -> DONATION
    3. allow-listed keys on one side -> KEY_TRADE
    4. backgrounds/emotes on one side -> COLLECTIBLE_TRADE
    5. anything else -> INVALID
    """
    if config.is_admin(offer.partner):
        return Classification(OfferShape.ADMIN)

    if not offer.items_to_give:
        return Classification(OfferShape.DONATION)

    if not offer.items_to_receive:
        return Classification(OfferShape.INVALID)

    if config.trading.require_homogeneous_offers:
        return _classify_homogeneous(offer, config)
    return _classify_by_first_item(offer, config)


def _classify_homogeneous(offer: TradeOffer, config: TraderConfig) -> Classification:
    bot_side = offer.items_to_give
    partner_side = offer.items_to_receive

    if all(is_key_item(i, config) for i in bot_side):
        return Classification(OfferShape.KEY_TRADE, Direction.BOT_SELLS)
    if all(is_key_item(i, config) for i in partner_side):
        return Classification(OfferShape.KEY_TRADE, Direction.BOT_BUYS)
    if all(is_collectible_item(i) for i in bot_side):
        return Classification(OfferShape.COLLECTIBLE_TRADE, Direction.BOT_SELLS)
    if all(is_collectible_item(i) for i in partner_side):
        return Classification(OfferShape.COLLECTIBLE_TRADE, Direction.BOT_BUYS)
    return Classification(OfferShape.INVALID)


def _classify_by_first_item(offer: TradeOffer, config: TraderConfig) -> Classification:
    # Legacy behaviour: only the first item of each side is inspected, so a
    # mixed side is classified by whatever happens to come first.
    mine = offer.items_to_give[0]
    theirs = offer.items_to_receive[0]

    if is_key_item(mine, config):
        return Classification(OfferShape.KEY_TRADE, Direction.BOT_SELLS)
    if is_key_item(theirs, config):
        return Classification(OfferShape.KEY_TRADE, Direction.BOT_BUYS)
    if is_collectible_item(mine):
        return Classification(OfferShape.COLLECTIBLE_TRADE, Direction.BOT_SELLS)
    if is_collectible_item(theirs):
        return Classification(OfferShape.COLLECTIBLE_TRADE, Direction.BOT_BUYS)
    return Classification(OfferShape.INVALID)
