"""Rate engine — pure quote, limit and affordability functions.

No I/O and no state: every function takes the configured rates explicitly.
"""

import re

from gemtrader import WORTH_MARKER, ItemRef

from services.trader.config import RateConfig

_GEM_VALUE_RE = re.compile(r"(\d+)\s*Gems?", re.IGNORECASE)
_QUANTITY_RE = re.compile(r"^\+?\d+$")


def quote_key_sell(n: int, rates: RateConfig) -> int:
    """Gems the bot pays for `n` keys the user sells."""
    return n * rates.key_sell


def quote_key_buy(n: int, rates: RateConfig) -> int:
    """Gems the user pays for `n` keys bought from the bot."""
    return n * rates.key_buy


def quote_collectibles(n: int, rate: int) -> int:
    """Flat per-item price for `n` backgrounds/emotes."""
    return n * rate


def within_limit(n: object, limit: int | None) -> bool:
    """Check a requested quantity against a per-trade maximum.

    `limit=None` is unlimited; `limit=0` allows nothing.
    """
    if isinstance(n, bool) or not isinstance(n, int):
        return False
    if n <= 0:
        return False
    return limit is None or n <= limit


def affordable_count(balance: int, rate: int) -> int:
    """Largest quantity purchasable with `balance` at `rate` per unit."""
    if rate <= 0:
        raise ValueError(f"rate must be positive, got {rate}")
    return max(balance, 0) // rate


def key_profit(n: int, rates: RateConfig) -> int:
    """Realized spread on `n` keys: resale price minus acquisition cost."""
    return n * (rates.key_buy - rates.key_sell)


def collectible_profit(n: int, rates: RateConfig) -> int:
    return n * (rates.collectible_sell - rates.collectible_buy)


def gem_value(item: ItemRef) -> int:
    """Gems an item grinds into, read from its description text.

    Only backgrounds and emoticons qualify; trading cards, boosters and Gems
    themselves are 0. Missing or unparseable values are 0, never an error.
    """
    name = item.market_hash_name.lower()
    if not item.is_collectible:
        return 0
    if "trading card" in item.type.lower() or "booster" in name or "gems" in name:
        return 0

    for line in item.descriptions:
        if WORTH_MARKER in line:
            match = _GEM_VALUE_RE.search(line)
            return int(match.group(1)) if match else 0
    return 0


def parse_quantity(text: str) -> int | None:
    """Parse a chat quantity argument; None unless it is a plain integer."""
    text = text.strip()
    if not _QUANTITY_RE.match(text):
        return None
    return int(text)
