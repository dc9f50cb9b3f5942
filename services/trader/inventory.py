"""Inventory snapshot accessor — live balances and qualifying items.

Nothing is cached: the platform inventory is the source of truth and every
call re-fetches it through the retrying platform.
"""

import logging
from collections.abc import Callable

from gemtrader import (
    GEM_APP_ID,
    GEM_CONTEXT_ID,
    KEY_APP_ID,
    KEY_CONTEXT_ID,
    ItemRef,
    Platform,
)

from services.trader.config import TraderConfig
from services.trader.rates import gem_value

logger = logging.getLogger(__name__)


class InventoryAccessor:
    """Typed views over a party's inventory."""

    def __init__(self, platform: Platform, config: TraderConfig) -> None:
        self._platform = platform
        self._config = config

    async def get_balance(self, party: str) -> int:
        """Gems held by `party`.

        Fetch failures are logged and reported as 0, which callers treat as
        "unknown" and decline on.
        """
        try:
            stack = await self.get_currency_stack(party)
        except Exception:
            logger.exception("Could not load Gem balance for %s, assuming 0", party)
            return 0
        return stack.amount if stack is not None else 0

    async def get_currency_stack(self, party: str) -> ItemRef | None:
        """The party's Gems stack, or None if they hold no Gems. Errors propagate."""
        items = await self._platform.fetch_inventory(party, GEM_APP_ID, GEM_CONTEXT_ID, True)
        for item in items:
            if item.is_gems:
                return item
        return None

    async def get_qualifying_items(
        self,
        party: str,
        app_id: int,
        context_id: int,
        predicate: Callable[[ItemRef], bool],
    ) -> list[ItemRef]:
        """Items passing `predicate`, in fetch order. Errors propagate."""
        items = await self._platform.fetch_inventory(party, app_id, context_id, True)
        return [item for item in items if predicate(item)]

    async def get_keys(self, party: str) -> list[ItemRef]:
        """Tradable allow-listed keys that are not deny-listed."""
        return await self.get_qualifying_items(
            party, KEY_APP_ID, KEY_CONTEXT_ID, self.is_tradable_key
        )

    async def get_gemmable(self, party: str, minimum: int = 0) -> list[ItemRef]:
        """Backgrounds/emotes worth more than `minimum` Gems."""
        return await self.get_qualifying_items(
            party,
            GEM_APP_ID,
            GEM_CONTEXT_ID,
            lambda item: not self._config.is_restricted(item.market_hash_name)
            and gem_value(item) > minimum,
        )

    def is_tradable_key(self, item: ItemRef) -> bool:
        return (
            item.app_id == KEY_APP_ID
            and self._config.is_key_name(item.market_hash_name)
            and not self._config.is_restricted(item.market_hash_name)
        )

    def is_tradable_collectible(self, item: ItemRef) -> bool:
        return gem_value(item) > 0 and not self._config.is_restricted(item.market_hash_name)
