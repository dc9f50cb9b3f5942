"""Liquidation sweep — grinds high-value backgrounds/emotes into Gems."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from gemtrader import Platform

from services.trader.config import TraderConfig
from services.trader.inventory import InventoryAccessor
from services.trader.rates import gem_value

logger = logging.getLogger(__name__)


class GemSweeper:
    """Converts every gemmable item worth more than the threshold.

    Items are ground one at a time with a throttle between requests. A failed
    grind is logged and the sweep moves on to the next item.
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

    async def run_sweep(self) -> int:
        """Run one sweep. Returns the number of items converted."""
        logger.info("[AutoGem] Checking inventory for items to convert...")
        threshold = self._config.limits.convert_to_gems
        try:
            items = await self._inventory.get_gemmable(self._config.bot_id, minimum=threshold)
        except Exception:
            logger.exception("[AutoGem] Inventory unavailable, sweep skipped")
            return 0

        if not items:
            logger.info("[AutoGem] Nothing worth more than %d Gems to convert", threshold)
            return 0

        converted = 0
        for index, item in enumerate(items):
            if index:
                await self._sleep(self._config.timing.sweep_throttle)
            value = gem_value(item)
            logger.info("[AutoGem] Converting %s (%d gems)...", item.market_hash_name, value)
            try:
                await self._platform.grind_into_gems(item)
            except Exception:
                logger.exception("[AutoGem] Error converting %s", item.market_hash_name)
                continue
            converted += 1

        logger.info("[AutoGem] Finished converting %d items this run.", converted)
        return converted
