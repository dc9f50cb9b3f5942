"""Publishes the bot's Gem stock as its visible status line."""

import logging

from gemtrader import Platform

from services.trader.inventory import InventoryAccessor

logger = logging.getLogger(__name__)


class StatusReporter:
    def __init__(self, platform: Platform, inventory: InventoryAccessor, bot_id: str) -> None:
        self._platform = platform
        self._inventory = inventory
        self._bot_id = bot_id

    async def refresh(self) -> bool:
        """Publish the current Gem count. Returns False if it could not be read."""
        try:
            stack = await self._inventory.get_currency_stack(self._bot_id)
        except Exception:
            logger.warning("Gem balance unavailable, status left unchanged", exc_info=True)
            return False
        gems = stack.amount if stack is not None else 0
        await self._platform.set_status(f"{gems} Gems > Buy/Sell Gems (!prices)")
        logger.debug("Status refreshed: %d Gems", gems)
        return True
