"""Chat command dispatcher.

Parses `!command [argument]` messages and answers them. Unknown commands,
and any message from a blocked party, get no reply at all.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from gemtrader import Platform, Relationship

from services.trader.blocklist import BlockList, BlockResult
from services.trader.builder import TradeBuilder
from services.trader.config import TraderConfig
from services.trader.inventory import InventoryAccessor
from services.trader.ledger import ProfitLedger
from services.trader.rates import affordable_count, parse_quantity, quote_key_buy, quote_key_sell

logger = logging.getLogger(__name__)

PRICE_ALIASES = frozenset({"!price", "!prices", "!rate", "!rates"})


def parse_command(text: str) -> tuple[str, str] | None:
    """Split a chat message into a lower-cased command and its raw argument."""
    text = text.strip()
    if not text.startswith("!"):
        return None
    name, _, arg = text.partition(" ")
    return name.lower(), arg.strip()


class CommandDispatcher:
    def __init__(
        self,
        platform: Platform,
        config: TraderConfig,
        inventory: InventoryAccessor,
        builder: TradeBuilder,
        ledger: ProfitLedger,
        blocklist: BlockList,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._platform = platform
        self._config = config
        self._inventory = inventory
        self._builder = builder
        self._ledger = ledger
        self._blocklist = blocklist
        self._sleep = sleep

        self._user_commands: dict[str, Callable[[str, str], Awaitable[None]]] = {
            "!help": self._help,
            "!info": self._info,
            "!check": self._check,
            "!selltf": self._sell_tf,
            "!buytf": self._buy_tf,
        }
        self._user_commands.update({alias: self._prices for alias in PRICE_ALIASES})
        self._admin_commands: dict[str, Callable[[str, str], Awaitable[None]]] = {
            "!admin": self._admin_help,
            "!profit": self._profit,
            "!block": self._block,
            "!unblock": self._unblock,
            "!broadcast": self._broadcast,
        }

    async def handle(self, sender: str, text: str) -> bool:
        """Dispatch one chat message. Returns True if a command ran."""
        if sender in self._blocklist:
            return False

        parsed = parse_command(text)
        if parsed is None:
            return False
        name, arg = parsed

        handler = None
        if self._config.is_admin(sender):
            handler = self._admin_commands.get(name)
        if handler is None:
            handler = self._user_commands.get(name)
        if handler is None:
            logger.debug("Ignoring unknown command %r from %s", name, sender)
            return False

        logger.info("[Command] %s from %s", name, sender)
        await handler(sender, arg)
        return True

    async def _reply(self, party: str, text: str) -> None:
        await self._platform.send_message(party, text)

    # --- User commands ---

    async def _help(self, sender: str, _: str) -> None:
        await self._reply(sender, self._config.messages.help)

    async def _info(self, sender: str, _: str) -> None:
        await self._reply(sender, self._config.messages.info)

    async def _prices(self, sender: str, _: str) -> None:
        rates = self._config.rates
        await self._reply(
            sender,
            f"Sell Your:\n1 TF2 Key for Our {rates.key_sell} Gems\n\n"
            f"Buy Our:\n1 TF2 Key for Your {rates.key_buy} Gems\n\n"
            "We're also:\n"
            f"Buying Your Backgrounds & Emotes for {rates.collectible_buy} Gems each "
            "(Send offer & add correct number of my gems for auto accept.)\n"
            f"Selling any of OUR Backgrounds & Emotes for {rates.collectible_sell} Gems each "
            "(Send offer & add correct number of your gems for auto accept.)",
        )

    async def _check(self, sender: str, _: str) -> None:
        try:
            keys = len(await self._inventory.get_keys(sender))
        except Exception:
            logger.exception("[!Check] Could not load TF2 inventory of %s", sender)
            await self._reply(
                sender,
                "I can't load your TF2 Inventory. Is it private? If not, please try again in a few seconds.",
            )
            return
        try:
            stack = await self._inventory.get_currency_stack(sender)
        except Exception:
            logger.exception("[!Check] Could not load Gem inventory of %s", sender)
            await self._reply(
                sender,
                "I can't load your Steam Inventory. Is it private? If not, please try again in a few seconds.",
            )
            return
        gems = stack.amount if stack is not None else 0

        rates = self._config.rates
        lines = ["You have:", f"{keys} TF2 Keys"]
        if keys > 0:
            lines.append(
                f"- I can give you {quote_key_sell(keys, rates)} Gems for them (Use !SellTF {keys})"
            )
        lines.append(f"{gems} Gems")
        buyable = affordable_count(gems, rates.key_buy)
        if buyable > 0:
            lines.append(
                f"- I can give you {buyable} TF2 Keys for Your {quote_key_buy(buyable, rates)} Gems "
                f"(Use !BuyTF {buyable})"
            )
        await self._reply(sender, "\n".join(lines))

    async def _sell_tf(self, sender: str, arg: str) -> None:
        await self._builder.sell_keys(sender, parse_quantity(arg))

    async def _buy_tf(self, sender: str, arg: str) -> None:
        await self._builder.buy_keys(sender, parse_quantity(arg))

    # --- Admin commands ---

    async def _admin_help(self, sender: str, _: str) -> None:
        await self._reply(sender, self._config.messages.admin_help)

    async def _profit(self, sender: str, _: str) -> None:
        await self._reply(sender, "Calculating profit... (loading inventories)")
        lines = [self._ledger.render(), "", "Current stock:"]
        bot_id = self._config.bot_id
        try:
            stack = await self._inventory.get_currency_stack(bot_id)
            lines.append(f"- Gems: {stack.amount if stack else 0}")
        except Exception:
            logger.exception("[!Profit] Error loading gem inventory")
            lines.append("- Gems: error loading gem inventory")
        try:
            lines.append(f"- TF2 Keys: {len(await self._inventory.get_keys(bot_id))}")
        except Exception:
            logger.exception("[!Profit] Error loading TF2 inventory")
            lines.append("- TF2 Keys: error loading TF2 key inventory")
        await self._reply(sender, "\n".join(lines))

    async def _block(self, sender: str, arg: str) -> None:
        result = self._blocklist.block_party(arg)
        if result == BlockResult.INVALID_ID:
            await self._reply(sender, "Invalid SteamID64 format. Use !Block [SteamID64]")
        elif result == BlockResult.IS_ADMIN:
            await self._reply(sender, "An admin cannot be blocked.")
        elif result == BlockResult.ALREADY_BLOCKED:
            await self._reply(sender, f"User {arg} is already blocked.")
        else:
            logger.info("[Admin] User %s was blocked by %s", arg, sender)
            await self._reply(sender, f"User {arg} has been blocked.")

    async def _unblock(self, sender: str, arg: str) -> None:
        result = self._blocklist.unblock_party(arg)
        if result == BlockResult.INVALID_ID:
            await self._reply(sender, "Invalid SteamID64 format. Use !Unblock [SteamID64]")
        elif result == BlockResult.NOT_BLOCKED:
            await self._reply(sender, f"User {arg} was not found in the block list.")
        else:
            logger.info("[Admin] User %s was unblocked by %s", arg, sender)
            await self._reply(sender, f"User {arg} has been unblocked.")

    async def _broadcast(self, sender: str, arg: str) -> None:
        if not arg:
            await self._reply(sender, "Please provide a message. Use !Broadcast [Message]")
            return

        try:
            friends = await self._platform.list_friends()
        except Exception:
            logger.exception("[Admin] Could not load friend list for broadcast")
            await self._reply(sender, "Could not load my friend list. Please try again.")
            return

        targets = [party for party, rel in friends.items() if rel == Relationship.FRIEND]
        logger.info("[Admin] Starting broadcast from %s to %d friends", sender, len(targets))
        for index, party in enumerate(targets):
            if index:
                await self._sleep(self._config.timing.broadcast_stagger)
            await self._platform.send_message(party, arg)

        await self._reply(sender, f"Broadcast sent to {len(targets)} friends.")
        logger.info("[Admin] Broadcast sent to %d friends: %r", len(targets), arg)
