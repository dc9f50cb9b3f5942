"""Tests for chat command dispatch."""

from fakes import BOT, OTHER, OWNER, USER, gems, keys
from gemtrader import Relationship

from services.trader.commands import parse_command
from services.trader.ledger import LedgerCategory


class TestParseCommand:
    def test_lowercases_name(self):
        assert parse_command("!SellTF 3") == ("!selltf", "3")

    def test_without_argument(self):
        assert parse_command("!help") == ("!help", "")

    def test_keeps_argument_text(self):
        assert parse_command("!broadcast Hello  World ") == ("!broadcast", "Hello  World")

    def test_plain_text_is_not_a_command(self):
        assert parse_command("hello there") is None


class TestUserCommands:
    async def test_help(self, dispatcher, platform, config):
        assert await dispatcher.handle(USER, "!HELP")
        assert platform.last_message_to(USER) == config.messages.help

    async def test_info(self, dispatcher, platform, config):
        await dispatcher.handle(USER, "!info")
        assert platform.last_message_to(USER) == config.messages.info

    async def test_price_aliases(self, dispatcher, platform):
        for alias in ("!price", "!prices", "!rate", "!Rates"):
            await dispatcher.handle(USER, alias)
        replies = platform.messages_to(USER)
        assert len(replies) == 4
        assert len(set(replies)) == 1
        assert "1 TF2 Key for Our 3900 Gems" in replies[0]
        assert "1 TF2 Key for Your 4200 Gems" in replies[0]

    async def test_check(self, dispatcher, platform):
        platform.give(USER, *keys(2))
        platform.give(USER, gems(9000))

        await dispatcher.handle(USER, "!check")

        reply = platform.last_message_to(USER)
        assert "2 TF2 Keys" in reply
        assert "I can give you 7800 Gems for them (Use !SellTF 2)" in reply
        assert "9000 Gems" in reply
        assert "I can give you 2 TF2 Keys for Your 8400 Gems (Use !BuyTF 2)" in reply

    async def test_check_empty_inventory(self, dispatcher, platform):
        await dispatcher.handle(USER, "!check")
        assert platform.last_message_to(USER) == "You have:\n0 TF2 Keys\n0 Gems"

    async def test_check_private_inventory(self, dispatcher, platform):
        platform.inventory_failures[(USER, 440)] = 1
        await dispatcher.handle(USER, "!check")
        assert "Is it private?" in platform.last_message_to(USER)

    async def test_check_unreadable_gems_is_not_zero(self, dispatcher, platform):
        platform.give(USER, *keys(1))
        platform.inventory_failures[(USER, 753)] = 1

        await dispatcher.handle(USER, "!check")

        reply = platform.last_message_to(USER)
        assert "0 Gems" not in reply
        assert "Is it private?" in reply

    async def test_selltf_over_limit(self, dispatcher, platform):
        await dispatcher.handle(USER, "!SellTF 51")
        assert platform.messages_to(USER) == ["You can only Sell up to 50 TF2 Keys to me at a time!"]
        assert platform.submitted == []

    async def test_buytf_over_limit(self, dispatcher, platform):
        await dispatcher.handle(USER, "!BuyTF 51")
        assert "up to 50" in platform.last_message_to(USER)
        assert platform.fetches == []
        assert platform.submitted == []

    async def test_selltf_without_number(self, dispatcher, platform):
        await dispatcher.handle(USER, "!selltf lots")
        assert "valid amount" in platform.last_message_to(USER)

    async def test_buytf_sends_offer(self, dispatcher, platform):
        platform.give(USER, gems(4200))
        platform.give(BOT, *keys(1))
        await dispatcher.handle(USER, "!buytf 1")
        assert len(platform.submitted) == 1

    async def test_unknown_command_is_silent(self, dispatcher, platform):
        assert not await dispatcher.handle(USER, "!dance")
        assert platform.messages == []

    async def test_plain_chat_is_silent(self, dispatcher, platform):
        assert not await dispatcher.handle(USER, "hi")
        assert platform.messages == []

    async def test_blocked_sender_is_silent(self, dispatcher, platform, blocklist):
        blocklist.block_party(USER)
        assert not await dispatcher.handle(USER, "!help")
        assert platform.messages == []

    async def test_user_cannot_run_admin_commands(self, dispatcher, platform, blocklist):
        assert not await dispatcher.handle(USER, f"!block {OTHER}")
        assert OTHER not in blocklist
        assert platform.messages == []


class TestAdminCommands:
    async def test_admin_help(self, dispatcher, platform, config):
        await dispatcher.handle(OWNER, "!admin")
        assert platform.last_message_to(OWNER) == config.messages.admin_help

    async def test_admin_can_use_user_commands(self, dispatcher, platform, config):
        await dispatcher.handle(OWNER, "!help")
        assert platform.last_message_to(OWNER) == config.messages.help

    async def test_profit(self, dispatcher, platform, ledger):
        ledger.record(LedgerCategory.KEY_BUY, 300)
        platform.give(BOT, gems(12_345))
        platform.give(BOT, *keys(3))

        await dispatcher.handle(OWNER, "!profit")

        first, report = platform.messages_to(OWNER)
        assert first == "Calculating profit... (loading inventories)"
        assert "Key Buy: lifetime 300" in report
        assert "- Gems: 12345" in report
        assert "- TF2 Keys: 3" in report

    async def test_profit_with_inventory_error(self, dispatcher, platform):
        platform.inventory_failures[(BOT, 440)] = 1
        await dispatcher.handle(OWNER, "!profit")
        assert "error loading TF2 key inventory" in platform.last_message_to(OWNER)

    async def test_block(self, dispatcher, platform, blocklist):
        await dispatcher.handle(OWNER, f"!block {USER}")
        assert USER in blocklist
        assert platform.last_message_to(OWNER) == f"User {USER} has been blocked."

    async def test_block_invalid_id(self, dispatcher, platform, blocklist):
        await dispatcher.handle(OWNER, "!block 123")
        assert platform.last_message_to(OWNER) == "Invalid SteamID64 format. Use !Block [SteamID64]"
        assert blocklist.parties == frozenset()

    async def test_block_admin_refused(self, dispatcher, platform):
        await dispatcher.handle(OWNER, f"!block {OWNER}")
        assert platform.last_message_to(OWNER) == "An admin cannot be blocked."

    async def test_block_already_blocked(self, dispatcher, platform, blocklist):
        blocklist.block_party(USER)
        await dispatcher.handle(OWNER, f"!block {USER}")
        assert platform.last_message_to(OWNER) == f"User {USER} is already blocked."

    async def test_unblock(self, dispatcher, platform, blocklist):
        blocklist.block_party(USER)
        await dispatcher.handle(OWNER, f"!unblock {USER}")
        assert USER not in blocklist
        assert platform.last_message_to(OWNER) == f"User {USER} has been unblocked."

    async def test_unblock_unknown(self, dispatcher, platform):
        await dispatcher.handle(OWNER, f"!unblock {USER}")
        assert platform.last_message_to(OWNER) == f"User {USER} was not found in the block list."

    async def test_broadcast_reaches_friends_only(self, dispatcher, platform):
        platform.friends = {
            USER: Relationship.FRIEND,
            OTHER: Relationship.FRIEND,
            "76561198000000099": Relationship.REQUEST_RECIPIENT,
        }

        await dispatcher.handle(OWNER, "!broadcast Sale today!")

        assert platform.messages_to(USER) == ["Sale today!"]
        assert platform.messages_to(OTHER) == ["Sale today!"]
        assert platform.messages_to("76561198000000099") == []
        assert platform.last_message_to(OWNER) == "Broadcast sent to 2 friends."

    async def test_broadcast_needs_message(self, dispatcher, platform):
        await dispatcher.handle(OWNER, "!broadcast")
        assert "Please provide a message" in platform.last_message_to(OWNER)
