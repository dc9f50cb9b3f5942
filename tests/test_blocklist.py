"""Tests for the persisted block list."""

from fakes import OTHER, OWNER, USER

from services.trader.blocklist import BlockList, BlockResult


class TestBlockList:
    def test_block_and_check(self, blocklist):
        assert blocklist.block_party(USER) == BlockResult.BLOCKED
        assert USER in blocklist
        assert blocklist.is_blocked(USER)
        assert not blocklist.is_blocked(OTHER)

    def test_block_twice(self, blocklist):
        blocklist.block_party(USER)
        assert blocklist.block_party(USER) == BlockResult.ALREADY_BLOCKED

    def test_invalid_id_rejected(self, blocklist):
        assert blocklist.block_party("not-an-id") == BlockResult.INVALID_ID
        assert blocklist.block_party("7656119800000004") == BlockResult.INVALID_ID
        assert blocklist.parties == frozenset()

    def test_trailing_newline_rejected(self, blocklist):
        assert blocklist.block_party(f"{USER}\n") == BlockResult.INVALID_ID
        assert blocklist.parties == frozenset()

    def test_admin_cannot_be_blocked(self, blocklist):
        assert blocklist.block_party(OWNER) == BlockResult.IS_ADMIN
        assert OWNER not in blocklist

    def test_unblock(self, blocklist):
        blocklist.block_party(USER)
        assert blocklist.unblock_party(USER) == BlockResult.UNBLOCKED
        assert USER not in blocklist

    def test_unblock_unknown(self, blocklist):
        assert blocklist.unblock_party(USER) == BlockResult.NOT_BLOCKED

    def test_unblock_invalid(self, blocklist):
        assert blocklist.unblock_party("abc") == BlockResult.INVALID_ID

    def test_persisted_across_instances(self, config):
        BlockList(config.storage.blocklist_path, config.admins).block_party(USER)
        reloaded = BlockList(config.storage.blocklist_path, config.admins)
        assert USER in reloaded

    def test_seed_adds_ignored_parties_except_admins(self, config):
        blocklist = BlockList(config.storage.blocklist_path, config.admins, seed=[USER, OWNER])
        assert USER in blocklist
        assert OWNER not in blocklist
