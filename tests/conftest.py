"""Shared test fixtures."""

import os

import pytest
from fakes import BOT, KEY_NAME, OWNER, FakePlatform, no_sleep
from gemtrader import RetryExecutor, TradeBusClient

from services.trader.blocklist import BlockList
from services.trader.builder import TradeBuilder
from services.trader.commands import CommandDispatcher
from services.trader.config import TraderConfig, parse_config
from services.trader.inventory import InventoryAccessor
from services.trader.ledger import ProfitLedger
from services.trader.reconciler import OfferReconciler
from services.trader.status import StatusReporter


@pytest.fixture
def nats_url() -> str:
    return os.environ.get("NATS_URL", "nats://localhost:4222")


@pytest.fixture
async def bus_client(nats_url: str) -> TradeBusClient:
    """Provide a connected TradeBusClient, cleaned up after use."""
    client = TradeBusClient(nats_url)
    await client.connect()
    yield client  # type: ignore[misc]
    await client.close()


@pytest.fixture
def raw_config(tmp_path) -> dict:
    return {
        "bot_id": BOT,
        "owners": [OWNER],
        "rates": {
            "key_sell": 3900,
            "key_buy": 4200,
            "collectible_buy": 10,
            "collectible_sell": 25,
        },
        "limits": {"max_sell": 50, "max_buy": 50, "convert_to_gems": 20},
        "key_names": [KEY_NAME],
        "items_not_for_trade": [":cleancake:", "A Clean Garage"],
        "trading": {"progress_delay": 0},
        "timing": {"broadcast_stagger": 0, "sweep_throttle": 0},
        "storage": {
            "ledger_path": str(tmp_path / "ledger.json"),
            "blocklist_path": str(tmp_path / "blocklist.json"),
        },
    }


@pytest.fixture
def config(raw_config) -> TraderConfig:
    return parse_config(raw_config)


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def fast_executor() -> RetryExecutor:
    return RetryExecutor(sleep=no_sleep, jitter=lambda a, b: 0.0)


@pytest.fixture
def inventory(platform, config) -> InventoryAccessor:
    return InventoryAccessor(platform, config)


@pytest.fixture
def ledger(config) -> ProfitLedger:
    return ProfitLedger(config.storage.ledger_path)


@pytest.fixture
def blocklist(config) -> BlockList:
    return BlockList(config.storage.blocklist_path, config.admins)


@pytest.fixture
def reconciler(platform, config, inventory, ledger, blocklist) -> OfferReconciler:
    status = StatusReporter(platform, inventory, config.bot_id)
    return OfferReconciler(platform, config, inventory, ledger, blocklist, status)


@pytest.fixture
def builder(platform, config, inventory) -> TradeBuilder:
    return TradeBuilder(platform, config, inventory, sleep=no_sleep)


@pytest.fixture
def dispatcher(platform, config, inventory, builder, ledger, blocklist) -> CommandDispatcher:
    return CommandDispatcher(
        platform, config, inventory, builder, ledger, blocklist, sleep=no_sleep
    )
