"""Trader configuration — pydantic models loaded from a YAML file.

Everything here is read-only at runtime except the block list, which is
owned by `BlockList` and only seeded from `ignore`.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_WELCOME = (
    "Welcome! I'm your automated trading bot for Gems and TF2 Keys. I also buy and "
    "sell Emotes/Backgrounds for Gems. Type !help to see all commands and rates."
)
DEFAULT_HELP = """Commands:

!Prices ⮞ Displays all current buy/sell prices.

!Check ⮞ Checks your current inventory for tradeable items.

!BuyTF [# of TF2 Keys] ⮞ Buy TF2 Keys for Gems

!SellTF [# of TF2 Keys] ⮞ Sell TF2 Keys for Gems

We're also buying your Backgrounds & Emotes (gemmable ones only)!
Start a trade offer with me, add the items you want to sell and the correct
amount of Gems from my inventory. I auto accept when the rates match and
decline when they do not."""
DEFAULT_ADMIN_HELP = """Admin Commands:

!Admin ⮞ Displays this admin help menu.
!Profit ⮞ Shows profit counters and current stock (Keys, Gems).
!Block [SteamID64] ⮞ Blocks a specific user from interacting with the bot.
!Unblock [SteamID64] ⮞ Unblocks a previously blocked user.
!Broadcast [Message] ⮞ Sends the message to all friends of the bot."""
DEFAULT_INFO = "Use !help to see all Commands"


class ConfigError(Exception):
    """Configuration is missing mandatory fields or is malformed."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class RateConfig(BaseModel):
    """Fixed exchange rates, in Gems per unit.

    Key rates are named from the user's side (`!SellTF` / `!BuyTF`);
    collectible rates from the bot's side (bot buys / bot sells).
    The spread between each pair is the bot's margin.
    """

    key_sell: int = Field(gt=0)  # bot pays per key the user sells
    key_buy: int = Field(gt=0)  # user pays per key bought from the bot
    collectible_buy: int = Field(gt=0)  # bot pays per background/emote
    collectible_sell: int = Field(gt=0)  # user pays per background/emote


class LimitConfig(BaseModel):
    """Per-trade maxima. `None` means unlimited, `0` means none allowed."""

    max_sell: int | None = Field(default=50, ge=0)
    max_buy: int | None = Field(default=50, ge=0)
    convert_to_gems: int = Field(default=20, ge=0)


class TradingConfig(BaseModel):
    # Mixed offers (keys and collectibles on one side) are rejected when set;
    # otherwise an offer is classified by its first item only.
    require_homogeneous_offers: bool = True
    progress_delay: float = Field(default=1.5, ge=0)


class MessageConfig(BaseModel):
    welcome: str = DEFAULT_WELCOME
    help: str = DEFAULT_HELP
    admin_help: str = DEFAULT_ADMIN_HELP
    info: str = DEFAULT_INFO


class StorageConfig(BaseModel):
    ledger_path: str = "data/ledger.json"
    blocklist_path: str = "data/blocklist.json"


class TimingConfig(BaseModel):
    spam_interval: float = Field(default=1.0, gt=0)
    broadcast_stagger: float = Field(default=0.5, ge=0)
    sweep_interval: float = Field(default=7 * 24 * 60 * 60, gt=0)
    sweep_throttle: float = Field(default=1.0, ge=0)
    ledger_check_interval: float = Field(default=60.0, gt=0)


class TraderConfig(BaseModel):
    """Top-level trader configuration."""

    bot_id: str
    owners: list[str] = Field(min_length=1)
    rates: RateConfig
    limits: LimitConfig = Field(default_factory=LimitConfig)
    ignore: list[str] = Field(default_factory=list)
    group_id: str | None = None
    comment_after_trade: str = "+Rep! Thanks for Trading with me!"
    max_messages_per_second: int = Field(default=3, gt=0)
    key_names: list[str] = Field(default_factory=lambda: ["Mann Co. Supply Crate Key"])
    items_not_for_trade: list[str] = Field(default_factory=list)
    trading: TradingConfig = Field(default_factory=TradingConfig)
    messages: MessageConfig = Field(default_factory=MessageConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)

    @field_validator("owners")
    @classmethod
    def _owners_not_blank(cls, owners: list[str]) -> list[str]:
        cleaned = [o for o in owners if o and o.strip()]
        if not cleaned:
            raise ValueError("at least one non-empty owner id is required")
        return cleaned

    @property
    def admins(self) -> frozenset[str]:
        return frozenset(self.owners)

    def is_admin(self, party: str) -> bool:
        return party in self.owners

    def is_key_name(self, market_hash_name: str) -> bool:
        return market_hash_name in self.key_names

    def is_restricted(self, market_hash_name: str) -> bool:
        return market_hash_name in self.items_not_for_trade


def parse_config(data: dict) -> TraderConfig:
    """Validate a raw config mapping.

    Raises:
        ConfigError: Listing every missing or invalid field.
    """
    try:
        return TraderConfig.model_validate(data)
    except ValidationError as e:
        missing = [
            ".".join(str(x) for x in err["loc"])
            for err in e.errors()
            if err["type"] == "missing"
        ]
        problems = [
            f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigError("Invalid configuration: " + "; ".join(problems), missing) from e


def load_config(path: str | Path | None = None) -> TraderConfig:
    """Load the YAML config at `path` (default: `$TRADER_CONFIG` or config.yaml)."""
    config_path = Path(path or os.environ.get("TRADER_CONFIG", DEFAULT_CONFIG_PATH))
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {config_path} is not valid YAML: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    config = parse_config(raw)
    logger.info(
        "Loaded config from %s (bot %s, %d owner(s))",
        config_path,
        _redact(config.bot_id),
        len(config.owners),
    )
    return config


def _redact(value: str) -> str:
    if len(value) <= 4:
        return "****"
    return "*" * (len(value) - 4) + value[-4:]
