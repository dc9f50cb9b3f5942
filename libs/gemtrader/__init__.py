"""Gem trader — shared protocol library."""

from gemtrader.client.nats_client import TradeBusClient
from gemtrader.errors import PlatformError
from gemtrader.gateway import BusPlatform, Platform, RetryingPlatform
from gemtrader.helpers.factory import create_message, parse_message, parse_payload
from gemtrader.helpers.validation import is_valid_steam_id, validate_message
from gemtrader.models.envelope import Envelope
from gemtrader.models.items import (
    GEM_APP_ID,
    GEM_CONTEXT_ID,
    GEMS_NAME,
    KEY_APP_ID,
    KEY_CONTEXT_ID,
    WORTH_MARKER,
    EscrowStatus,
    ItemRef,
)
from gemtrader.models.messages import (
    PAYLOAD_REGISTRY,
    ChatReceived,
    FriendRelationship,
    MessageType,
    OfferChanged,
    OfferHandle,
    OfferState,
    Relationship,
    Reply,
    SendChat,
    SetStatus,
    TradeOffer,
)
from gemtrader.models.topics import Topics, from_nats_subject, to_nats_subject
from gemtrader.retry import RetryExecutor

__all__ = [
    # Client
    "TradeBusClient",
    # Platform
    "BusPlatform",
    "Platform",
    "PlatformError",
    "RetryExecutor",
    "RetryingPlatform",
    # Models
    "ChatReceived",
    "Envelope",
    "EscrowStatus",
    "FriendRelationship",
    "GEMS_NAME",
    "GEM_APP_ID",
    "GEM_CONTEXT_ID",
    "ItemRef",
    "KEY_APP_ID",
    "KEY_CONTEXT_ID",
    "MessageType",
    "OfferChanged",
    "OfferHandle",
    "OfferState",
    "PAYLOAD_REGISTRY",
    "Relationship",
    "Reply",
    "SendChat",
    "SetStatus",
    "Topics",
    "TradeOffer",
    "WORTH_MARKER",
    # Helpers
    "create_message",
    "from_nats_subject",
    "is_valid_steam_id",
    "parse_message",
    "parse_payload",
    "to_nats_subject",
    "validate_message",
]
