from gemtrader.models.envelope import Envelope
from gemtrader.models.items import (
    GEM_APP_ID,
    GEM_CONTEXT_ID,
    GEMS_NAME,
    KEY_APP_ID,
    KEY_CONTEXT_ID,
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

__all__ = [
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
    "from_nats_subject",
    "to_nats_subject",
]
