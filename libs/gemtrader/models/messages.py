"""Message types and payload models for the gem trader bus protocol.

Events flow from the platform gateway to the trader; requests flow from the
trader to the gateway and are answered on the NATS reply subject.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from gemtrader.models.items import ItemRef


class MessageType(StrEnum):
    """All message types in the protocol."""

    # Events (gateway -> trader)
    NEW_OFFER = "new_offer"
    OFFER_CHANGED = "offer_changed"
    CHAT_RECEIVED = "chat_received"
    FRIEND_RELATIONSHIP = "friend_relationship"

    # Requests (trader -> gateway)
    FETCH_INVENTORY = "fetch_inventory"
    SUBMIT_OFFER = "submit_offer"
    ACCEPT_OFFER = "accept_offer"
    DECLINE_OFFER = "decline_offer"
    GET_ESCROW = "get_escrow"
    POST_COMMENT = "post_comment"
    LIST_FRIENDS = "list_friends"
    FRIEND_ACTION = "friend_action"
    GRIND_ITEM = "grind_item"

    # Fire-and-forget
    SEND_CHAT = "send_chat"
    SET_STATUS = "set_status"

    # Replies
    REPLY = "reply"


class OfferState(StrEnum):
    """Trade offer lifecycle states reported by the platform."""

    ACTIVE = "active"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELED = "canceled"
    EXPIRED = "expired"
    INVALID = "invalid"

    @property
    def is_terminal(self) -> bool:
        return self not in (OfferState.ACTIVE, OfferState.ACCEPTED)


class Relationship(StrEnum):
    """Friend list relationship of a party to the bot."""

    NONE = "none"
    REQUEST_RECIPIENT = "request_recipient"
    FRIEND = "friend"
    BLOCKED = "blocked"


class TradeOffer(BaseModel):
    """An incoming or observed trade offer.

    `items_to_give` is the bot's side, `items_to_receive` the partner's side.
    """

    offer_id: str
    partner: str
    items_to_give: list[ItemRef] = Field(default_factory=list)
    items_to_receive: list[ItemRef] = Field(default_factory=list)
    message: str = ""
    state: OfferState = OfferState.ACTIVE


class OfferChanged(BaseModel):
    """The platform reports a new state for a known offer."""

    offer: TradeOffer
    old_state: OfferState


class ChatReceived(BaseModel):
    """A chat message from a party to the bot."""

    sender: str
    text: str
    sender_name: str = ""


class FriendRelationship(BaseModel):
    """A party's relationship to the bot changed."""

    party: str
    relationship: Relationship
    name: str = ""


class FetchInventory(BaseModel):
    party: str
    app_id: int
    context_id: int
    tradable_only: bool = True


class InventoryContents(BaseModel):
    items: list[ItemRef] = Field(default_factory=list)


class SubmitOffer(BaseModel):
    partner: str
    bot_items: list[ItemRef] = Field(default_factory=list)
    partner_items: list[ItemRef] = Field(default_factory=list)
    message: str = ""


class OfferHandle(BaseModel):
    """Platform reference to a submitted offer."""

    offer_id: str
    state: OfferState = OfferState.ACTIVE


class OfferAction(BaseModel):
    offer_id: str


class GetEscrow(BaseModel):
    partner: str


class PostComment(BaseModel):
    party: str
    text: str


class ListFriends(BaseModel):
    """Request the bot's friend list (no parameters)."""


class FriendList(BaseModel):
    friends: dict[str, Relationship] = Field(default_factory=dict)


class FriendAction(BaseModel):
    """Add/remove a friend or invite them to a group."""

    party: str
    action: str  # add, remove, invite
    group_id: str | None = None


class GrindItem(BaseModel):
    item: ItemRef


class SendChat(BaseModel):
    party: str
    text: str


class SetStatus(BaseModel):
    text: str


class Reply(BaseModel):
    """Gateway answer to a request. `error` set means the call failed."""

    ok: bool = True
    error: str | None = None
    data: dict = Field(default_factory=dict)


# Registry mapping message types to their payload models
PAYLOAD_REGISTRY: dict[MessageType, type[BaseModel]] = {
    MessageType.NEW_OFFER: TradeOffer,
    MessageType.OFFER_CHANGED: OfferChanged,
    MessageType.CHAT_RECEIVED: ChatReceived,
    MessageType.FRIEND_RELATIONSHIP: FriendRelationship,
    MessageType.FETCH_INVENTORY: FetchInventory,
    MessageType.SUBMIT_OFFER: SubmitOffer,
    MessageType.ACCEPT_OFFER: OfferAction,
    MessageType.DECLINE_OFFER: OfferAction,
    MessageType.GET_ESCROW: GetEscrow,
    MessageType.POST_COMMENT: PostComment,
    MessageType.LIST_FRIENDS: ListFriends,
    MessageType.FRIEND_ACTION: FriendAction,
    MessageType.GRIND_ITEM: GrindItem,
    MessageType.SEND_CHAT: SendChat,
    MessageType.SET_STATUS: SetStatus,
    MessageType.REPLY: Reply,
}
