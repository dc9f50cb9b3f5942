"""Platform capabilities the trader consumes, and their bus-backed implementation.

The trading platform (sessions, inventories, offers, chat) lives behind a
gateway process. The trader only depends on the `Platform` protocol;
`BusPlatform` speaks to the gateway over NATS request/reply and
`RetryingPlatform` wraps any implementation with the retry policy.
"""

import logging
from typing import Protocol

from pydantic import BaseModel

from gemtrader.client.nats_client import TradeBusClient
from gemtrader.errors import PlatformError
from gemtrader.helpers.factory import create_message
from gemtrader.models.envelope import Envelope
from gemtrader.models.items import EscrowStatus, ItemRef
from gemtrader.models.messages import (
    FetchInventory,
    FriendAction,
    FriendList,
    GetEscrow,
    GrindItem,
    InventoryContents,
    ListFriends,
    MessageType,
    OfferAction,
    OfferHandle,
    PostComment,
    Relationship,
    Reply,
    SendChat,
    SetStatus,
    SubmitOffer,
)
from gemtrader.models.topics import Topics
from gemtrader.retry import RetryExecutor

logger = logging.getLogger(__name__)

READ_ATTEMPTS = 5
WRITE_ATTEMPTS = 3
COMMENT_ATTEMPTS = 1


class Platform(Protocol):
    """Remote capabilities of the trading platform."""

    async def fetch_inventory(
        self, party: str, app_id: int, context_id: int, tradable_only: bool = True
    ) -> list[ItemRef]: ...

    async def submit_offer(
        self,
        partner: str,
        bot_items: list[ItemRef],
        partner_items: list[ItemRef],
        message: str,
    ) -> OfferHandle: ...

    async def accept_offer(self, offer_id: str) -> None: ...

    async def decline_offer(self, offer_id: str) -> None: ...

    async def send_message(self, party: str, text: str) -> None: ...

    async def post_profile_comment(self, party: str, text: str) -> None: ...

    async def get_escrow_status(self, partner: str) -> EscrowStatus: ...

    async def list_friends(self) -> dict[str, Relationship]: ...

    async def add_friend(self, party: str) -> None: ...

    async def remove_friend(self, party: str) -> None: ...

    async def invite_to_group(self, party: str, group_id: str) -> None: ...

    async def grind_into_gems(self, item: ItemRef) -> None: ...

    async def set_status(self, text: str) -> None: ...


class BusPlatform:
    """`Platform` implementation that forwards every call to the gateway."""

    def __init__(self, bus: TradeBusClient, bot_id: str) -> None:
        self._bus = bus
        self._bot_id = bot_id

    async def _call(self, topic: str, msg_type: MessageType, payload: BaseModel) -> Reply:
        envelope = create_message(
            from_agent=self._bot_id, topic=topic, msg_type=msg_type, payload=payload
        )
        answer: Envelope = await self._bus.request(topic, envelope)
        reply = Reply.model_validate(answer.payload)
        if not reply.ok:
            raise PlatformError(f"{msg_type} failed: {reply.error or 'unknown error'}")
        return reply

    async def _fire(self, topic: str, msg_type: MessageType, payload: BaseModel) -> None:
        envelope = create_message(
            from_agent=self._bot_id, topic=topic, msg_type=msg_type, payload=payload
        )
        await self._bus.publish(topic, envelope)

    async def fetch_inventory(
        self, party: str, app_id: int, context_id: int, tradable_only: bool = True
    ) -> list[ItemRef]:
        reply = await self._call(
            Topics.INVENTORY,
            MessageType.FETCH_INVENTORY,
            FetchInventory(
                party=party, app_id=app_id, context_id=context_id, tradable_only=tradable_only
            ),
        )
        return InventoryContents.model_validate(reply.data).items

    async def submit_offer(
        self,
        partner: str,
        bot_items: list[ItemRef],
        partner_items: list[ItemRef],
        message: str,
    ) -> OfferHandle:
        reply = await self._call(
            Topics.OFFERS,
            MessageType.SUBMIT_OFFER,
            SubmitOffer(
                partner=partner,
                bot_items=bot_items,
                partner_items=partner_items,
                message=message,
            ),
        )
        return OfferHandle.model_validate(reply.data)

    async def accept_offer(self, offer_id: str) -> None:
        await self._call(Topics.OFFERS, MessageType.ACCEPT_OFFER, OfferAction(offer_id=offer_id))

    async def decline_offer(self, offer_id: str) -> None:
        await self._call(Topics.OFFERS, MessageType.DECLINE_OFFER, OfferAction(offer_id=offer_id))

    async def send_message(self, party: str, text: str) -> None:
        try:
            await self._fire(Topics.SEND_CHAT, MessageType.SEND_CHAT, SendChat(party=party, text=text))
        except Exception:
            logger.exception("Failed to send chat message to %s", party)

    async def post_profile_comment(self, party: str, text: str) -> None:
        await self._call(Topics.COMMENTS, MessageType.POST_COMMENT, PostComment(party=party, text=text))

    async def get_escrow_status(self, partner: str) -> EscrowStatus:
        reply = await self._call(Topics.ESCROW, MessageType.GET_ESCROW, GetEscrow(partner=partner))
        return EscrowStatus.model_validate(reply.data)

    async def list_friends(self) -> dict[str, Relationship]:
        reply = await self._call(Topics.FRIEND_LIST, MessageType.LIST_FRIENDS, ListFriends())
        return FriendList.model_validate(reply.data).friends

    async def add_friend(self, party: str) -> None:
        await self._call(
            Topics.FRIEND_LIST, MessageType.FRIEND_ACTION, FriendAction(party=party, action="add")
        )

    async def remove_friend(self, party: str) -> None:
        await self._call(
            Topics.FRIEND_LIST, MessageType.FRIEND_ACTION, FriendAction(party=party, action="remove")
        )

    async def invite_to_group(self, party: str, group_id: str) -> None:
        await self._call(
            Topics.FRIEND_LIST,
            MessageType.FRIEND_ACTION,
            FriendAction(party=party, action="invite", group_id=group_id),
        )

    async def grind_into_gems(self, item: ItemRef) -> None:
        await self._call(Topics.GRIND, MessageType.GRIND_ITEM, GrindItem(item=item))

    async def set_status(self, text: str) -> None:
        try:
            await self._fire(Topics.STATUS, MessageType.SET_STATUS, SetStatus(text=text))
        except Exception:
            logger.exception("Failed to publish status")


class RetryingPlatform:
    """Decorates a `Platform` with the retry policy.

    Reads get `READ_ATTEMPTS`; calls with side effects on the platform get
    the smaller `WRITE_ATTEMPTS` budget since a retried submit can create a
    duplicate offer. Chat and status are fire-and-forget and not retried.
    """

    def __init__(self, inner: Platform, executor: RetryExecutor | None = None) -> None:
        self._inner = inner
        self._executor = executor or RetryExecutor()

    @property
    def inner(self) -> Platform:
        return self._inner

    async def fetch_inventory(
        self, party: str, app_id: int, context_id: int, tradable_only: bool = True
    ) -> list[ItemRef]:
        return await self._executor.execute(
            lambda: self._inner.fetch_inventory(party, app_id, context_id, tradable_only),
            READ_ATTEMPTS,
            label=f"fetch_inventory({party}, {app_id}/{context_id})",
        )

    async def submit_offer(
        self,
        partner: str,
        bot_items: list[ItemRef],
        partner_items: list[ItemRef],
        message: str,
    ) -> OfferHandle:
        return await self._executor.execute(
            lambda: self._inner.submit_offer(partner, bot_items, partner_items, message),
            WRITE_ATTEMPTS,
            label=f"submit_offer({partner})",
        )

    async def accept_offer(self, offer_id: str) -> None:
        await self._executor.execute(
            lambda: self._inner.accept_offer(offer_id), WRITE_ATTEMPTS, label=f"accept_offer({offer_id})"
        )

    async def decline_offer(self, offer_id: str) -> None:
        await self._executor.execute(
            lambda: self._inner.decline_offer(offer_id), WRITE_ATTEMPTS, label=f"decline_offer({offer_id})"
        )

    async def send_message(self, party: str, text: str) -> None:
        await self._inner.send_message(party, text)

    async def post_profile_comment(self, party: str, text: str) -> None:
        await self._executor.execute(
            lambda: self._inner.post_profile_comment(party, text),
            COMMENT_ATTEMPTS,
            label=f"post_profile_comment({party})",
        )

    async def get_escrow_status(self, partner: str) -> EscrowStatus:
        return await self._executor.execute(
            lambda: self._inner.get_escrow_status(partner), READ_ATTEMPTS, label=f"get_escrow_status({partner})"
        )

    async def list_friends(self) -> dict[str, Relationship]:
        return await self._executor.execute(self._inner.list_friends, READ_ATTEMPTS, label="list_friends")

    async def add_friend(self, party: str) -> None:
        await self._executor.execute(
            lambda: self._inner.add_friend(party), WRITE_ATTEMPTS, label=f"add_friend({party})"
        )

    async def remove_friend(self, party: str) -> None:
        await self._executor.execute(
            lambda: self._inner.remove_friend(party), WRITE_ATTEMPTS, label=f"remove_friend({party})"
        )

    async def invite_to_group(self, party: str, group_id: str) -> None:
        await self._executor.execute(
            lambda: self._inner.invite_to_group(party, group_id),
            WRITE_ATTEMPTS,
            label=f"invite_to_group({party})",
        )

    async def grind_into_gems(self, item: ItemRef) -> None:
        await self._executor.execute(
            lambda: self._inner.grind_into_gems(item), WRITE_ATTEMPTS, label=f"grind({item.asset_id})"
        )

    async def set_status(self, text: str) -> None:
        await self._inner.set_status(text)
