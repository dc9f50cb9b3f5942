"""Topic path constants and NATS subject conversion.

Topics use `/` separators (e.g., `/events/offers/new`),
while NATS uses `.` separators (e.g., `events.offers.new`).
This module handles the conversion transparently.
"""


class Topics:
    """Topic path constants for the gateway <-> trader protocol."""

    # Platform events (published by the gateway)
    NEW_OFFER = "/events/offers/new"
    OFFER_CHANGED = "/events/offers/changed"
    CHAT = "/events/chat"
    FRIENDS = "/events/friends"

    # Platform requests (answered by the gateway)
    INVENTORY = "/platform/inventory"
    OFFERS = "/platform/offers"
    ESCROW = "/platform/escrow"
    COMMENTS = "/platform/comments"
    FRIEND_LIST = "/platform/friends"
    GRIND = "/platform/grind"

    # Fire-and-forget commands
    SEND_CHAT = "/platform/chat"
    STATUS = "/platform/status"

    @classmethod
    def events(cls) -> list[str]:
        """Return all event topic paths the trader consumes."""
        return [cls.NEW_OFFER, cls.OFFER_CHANGED, cls.CHAT, cls.FRIENDS]

    @classmethod
    def all_topics(cls) -> list[str]:
        """Return all static topic paths."""
        return [
            *cls.events(),
            cls.INVENTORY,
            cls.OFFERS,
            cls.ESCROW,
            cls.COMMENTS,
            cls.FRIEND_LIST,
            cls.GRIND,
            cls.SEND_CHAT,
            cls.STATUS,
        ]


def to_nats_subject(topic: str) -> str:
    """Convert a topic path to a NATS subject.

    `/events/offers/new` → `events.offers.new`
    """
    return topic.lstrip("/").replace("/", ".")


def from_nats_subject(subject: str) -> str:
    """Convert a NATS subject back to a topic path.

    `events.offers.new` → `/events/offers/new`
    """
    return "/" + subject.replace(".", "/")
