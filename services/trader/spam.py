"""Chat spam filter — per-party message counts over a 1-second window."""

import logging
from dataclasses import dataclass, field

from gemtrader import Platform

logger = logging.getLogger(__name__)

SPAM_REPLY = "Sorry but we do not like spamming. You've been removed!"


@dataclass
class SpamState:
    """Message counts since the last tick.

    Counts are cleared on every tick, so this is a fixed window, not a true
    rate limiter: a burst straddling a tick boundary can exceed the limit.
    """

    max_per_window: int
    admins: frozenset[str] = frozenset()
    _counts: dict[str, int] = field(default_factory=dict)

    def record_message(self, party: str) -> None:
        self._counts[party] = self._counts.get(party, 0) + 1

    def get_count(self, party: str) -> int:
        return self._counts.get(party, 0)

    def offenders(self) -> list[str]:
        return [
            party
            for party, count in self._counts.items()
            if count > self.max_per_window and party not in self.admins
        ]

    def advance_tick(self) -> list[str]:
        """Return this window's offenders and reset all counters."""
        found = self.offenders()
        self._counts.clear()
        return found


class SpamFilter:
    """Removes friends who exceed the message rate and tells the owners."""

    def __init__(self, platform: Platform, state: SpamState) -> None:
        self._platform = platform
        self._state = state

    @property
    def state(self) -> SpamState:
        return self._state

    def record_message(self, party: str) -> None:
        self._state.record_message(party)

    async def tick(self) -> list[str]:
        offenders = self._state.advance_tick()
        for party in offenders:
            logger.warning("Removing %s for spamming", party)
            await self._platform.send_message(party, SPAM_REPLY)
            try:
                await self._platform.remove_friend(party)
            except Exception:
                logger.exception("Could not remove spammer %s", party)
            for owner in self._state.admins:
                await self._platform.send_message(
                    owner, f"Steam #{party} has been removed for spamming"
                )
        return offenders
