"""Block list — parties whose chat and trade offers are ignored."""

import logging
from enum import StrEnum
from pathlib import Path

from gemtrader import is_valid_steam_id
from pydantic import BaseModel, Field

from services.trader.storage import JsonStore, StorageError

logger = logging.getLogger(__name__)


class BlockResult(StrEnum):
    BLOCKED = "blocked"
    ALREADY_BLOCKED = "already_blocked"
    UNBLOCKED = "unblocked"
    NOT_BLOCKED = "not_blocked"
    INVALID_ID = "invalid_id"
    IS_ADMIN = "is_admin"


class BlockListData(BaseModel):
    blocked: list[str] = Field(default_factory=list)


class BlockList:
    """Persisted set of blocked party ids.

    Mutations happen without an await between check and update, so they are
    atomic with respect to the handlers reading the list.
    """

    def __init__(
        self,
        path: str | Path,
        admins: frozenset[str],
        seed: list[str] | None = None,
        store: JsonStore | None = None,
    ) -> None:
        self._path = Path(path)
        self._admins = admins
        self._store = store or JsonStore()
        data = self._store.load(self._path, BlockListData)
        self._blocked: set[str] = set(data.blocked)
        self._blocked.update(p for p in (seed or []) if p not in admins)

    def __contains__(self, party: str) -> bool:
        return party in self._blocked

    def is_blocked(self, party: str) -> bool:
        return party in self._blocked

    @property
    def parties(self) -> frozenset[str]:
        return frozenset(self._blocked)

    def block_party(self, party: str) -> BlockResult:
        if not is_valid_steam_id(party):
            return BlockResult.INVALID_ID
        if party in self._admins:
            return BlockResult.IS_ADMIN
        if party in self._blocked:
            return BlockResult.ALREADY_BLOCKED
        self._blocked.add(party)
        self._persist()
        return BlockResult.BLOCKED

    def unblock_party(self, party: str) -> BlockResult:
        if not is_valid_steam_id(party):
            return BlockResult.INVALID_ID
        if party not in self._blocked:
            return BlockResult.NOT_BLOCKED
        self._blocked.discard(party)
        self._persist()
        return BlockResult.UNBLOCKED

    def _persist(self) -> None:
        try:
            self._store.save(self._path, BlockListData(blocked=sorted(self._blocked)))
        except StorageError:
            logger.exception("Failed to persist block list; in-memory list kept")
