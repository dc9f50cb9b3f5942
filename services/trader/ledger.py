"""Profit ledger — lifetime/weekly/daily counters per trade category.

Every mutation is persisted before returning. A failed write is logged and
the in-memory counters stay authoritative until the next successful write.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from services.trader.storage import JsonStore, StorageError

logger = logging.getLogger(__name__)


class LedgerCategory(StrEnum):
    """Trade categories, named after the rate the trade settles at."""

    KEY_BUY = "key_buy"
    KEY_SELL = "key_sell"
    COLLECTIBLE_BUY = "collectible_buy"
    COLLECTIBLE_SELL = "collectible_sell"


class Window(StrEnum):
    LIFETIME = "lifetime"
    WEEKLY = "weekly"
    DAILY = "daily"


class Counters(BaseModel):
    lifetime: int = 0
    weekly: int = 0
    daily: int = 0


class LedgerData(BaseModel):
    """On-disk shape of the ledger."""

    categories: dict[LedgerCategory, Counters] = Field(
        default_factory=lambda: {c: Counters() for c in LedgerCategory}
    )
    last_daily_reset: date | None = None
    last_weekly_reset: date | None = None


class ProfitLedger:
    """Accumulates signed profit per category and persists it."""

    def __init__(self, path: str | Path, store: JsonStore | None = None) -> None:
        self._path = Path(path)
        self._store = store or JsonStore()
        self._data = self._store.load(self._path, LedgerData)
        for category in LedgerCategory:
            self._data.categories.setdefault(category, Counters())

    @property
    def data(self) -> LedgerData:
        return self._data

    def counters(self, category: LedgerCategory) -> Counters:
        return self._data.categories[category]

    def record(self, category: LedgerCategory, delta: int) -> None:
        """Add `delta` to every window of `category`."""
        counters = self._data.categories[category]
        counters.lifetime += delta
        counters.weekly += delta
        counters.daily += delta
        logger.info(
            "Ledger %s %+d (lifetime %d, weekly %d, daily %d)",
            category,
            delta,
            counters.lifetime,
            counters.weekly,
            counters.daily,
        )
        self._persist()

    def reset_window(self, category: LedgerCategory, window: Window | str) -> None:
        """Zero the weekly or daily counter of `category`."""
        window = Window(window)
        if window == Window.LIFETIME:
            raise ValueError("The lifetime counter cannot be reset")
        setattr(self._data.categories[category], window.value, 0)
        logger.info("Ledger %s %s window reset", category, window)
        self._persist()

    def mark_reset(self, window: Window, day: date) -> None:
        if window == Window.DAILY:
            self._data.last_daily_reset = day
        elif window == Window.WEEKLY:
            self._data.last_weekly_reset = day
        self._persist()

    def render(self) -> str:
        """Human-readable counters for the `!profit` command."""
        lines = ["Profit (Gems):"]
        for category in LedgerCategory:
            c = self._data.categories[category]
            label = category.value.replace("_", " ").title()
            lines.append(
                f"- {label}: lifetime {c.lifetime}, weekly {c.weekly}, daily {c.daily}"
            )
        total = sum(c.lifetime for c in self._data.categories.values())
        lines.append(f"Total lifetime: {total}")
        return "\n".join(lines)

    def _persist(self) -> None:
        try:
            self._store.save(self._path, self._data)
        except StorageError:
            logger.exception("Failed to persist ledger; in-memory counters kept")


class LedgerScheduler:
    """Resets daily windows at UTC midnight and weekly ones on Mondays.

    The last reset dates live in the ledger file, so a restart neither skips
    a boundary nor resets twice.
    """

    def __init__(self, ledger: ProfitLedger) -> None:
        self._ledger = ledger

    def run_due_resets(self, now: datetime | None = None) -> list[Window]:
        today = (now or datetime.now(timezone.utc)).date()
        week_start = today - timedelta(days=today.weekday())
        done: list[Window] = []
        data = self._ledger.data

        if data.last_daily_reset is None:
            self._ledger.mark_reset(Window.DAILY, today)
        elif data.last_daily_reset < today:
            for category in LedgerCategory:
                self._ledger.reset_window(category, Window.DAILY)
            self._ledger.mark_reset(Window.DAILY, today)
            done.append(Window.DAILY)

        if data.last_weekly_reset is None:
            self._ledger.mark_reset(Window.WEEKLY, week_start)
        elif data.last_weekly_reset < week_start:
            for category in LedgerCategory:
                self._ledger.reset_window(category, Window.WEEKLY)
            self._ledger.mark_reset(Window.WEEKLY, week_start)
            done.append(Window.WEEKLY)

        return done
