"""Tests for the profit ledger and its window resets."""

from datetime import date, datetime, timezone

import pytest

from services.trader.ledger import (
    LedgerCategory,
    LedgerData,
    LedgerScheduler,
    ProfitLedger,
    Window,
)
from services.trader.storage import JsonStore, StorageError


class TestRecord:
    def test_new_ledger_is_zeroed(self, ledger):
        for category in LedgerCategory:
            c = ledger.counters(category)
            assert (c.lifetime, c.weekly, c.daily) == (0, 0, 0)

    def test_record_adds_to_every_window(self, ledger):
        ledger.record(LedgerCategory.KEY_BUY, 300)
        c = ledger.counters(LedgerCategory.KEY_BUY)
        assert (c.lifetime, c.weekly, c.daily) == (300, 300, 300)

    def test_records_are_additive(self, ledger):
        for delta in (300, 600, -50):
            ledger.record(LedgerCategory.KEY_SELL, delta)
        assert ledger.counters(LedgerCategory.KEY_SELL).lifetime == 850

    def test_categories_are_independent(self, ledger):
        ledger.record(LedgerCategory.COLLECTIBLE_BUY, 15)
        assert ledger.counters(LedgerCategory.COLLECTIBLE_SELL).lifetime == 0

    def test_persisted_across_instances(self, config):
        ProfitLedger(config.storage.ledger_path).record(LedgerCategory.KEY_BUY, 300)
        reloaded = ProfitLedger(config.storage.ledger_path)
        assert reloaded.counters(LedgerCategory.KEY_BUY).lifetime == 300

    def test_write_failure_keeps_memory(self, tmp_path):
        class BrokenStore(JsonStore):
            def save(self, path, data):
                raise StorageError("disk full")

            def load(self, path, model):
                return model()

        ledger = ProfitLedger(tmp_path / "ledger.json", store=BrokenStore())
        ledger.record(LedgerCategory.KEY_BUY, 300)
        assert ledger.counters(LedgerCategory.KEY_BUY).lifetime == 300


class TestResetWindow:
    def test_reset_daily_keeps_other_windows(self, ledger):
        ledger.record(LedgerCategory.KEY_BUY, 300)
        ledger.reset_window(LedgerCategory.KEY_BUY, Window.DAILY)
        c = ledger.counters(LedgerCategory.KEY_BUY)
        assert (c.lifetime, c.weekly, c.daily) == (300, 300, 0)

    def test_reset_weekly_by_name(self, ledger):
        ledger.record(LedgerCategory.KEY_BUY, 300)
        ledger.reset_window(LedgerCategory.KEY_BUY, "weekly")
        assert ledger.counters(LedgerCategory.KEY_BUY).weekly == 0

    def test_lifetime_cannot_be_reset(self, ledger):
        with pytest.raises(ValueError):
            ledger.reset_window(LedgerCategory.KEY_BUY, Window.LIFETIME)

    def test_unknown_window_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.reset_window(LedgerCategory.KEY_BUY, "monthly")


class TestRender:
    def test_lists_every_category_and_total(self, ledger):
        ledger.record(LedgerCategory.KEY_BUY, 300)
        ledger.record(LedgerCategory.COLLECTIBLE_SELL, 15)
        text = ledger.render()
        assert text.startswith("Profit (Gems):")
        assert "- Key Buy: lifetime 300, weekly 300, daily 300" in text
        assert "- Collectible Sell: lifetime 15" in text
        assert text.endswith("Total lifetime: 315")


class TestLedgerScheduler:
    # 2026-10-14 is a Wednesday
    WED = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)

    def test_first_run_only_records_dates(self, ledger):
        ledger.record(LedgerCategory.KEY_BUY, 300)
        assert LedgerScheduler(ledger).run_due_resets(self.WED) == []
        assert ledger.data.last_daily_reset == date(2026, 10, 14)
        assert ledger.data.last_weekly_reset == date(2026, 10, 12)
        assert ledger.counters(LedgerCategory.KEY_BUY).daily == 300

    def test_same_day_does_nothing(self, ledger):
        scheduler = LedgerScheduler(ledger)
        scheduler.run_due_resets(self.WED)
        ledger.record(LedgerCategory.KEY_BUY, 300)
        assert scheduler.run_due_resets(self.WED) == []
        assert ledger.counters(LedgerCategory.KEY_BUY).daily == 300

    def test_next_day_resets_daily(self, ledger):
        scheduler = LedgerScheduler(ledger)
        scheduler.run_due_resets(self.WED)
        ledger.record(LedgerCategory.KEY_BUY, 300)

        done = scheduler.run_due_resets(datetime(2026, 10, 15, 0, 1, tzinfo=timezone.utc))

        assert done == [Window.DAILY]
        c = ledger.counters(LedgerCategory.KEY_BUY)
        assert (c.lifetime, c.weekly, c.daily) == (300, 300, 0)

    def test_monday_resets_both(self, ledger):
        scheduler = LedgerScheduler(ledger)
        scheduler.run_due_resets(self.WED)
        ledger.record(LedgerCategory.KEY_SELL, 600)

        done = scheduler.run_due_resets(datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc))

        assert done == [Window.DAILY, Window.WEEKLY]
        c = ledger.counters(LedgerCategory.KEY_SELL)
        assert (c.lifetime, c.weekly, c.daily) == (600, 0, 0)

    def test_reset_dates_survive_restart(self, config):
        ledger = ProfitLedger(config.storage.ledger_path)
        LedgerScheduler(ledger).run_due_resets(self.WED)
        ledger.record(LedgerCategory.KEY_BUY, 300)

        reloaded = ProfitLedger(config.storage.ledger_path)
        assert LedgerScheduler(reloaded).run_due_resets(self.WED) == []
        assert reloaded.counters(LedgerCategory.KEY_BUY).daily == 300


class TestLedgerData:
    def test_default_has_all_categories(self):
        assert set(LedgerData().categories) == set(LedgerCategory)
