"""
Tests for budget accounting and calendar rollover.
"""

from datetime import date

from coach_ai.entities import UsageRecord
from coach_ai.repositories import MemoryKeyValueStore
from coach_ai.services.usage_tracker import STORAGE_KEY, UsageTracker


class Calendar:
    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


def record(units: int, day: date = date(2026, 3, 10)) -> UsageRecord:
    return UsageRecord(
        day=day, input_units=units // 2, output_units=units - units // 2,
        provider_id="fake", feature="motivation", estimated_cost=0.0,
    )


def test_record_charges_both_counters_and_persists():
    store = MemoryKeyValueStore()
    tracker = UsageTracker(store=store, today=Calendar(date(2026, 3, 10)))
    tracker.record(record(120))

    assert tracker.budget.daily_used == 120
    assert tracker.budget.monthly_used == 120
    assert store.get(STORAGE_KEY) == {
        "last_day": "2026-03-10",
        "last_month": "2026-03",
        "daily_used": 120,
        "monthly_used": 120,
    }
    assert len(tracker.records) == 1


def test_budget_exhausted_at_daily_limit():
    tracker = UsageTracker(daily_limit=100, monthly_limit=1000, today=Calendar(date(2026, 3, 10)))
    tracker.record(record(99))
    assert tracker.is_within_budget()
    tracker.record(record(1))
    assert not tracker.is_within_budget()


def test_day_rollover_resets_daily_only():
    calendar = Calendar(date(2026, 3, 10))
    tracker = UsageTracker(daily_limit=100, today=calendar)
    tracker.record(record(100))
    assert not tracker.is_within_budget()

    calendar.day = date(2026, 3, 11)
    assert tracker.is_within_budget()
    assert tracker.budget.daily_used == 0
    assert tracker.budget.monthly_used == 100


def test_month_rollover_resets_both():
    calendar = Calendar(date(2026, 3, 31))
    tracker = UsageTracker(today=calendar)
    tracker.record(record(50))

    calendar.day = date(2026, 4, 1)
    budget = tracker.budget
    assert budget.daily_used == 0
    assert budget.monthly_used == 0


def test_rollover_happens_once():
    calendar = Calendar(date(2026, 3, 10))
    tracker = UsageTracker(today=calendar)
    tracker.record(record(10))
    calendar.day = date(2026, 3, 11)
    tracker.record(record(7))
    assert tracker.budget.daily_used == 7
    assert tracker.budget.daily_used == 7
    assert tracker.budget.monthly_used == 17


def test_load_discards_stale_counters():
    store = MemoryKeyValueStore(
        {STORAGE_KEY: {"last_day": "2026-03-09", "last_month": "2026-03", "daily_used": 40, "monthly_used": 90}}
    )
    tracker = UsageTracker(store=store, today=Calendar(date(2026, 3, 10)))
    assert tracker.budget.daily_used == 0
    assert tracker.budget.monthly_used == 90


def test_load_restores_same_day_counters():
    store = MemoryKeyValueStore(
        {STORAGE_KEY: {"last_day": "2026-03-10", "last_month": "2026-03", "daily_used": 40, "monthly_used": 90}}
    )
    tracker = UsageTracker(store=store, today=Calendar(date(2026, 3, 10)))
    assert tracker.budget.daily_used == 40
    assert tracker.budget.monthly_used == 90


def test_set_limits():
    tracker = UsageTracker(today=Calendar(date(2026, 3, 10)))
    tracker.set_limits(daily_limit=5)
    tracker.record(record(5))
    assert not tracker.is_within_budget()
