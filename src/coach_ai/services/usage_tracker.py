"""Budget state for remote calls.

Counters are charged only for successful calls, reset exactly once when the
calendar day or month changes, and persisted after every mutation.
"""

import logging
from datetime import date
from typing import Callable

from coach_ai.config import settings
from coach_ai.entities import Budget, UsageRecord
from coach_ai.exceptions import StorageError
from coach_ai.protocols import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "coach-ai-usage"


class UsageTracker:
    """Injectable budget state object.

    Example:
        ```python
        tracker = UsageTracker(store=MemoryKeyValueStore())
        if tracker.is_within_budget():
            ...
            tracker.record(UsageRecord(...))
        ```
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        daily_limit: int | None = None,
        monthly_limit: int | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._today = today
        self._budget = Budget(
            daily_limit=daily_limit if daily_limit is not None else settings.budget_daily_limit,
            monthly_limit=monthly_limit if monthly_limit is not None else settings.budget_monthly_limit,
        )
        self._records: list[UsageRecord] = []
        current = self._today()
        self._last_day = current.isoformat()
        self._last_month = current.isoformat()[:7]
        self.load()

    @property
    def budget(self) -> Budget:
        """Current budget, after applying any pending rollover."""
        self._rollover()
        return self._budget

    @property
    def records(self) -> list[UsageRecord]:
        return list(self._records)

    def today(self) -> date:
        return self._today()

    def is_within_budget(self) -> bool:
        return not self.budget.exhausted

    def set_limits(self, daily_limit: int | None = None, monthly_limit: int | None = None) -> None:
        if daily_limit is not None:
            self._budget.daily_limit = daily_limit
        if monthly_limit is not None:
            self._budget.monthly_limit = monthly_limit

    def record(self, usage: UsageRecord) -> None:
        """Charge a successful call against the budget and persist."""
        self._rollover()
        self._records.append(usage)
        self._budget.daily_used += usage.total_units
        self._budget.monthly_used += usage.total_units
        self.save()

    def load(self) -> None:
        """Restore counters, discarding any that belong to a past day or month."""
        if self._store is None:
            return
        try:
            data = self._store.get(STORAGE_KEY)
        except StorageError as e:
            logger.warning("Could not load usage counters: %s", e)
            return
        if not data:
            return

        current = self._today().isoformat()
        if data.get("last_day") == current:
            self._budget.daily_used = int(data.get("daily_used", 0))
        if data.get("last_month") == current[:7]:
            self._budget.monthly_used = int(data.get("monthly_used", 0))

    def save(self) -> None:
        if self._store is None:
            return
        try:
            self._store.set(
                STORAGE_KEY,
                {
                    "last_day": self._last_day,
                    "last_month": self._last_month,
                    "daily_used": self._budget.daily_used,
                    "monthly_used": self._budget.monthly_used,
                },
            )
        except StorageError as e:
            logger.warning("Could not save usage counters: %s", e)

    def _rollover(self) -> None:
        current = self._today().isoformat()
        changed = False
        if current != self._last_day:
            self._budget.daily_used = 0
            self._last_day = current
            changed = True
        if current[:7] != self._last_month:
            self._budget.monthly_used = 0
            self._last_month = current[:7]
            changed = True
        if changed:
            logger.info("Usage counters rolled over to %s", current)
            self.save()
