"""Usage accounting entities."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class UsageRecord:
    """One successful remote call. Append-only."""

    day: date
    input_units: int
    output_units: int
    provider_id: str
    feature: str
    estimated_cost: float

    @property
    def total_units(self) -> int:
        return self.input_units + self.output_units


@dataclass
class Budget:
    """Daily and monthly unit limits with the counters charged against them."""

    daily_limit: int = 100_000
    monthly_limit: int = 2_000_000
    daily_used: int = 0
    monthly_used: int = 0

    @property
    def exhausted(self) -> bool:
        return self.daily_used >= self.daily_limit or self.monthly_used >= self.monthly_limit
