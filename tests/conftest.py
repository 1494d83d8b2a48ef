"""
Shared fixtures and fakes.

The environment is pinned before any coach_ai import so settings never pick
up a real API key or touch the file system.
"""

import os

os.environ["STORAGE_BACKEND"] = "memory"
os.environ["GEMINI_API_KEY"] = ""
os.environ["OFFLINE_MODE"] = "false"

from datetime import date, datetime, timedelta  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from coach_ai.entities import CompiledPrompt, GenerationConfig  # noqa: E402
from coach_ai.exceptions import StorageError  # noqa: E402
from coach_ai.models import DailyLog, ExerciseLog, SetLog, UserProfile, WorkoutSession  # noqa: E402
from coach_ai.repositories import (  # noqa: E402
    HeuristicSuggestionEngine,
    InMemoryKnowledgeStore,
    MemoryKeyValueStore,
)
from coach_ai.services import CoachService  # noqa: E402
from coach_ai.services.fallbacks import FallbackGenerator  # noqa: E402
from coach_ai.services.model_client import ModelClient  # noqa: E402
from coach_ai.services.response_cache import CacheConfig, ResponseCache  # noqa: E402
from coach_ai.services.semantic_cache import SemanticCache  # noqa: E402
from coach_ai.services.usage_tracker import UsageTracker  # noqa: E402

NOW = datetime.now().replace(microsecond=0)


class FakeClock:
    """Manually advanced POSIX clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTextProvider:
    """Scripted TextProvider. Each call pops the next reply; exceptions are raised."""

    provider_id = "fake"

    def __init__(self, replies: list[Any] | None = None, configured: bool = True) -> None:
        self.replies = list(replies or [])
        self.is_configured = configured
        self.calls: list[tuple[CompiledPrompt, GenerationConfig]] = []

    async def generate(self, prompt: CompiledPrompt, config: GenerationConfig) -> str:
        self.calls.append((prompt, config))
        reply = self.replies.pop(0) if self.replies else "Remote answer"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FailingStore(MemoryKeyValueStore):
    """Store whose writes fail the first ``failures`` times."""

    def __init__(self, failures: int = 1_000) -> None:
        super().__init__()
        self.failures = failures
        self.attempts = 0

    def set(self, key: str, value: Any) -> None:
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise StorageError("quota exceeded")
        super().set(key, value)


class Sleeper:
    """Records backoff delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_session(
    session_id: str,
    start: datetime,
    weight: float = 80.0,
    reps: int = 8,
    rpe: float | None = 8.0,
    exercise_id: str = "bench-press",
    exercise_name: str = "Bench Press",
    muscle_group: str = "Chest",
    sets: int = 3,
) -> WorkoutSession:
    return WorkoutSession(
        id=session_id,
        name="Push Day",
        start_time=start,
        end_time=start + timedelta(minutes=60),
        logs=[
            ExerciseLog(
                exercise_id=exercise_id,
                exercise_name=exercise_name,
                muscle_group=muscle_group,
                sets=[SetLog(weight=weight, reps=reps, rpe=rpe) for _ in range(sets)],
            )
        ],
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def profile():
    return UserProfile(user_id="u1", name="Sam", experience_level="Intermediate", goal_type="Strength")


@pytest.fixture
def history():
    """Four bench sessions, oldest first, two days apart, ending the day before NOW."""
    return [
        make_session(f"s{i}", NOW - timedelta(days=7 - 2 * i), weight=70.0 + 2.5 * i)
        for i in range(4)
    ]


@pytest.fixture
def tired_log():
    return DailyLog(day=NOW.date(), sleep_hours=5, stress_level=8)


@pytest.fixture
def rested_log():
    return DailyLog(day=NOW.date(), sleep_hours=8, stress_level=3)


@pytest.fixture
def provider():
    return FakeTextProvider()


@pytest.fixture
def sleeper():
    return Sleeper()


@pytest.fixture
def tracker(store):
    return UsageTracker(store=store, today=lambda: date(2026, 3, 10))


@pytest.fixture
def online():
    """Mutable connectivity flag: ``online["value"] = False`` goes offline."""
    return {"value": True}


@pytest.fixture
def make_service(store, tracker, sleeper, online, clock):
    def factory(provider: FakeTextProvider | None = None, **client_kwargs) -> CoachService:
        client = ModelClient(
            provider=provider if provider is not None else FakeTextProvider(),
            tracker=tracker,
            base_delay=0.01,
            sleep=sleeper,
            **client_kwargs,
        )
        return CoachService(
            client=client,
            cache=ResponseCache(store=store, config=CacheConfig(max_entries=50), clock=clock),
            semantic_cache=SemanticCache(threshold=0.8, max_entries=10, clock=clock),
            engine=HeuristicSuggestionEngine(),
            knowledge=InMemoryKnowledgeStore.create(),
            fallbacks=FallbackGenerator(seed=7),
            is_online=lambda: online["value"],
        )

    return factory
