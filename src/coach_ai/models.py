from datetime import date, datetime
from enum import Enum
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")

ExperienceLevel = Literal["Beginner", "Intermediate", "Advanced"]
Units = Literal["kg", "lbs"]
Confidence = Literal["high", "medium", "low"]


class ResponseSource(str, Enum):
    """Where a response came from."""

    LOCAL = "local"
    CACHE = "cache"
    REMOTE = "remote"
    FALLBACK = "fallback"


class AIResponse(BaseModel, Generic[T]):
    """Uniform envelope returned by every public operation.

    ``success``, ``data``, ``error``, ``source`` and ``latency_ms`` are always
    present, even on failure.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    source: ResponseSource
    latency_ms: float = 0.0
    units_used: int | None = None
    cost: float | None = None

    @classmethod
    def ok(cls, data: T, source: ResponseSource, latency_ms: float = 0.0, **kwargs) -> "AIResponse[T]":
        """Build a successful response."""
        return cls(success=True, data=data, source=source, latency_ms=latency_ms, **kwargs)

    @classmethod
    def fail(
        cls,
        error: str,
        source: ResponseSource = ResponseSource.FALLBACK,
        latency_ms: float = 0.0,
        **kwargs,
    ) -> "AIResponse[T]":
        """Build a failed response."""
        return cls(success=False, error=error, source=source, latency_ms=latency_ms, **kwargs)


# ---------------------------------------------------------------------------
# Training data at the interface boundary
# ---------------------------------------------------------------------------


class SetLog(BaseModel):
    """A single logged set."""

    weight: float = Field(..., ge=0)
    reps: int = Field(..., ge=0)
    rpe: float | None = Field(None, ge=1, le=10)
    completed: bool = True

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class ExerciseLog(BaseModel):
    """All sets of one exercise inside a session."""

    exercise_id: str
    exercise_name: str | None = None
    muscle_group: str | None = None
    sets: list[SetLog] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.exercise_name or self.exercise_id

    @property
    def completed_sets(self) -> list[SetLog]:
        return [s for s in self.sets if s.completed]

    @property
    def volume(self) -> float:
        return sum(s.volume for s in self.completed_sets)


class WorkoutSession(BaseModel):
    """A workout session, active or completed."""

    id: str
    name: str = "Workout"
    start_time: datetime
    end_time: datetime | None = None
    status: Literal["active", "completed"] = "completed"
    logs: list[ExerciseLog] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def to_local_naive(cls, v: datetime | None) -> datetime | None:
        """Aware timestamps are converted to naive local time, matching ``datetime.now()``."""
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @property
    def duration_minutes(self) -> int:
        """Session length in whole minutes (0 if the session has no end)."""
        if self.end_time is None:
            return 0
        return round((self.end_time - self.start_time).total_seconds() / 60)

    @property
    def total_volume(self) -> float:
        return sum(log.volume for log in self.logs)

    @property
    def average_rpe(self) -> float | None:
        """Mean RPE of completed sets, rounded to one decimal."""
        rpes = [s.rpe for log in self.logs for s in log.completed_sets if s.rpe is not None]
        if not rpes:
            return None
        return round(sum(rpes) / len(rpes), 1)

    @property
    def exercise_names(self) -> list[str]:
        return [log.display_name for log in self.logs]


class PersonalRecord(BaseModel):
    """Best performance on an exercise."""

    exercise_id: str
    exercise_name: str
    record_type: Literal["weight", "volume", "reps"] = "weight"
    value: float
    achieved_on: date


class UserProfile(BaseModel):
    """User settings relevant to coaching."""

    user_id: str
    name: str
    experience_level: ExperienceLevel = "Intermediate"
    goal_type: str = "General Fitness"
    target_per_week: int = Field(3, ge=0)
    units: Units = "kg"
    bodyweight: float | None = None
    personal_records: list[PersonalRecord] = Field(default_factory=list)


class DailyLog(BaseModel):
    """Daily wellness check-in."""

    day: date
    sleep_hours: float | None = Field(None, ge=0, le=24)
    stress_level: int | None = Field(None, ge=1, le=10)


class Exercise(BaseModel):
    """Exercise catalog entry."""

    id: str
    name: str
    muscle_group: str
    equipment: str = "Bodyweight"
    difficulty: ExperienceLevel = "Intermediate"
    secondary_muscles: list[str] = Field(default_factory=list)
    form_guide: list[str] = Field(default_factory=list)
    common_mistakes: list[str] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)


class ExerciseContext(BaseModel):
    """Input handed to the local suggestion engine."""

    exercise_id: str
    exercise_name: str
    experience_level: ExperienceLevel = "Intermediate"
    last_weight: float | None = None
    last_reps: int | None = None
    last_rpe: float | None = None
    personal_best: float | None = None
    sessions_logged: int = 0
    average_volume: float = 0.0
    recovery_score: float = 7.0


class LocalSuggestion(BaseModel):
    """Output of the local suggestion engine. Authoritative for all numbers."""

    value: float
    rep_range: tuple[int, int]
    confidence: Confidence
    rationale: str
    recovery_score: float
    should_flag_caution: bool = False
    progression_rate: float | None = None
    estimated_one_rep_max: float | None = None


# ---------------------------------------------------------------------------
# Response payloads
# ---------------------------------------------------------------------------


class SuggestionExplanation(BaseModel):
    """Why a suggestion was made."""

    explanation: str
    key_factors: list[str]
    expectation: str
    suggested_weight: float
    rep_range: tuple[int, int]
    confidence: Confidence


class ProgressionTip(BaseModel):
    """Next-set recommendation built on the local suggestion."""

    tip: str
    suggested_weight: float
    suggested_reps: tuple[int, int]
    reasoning: str
    confidence: Confidence
    should_flag_caution: bool = False


class FormGuide(BaseModel):
    """Form guidance for one exercise."""

    summary: str
    key_points: list[str]
    common_mistakes: list[str]
    personalized_tip: str | None = None


class WorkoutSummaryResult(BaseModel):
    """Post-workout summary."""

    summary: str
    highlights: list[str]
    records_achieved: list[str]
    areas_to_improve: list[str]
    next_session_focus: str


class CoachingAnswer(BaseModel):
    """Structured coaching answer."""

    message: str
    suggestions: list[str] = Field(default_factory=list)
    motivation: str | None = None
    cautions: list[str] = Field(default_factory=list)


class UsageStats(BaseModel):
    """Budget usage snapshot."""

    daily_used: int
    daily_limit: int
    monthly_used: int
    monthly_limit: int
    daily_percentage: float
    monthly_percentage: float
    estimated_daily_cost: float
    estimated_monthly_cost: float


class AIStatus(BaseModel):
    """Health of the AI layer."""

    initialized: bool
    online: bool
    remote_available: bool
    budget_available: bool
    cache_size: int
    cache_hit_rate: float
    semantic_cache_size: int
    usage: UsageStats
