"""Context entities assembled for one AI request."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class UserContext:
    user_id: str
    name: str
    experience_level: str
    goal: str
    target_per_week: int
    units: str
    bodyweight: float | None = None


@dataclass(frozen=True)
class SessionContext:
    """The workout currently in progress."""

    session_id: str
    name: str
    elapsed_minutes: int
    exercises_completed: int
    total_volume: float
    muscle_groups: tuple[str, ...] = ()
    average_rpe: float | None = None


@dataclass(frozen=True)
class SessionSummary:
    """A completed session, condensed."""

    session_id: str
    day: str
    name: str
    exercises: tuple[str, ...]
    total_volume: float
    duration_minutes: int


@dataclass(frozen=True)
class RecordSummary:
    exercise_name: str
    value: float
    day: str


@dataclass(frozen=True)
class HistoricalContext:
    """Recent training history.

    Attributes:
        recent_sessions: Last completed sessions, most recent first
        personal_records: Most recent personal records
        weekly_volume: Volume per muscle group over the last 7 days
        streak_days: Consecutive training days, one rest day allowed
        total_workouts: Number of completed sessions ever
    """

    recent_sessions: tuple[SessionSummary, ...] = ()
    personal_records: tuple[RecordSummary, ...] = ()
    weekly_volume: dict[str, float] = field(default_factory=dict)
    streak_days: int = 0
    total_workouts: int = 0


@dataclass(frozen=True)
class BiomarkerContext:
    sleep_hours: float | None
    stress_level: int | None
    recovery_score: float
    fatigue_status: str


@dataclass(frozen=True)
class AIContext:
    """Everything the remote model may see about the user. Rebuilt per request."""

    user: UserContext
    history: HistoricalContext
    session: SessionContext | None = None
    biomarkers: BiomarkerContext | None = None
