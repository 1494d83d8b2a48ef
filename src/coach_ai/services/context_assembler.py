"""Context assembly and compression.

Builds the per-request AIContext from profile, history, active session and
today's wellness log, and packs it into a bounded prompt fragment. Sizes are
measured in estimated units (characters / ``chars_per_unit``), which is an
approximation of real tokenizer counts, not an exact figure.
"""

import math
from datetime import date, datetime, timedelta
from typing import Callable, Iterable

from coach_ai.catalog import get_exercise
from coach_ai.config import settings
from coach_ai.entities import (
    AIContext,
    BiomarkerContext,
    HistoricalContext,
    RecordSummary,
    SessionContext,
    SessionSummary,
    UserContext,
)
from coach_ai.models import DailyLog, ExerciseContext, ExerciseLog, UserProfile, WorkoutSession

RECENT_SESSION_LIMIT = 5
RECORD_LIMIT = 10
BASELINE_RECOVERY = 7.0


def recovery_score(daily_log: DailyLog | None) -> float:
    """Recovery score on a 0-10 scale from sleep and stress.

    Starts at 7. Sleep of 8h+ adds 2, 7h+ adds 1, 6h+ removes 1, less removes
    3. Stress of 8+ removes 2, 6+ removes 1.
    """
    score = BASELINE_RECOVERY
    if daily_log is not None and daily_log.sleep_hours is not None:
        sleep = daily_log.sleep_hours
        if sleep >= 8:
            score += 2
        elif sleep >= 7:
            score += 1
        elif sleep >= 6:
            score -= 1
        else:
            score -= 3
    if daily_log is not None and daily_log.stress_level is not None:
        if daily_log.stress_level >= 8:
            score -= 2
        elif daily_log.stress_level >= 6:
            score -= 1
    return max(0.0, min(10.0, score))


def fatigue_status(score: float) -> str:
    if score >= 8:
        return "Fresh"
    if score < 5:
        return "High Fatigue"
    return "Optimal"


def muscle_group_of(log: ExerciseLog) -> str:
    if log.muscle_group:
        return log.muscle_group
    exercise = get_exercise(log.exercise_id)
    return exercise.muscle_group if exercise else "Other"


def calculate_streak(session_days: Iterable[date], today: date) -> int:
    """Count training days walking back from today, tolerating one rest day.

    Two consecutive days without training end the streak.
    """
    days = set(session_days)
    streak = 0
    missed = 0
    current = today
    while missed < 2:
        if current in days:
            streak += 1
            missed = 0
        else:
            missed += 1
        current -= timedelta(days=1)
    return streak


class ContextAssembler:
    """Builds and compresses AIContext bundles."""

    def __init__(
        self,
        chars_per_unit: int | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._chars_per_unit = chars_per_unit or settings.chars_per_unit
        self._now = now

    def estimate_units(self, text: str) -> int:
        return math.ceil(len(text) / self._chars_per_unit)

    def build(
        self,
        profile: UserProfile,
        history: list[WorkoutSession],
        active_session: WorkoutSession | None = None,
        daily_log: DailyLog | None = None,
    ) -> AIContext:
        """Assemble the full context. Absent inputs give ``None`` sub-contexts."""
        return AIContext(
            user=self.build_user(profile),
            session=self.build_session(active_session),
            history=self.build_historical(history, profile),
            biomarkers=self.build_biomarkers(daily_log),
        )

    def build_user(self, profile: UserProfile) -> UserContext:
        return UserContext(
            user_id=profile.user_id,
            name=profile.name,
            experience_level=profile.experience_level,
            goal=profile.goal_type,
            target_per_week=profile.target_per_week,
            units=profile.units,
            bodyweight=profile.bodyweight,
        )

    def build_session(self, session: WorkoutSession | None) -> SessionContext | None:
        if session is None:
            return None
        elapsed = (self._now() - session.start_time).total_seconds() / 60
        groups = dict.fromkeys(muscle_group_of(log) for log in session.logs)
        return SessionContext(
            session_id=session.id,
            name=session.name,
            elapsed_minutes=max(0, round(elapsed)),
            exercises_completed=sum(1 for log in session.logs if log.completed_sets),
            total_volume=session.total_volume,
            muscle_groups=tuple(groups),
            average_rpe=session.average_rpe,
        )

    def build_historical(self, history: list[WorkoutSession], profile: UserProfile) -> HistoricalContext:
        completed = sorted(
            (s for s in history if s.status == "completed"),
            key=lambda s: s.end_time or s.start_time,
            reverse=True,
        )
        recent = tuple(
            SessionSummary(
                session_id=s.id,
                day=s.start_time.date().isoformat(),
                name=s.name,
                exercises=tuple(s.exercise_names),
                total_volume=s.total_volume,
                duration_minutes=s.duration_minutes,
            )
            for s in completed[:RECENT_SESSION_LIMIT]
        )
        records = tuple(
            RecordSummary(exercise_name=r.exercise_name, value=r.value, day=r.achieved_on.isoformat())
            for r in sorted(profile.personal_records, key=lambda r: r.achieved_on, reverse=True)[:RECORD_LIMIT]
        )

        now = self._now()
        week_ago = now - timedelta(days=7)
        weekly_volume: dict[str, float] = {}
        for session in completed:
            if session.start_time < week_ago:
                continue
            for log in session.logs:
                group = muscle_group_of(log)
                weekly_volume[group] = weekly_volume.get(group, 0.0) + log.volume

        return HistoricalContext(
            recent_sessions=recent,
            personal_records=records,
            weekly_volume=weekly_volume,
            streak_days=calculate_streak((s.start_time.date() for s in completed), now.date()),
            total_workouts=len(completed),
        )

    def build_biomarkers(self, daily_log: DailyLog | None) -> BiomarkerContext | None:
        if daily_log is None:
            return None
        score = recovery_score(daily_log)
        return BiomarkerContext(
            sleep_hours=daily_log.sleep_hours,
            stress_level=daily_log.stress_level,
            recovery_score=score,
            fatigue_status=fatigue_status(score),
        )

    def build_exercise_context(
        self,
        exercise_id: str,
        history: list[WorkoutSession],
        profile: UserProfile,
        daily_log: DailyLog | None = None,
    ) -> ExerciseContext:
        """Summarize one exercise's history for the local suggestion engine."""
        sessions = sorted(
            (s for s in history if s.status == "completed" and any(log.exercise_id == exercise_id for log in s.logs)),
            key=lambda s: s.start_time,
            reverse=True,
        )
        logs = [next(log for log in s.logs if log.exercise_id == exercise_id) for s in sessions]

        last_set = logs[0].completed_sets[-1] if logs and logs[0].completed_sets else None
        exercise = get_exercise(exercise_id)
        name = exercise.name if exercise else (logs[0].display_name if logs else exercise_id)
        records = [
            r.value
            for r in profile.personal_records
            if r.exercise_id == exercise_id and r.record_type == "weight"
        ]
        volumes = [log.volume for log in logs]

        return ExerciseContext(
            exercise_id=exercise_id,
            exercise_name=name,
            experience_level=profile.experience_level,
            last_weight=last_set.weight if last_set else None,
            last_reps=last_set.reps if last_set else None,
            last_rpe=last_set.rpe if last_set else None,
            personal_best=max(records) if records else None,
            sessions_logged=len(sessions),
            average_volume=sum(volumes) / len(volumes) if volumes else 0.0,
            recovery_score=recovery_score(daily_log),
        )

    def compress(self, context: AIContext, max_units: int | None = None) -> str:
        """Pack the context into at most ``max_units`` estimated units.

        Priority order: identity line (always), biomarkers (if the running
        total stays under 30% of the budget), active session (under 50%),
        then recent workouts, most recent first. The last workout line that
        does not fit whole is truncated instead of dropped.
        """
        max_units = max_units or settings.context_max_units
        user = context.user
        identity = f"User: {user.name} ({user.experience_level}, {user.goal})"
        parts = [identity]
        used = self.estimate_units(identity)

        if context.biomarkers is not None:
            bio = context.biomarkers
            line = f"Recovery: {bio.recovery_score:g}/10 ({bio.fatigue_status})"
            if used + self.estimate_units(line) < max_units * 0.3:
                parts.append(line)
                used += self.estimate_units(line)

        if context.session is not None:
            session = context.session
            line = (
                f"Session: {session.exercises_completed} exercises, "
                f"{session.total_volume:g}{user.units} volume"
            )
            if used + self.estimate_units(line) < max_units * 0.5:
                parts.append(line)
                used += self.estimate_units(line)

        recent = context.history.recent_sessions
        header = "Recent:"
        if recent and used + self.estimate_units(header) < max_units:
            parts.append(header)
            used += self.estimate_units(header)
            for summary in recent:
                line = (
                    f"- {summary.day}: {', '.join(summary.exercises[:3])} "
                    f"({summary.total_volume:g}{user.units})"
                )
                cost = self.estimate_units(line)
                if used + cost <= max_units:
                    parts.append(line)
                    used += cost
                    continue
                remaining_chars = (max_units - used) * self._chars_per_unit
                if remaining_chars > 3:
                    parts.append(line[: remaining_chars - 3] + "...")
                break

        return "\n".join(parts)
