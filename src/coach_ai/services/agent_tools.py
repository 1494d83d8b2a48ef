"""Local tools the reasoning agent can call.

All tools are synchronous, offline and deterministic for a given clock. They
return plain dicts so their outputs can be traced, serialized into a prompt
and handed to the fallback generator unchanged.
"""

from datetime import datetime, timedelta
from typing import Any, Callable

import numpy as np

from coach_ai.catalog import EXERCISE_LIBRARY
from coach_ai.models import DailyLog, UserProfile, WorkoutSession
from coach_ai.protocols import SuggestionEngine
from coach_ai.services.context_assembler import ContextAssembler, fatigue_status, recovery_score

TREND_THRESHOLD_PCT = 5.0


class AgentTools:
    """Local analysis used by the agent's plan steps."""

    def __init__(
        self,
        assembler: ContextAssembler,
        engine: SuggestionEngine,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._assembler = assembler
        self._engine = engine
        self._now = now

    def analyze_history(self, history: list[WorkoutSession], profile: UserProfile) -> dict[str, Any]:
        """Frequency, volume and volume trend over the last 30 days.

        The trend compares the mean volume of the most recent half of the
        sessions against the older half.
        """
        completed = [s for s in history if s.status == "completed"]
        cutoff = self._now() - timedelta(days=30)
        recent = sorted((s for s in completed if s.start_time > cutoff), key=lambda s: s.start_time, reverse=True)

        volumes = np.array([s.total_volume for s in recent], dtype=float)
        avg_frequency = len(recent) / (30 / 7)
        avg_volume = float(volumes.mean()) if volumes.size else 0.0

        half = volumes.size // 2
        trend_pct = 0.0
        if half:
            newer, older = volumes[:half].mean(), volumes[half:].mean()
            if older > 0:
                trend_pct = float((newer - older) / older * 100)

        if trend_pct > TREND_THRESHOLD_PCT:
            trend = "increasing"
        elif trend_pct < -TREND_THRESHOLD_PCT:
            trend = "decreasing"
        else:
            trend = "stable"

        return {
            "total_workouts": len(completed),
            "last_30_days_workouts": len(recent),
            "avg_frequency": round(avg_frequency, 1),
            "avg_volume": round(avg_volume),
            "volume_trend_pct": round(trend_pct),
            "volume_trend": trend,
            "consistency": "on_track" if avg_frequency >= profile.target_per_week else "below_target",
        }

    def check_recovery(
        self,
        history: list[WorkoutSession],
        profile: UserProfile,
        daily_log: DailyLog | None = None,
    ) -> dict[str, Any]:
        """Recovery score, fatigue status and a deload recommendation."""
        score = recovery_score(daily_log)
        week_ago = self._now() - timedelta(days=7)
        recent_count = sum(1 for s in history if s.status == "completed" and s.start_time > week_ago)

        if score < 5:
            should_deload, reason = True, f"Recovery score is low ({score:g}/10)"
        elif recent_count > profile.target_per_week + 2:
            should_deload, reason = True, f"{recent_count} sessions this week, above your plan of {profile.target_per_week}"
        else:
            should_deload, reason = False, "Recovery adequate"

        return {
            "recovery_score": score,
            "fatigue_status": fatigue_status(score),
            "should_deload": should_deload,
            "reason": reason,
            "sleep_hours": daily_log.sleep_hours if daily_log else None,
            "stress_level": daily_log.stress_level if daily_log else None,
            "recent_workout_count": recent_count,
        }

    def suggest_exercise(
        self,
        query: str,
        history: list[WorkoutSession],
        profile: UserProfile,
        daily_log: DailyLog | None = None,
    ) -> dict[str, Any]:
        """Run the local suggestion engine for the exercise the query mentions."""
        exercise_id = self.match_exercise(query)
        context = self._assembler.build_exercise_context(exercise_id, history, profile, daily_log)
        suggestion = self._engine.compute_suggestion(context)
        return {
            "exercise_id": exercise_id,
            "exercise_name": context.exercise_name,
            "has_history": context.sessions_logged > 0,
            "suggestion": suggestion.model_dump(),
        }

    @staticmethod
    def match_exercise(query: str) -> str:
        """Catalog exercise named in the query, or the first catalog entry."""
        text = query.lower()
        for exercise in EXERCISE_LIBRARY:
            if exercise.name.lower() in text or exercise.id.replace("-", " ") in text:
                return exercise.id
        for exercise in EXERCISE_LIBRARY:
            words = [w for w in exercise.name.lower().split() if len(w) > 3]
            if any(w in text for w in words):
                return exercise.id
        return EXERCISE_LIBRARY[0].id
