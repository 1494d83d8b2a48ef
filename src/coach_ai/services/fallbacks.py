"""Offline fallback responses.

Every generator returns a complete payload built from locally computed
numbers, so a fallback can be rendered exactly like a remote answer. Template
rotation uses a seedable ``random.Random`` so tests can pin the output.
"""

import random
from typing import Any

from coach_ai.entities import AIContext
from coach_ai.models import (
    CoachingAnswer,
    Exercise,
    ExerciseContext,
    FormGuide,
    LocalSuggestion,
    ProgressionTip,
    SuggestionExplanation,
    WorkoutSession,
    WorkoutSummaryResult,
)

TIP_RULES: dict[str, list[str]] = {
    "low_rpe": [
        "You left reps in the tank. Add 2.5-5{units} next set.",
        "Solid performance with energy to spare. Time to push harder.",
        "Easy work! Increase weight to stay in the growth zone.",
    ],
    "high_rpe": [
        "Great intensity. Maintain this weight next session.",
        "You pushed hard. Keep the weight and aim for same reps.",
        "Solid grind. Recovery is key before increasing.",
    ],
    "low_recovery": [
        "Fatigue detected. Reduce weight by 10-15% today.",
        "Recovery matters. Light day keeps progress long-term.",
        "Listen to your body. Deload and dominate next session.",
    ],
    "plateau": [
        "Time for a variation. Try different grip or tempo.",
        "Plateau breaker: Drop sets or pause reps work well.",
        "Change the stimulus. New exercise variation recommended.",
    ],
    "new_exercise": [
        "Start light. Master form before adding weight.",
        "First time? Focus on 8-12 reps with perfect technique.",
        "Learn the movement. Weight comes after competence.",
    ],
}

MOTIVATION_TEMPLATES = [
    "Your only limit is YOU. Crush it.",
    "Champions train. Everyone else makes excuses.",
    "One more rep. One step closer.",
    "The iron doesn't lie. Let's go.",
    "Be stronger than your excuses.",
    "Today's workout = tomorrow's results.",
    "No shortcuts. Just hard work.",
    "Embrace the grind.",
    "Earn your rest.",
]

STREAK_MOTIVATION: dict[str, list[str]] = {
    "short": [
        "Building momentum! Day {streak}.",
        "Keep the streak alive.",
        "Every day counts.",
    ],
    "medium": [
        "{streak} days strong! Unstoppable.",
        "Consistency is your superpower.",
        "The habit is forming.",
    ],
    "long": [
        "{streak} DAYS. You're a machine.",
        "Elite consistency. {streak} and counting.",
        "Iron discipline. {streak} days.",
    ],
}

ERROR_MESSAGES = {
    "unavailable": "AI features temporarily unavailable. Using smart defaults.",
    "rate_limited": "Too many requests. Please try again in a moment.",
    "timeout": "Request took too long. Using local recommendations.",
    "budget": "Daily AI limit reached. Using local recommendations.",
    "offline": "You're offline. All features work locally.",
    "unknown": "Something went wrong. Using backup recommendations.",
}

RECOVERY_WORDS = ("tired", "fatigue", "recover", "sore", "rest")
VOLUME_WORDS = ("volume", "sets")
PROGRESS_WORDS = ("progress", "stronger", "plateau")


def tip_bucket(
    has_history: bool,
    rpe: float | None,
    recovery_score: float,
    weeks_on_exercise: int | None = None,
) -> str:
    """Pick the rule bucket for a tip. First matching rule wins."""
    if not has_history:
        return "new_exercise"
    if recovery_score < 5:
        return "low_recovery"
    if weeks_on_exercise is not None and weeks_on_exercise > 8:
        return "plateau"
    if rpe is not None and rpe < 7:
        return "low_rpe"
    return "high_rpe"


def streak_bucket(streak: int) -> str:
    if streak < 7:
        return "short"
    if streak < 30:
        return "medium"
    return "long"


def _fmt(value: float) -> str:
    return f"{value:g}"


class FallbackGenerator:
    """Template and rule based responses that never need the network."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def rule_based_tip(
        self,
        has_history: bool,
        rpe: float | None,
        recovery_score: float,
        weeks_on_exercise: int | None = None,
        units: str = "kg",
    ) -> str:
        bucket = tip_bucket(has_history, rpe, recovery_score, weeks_on_exercise)
        return self._rng.choice(TIP_RULES[bucket]).replace("{units}", units)

    def progression_tip(
        self,
        suggestion: LocalSuggestion,
        units: str = "kg",
        context: ExerciseContext | None = None,
    ) -> ProgressionTip:
        """Turn a local suggestion into a short tip. The numbers pass through unchanged.

        With the exercise context, the reasoning also carries the matching
        rule-based coaching cue.
        """
        low, high = suggestion.rep_range
        weight = _fmt(suggestion.value)
        if suggestion.should_flag_caution:
            tip = f"Recovery focus: Use {weight}{units} for {low}-{high} reps."
        elif suggestion.progression_rate and suggestion.progression_rate > 0:
            tip = f"Progress to {weight}{units} for {low}-{high} reps (+{suggestion.progression_rate:.1f}%)."
        else:
            tip = f"Maintain {weight}{units} x {low}-{high} reps. Focus on form."
        reasoning = suggestion.rationale
        if context is not None:
            cue = self.rule_based_tip(
                has_history=context.last_weight is not None,
                rpe=context.last_rpe,
                recovery_score=context.recovery_score,
                units=units,
            )
            reasoning = f"{reasoning} {cue}"
        return ProgressionTip(
            tip=tip,
            suggested_weight=suggestion.value,
            suggested_reps=suggestion.rep_range,
            reasoning=reasoning,
            confidence=suggestion.confidence,
            should_flag_caution=suggestion.should_flag_caution,
        )

    def explanation(
        self,
        suggestion: LocalSuggestion,
        exercise_name: str,
        units: str = "kg",
        last_weight: float | None = None,
        last_reps: int | None = None,
        last_rpe: float | None = None,
    ) -> SuggestionExplanation:
        """Explain a local suggestion with exactly four key factors."""
        low, high = suggestion.rep_range
        target = f"{_fmt(suggestion.value)}{units} x {low}-{high} reps"
        if suggestion.should_flag_caution:
            explanation = (
                f"Your recovery is below normal, so {exercise_name} is set to {target}. "
                "Backing off today protects long-term progressive overload: "
                "you keep the movement pattern without digging a deeper fatigue hole."
            )
            expectation = "Expect this session to feel manageable and to bounce back stronger next time."
        else:
            explanation = (
                f"{exercise_name} is set to {target} based on your recent performance. "
                "This follows the principle of progressive overload: small, steady increases "
                "in load or reps drive continued strength gains."
            )
            expectation = "Expect a challenging but achievable session that moves your numbers forward."

        if last_weight is not None and last_reps is not None:
            performance = f"Last performance: {_fmt(last_weight)}{units} x {last_reps} reps"
        else:
            performance = "No previous performance logged"
        effort = f"Last effort: RPE {_fmt(last_rpe)}" if last_rpe is not None else "Effort not tracked last session"

        return SuggestionExplanation(
            explanation=explanation,
            key_factors=[
                performance,
                effort,
                f"Recovery score: {_fmt(suggestion.recovery_score)}/10",
                f"Confidence: {suggestion.confidence}",
            ],
            expectation=expectation,
            suggested_weight=suggestion.value,
            rep_range=suggestion.rep_range,
            confidence=suggestion.confidence,
        )

    def form_guide(self, exercise: Exercise) -> FormGuide:
        secondary = (
            f" with secondary engagement of {', '.join(exercise.secondary_muscles)}"
            if exercise.secondary_muscles
            else ""
        )
        return FormGuide(
            summary=(
                f"{exercise.name} targets {exercise.muscle_group}{secondary}. "
                f"{exercise.difficulty} difficulty using {exercise.equipment}."
            ),
            key_points=exercise.form_guide or [
                "Maintain proper posture throughout",
                "Control the weight on both phases",
                "Breathe steadily, exhaling on exertion",
            ],
            common_mistakes=exercise.common_mistakes or [
                "Using momentum instead of muscle control",
                "Incomplete range of motion",
            ],
            personalized_tip=exercise.tips[0] if exercise.tips else None,
        )

    def workout_summary(
        self,
        session: WorkoutSession,
        records: list[str] | None = None,
        units: str = "kg",
        previous_volume: float | None = None,
    ) -> WorkoutSummaryResult:
        """Summary templated from the session's real volume, duration and records."""
        records = records or []
        duration = session.duration_minutes
        volume = session.total_volume
        volume_text = f"{volume:,.0f}{units}"

        highlights = [
            f"Completed {len(session.logs)} exercises in {duration} minutes",
            f"Total volume: {volume_text}",
        ]
        if records:
            highlights.append(f"Set {len(records)} new record(s)")
        if previous_volume and volume > previous_volume:
            increase = (volume - previous_volume) / previous_volume * 100
            highlights.append(f"Volume up {increase:.1f}% vs last week")

        if duration < 30:
            focus = "Consider adding volume, the workout was short"
        elif duration > 90:
            focus = "Efficiency focus: try supersets to reduce time"
        else:
            focus = "Continue progressive overload on main lifts"

        summary = f"Strong {session.name} session! You trained for {duration} minutes and moved {volume_text}."
        if records:
            summary += f" Personal records on {', '.join(records)}!"

        if previous_volume and volume < previous_volume:
            improve = ["Volume decreased, make sure you keep overloading"]
        else:
            improve = ["Great consistency, maintain this trajectory"]

        return WorkoutSummaryResult(
            summary=summary,
            highlights=highlights,
            records_achieved=records or ["Keep pushing, records are coming!"],
            areas_to_improve=improve,
            next_session_focus=focus,
        )

    def motivation(self, streak: int | None = None) -> str:
        if streak and streak > 0:
            template = self._rng.choice(STREAK_MOTIVATION[streak_bucket(streak)])
            return template.replace("{streak}", str(streak))
        return self._rng.choice(MOTIVATION_TEMPLATES)

    def coaching(
        self,
        context: AIContext,
        query: str,
        tool_results: dict[str, Any] | None = None,
    ) -> CoachingAnswer:
        """Coaching answer from context and any already-computed agent tool outputs.

        The recovery score from a ``check_recovery`` result takes precedence
        over the biomarker snapshot.
        """
        tool_results = tool_results or {}
        text = query.lower()
        recovery = tool_results.get("check_recovery") or {}
        score = recovery.get("recovery_score")
        if score is None and context.biomarkers is not None:
            score = context.biomarkers.recovery_score

        history = context.history
        suggestions: list[str] = []
        cautions: list[str] = []

        if any(w in text for w in RECOVERY_WORDS):
            if score is not None and score < 5:
                message = f"Your recovery score is low ({_fmt(score)}/10). Consider a lighter session today."
                suggestions += ["Reduce working sets by 30%", "Focus on technique over intensity"]
                cautions.append("High fatigue detected, monitor for overtraining")
            elif score is not None:
                message = f"Recovery looks adequate ({_fmt(score)}/10). You can train normally."
                suggestions.append("Stay hydrated and maintain protein intake")
            else:
                message = "Log your sleep and stress to get a recovery read. Until then, train by feel."
                suggestions.append("Stay hydrated and maintain protein intake")
        elif any(w in text for w in VOLUME_WORDS):
            if history.total_workouts < 10:
                message = "Focus on learning movements before adding volume."
                suggestions += ["Start with 3-4 sets per exercise", "Prioritize form over volume"]
            else:
                message = "Progressive volume increase is key for continued gains."
                suggestions += ["Add 1-2 sets per muscle group weekly", "Monitor recovery between sessions"]
        elif any(w in text for w in PROGRESS_WORDS):
            analysis = tool_results.get("analyze_history") or {}
            trend = analysis.get("volume_trend")
            if trend == "increasing":
                message = "Your training volume is trending up. Keep the consistency going."
            elif trend == "decreasing":
                message = "Your volume has dipped recently. Consistent progress requires patience and strategy."
            else:
                message = "Consistent progress requires patience and strategy."
            suggestions += [
                "Track all workouts to identify trends",
                "Sleep 7-9 hours for optimal recovery",
            ]
            if history.streak_days > 14:
                suggestions.append("Consider a deload week")
        else:
            message = f"Hey {context.user.name}! Keep pushing toward your {context.user.goal} goal."
            suggestions += [
                "Consistency beats intensity",
                "Focus on progressive overload",
                "Recovery is when gains happen",
            ]

        if recovery.get("should_deload") and not cautions:
            cautions.append(f"Recovery score {_fmt(score)}/10: consider a deload")

        return CoachingAnswer(
            message=message,
            suggestions=suggestions,
            motivation=self.motivation(history.streak_days),
            cautions=cautions,
        )

    @staticmethod
    def render_coaching(answer: CoachingAnswer) -> str:
        """Render a coaching answer as plain text."""
        lines = [answer.message]
        if answer.suggestions:
            lines.append("")
            lines.extend(f"- {s}" for s in answer.suggestions)
        if answer.cautions:
            lines.append("")
            lines.extend(f"Caution: {c}" for c in answer.cautions)
        if answer.motivation:
            lines.append("")
            lines.append(answer.motivation)
        return "\n".join(lines)

    @staticmethod
    def error_message(error: str) -> str:
        """User-facing notice for a failure message."""
        text = error.lower()
        if "api key" in text or "not available" in text:
            return ERROR_MESSAGES["unavailable"]
        if "rate" in text or "429" in text:
            return ERROR_MESSAGES["rate_limited"]
        if "timeout" in text:
            return ERROR_MESSAGES["timeout"]
        if "budget" in text:
            return ERROR_MESSAGES["budget"]
        if "offline" in text or "network" in text:
            return ERROR_MESSAGES["offline"]
        return ERROR_MESSAGES["unknown"]
