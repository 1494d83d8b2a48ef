"""Rule-based implementation of SuggestionEngine.

A small deterministic recommender so the service runs standalone. Host
applications with their own progression model plug it in instead.
"""

from coach_ai.models import ExerciseContext, LocalSuggestion

PLATE_INCREMENT = 2.5
STARTING_WEIGHT = {"Beginner": 20.0, "Intermediate": 40.0, "Advanced": 60.0}


def round_to_increment(weight: float, increment: float = PLATE_INCREMENT) -> float:
    return max(0.0, round(weight / increment) * increment)


def estimate_one_rep_max(weight: float, reps: int) -> float:
    """Epley estimate."""
    if reps <= 1:
        return weight
    return round(weight * (1 + reps / 30), 1)


class HeuristicSuggestionEngine:
    """Progression rules keyed on recovery and last-set effort.

    This class satisfies the SuggestionEngine protocol through structural
    typing - no explicit inheritance needed.
    """

    def compute_suggestion(self, context: ExerciseContext) -> LocalSuggestion:
        if context.last_weight is None or context.last_reps is None:
            return LocalSuggestion(
                value=STARTING_WEIGHT.get(context.experience_level, 20.0),
                rep_range=(8, 12),
                confidence="low",
                rationale="No history for this exercise. Start light and learn the movement.",
                recovery_score=context.recovery_score,
            )

        last_weight = context.last_weight
        one_rm = estimate_one_rep_max(last_weight, context.last_reps)

        if context.recovery_score < 5:
            value = round_to_increment(last_weight * 0.9)
            return LocalSuggestion(
                value=value,
                rep_range=(6, 8),
                confidence="medium",
                rationale=f"Recovery is low ({context.recovery_score}/10). Reduce load about 10%.",
                recovery_score=context.recovery_score,
                should_flag_caution=True,
                progression_rate=self._rate(last_weight, value),
                estimated_one_rep_max=one_rm,
            )

        rpe = context.last_rpe
        if rpe is not None and rpe >= 9:
            value = last_weight
            rationale = f"Last set was near failure (RPE {rpe}). Hold the weight and own the reps."
            confidence = "high"
        elif rpe is not None and rpe < 7:
            value = round_to_increment(last_weight * 1.05)
            rationale = f"Last set felt easy (RPE {rpe}). Add load."
            confidence = "high"
        else:
            value = round_to_increment(last_weight * 1.025)
            if value == last_weight:
                value = last_weight + PLATE_INCREMENT
            rationale = "Steady performance. Small increase to keep progressing."
            confidence = "medium" if rpe is None else "high"

        return LocalSuggestion(
            value=value,
            rep_range=(max(1, context.last_reps - 2), context.last_reps),
            confidence=confidence,
            rationale=rationale,
            recovery_score=context.recovery_score,
            progression_rate=self._rate(last_weight, value),
            estimated_one_rep_max=one_rm,
        )

    @staticmethod
    def _rate(previous: float, current: float) -> float:
        if previous <= 0:
            return 0.0
        return round((current - previous) / previous * 100, 1)
