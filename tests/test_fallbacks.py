"""
Tests for offline fallback generators.
"""

from datetime import timedelta

import pytest
from conftest import NOW, make_session

from coach_ai.catalog import get_exercise
from coach_ai.entities import AIContext, BiomarkerContext, HistoricalContext, UserContext
from coach_ai.models import ExerciseContext, LocalSuggestion
from coach_ai.services.fallbacks import (
    ERROR_MESSAGES,
    MOTIVATION_TEMPLATES,
    TIP_RULES,
    FallbackGenerator,
    streak_bucket,
    tip_bucket,
)


@pytest.fixture
def fallbacks():
    return FallbackGenerator(seed=1)


def suggestion(**overrides) -> LocalSuggestion:
    values = dict(value=82.5, rep_range=(6, 8), confidence="high", rationale="Steady.", recovery_score=7.0,
                  progression_rate=3.1)
    values.update(overrides)
    return LocalSuggestion(**values)


def context(score: float | None = None, total_workouts: int = 0, streak: int = 0) -> AIContext:
    return AIContext(
        user=UserContext(user_id="u", name="Kim", experience_level="Beginner", goal="Strength",
                         target_per_week=3, units="kg"),
        history=HistoricalContext(total_workouts=total_workouts, streak_days=streak),
        biomarkers=None if score is None else BiomarkerContext(
            sleep_hours=6, stress_level=5, recovery_score=score, fatigue_status="Optimal"
        ),
    )


def test_tip_bucket_rules_in_order():
    assert tip_bucket(False, 6, 3) == "new_exercise"
    assert tip_bucket(True, 6, 3) == "low_recovery"
    assert tip_bucket(True, 6, 8, weeks_on_exercise=10) == "plateau"
    assert tip_bucket(True, 6, 8) == "low_rpe"
    assert tip_bucket(True, 9, 8) == "high_rpe"


def test_streak_bucket():
    assert streak_bucket(3) == "short"
    assert streak_bucket(7) == "medium"
    assert streak_bucket(30) == "long"


def test_rule_based_tip_comes_from_bucket(fallbacks):
    tip = fallbacks.rule_based_tip(True, 6, 8, units="lbs")
    assert tip in [t.replace("{units}", "lbs") for t in TIP_RULES["low_rpe"]]


def test_seeded_generators_are_repeatable():
    assert FallbackGenerator(seed=3).motivation() == FallbackGenerator(seed=3).motivation()


def test_progression_tip_keeps_numbers(fallbacks):
    tip = fallbacks.progression_tip(suggestion(), "kg")
    assert tip.suggested_weight == 82.5
    assert tip.suggested_reps == (6, 8)
    assert "82.5kg" in tip.tip
    assert "+3.1%" in tip.tip


def test_progression_tip_caution(fallbacks):
    tip = fallbacks.progression_tip(suggestion(should_flag_caution=True), "kg")
    assert tip.tip.startswith("Recovery focus")
    assert tip.should_flag_caution


def test_progression_tip_reasoning_carries_rule_cue(fallbacks):
    easy = ExerciseContext(exercise_id="bench-press", exercise_name="Bench Press", last_weight=80, last_reps=8,
                           last_rpe=6.0, recovery_score=7.0)
    tip = fallbacks.progression_tip(suggestion(), "kg", easy)
    assert tip.reasoning.startswith("Steady. ")
    cue = tip.reasoning[len("Steady. "):]
    assert cue in [rule.replace("{units}", "kg") for rule in TIP_RULES["low_rpe"]]

    new = ExerciseContext(exercise_id="bench-press", exercise_name="Bench Press")
    cue = fallbacks.progression_tip(suggestion(), "kg", new).reasoning[len("Steady. "):]
    assert cue in TIP_RULES["new_exercise"]
    assert fallbacks.progression_tip(suggestion(), "kg").reasoning == "Steady."


def test_explanation_has_four_factors_and_mentions_overload(fallbacks):
    for flagged in (False, True):
        result = fallbacks.explanation(suggestion(should_flag_caution=flagged), "Bench Press",
                                       last_weight=80, last_reps=8, last_rpe=7.5)
        assert len(result.key_factors) == 4
        assert "progressive overload" in result.explanation
        assert result.suggested_weight == 82.5
        assert result.rep_range == (6, 8)
        assert "Last performance: 80kg x 8 reps" in result.key_factors


def test_form_guide_defaults_for_sparse_entry(fallbacks):
    guide = fallbacks.form_guide(get_exercise("overhead-press"))
    assert guide.key_points
    assert guide.common_mistakes
    assert guide.personalized_tip is None


def test_workout_summary_uses_real_stats(fallbacks):
    session = make_session("w1", NOW - timedelta(hours=2), weight=100, reps=5, sets=3)
    result = fallbacks.workout_summary(session, ["Bench Press"], "kg", previous_volume=1000)
    assert "60 minutes" in result.summary
    assert "1,500kg" in result.summary
    assert result.records_achieved == ["Bench Press"]
    assert any("Volume up 50.0%" in h for h in result.highlights)


def test_motivation_by_streak(fallbacks):
    assert fallbacks.motivation(None) in MOTIVATION_TEMPLATES
    assert fallbacks.motivation(0) in MOTIVATION_TEMPLATES
    long_line = fallbacks.motivation(45)
    assert long_line in {"45 DAYS. You're a machine.", "Elite consistency. 45 and counting.", "Iron discipline. 45 days."}


def test_coaching_recovery_uses_tool_score_first(fallbacks):
    answer = fallbacks.coaching(
        context(score=9), "I'm so tired today",
        {"check_recovery": {"recovery_score": 3.0, "should_deload": True}},
    )
    assert answer.message.startswith("Your recovery score is low (3/10)")
    assert answer.cautions


def test_coaching_recovery_adequate(fallbacks):
    answer = fallbacks.coaching(context(score=8), "Am I recovered enough to train?")
    assert answer.message.startswith("Recovery looks adequate (8/10)")


def test_coaching_volume_and_default(fallbacks):
    assert "learning movements" in fallbacks.coaching(context(total_workouts=2), "How many sets?").message
    assert "Progressive volume" in fallbacks.coaching(context(total_workouts=20), "More volume?").message
    assert fallbacks.coaching(context(), "Hello coach").message.startswith("Hey Kim!")


def test_coaching_progress_reads_trend(fallbacks):
    answer = fallbacks.coaching(context(streak=20), "Am I getting stronger?",
                                {"analyze_history": {"volume_trend": "increasing"}})
    assert "trending up" in answer.message
    assert "Consider a deload week" in answer.suggestions


def test_render_coaching(fallbacks):
    answer = fallbacks.coaching(context(), "Hello coach")
    text = FallbackGenerator.render_coaching(answer)
    assert text.splitlines()[0] == answer.message
    assert "- Consistency beats intensity" in text


def test_error_message():
    assert FallbackGenerator.error_message("Remote model not available (no API key)") == ERROR_MESSAGES["unavailable"]
    assert FallbackGenerator.error_message("Usage budget exceeded") == ERROR_MESSAGES["budget"]
    assert FallbackGenerator.error_message("Request timeout after 10s") == ERROR_MESSAGES["timeout"]
    assert FallbackGenerator.error_message("boom") == ERROR_MESSAGES["unknown"]
