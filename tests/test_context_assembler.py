"""
Tests for context assembly, recovery scoring and compression.
"""

from datetime import date, datetime, timedelta

import pytest
from conftest import make_session

from coach_ai.entities import AIContext, BiomarkerContext, HistoricalContext, SessionSummary, UserContext
from coach_ai.models import DailyLog, PersonalRecord, UserProfile
from coach_ai.services.context_assembler import (
    ContextAssembler,
    calculate_streak,
    fatigue_status,
    recovery_score,
)

FIXED_NOW = datetime(2026, 3, 10, 18, 0)


@pytest.mark.parametrize(
    "sleep,stress,expected",
    [
        (None, None, 7.0),
        (8.5, None, 9.0),
        (7, 3, 8.0),
        (6, 6, 5.0),
        (5, 8, 2.0),
        (9, 9, 7.0),
    ],
)
def test_recovery_score(sleep, stress, expected):
    assert recovery_score(DailyLog(day=date(2026, 3, 10), sleep_hours=sleep, stress_level=stress)) == expected


def test_recovery_score_without_log_is_baseline():
    assert recovery_score(None) == 7.0


def test_fatigue_status():
    assert fatigue_status(9) == "Fresh"
    assert fatigue_status(7) == "Optimal"
    assert fatigue_status(4) == "High Fatigue"


def test_streak_tolerates_single_rest_day():
    today = date(2026, 3, 10)
    days = [today, today - timedelta(days=2), today - timedelta(days=3), today - timedelta(days=6)]
    assert calculate_streak(days, today) == 3


def test_streak_zero_after_two_missed_days():
    today = date(2026, 3, 10)
    assert calculate_streak([today - timedelta(days=2)], today) == 0


def test_build_with_absent_inputs():
    assembler = ContextAssembler(now=lambda: FIXED_NOW)
    profile = UserProfile(user_id="u", name="Kim")
    context = assembler.build(profile, [])
    assert context.session is None
    assert context.biomarkers is None
    assert context.history.total_workouts == 0
    assert context.history.recent_sessions == ()


def test_build_historical_limits_and_weekly_volume():
    assembler = ContextAssembler(now=lambda: FIXED_NOW)
    history = [
        make_session(f"s{i}", FIXED_NOW - timedelta(days=i), weight=100, reps=10, sets=1) for i in range(10)
    ]
    profile = UserProfile(
        user_id="u",
        name="Kim",
        personal_records=[
            PersonalRecord(exercise_id="bench-press", exercise_name="Bench Press", value=100 + i,
                           achieved_on=date(2026, 1, 1) + timedelta(days=i))
            for i in range(12)
        ],
    )

    context = assembler.build_historical(history, profile)

    assert len(context.recent_sessions) == 5
    assert context.recent_sessions[0].session_id == "s0"
    assert len(context.personal_records) == 10
    assert context.personal_records[0].value == 111
    assert context.weekly_volume == {"Chest": 8 * 1000.0}
    assert context.total_workouts == 10


def test_build_session_counts_exercises():
    assembler = ContextAssembler(now=lambda: FIXED_NOW)
    session = make_session("active", FIXED_NOW - timedelta(minutes=25))
    context = assembler.build_session(session)
    assert context.elapsed_minutes == 25
    assert context.exercises_completed == 1
    assert context.muscle_groups == ("Chest",)


def test_build_exercise_context_uses_latest_set():
    assembler = ContextAssembler(now=lambda: FIXED_NOW)
    history = [
        make_session("old", FIXED_NOW - timedelta(days=5), weight=70),
        make_session("new", FIXED_NOW - timedelta(days=1), weight=75, rpe=6.5),
    ]
    profile = UserProfile(user_id="u", name="Kim")
    context = assembler.build_exercise_context("bench-press", history, profile, DailyLog(day=date.today(), sleep_hours=8))
    assert context.exercise_name == "Bench Press"
    assert context.last_weight == 75
    assert context.last_rpe == 6.5
    assert context.sessions_logged == 2
    assert context.recovery_score == 9.0


def make_context(sessions: int = 5) -> AIContext:
    return AIContext(
        user=UserContext(
            user_id="u", name="Kim", experience_level="Advanced", goal="Strength", target_per_week=4, units="kg"
        ),
        history=HistoricalContext(
            recent_sessions=tuple(
                SessionSummary(
                    session_id=f"s{i}",
                    day=f"2026-03-0{i + 1}",
                    name="Push",
                    exercises=("Bench Press", "Overhead Press", "Dips", "Flyes"),
                    total_volume=5000.0 + i,
                    duration_minutes=60,
                )
                for i in range(sessions)
            ),
        ),
        biomarkers=BiomarkerContext(sleep_hours=8, stress_level=2, recovery_score=9, fatigue_status="Fresh"),
    )


def test_compress_keeps_identity_and_fits_budget():
    assembler = ContextAssembler(chars_per_unit=4)
    text = assembler.compress(make_context(), max_units=40)
    assert text.startswith("User: Kim (Advanced, Strength)")
    assert assembler.estimate_units(text) <= 40 + 1


def test_compress_large_budget_includes_everything():
    assembler = ContextAssembler(chars_per_unit=4)
    text = assembler.compress(make_context(), max_units=800)
    assert "Recovery: 9/10 (Fresh)" in text
    assert "Recent:" in text
    assert text.count("\n- ") == 5
    assert "Dips" in text
    assert "Flyes" not in text


def test_compress_truncates_last_partial_line():
    assembler = ContextAssembler(chars_per_unit=4)
    full = assembler.compress(make_context(), max_units=800)
    text = assembler.compress(make_context(), max_units=45)
    assert text.endswith("...")
    assert len(text) < len(full)
