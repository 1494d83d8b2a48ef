#!/usr/bin/env python3
"""
Demo script for the coaching layer.

Runs fully offline: storage is in memory and no API key is used, so every
answer comes from the local engine, templates and the agent's own tools.
"""

import asyncio
from datetime import date, datetime, timedelta

from coach_ai.evaluator import DEFAULT_PAIRS, CacheEvaluator
from coach_ai.models import DailyLog, ExerciseLog, SetLog, UserProfile, WorkoutSession
from coach_ai.repositories import GeminiTextProvider, MemoryKeyValueStore
from coach_ai.services import CoachService, classify_intent


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def sample_history() -> list[WorkoutSession]:
    """Three weeks of push sessions with slowly rising bench press."""
    now = datetime.now()
    sessions = []
    for i, weight in enumerate([70.0, 72.5, 75.0, 77.5, 80.0]):
        start = now - timedelta(days=(4 - i) * 4 + 1)
        sessions.append(
            WorkoutSession(
                id=f"session-{i}",
                name="Push Day",
                start_time=start,
                end_time=start + timedelta(minutes=55),
                logs=[
                    ExerciseLog(
                        exercise_id="bench-press",
                        exercise_name="Bench Press",
                        muscle_group="Chest",
                        sets=[SetLog(weight=weight, reps=8, rpe=7.5) for _ in range(3)],
                    ),
                    ExerciseLog(
                        exercise_id="overhead-press",
                        exercise_name="Overhead Press",
                        muscle_group="Shoulders",
                        sets=[SetLog(weight=40.0, reps=10, rpe=8) for _ in range(3)],
                    ),
                ],
            )
        )
    return sessions


async def demo_local_suggestion(service: CoachService, profile: UserProfile, history: list[WorkoutSession]) -> None:
    """Local suggestion and its explanation."""
    print_section("Progressive Overload (local)")

    tip = await service.get_progression_suggestion("bench-press", profile, history)
    print(f"\n  Source: {tip.source.value}")
    print(f"  Tip: {tip.data.tip}")
    print(f"  Reasoning: {tip.data.reasoning}")

    suggestion = service.compute_suggestion("bench-press", profile, history)
    explanation = await service.get_explanation(suggestion, "bench-press", profile, history[-1].logs[0])
    print(f"\n  Explanation ({explanation.source.value}):")
    print(f"  {explanation.data.explanation}")
    for factor in explanation.data.key_factors:
        print(f"    - {factor}")


async def demo_workout_summary(service: CoachService, profile: UserProfile, history: list[WorkoutSession]) -> None:
    print_section("Workout Summary")

    latest, previous = history[-1], history[-2]
    summary = await service.get_workout_summary(
        latest, profile, records=["Bench Press"], previous_volume=previous.total_volume
    )
    print(f"\n  {summary.data.summary}")
    for highlight in summary.data.highlights:
        print(f"    ✓ {highlight}")
    print(f"  Next focus: {summary.data.next_session_focus}")


async def demo_agent(service: CoachService, profile: UserProfile, history: list[WorkoutSession]) -> None:
    """Coaching questions answered by the agent's fallback path."""
    print_section("Coaching Agent")

    tired = DailyLog(day=date.today(), sleep_hours=5, stress_level=8)
    questions = [
        "I feel tired, should I rest today?",
        "How can I make more progress on bench?",
        "Give me some motivation",
    ]
    for question in questions:
        answer = await service.get_coaching_answer(question, profile, history, daily_log=tired)
        print(f"\n  Q: {question}")
        print(f"  Intent: {classify_intent(question).value}")
        print(f"  Source: {answer.source.value}, {answer.latency_ms:.1f}ms")
        print(f"  A: {answer.data}")


def demo_threshold_tuning() -> None:
    """Sweep Jaccard thresholds over labelled question pairs."""
    print_section("Semantic Cache Threshold Tuning")

    evaluator = CacheEvaluator()
    print(f"\n📋 Labelled query pairs: {len(DEFAULT_PAIRS)}")
    evaluator.sweep_thresholds(DEFAULT_PAIRS)
    evaluator.print_summary()


def demo_status(service: CoachService) -> None:
    print_section("AI Status")

    status = service.get_ai_status().data
    print(f"\n  Online: {status.online}")
    print(f"  Remote available: {status.remote_available}")
    print(f"  Budget available: {status.budget_available}")
    print(f"  Cache size: {status.cache_size}")
    print(f"  Daily usage: {status.usage.daily_used}/{status.usage.daily_limit}")


async def run() -> None:
    service = CoachService.create(
        store=MemoryKeyValueStore(),
        provider=GeminiTextProvider(api_key=""),
    )
    service.initialize()
    profile = UserProfile(user_id="demo", name="Alex", experience_level="Intermediate", goal_type="Strength")
    history = sample_history()

    await demo_local_suggestion(service, profile, history)
    await demo_workout_summary(service, profile, history)
    await demo_agent(service, profile, history)
    demo_threshold_tuning()
    demo_status(service)


def main() -> None:
    """Run all demos."""
    print("\n🚀 Coach AI Demo")
    print("=" * 70)
    print("Offline-first coaching: every answer below is produced locally")

    asyncio.run(run())

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
