"""
Tests for the coaching agent.
"""

import pytest
from conftest import FakeTextProvider

from coach_ai.entities import AgentAction, ModelProfile, QueryIntent
from coach_ai.models import ResponseSource
from coach_ai.repositories import HeuristicSuggestionEngine, InMemoryKnowledgeStore
from coach_ai.services.agent import CoachingAgent, classify_intent, create_plan
from coach_ai.services.agent_tools import AgentTools
from coach_ai.services.context_assembler import ContextAssembler
from coach_ai.services.fallbacks import FallbackGenerator
from coach_ai.services.model_client import ModelClient


@pytest.mark.parametrize(
    "query,intent",
    [
        ("How can I improve my squat?", QueryIntent.PROGRESS),
        ("What exercise can substitute dips?", QueryIntent.EXERCISE_SUGGESTION),
        ("Is a push pull legs split good?", QueryIntent.PROGRAM_ADVICE),
        ("I'm really tired this week", QueryIntent.RECOVERY),
        ("how to brace during squats", QueryIntent.FORM),
        ("I need some motivation", QueryIntent.MOTIVATION),
        ("hello coach", QueryIntent.GENERAL),
    ],
)
def test_classify_intent(query, intent):
    assert classify_intent(query) is intent


def test_first_matching_bucket_wins():
    assert classify_intent("I plateaued and feel tired") is QueryIntent.PROGRESS


def test_plans_end_with_generate_response():
    plan = create_plan("Should I deload? I'm sore")
    assert plan.goal is QueryIntent.RECOVERY
    assert [s.action for s in plan.steps] == [AgentAction.CHECK_RECOVERY, AgentAction.GENERATE_RESPONSE]
    for query in ("improve bench", "what exercise", "my routine", "form check", "motivate me", "hi"):
        assert create_plan(query).steps[-1].action is AgentAction.GENERATE_RESPONSE


class BrokenTools(AgentTools):
    def analyze_history(self, history, profile):
        raise RuntimeError("history unavailable")


class BrokenKnowledge:
    async def search(self, query, filters=None, top_k=3):
        raise ConnectionError("index offline")


def make_agent(tracker, provider=None, online=True, tools_cls=AgentTools, knowledge=None):
    assembler = ContextAssembler()
    client = ModelClient(provider=provider or FakeTextProvider(), tracker=tracker, base_delay=0, sleep=_no_sleep)
    return CoachingAgent(
        client=client,
        assembler=assembler,
        tools=tools_cls(assembler, HeuristicSuggestionEngine()),
        knowledge=knowledge if knowledge is not None else InMemoryKnowledgeStore.create(),
        fallbacks=FallbackGenerator(seed=2),
        is_online=lambda: online,
    )


async def _no_sleep(seconds):
    return None


@pytest.mark.asyncio
async def test_offline_recovery_answer_reflects_score(tracker, profile, history, tired_log):
    provider = FakeTextProvider()
    agent = make_agent(tracker, provider, online=False)

    result = await agent.run("I feel tired, should I rest?", profile, history, tired_log)

    assert result.success
    assert result.source == ResponseSource.FALLBACK
    assert result.intent is QueryIntent.RECOVERY
    assert "Your recovery score is low (2/10)" in result.final_response
    assert provider.calls == []
    assert result.total_units == 0
    assert result.cost is None
    assert result.steps[0].output["should_deload"] is True
    assert all(step.succeeded for step in result.steps)


@pytest.mark.asyncio
async def test_online_uses_remote_with_policy_profile(tracker, profile, history, rested_log):
    provider = FakeTextProvider(["Train as planned and add a set."])
    agent = make_agent(tracker, provider, online=True)

    result = await agent.run("Am I making progress?", profile, history, rested_log)

    assert result.source == ResponseSource.REMOTE
    assert result.final_response == "Train as planned and add a set."
    assert result.total_units > 0
    assert result.cost is not None
    prompt, config = provider.calls[0]
    assert prompt.template_id == "coach"
    assert "Am I making progress?" in prompt.user_prompt
    assert "analyze_history" in prompt.user_prompt
    assert config.profile is ModelProfile.FAST
    assert config.max_units == 600
    assert tracker.budget.daily_used == result.total_units


@pytest.mark.asyncio
async def test_remote_failure_degrades_to_local_answer(tracker, profile, history, tired_log):
    provider = FakeTextProvider(configured=False)
    agent = make_agent(tracker, provider, online=True)

    result = await agent.run("Should I rest today?", profile, history, tired_log)

    assert result.success
    assert result.source == ResponseSource.FALLBACK
    assert "2/10" in result.final_response


@pytest.mark.asyncio
async def test_failing_step_is_recorded_and_plan_continues(tracker, profile, history):
    agent = make_agent(tracker, online=False, tools_cls=BrokenTools)

    result = await agent.run("How do I get stronger?", profile, history)

    first = result.steps[0]
    assert first.action is AgentAction.ANALYZE_HISTORY
    assert first.error == "history unavailable"
    assert not first.succeeded
    assert result.steps[-1].succeeded
    assert result.final_response


@pytest.mark.asyncio
async def test_knowledge_failure_is_tolerated(tracker, profile, history):
    provider = FakeTextProvider(["Remote reply"])
    agent = make_agent(tracker, provider, online=True, knowledge=BrokenKnowledge())

    result = await agent.run("hello coach", profile, history)

    assert result.source == ResponseSource.REMOTE
    assert "## Reference knowledge\nNone" in provider.calls[0][0].user_prompt


@pytest.mark.asyncio
async def test_exercise_suggestion_step_runs_local_engine(tracker, profile, history):
    agent = make_agent(tracker, online=False)
    result = await agent.run("What exercise should replace bench press?", profile, history)
    output = result.steps[0].output
    assert output["exercise_id"] == "bench-press"
    assert output["has_history"] is True
    assert output["suggestion"]["value"] > 0


@pytest.mark.asyncio
async def test_every_step_records_its_input(tracker, profile, history, rested_log):
    agent = make_agent(tracker, online=False)

    result = await agent.run("Am I making progress?", profile, history, rested_log)

    inputs = {step.action: step.input for step in result.steps}
    assert inputs[AgentAction.ANALYZE_HISTORY] == {"sessions": 4, "target_per_week": 3}
    assert inputs[AgentAction.CHECK_RECOVERY] == {"sessions": 4, "sleep_hours": 8, "stress_level": 3}
    assert inputs[AgentAction.GENERATE_RESPONSE] == {
        "query": "Am I making progress?",
        "tool_results": ["analyze_history", "check_recovery"],
    }
