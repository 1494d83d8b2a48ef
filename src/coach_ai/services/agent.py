"""Multi-step reasoning agent for free-text coaching questions.

Flow:
1. Classify the query into an intent by keyword bucketing
2. Pick the fixed step sequence for that intent
3. Run the steps in order; later steps read earlier outputs
4. ``generate_response`` asks the remote model, or falls back to a local
   answer built from the outputs already computed
"""

import json
import logging
import time
from typing import Any, Callable

from coach_ai.entities import (
    AgentAction,
    AgentPlan,
    AgentResult,
    AgentStep,
    AIContext,
    QueryIntent,
)
from coach_ai.models import DailyLog, ResponseSource, UserProfile, WorkoutSession
from coach_ai.protocols import KnowledgeSource
from coach_ai.services.agent_tools import AgentTools
from coach_ai.services.context_assembler import ContextAssembler
from coach_ai.services.fallbacks import FallbackGenerator
from coach_ai.services.model_client import ModelClient, config_for
from coach_ai.services.policy import decide
from coach_ai.services.prompts import compile_prompt, get_template

logger = logging.getLogger(__name__)

COMPRESSED_CONTEXT_UNITS = 800
KNOWLEDGE_SNIPPETS = 2

# Checked in order; the first bucket with a matching keyword wins.
INTENT_KEYWORDS: list[tuple[QueryIntent, tuple[str, ...]]] = [
    (QueryIntent.PROGRESS, ("progress", "stronger", "improve", "gains", "plateau")),
    (QueryIntent.EXERCISE_SUGGESTION, ("exercise", "what should i do", "substitute", "alternative")),
    (QueryIntent.PROGRAM_ADVICE, ("program", "routine", "split", "schedule")),
    (QueryIntent.RECOVERY, ("tired", "fatigue", "recover", "rest", "deload", "sore")),
    (QueryIntent.FORM, ("form", "technique", "how to")),
    (QueryIntent.MOTIVATION, ("motivat", "inspire", "push")),
]

PLANS: dict[QueryIntent, tuple[AgentAction, ...]] = {
    QueryIntent.PROGRESS: (AgentAction.ANALYZE_HISTORY, AgentAction.CHECK_RECOVERY, AgentAction.GENERATE_RESPONSE),
    QueryIntent.EXERCISE_SUGGESTION: (AgentAction.SUGGEST_EXERCISE, AgentAction.GENERATE_RESPONSE),
    QueryIntent.PROGRAM_ADVICE: (
        AgentAction.ANALYZE_HISTORY,
        AgentAction.CHECK_RECOVERY,
        AgentAction.GENERATE_RESPONSE,
    ),
    QueryIntent.RECOVERY: (AgentAction.CHECK_RECOVERY, AgentAction.GENERATE_RESPONSE),
    QueryIntent.FORM: (AgentAction.GENERATE_RESPONSE,),
    QueryIntent.MOTIVATION: (AgentAction.GENERATE_RESPONSE,),
    QueryIntent.GENERAL: (AgentAction.ANALYZE_HISTORY, AgentAction.CHECK_RECOVERY, AgentAction.GENERATE_RESPONSE),
}

RATIONALES = {
    AgentAction.ANALYZE_HISTORY: "Review recent training frequency and volume",
    AgentAction.CHECK_RECOVERY: "Check readiness before recommending load",
    AgentAction.SUGGEST_EXERCISE: "Compute a local load recommendation",
    AgentAction.GENERATE_RESPONSE: "Answer the question using the analysis",
}


def classify_intent(query: str) -> QueryIntent:
    text = query.lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(k in text for k in keywords):
            return intent
    return QueryIntent.GENERAL


def create_plan(query: str) -> AgentPlan:
    intent = classify_intent(query)
    return AgentPlan(
        goal=intent,
        query=query,
        steps=[AgentStep(action=action, rationale=RATIONALES[action]) for action in PLANS[intent]],
    )


class CoachingAgent:
    """Plans and executes coaching steps.

    Example:
        ```python
        agent = CoachingAgent(client, assembler, tools, knowledge=store)
        result = await agent.run("Should I deload?", profile, history, daily_log)
        print(result.final_response)
        ```
    """

    def __init__(
        self,
        client: ModelClient,
        assembler: ContextAssembler,
        tools: AgentTools,
        knowledge: KnowledgeSource | None = None,
        fallbacks: FallbackGenerator | None = None,
        is_online: Callable[[], bool] = lambda: True,
    ) -> None:
        self._client = client
        self._assembler = assembler
        self._tools = tools
        self._knowledge = knowledge
        self._fallbacks = fallbacks or FallbackGenerator()
        self._is_online = is_online

    async def run(
        self,
        query: str,
        profile: UserProfile,
        history: list[WorkoutSession],
        daily_log: DailyLog | None = None,
        active_session: WorkoutSession | None = None,
    ) -> AgentResult:
        """Classify, plan and execute.

        Returns:
            AgentResult with the trace of every step. A step that raises is
            recorded with its error and the plan continues.
        """
        start = time.perf_counter()
        context = self._assembler.build(profile, history, active_session, daily_log)
        plan = create_plan(query)
        logger.info("Agent intent=%s steps=%s", plan.goal.value, [s.action.value for s in plan.steps])

        tool_results: dict[str, Any] = {}
        total_units = 0
        total_cost = 0.0
        source = ResponseSource.FALLBACK
        final_response = ""

        for step in plan.steps:
            step_start = time.perf_counter()
            try:
                if step.action is AgentAction.ANALYZE_HISTORY:
                    step.input = {"sessions": len(history), "target_per_week": profile.target_per_week}
                    step.output = self._tools.analyze_history(history, profile)
                elif step.action is AgentAction.CHECK_RECOVERY:
                    step.input = {
                        "sessions": len(history),
                        "sleep_hours": daily_log.sleep_hours if daily_log else None,
                        "stress_level": daily_log.stress_level if daily_log else None,
                    }
                    step.output = self._tools.check_recovery(history, profile, daily_log)
                elif step.action is AgentAction.SUGGEST_EXERCISE:
                    step.input = {"query": query}
                    step.output = self._tools.suggest_exercise(query, history, profile, daily_log)
                else:
                    step.input = {"query": query, "tool_results": sorted(tool_results)}
                    step.output = await self._generate_response(query, context, tool_results)
            except Exception as e:
                logger.exception("Agent step %s failed", step.action.value)
                step.error = str(e)
            step.elapsed_ms = (time.perf_counter() - step_start) * 1000

            if not step.succeeded:
                continue
            if step.action is AgentAction.GENERATE_RESPONSE:
                final_response = step.output["text"]
                source = step.output["source"]
                total_units += step.output["units"]
                total_cost += step.output["cost"]
            else:
                tool_results[step.action.value] = step.output

        if not final_response:
            answer = self._fallbacks.coaching(context, query, tool_results)
            final_response = self._fallbacks.render_coaching(answer)

        return AgentResult(
            success=bool(final_response),
            final_response=final_response,
            steps=plan.steps,
            total_latency_ms=(time.perf_counter() - start) * 1000,
            total_units=total_units,
            source=source,
            intent=plan.goal,
            cost=total_cost if total_units else None,
        )

    async def _generate_response(
        self,
        query: str,
        context: AIContext,
        tool_results: dict[str, Any],
    ) -> dict[str, Any]:
        context_text = self._assembler.compress(context, COMPRESSED_CONTEXT_UNITS)
        analysis = "\n".join(f"{k}: {json.dumps(v, default=str)}" for k, v in tool_results.items())

        knowledge_text = ""
        if self._knowledge is not None:
            try:
                snippets = await self._knowledge.search(query, top_k=KNOWLEDGE_SNIPPETS)
                knowledge_text = "\n\n".join(s.content for s in snippets)
            except Exception as e:
                logger.warning("Knowledge lookup failed, continuing without it: %s", e)

        decision = decide(
            feature="coaching",
            has_local_implementation=True,
            requires_natural_language=True,
            requires_personalization=True,
            context_size=self._assembler.estimate_units(context_text + analysis),
            is_online=self._is_online(),
        )

        if decision.use_remote:
            prompt = compile_prompt(
                "coach",
                {
                    "context": context_text,
                    "analysis": analysis or "No analysis",
                    "knowledge": knowledge_text or "None",
                    "query": query,
                },
            )
            template = get_template("coach")
            config = config_for(decision.profile, max_units=template.max_units, temperature=template.temperature)
            response = await self._client.generate_text(prompt, config, feature="coaching")
            if response.success and response.data:
                return {
                    "text": response.data,
                    "source": ResponseSource.REMOTE,
                    "route": decision.route_label,
                    "units": response.units_used or 0,
                    "cost": response.cost or 0.0,
                }
            logger.warning("Remote coaching failed (%s), using local answer", response.error)

        answer = self._fallbacks.coaching(context, query, tool_results)
        return {
            "text": self._fallbacks.render_coaching(answer),
            "source": ResponseSource.FALLBACK,
            "route": decision.route_label,
            "units": 0,
            "cost": 0.0,
        }
