"""Coach service: the public entry point of the AI layer.

Every operation returns an ``AIResponse`` and never raises for expected
failures (offline, no API key, budget exhausted, provider errors). Only
missing required identifiers raise ``ValueError``.

Routing per request:
    local computation (always, first)
      -> policy decides whether a remote step is wanted
      -> exact-match cache lookup
      -> remote call
      -> fallback built from the local result
"""

import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import ValidationError

from coach_ai.catalog import get_exercise
from coach_ai.config import settings
from coach_ai.entities import CompiledPrompt
from coach_ai.models import (
    AIResponse,
    AIStatus,
    DailyLog,
    ExerciseLog,
    FormGuide,
    LocalSuggestion,
    ProgressionTip,
    ResponseSource,
    SuggestionExplanation,
    UserProfile,
    WorkoutSession,
    WorkoutSummaryResult,
)
from coach_ai.protocols import KeyValueStore, KnowledgeSource, SuggestionEngine, TextProvider
from coach_ai.repositories import (
    GeminiTextProvider,
    HeuristicSuggestionEngine,
    InMemoryKnowledgeStore,
    JsonFileStore,
    MemoryKeyValueStore,
    RedisKeyValueStore,
)
from coach_ai.services.agent import CoachingAgent
from coach_ai.services.agent_tools import AgentTools
from coach_ai.services.context_assembler import ContextAssembler
from coach_ai.services.fallbacks import FallbackGenerator
from coach_ai.services.model_client import ModelClient
from coach_ai.services.policy import decide
from coach_ai.services.prompts import compile_prompt, get_template, rpe_info
from coach_ai.services.response_cache import TTL_BY_FEATURE, ResponseCache, generate_key, ttl_for
from coach_ai.services.semantic_cache import SemanticCache
from coach_ai.services.usage_tracker import UsageTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _elapsed(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class CoachService:
    """Facade over caching, routing, the remote model, the agent and fallbacks.

    Example:
        ```python
        service = CoachService.create()
        service.initialize()
        response = await service.get_motivational_line(profile, streak=5)
        print(response.source, response.data)
        ```
    """

    def __init__(
        self,
        client: ModelClient,
        cache: ResponseCache,
        semantic_cache: SemanticCache,
        engine: SuggestionEngine,
        knowledge: KnowledgeSource | None = None,
        assembler: ContextAssembler | None = None,
        fallbacks: FallbackGenerator | None = None,
        is_online: Callable[[], bool] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            client: Remote model client (budget and retries live here).
            cache: Exact-match response cache.
            semantic_cache: Near-duplicate cache for coaching questions.
            engine: Local suggestion engine; its numbers are authoritative.
            knowledge: Optional knowledge source for coaching and search.
            assembler: Context assembler. Defaults to a new instance.
            fallbacks: Fallback generator. Defaults to an unseeded instance.
            is_online: Connectivity check. Defaults to ``not settings.offline_mode``.
        """
        self._client = client
        self._cache = cache
        self._semantic = semantic_cache
        self._engine = engine
        self._knowledge = knowledge
        self._assembler = assembler or ContextAssembler()
        self._fallbacks = fallbacks or FallbackGenerator()
        self._is_online = is_online or (lambda: not settings.offline_mode)
        self._agent = CoachingAgent(
            client=client,
            assembler=self._assembler,
            tools=AgentTools(self._assembler, engine),
            knowledge=knowledge,
            fallbacks=self._fallbacks,
            is_online=self._is_online,
        )
        self._initialized = False

    @classmethod
    def create(
        cls,
        store: KeyValueStore | None = None,
        provider: TextProvider | None = None,
        engine: SuggestionEngine | None = None,
        knowledge: KnowledgeSource | None = None,
        is_online: Callable[[], bool] | None = None,
    ) -> "CoachService":
        """Factory method wiring the default implementations from settings.

        Args:
            store: Device-local storage. Defaults to the configured backend.
            provider: Remote text provider. Defaults to Gemini.
            engine: Local suggestion engine. Defaults to the heuristic engine.
            knowledge: Knowledge source. Defaults to the seeded in-memory store.
            is_online: Connectivity check.

        Returns:
            Configured CoachService
        """
        store = store if store is not None else default_store()
        return cls(
            client=ModelClient(
                provider=provider if provider is not None else GeminiTextProvider.create(),
                tracker=UsageTracker(store=store),
            ),
            cache=ResponseCache(store=store),
            semantic_cache=SemanticCache(default_ttl=TTL_BY_FEATURE["coaching"]),
            engine=engine or HeuristicSuggestionEngine(),
            knowledge=knowledge if knowledge is not None else InMemoryKnowledgeStore.create(),
            is_online=is_online,
        )

    @property
    def client(self) -> ModelClient:
        return self._client

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def semantic_cache(self) -> SemanticCache:
        return self._semantic

    def initialize(self) -> None:
        """Prune expired cache entries. Safe to call more than once."""
        if self._initialized:
            return
        removed = self._cache.prune_expired()
        self._initialized = True
        logger.info("Coach service initialized (pruned %d expired cache entries)", removed)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def compute_suggestion(
        self,
        exercise_id: str,
        profile: UserProfile,
        history: list[WorkoutSession],
        daily_log: DailyLog | None = None,
    ) -> LocalSuggestion:
        """Run the local suggestion engine for one exercise."""
        if not exercise_id:
            raise ValueError("exercise_id is required")
        context = self._assembler.build_exercise_context(exercise_id, history, profile, daily_log)
        return self._engine.compute_suggestion(context)

    async def get_explanation(
        self,
        suggestion: LocalSuggestion,
        exercise_id: str,
        profile: UserProfile,
        last_log: ExerciseLog | None = None,
    ) -> AIResponse[SuggestionExplanation]:
        """Explain why the local engine suggested a weight and rep range.

        The numbers in the result always come from ``suggestion``; a remote
        answer only replaces the explanation text.
        """
        if not exercise_id:
            raise ValueError("exercise_id is required")
        start = time.perf_counter()
        exercise = get_exercise(exercise_id)
        exercise_name = exercise.name if exercise else (last_log.display_name if last_log else exercise_id)
        last_set = last_log.completed_sets[-1] if last_log and last_log.completed_sets else None

        fallback = self._fallbacks.explanation(
            suggestion,
            exercise_name,
            units=profile.units,
            last_weight=last_set.weight if last_set else None,
            last_reps=last_set.reps if last_set else None,
            last_rpe=last_set.rpe if last_set else None,
        )
        if not self._wants_remote("suggestion_explanation", requires_personalization=False):
            return AIResponse[SuggestionExplanation].ok(fallback, ResponseSource.FALLBACK, _elapsed(start))

        low, high = suggestion.rep_range
        params = {
            "exercise_id": exercise_id,
            "weight": suggestion.value,
            "reps": [low, high],
            "confidence": suggestion.confidence,
            "recovery_score": suggestion.recovery_score,
            "experience_level": profile.experience_level,
        }

        async def fetch() -> AIResponse[SuggestionExplanation]:
            prompt = compile_prompt(
                "suggestion_explanation",
                {
                    "user_name": profile.name,
                    "experience_level": profile.experience_level,
                    "exercise_name": exercise_name,
                    "last_weight": last_set.weight if last_set else None,
                    "last_reps": last_set.reps if last_set else None,
                    "units": profile.units,
                    "rpe_info": rpe_info(last_set.rpe if last_set else None),
                    "suggested_weight": f"{suggestion.value:g}",
                    "reps_min": low,
                    "reps_max": high,
                    "confidence": suggestion.confidence,
                    "recovery_score": f"{suggestion.recovery_score:g}",
                    "deload_note": "Deload recommended." if suggestion.should_flag_caution else "",
                },
            )
            return await self._remote_or_fallback(
                "suggestion_explanation",
                prompt,
                fallback,
                lambda text: fallback.model_copy(update={"explanation": text}),
                start,
            )

        return await self._with_cache("suggestion_explanation", params, SuggestionExplanation, fetch)

    async def get_workout_summary(
        self,
        session: WorkoutSession,
        profile: UserProfile,
        records: list[str] | None = None,
        previous_volume: float | None = None,
    ) -> AIResponse[WorkoutSummaryResult]:
        """Summarize a completed workout from its real statistics."""
        if not session.id:
            raise ValueError("session id is required")
        start = time.perf_counter()
        records = records or []
        fallback = self._fallbacks.workout_summary(session, records, profile.units, previous_volume)
        if not self._wants_remote("workout_summary", requires_personalization=False):
            return AIResponse[WorkoutSummaryResult].ok(fallback, ResponseSource.FALLBACK, _elapsed(start))

        async def fetch() -> AIResponse[WorkoutSummaryResult]:
            details = "\n".join(
                f"- {log.display_name}: "
                + ", ".join(f"{s.weight:g}{profile.units}x{s.reps}" for s in log.completed_sets)
                for log in session.logs
            )
            prompt = compile_prompt(
                "workout_summary",
                {
                    "user_name": profile.name,
                    "workout_name": session.name,
                    "duration": session.duration_minutes,
                    "exercise_details": details or "None",
                    "records": ", ".join(records) or "None",
                    "total_volume": f"{session.total_volume:g}",
                    "units": profile.units,
                    "average_rpe": session.average_rpe if session.average_rpe is not None else "Not tracked",
                    "previous_volume": f"{previous_volume:g}{profile.units}" if previous_volume else "Unknown",
                },
            )
            return await self._remote_or_fallback(
                "workout_summary",
                prompt,
                fallback,
                lambda text: fallback.model_copy(update={"summary": text}),
                start,
            )

        return await self._with_cache("workout_summary", {"workout_id": session.id}, WorkoutSummaryResult, fetch)

    async def get_motivational_line(
        self,
        profile: UserProfile,
        streak: int | None = None,
        context: str | None = None,
    ) -> AIResponse[str]:
        """Short motivational line, bucketed by streak length when offline."""
        start = time.perf_counter()
        fallback = self._fallbacks.motivation(streak)
        if not self._wants_remote("motivation", requires_personalization=False):
            return AIResponse[str].ok(fallback, ResponseSource.FALLBACK, _elapsed(start))

        async def fetch() -> AIResponse[str]:
            prompt = compile_prompt(
                "motivation",
                {"context": context or "Starting workout", "streak": streak or 0, "goal": profile.goal_type},
            )
            return await self._remote_or_fallback("motivation", prompt, fallback, lambda text: text, start)

        params = {"streak": streak or 0, "goal": profile.goal_type}
        return await self._with_cache("motivation", params, str, fetch)

    async def get_coaching_answer(
        self,
        query: str,
        profile: UserProfile,
        history: list[WorkoutSession],
        daily_log: DailyLog | None = None,
        active_session: WorkoutSession | None = None,
    ) -> AIResponse[str]:
        """Answer a free-text coaching question through the reasoning agent.

        Near-duplicate questions are served from the semantic cache while
        online. Only remote answers are stored there.
        """
        if not query or not query.strip():
            raise ValueError("query is required")
        start = time.perf_counter()

        if self._is_online():
            match = self._semantic.find(query)
            if match is not None:
                return AIResponse[str].ok(match.response, ResponseSource.CACHE, _elapsed(start))

        result = await self._agent.run(query, profile, history, daily_log, active_session)
        if result.source == ResponseSource.REMOTE:
            self._semantic.store(query, result.final_response, ttl=TTL_BY_FEATURE["coaching"])

        return AIResponse[str](
            success=result.success,
            data=result.final_response,
            source=result.source,
            latency_ms=_elapsed(start),
            units_used=result.total_units or None,
            cost=result.cost,
        )

    def get_ai_status(self) -> AIResponse[AIStatus]:
        """Health snapshot. Computed locally, never touches the network."""
        start = time.perf_counter()
        stats = self._cache.get_stats()
        status = AIStatus(
            initialized=self._initialized,
            online=self._is_online(),
            remote_available=self._client.check_availability(),
            budget_available=self._client.is_within_budget(),
            cache_size=stats["size"],
            cache_hit_rate=stats["hit_rate"],
            semantic_cache_size=len(self._semantic),
            usage=self._client.get_usage_stats(),
        )
        return AIResponse[AIStatus].ok(status, ResponseSource.LOCAL, _elapsed(start))

    async def get_progression_suggestion(
        self,
        exercise_id: str,
        profile: UserProfile,
        history: list[WorkoutSession],
        daily_log: DailyLog | None = None,
        enhance: bool = False,
    ) -> AIResponse[ProgressionTip]:
        """Local load recommendation, optionally rephrased by the remote model."""
        if not exercise_id:
            raise ValueError("exercise_id is required")
        start = time.perf_counter()
        context = self._assembler.build_exercise_context(exercise_id, history, profile, daily_log)
        suggestion = self._engine.compute_suggestion(context)
        logger.debug("Local suggestion for %s: %s", exercise_id, suggestion.rationale)
        base = self._fallbacks.progression_tip(suggestion, profile.units, context)

        if not enhance:
            return AIResponse[ProgressionTip].ok(base, ResponseSource.LOCAL, _elapsed(start))
        if not self._wants_remote("progressive_overload", requires_personalization=False):
            return AIResponse[ProgressionTip].ok(base, ResponseSource.FALLBACK, _elapsed(start))

        low, high = suggestion.rep_range
        params = {
            "exercise_id": exercise_id,
            "weight": suggestion.value,
            "reps": [low, high],
            "recovery_score": suggestion.recovery_score,
        }

        async def fetch() -> AIResponse[ProgressionTip]:
            prompt = compile_prompt(
                "progressive_overload",
                {
                    "exercise_name": context.exercise_name,
                    "last_weight": context.last_weight,
                    "last_reps": context.last_reps,
                    "units": profile.units,
                    "rpe": context.last_rpe if context.last_rpe is not None else "N/A",
                    "recovery_score": f"{suggestion.recovery_score:g}",
                    "suggested_weight": f"{suggestion.value:g}",
                    "reps_min": low,
                    "reps_max": high,
                },
            )
            return await self._remote_or_fallback(
                "progressive_overload",
                prompt,
                base,
                lambda text: base.model_copy(update={"tip": text}),
                start,
            )

        return await self._with_cache("progressive_overload", params, ProgressionTip, fetch)

    async def get_form_guide(
        self,
        exercise_id: str,
        profile: UserProfile,
        question: str | None = None,
        personalize: bool = False,
    ) -> AIResponse[FormGuide]:
        """Static catalog guide, with a remote personalized tip on request."""
        if not exercise_id:
            raise ValueError("exercise_id is required")
        start = time.perf_counter()
        exercise = get_exercise(exercise_id)
        if exercise is None:
            return AIResponse[FormGuide].fail("Exercise not found", latency_ms=_elapsed(start))

        guide = self._fallbacks.form_guide(exercise)
        if not personalize or not question:
            return AIResponse[FormGuide].ok(guide, ResponseSource.LOCAL, _elapsed(start))
        if not self._wants_remote("form_guide", requires_personalization=True):
            return AIResponse[FormGuide].ok(guide, ResponseSource.FALLBACK, _elapsed(start))

        async def fetch() -> AIResponse[FormGuide]:
            prompt = compile_prompt(
                "form_guide",
                {
                    "exercise_name": exercise.name,
                    "experience_level": profile.experience_level,
                    "equipment": exercise.equipment,
                    "question": question,
                    "existing_guide": "\n".join(exercise.form_guide),
                    "common_mistakes": "\n".join(exercise.common_mistakes),
                },
            )
            return await self._remote_or_fallback(
                "form_guide",
                prompt,
                guide,
                lambda text: guide.model_copy(update={"personalized_tip": text}),
                start,
            )

        params = {"exercise_id": exercise_id, "question": question[:50]}
        return await self._with_cache("form_guide", params, FormGuide, fetch)

    async def search_knowledge(self, query: str, top_k: int = 5) -> AIResponse[list[str]]:
        """Search the knowledge source. Runs locally."""
        if not query or not query.strip():
            raise ValueError("query is required")
        start = time.perf_counter()
        if self._knowledge is None:
            return AIResponse[list[str]].fail("Knowledge source not configured", latency_ms=_elapsed(start))
        try:
            snippets = await self._knowledge.search(query, top_k=top_k)
        except Exception as e:
            logger.warning("Knowledge search failed: %s", e)
            return AIResponse[list[str]].fail(f"Knowledge search failed: {e}", latency_ms=_elapsed(start))
        return AIResponse[list[str]].ok([s.content for s in snippets], ResponseSource.LOCAL, _elapsed(start))

    def clear_cache(self) -> dict[str, int]:
        """Empty both caches.

        Returns:
            Number of entries removed from each cache
        """
        cleared = {"cache": len(self._cache), "semantic_cache": self._semantic.clear()}
        self._cache.clear()
        logger.info("Cleared caches: %s", cleared)
        return cleared

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _wants_remote(self, feature: str, requires_personalization: bool) -> bool:
        decision = decide(
            feature=feature,
            has_local_implementation=True,
            requires_natural_language=True,
            requires_personalization=requires_personalization,
            context_size=0,
            is_online=self._is_online(),
        )
        logger.debug("Route for %s: %s (%s)", feature, decision.route_label, decision.reasoning)
        return decision.use_remote

    async def _with_cache(
        self,
        feature: str,
        params: dict[str, Any],
        payload_type: Any,
        fetch: Callable[[], Awaitable[AIResponse[Any]]],
    ) -> AIResponse[Any]:
        """Serve from the exact-match cache, else fetch and cache remote successes."""
        response_type = AIResponse[payload_type]
        key = generate_key(feature, params)
        start = time.perf_counter()

        cached = self._cache.get(key)
        if cached is not None:
            try:
                hit = response_type.model_validate(cached)
            except ValidationError:
                logger.warning("Dropping unreadable cache entry %s", key)
                self._cache.delete(key)
            else:
                return hit.model_copy(
                    update={
                        "source": ResponseSource.CACHE,
                        "latency_ms": _elapsed(start),
                        "units_used": None,
                        "cost": None,
                    }
                )

        response = await fetch()
        if response.success and response.source == ResponseSource.REMOTE:
            self._cache.set(key, response.model_dump(mode="json"), ttl_for(feature))
        return response

    async def _remote_or_fallback(
        self,
        feature: str,
        prompt: CompiledPrompt,
        fallback: T,
        merge: Callable[[str], T],
        start: float,
    ) -> AIResponse[T]:
        response_type = AIResponse[type(fallback)]
        template = get_template(prompt.template_id)
        response = await self._client.generate_text(prompt, template.generation_config(), feature=feature)
        if response.success and response.data:
            return response_type(
                success=True,
                data=merge(response.data),
                source=ResponseSource.REMOTE,
                latency_ms=_elapsed(start),
                units_used=response.units_used,
                cost=response.cost,
            )
        logger.warning("Remote %s failed (%s), serving fallback", feature, response.error)
        return response_type.ok(fallback, ResponseSource.FALLBACK, _elapsed(start), error=response.error)


def default_store() -> KeyValueStore:
    """Storage backend selected by settings.storage_backend."""
    if settings.storage_backend == "redis":
        return RedisKeyValueStore.create()
    if settings.storage_backend == "memory":
        return MemoryKeyValueStore()
    return JsonFileStore.create()
