"""HTTP handlers for coaching operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes and error handling.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from fastapi import HTTPException, status

from coach_ai.config import settings
from coach_ai.dto import (
    CacheClearResponse,
    CoachingRequest,
    ExplanationRequest,
    FormGuideRequest,
    HealthCheckResponse,
    MotivationRequest,
    ProgressionRequest,
    WorkoutSummaryRequest,
)
from coach_ai.models import (
    AIResponse,
    AIStatus,
    FormGuide,
    ProgressionTip,
    SuggestionExplanation,
    WorkoutSummaryResult,
)
from coach_ai.services import CoachService

logger = logging.getLogger(__name__)

R = TypeVar("R")


class CoachHandler:
    """HTTP handlers for coaching operations.

    Expected failures (offline, budget, provider errors) are already folded
    into the ``AIResponse`` envelope by the service, so they come back as 200.
    A missing identifier becomes a 400; anything else is a 500.

    Example:
        ```python
        handler = CoachHandler(coach_service=CoachService.create())

        @app.post("/ai/motivation")
        async def motivation(request: MotivationRequest):
            return await handler.motivation(request)
        ```
    """

    def __init__(self, coach_service: CoachService) -> None:
        self._service = coach_service

    async def explanation(self, request: ExplanationRequest) -> AIResponse[SuggestionExplanation]:
        """Handle POST /ai/explanation requests."""

        async def call() -> AIResponse[SuggestionExplanation]:
            suggestion = request.suggestion or self._service.compute_suggestion(
                request.exercise_id, request.profile, request.history, request.daily_log
            )
            return await self._service.get_explanation(
                suggestion, request.exercise_id, request.profile, request.last_log
            )

        return await self._guard("explain suggestion", call)

    async def workout_summary(self, request: WorkoutSummaryRequest) -> AIResponse[WorkoutSummaryResult]:
        """Handle POST /ai/workout-summary requests."""
        return await self._guard(
            "summarize workout",
            lambda: self._service.get_workout_summary(
                request.session, request.profile, request.records, request.previous_volume
            ),
        )

    async def motivation(self, request: MotivationRequest) -> AIResponse[str]:
        """Handle POST /ai/motivation requests."""
        return await self._guard(
            "generate motivation",
            lambda: self._service.get_motivational_line(request.profile, request.streak, request.context),
        )

    async def coaching(self, request: CoachingRequest) -> AIResponse[str]:
        """Handle POST /ai/coaching requests."""
        return await self._guard(
            "answer coaching question",
            lambda: self._service.get_coaching_answer(
                request.query, request.profile, request.history, request.daily_log, request.active_session
            ),
        )

    async def form_guide(self, request: FormGuideRequest) -> AIResponse[FormGuide]:
        """Handle POST /ai/form-guide requests."""
        return await self._guard(
            "build form guide",
            lambda: self._service.get_form_guide(
                request.exercise_id, request.profile, request.question, request.personalize
            ),
        )

    async def progression(self, request: ProgressionRequest) -> AIResponse[ProgressionTip]:
        """Handle POST /ai/progression requests."""
        return await self._guard(
            "suggest progression",
            lambda: self._service.get_progression_suggestion(
                request.exercise_id, request.profile, request.history, request.daily_log, request.enhance
            ),
        )

    async def ai_status(self) -> AIResponse[AIStatus]:
        """Handle GET /ai/status requests."""
        try:
            return self._service.get_ai_status()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get status: {e}",
            ) from e

    async def clear_cache(self) -> CacheClearResponse:
        """Handle DELETE /ai/cache requests."""
        try:
            cleared = self._service.clear_cache()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e
        return CacheClearResponse(success=True, cleared=cleared, message="Cache cleared successfully")

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        ai_status = self._service.get_ai_status().data
        remote = ai_status.remote_available if ai_status else False
        online = ai_status.online if ai_status else False
        return HealthCheckResponse(
            status="healthy" if remote and online else "degraded",
            online=online,
            remote_available=remote,
            storage_backend=settings.storage_backend,
        )

    async def _guard(self, action: str, call: Callable[[], Awaitable[R]]) -> R:
        try:
            return await call()
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        except Exception as e:
            logger.exception("Failed to %s", action)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to {action}: {e}",
            ) from e
