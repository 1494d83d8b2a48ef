from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coach_ai.api.dependencies import HandlerDep, lifespan
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

app = FastAPI(
    title="Coach AI API",
    description="Offline-first AI coaching layer for a workout tracker",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Coach AI API",
        "version": "0.1.0",
        "description": "Offline-first AI coaching layer for a workout tracker",
        "endpoints": {
            "explanation": "/ai/explanation",
            "workout_summary": "/ai/workout-summary",
            "motivation": "/ai/motivation",
            "coaching": "/ai/coaching",
            "form_guide": "/ai/form-guide",
            "progression": "/ai/progression",
            "status": "/ai/status",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post("/ai/explanation", response_model=AIResponse[SuggestionExplanation])
async def explanation(request: ExplanationRequest, handler: HandlerDep) -> AIResponse[SuggestionExplanation]:
    """Explain a weight and rep suggestion."""
    return await handler.explanation(request)


@app.post("/ai/workout-summary", response_model=AIResponse[WorkoutSummaryResult])
async def workout_summary(
    request: WorkoutSummaryRequest, handler: HandlerDep
) -> AIResponse[WorkoutSummaryResult]:
    """Summarize a completed workout."""
    return await handler.workout_summary(request)


@app.post("/ai/motivation", response_model=AIResponse[str])
async def motivation(request: MotivationRequest, handler: HandlerDep) -> AIResponse[str]:
    """Short motivational line."""
    return await handler.motivation(request)


@app.post("/ai/coaching", response_model=AIResponse[str])
async def coaching(request: CoachingRequest, handler: HandlerDep) -> AIResponse[str]:
    """Answer a free-text coaching question."""
    return await handler.coaching(request)


@app.post("/ai/form-guide", response_model=AIResponse[FormGuide])
async def form_guide(request: FormGuideRequest, handler: HandlerDep) -> AIResponse[FormGuide]:
    """Form guidance for an exercise."""
    return await handler.form_guide(request)


@app.post("/ai/progression", response_model=AIResponse[ProgressionTip])
async def progression(request: ProgressionRequest, handler: HandlerDep) -> AIResponse[ProgressionTip]:
    """Local progressive overload suggestion."""
    return await handler.progression(request)


@app.get("/ai/status", response_model=AIResponse[AIStatus])
async def ai_status(handler: HandlerDep) -> AIResponse[AIStatus]:
    """Health and usage of the AI layer."""
    return await handler.ai_status()


@app.delete("/ai/cache", response_model=CacheClearResponse)
async def clear_cache(handler: HandlerDep) -> CacheClearResponse:
    """Clear the response and semantic caches."""
    return await handler.clear_cache()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coach_ai.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
