"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field

from coach_ai.models import DailyLog, ExerciseLog, LocalSuggestion, UserProfile, WorkoutSession


class ExplanationRequest(BaseModel):
    """Request DTO for explaining a weight suggestion.

    When ``suggestion`` is omitted the local engine computes it from ``history``.
    """

    exercise_id: str = Field(..., description="Catalog id of the exercise", min_length=1)
    profile: UserProfile
    suggestion: LocalSuggestion | None = Field(None, description="Suggestion to explain")
    last_log: ExerciseLog | None = Field(None, description="Most recent log of the exercise")
    history: list[WorkoutSession] = Field(default_factory=list)
    daily_log: DailyLog | None = None


class WorkoutSummaryRequest(BaseModel):
    """Request DTO for summarizing a completed workout."""

    session: WorkoutSession
    profile: UserProfile
    records: list[str] = Field(default_factory=list, description="Exercise names with new records")
    previous_volume: float | None = Field(None, description="Volume of the comparable previous session", ge=0)


class MotivationRequest(BaseModel):
    profile: UserProfile
    streak: int | None = Field(None, description="Current training streak in days", ge=0)
    context: str | None = Field(None, description="What the user is about to do")


class CoachingRequest(BaseModel):
    """Request DTO for a free-text coaching question."""

    query: str = Field(..., description="The user's question", min_length=1)
    profile: UserProfile
    history: list[WorkoutSession] = Field(default_factory=list)
    daily_log: DailyLog | None = None
    active_session: WorkoutSession | None = None


class FormGuideRequest(BaseModel):
    exercise_id: str = Field(..., description="Catalog id of the exercise", min_length=1)
    profile: UserProfile
    question: str | None = Field(None, description="Specific form question")
    personalize: bool = Field(False, description="Ask the remote model for a personalized tip")


class ProgressionRequest(BaseModel):
    exercise_id: str = Field(..., description="Catalog id of the exercise", min_length=1)
    profile: UserProfile
    history: list[WorkoutSession] = Field(default_factory=list)
    daily_log: DailyLog | None = None
    enhance: bool = Field(False, description="Rephrase the tip with the remote model")
