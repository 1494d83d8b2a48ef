"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import (
    CoachingRequest,
    ExplanationRequest,
    FormGuideRequest,
    MotivationRequest,
    ProgressionRequest,
    WorkoutSummaryRequest,
)
from .responses import CacheClearResponse, HealthCheckResponse

__all__ = [
    "CacheClearResponse",
    "CoachingRequest",
    "ExplanationRequest",
    "FormGuideRequest",
    "HealthCheckResponse",
    "MotivationRequest",
    "ProgressionRequest",
    "WorkoutSummaryRequest",
]
