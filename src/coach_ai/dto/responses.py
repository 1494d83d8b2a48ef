"""Response DTOs for API endpoints.

Operation results are returned as ``AIResponse`` envelopes from
``coach_ai.models``; the models here cover the service-level endpoints.
"""

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'degraded'")
    online: bool = Field(..., description="Whether remote calls are allowed")
    remote_available: bool = Field(..., description="Whether a remote provider is configured")
    storage_backend: str = Field(..., description="Configured storage backend")


class CacheClearResponse(BaseModel):
    """Response DTO for clearing the caches."""

    success: bool = Field(..., description="Whether the operation succeeded")
    cleared: dict[str, int] = Field(..., description="Entries removed per cache")
    message: str = Field(..., description="Human-readable status message")
