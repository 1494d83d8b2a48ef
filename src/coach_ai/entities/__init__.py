"""Domain entities for internal representation.

These are plain dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package, or the
pydantic payloads in ``coach_ai.models``, for that.
"""

from .agent import AgentAction, AgentPlan, AgentResult, AgentStep, QueryIntent
from .cache_entry import CacheEntry, SemanticCacheEntry
from .cache_match import SemanticMatch
from .context import (
    AIContext,
    BiomarkerContext,
    HistoricalContext,
    RecordSummary,
    SessionContext,
    SessionSummary,
    UserContext,
)
from .generation import (
    CompiledPrompt,
    GenerationConfig,
    ModelProfile,
    OrchestrationDecision,
)
from .knowledge import KnowledgeDocument, KnowledgeSnippet
from .usage import Budget, UsageRecord

__all__ = [
    "AIContext",
    "AgentAction",
    "AgentPlan",
    "AgentResult",
    "AgentStep",
    "BiomarkerContext",
    "Budget",
    "CacheEntry",
    "CompiledPrompt",
    "GenerationConfig",
    "HistoricalContext",
    "KnowledgeDocument",
    "KnowledgeSnippet",
    "ModelProfile",
    "OrchestrationDecision",
    "QueryIntent",
    "RecordSummary",
    "SemanticCacheEntry",
    "SemanticMatch",
    "SessionContext",
    "SessionSummary",
    "UsageRecord",
    "UserContext",
]
