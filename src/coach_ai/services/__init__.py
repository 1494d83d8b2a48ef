"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
making them testable with in-memory fakes.

Architecture:
    Handler -> CoachService -> (ModelClient, caches, agent, fallbacks) -> Repository
    (HTTP)  -> (Facade)     -> (Business)                             -> (Data Access)

Usage:
    ```python
    from coach_ai.services import CoachService

    # Using factory method (recommended)
    service = CoachService.create()

    # Or with explicit collaborators
    service = CoachService.create(store=MemoryKeyValueStore(), provider=my_provider)
    ```
"""

from .agent import CoachingAgent, classify_intent, create_plan
from .agent_tools import AgentTools
from .coach_service import CoachService, default_store
from .context_assembler import ContextAssembler
from .fallbacks import FallbackGenerator
from .model_client import ModelClient
from .policy import decide
from .prompts import PROMPT_TEMPLATES, compile_prompt
from .response_cache import ResponseCache, generate_key
from .semantic_cache import SemanticCache
from .usage_tracker import UsageTracker

__all__ = [
    "AgentTools",
    "CoachService",
    "CoachingAgent",
    "ContextAssembler",
    "FallbackGenerator",
    "ModelClient",
    "PROMPT_TEMPLATES",
    "ResponseCache",
    "SemanticCache",
    "UsageTracker",
    "classify_intent",
    "compile_prompt",
    "create_plan",
    "decide",
    "default_store",
    "generate_key",
]
