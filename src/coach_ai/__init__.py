"""Coach AI - Offline-first AI coaching layer for a workout tracker.

Every operation answers locally first and only calls the remote model when
the routing policy allows it, the network is up and the usage budget has
room. Failures never surface as exceptions: they come back as an
``AIResponse`` with a fallback answer.

Layers:
    - protocols: Interface contracts (KeyValueStore, TextProvider, ...)
    - repositories: Storage, remote provider, knowledge and local engine
    - services: Caching, budget, routing, prompts, agent and the facade
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from coach_ai.services import CoachService

    service = CoachService.create()
    service.initialize()
    answer = await service.get_coaching_answer("Should I deload?", profile, history)
    ```

For HTTP API:
    ```python
    from coach_ai.api.app import app
    ```
"""

from coach_ai.config import get_settings, settings
from coach_ai.handlers import CoachHandler
from coach_ai.models import AIResponse, ResponseSource
from coach_ai.protocols import KeyValueStore, KnowledgeSource, SuggestionEngine, TextProvider
from coach_ai.repositories import (
    GeminiTextProvider,
    HeuristicSuggestionEngine,
    InMemoryKnowledgeStore,
    JsonFileStore,
    MemoryKeyValueStore,
    RedisKeyValueStore,
)
from coach_ai.services import CoachService

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    # Envelope
    "AIResponse",
    "ResponseSource",
    # Protocols (interfaces)
    "KeyValueStore",
    "KnowledgeSource",
    "SuggestionEngine",
    "TextProvider",
    # Services (business logic)
    "CoachService",
    # Handlers (HTTP)
    "CoachHandler",
    # Repositories (data access)
    "GeminiTextProvider",
    "HeuristicSuggestionEngine",
    "InMemoryKnowledgeStore",
    "JsonFileStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
]
