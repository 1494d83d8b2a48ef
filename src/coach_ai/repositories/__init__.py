"""Repository layer for data access.

This layer hides external dependencies (file system, Redis, the Gemini API,
the knowledge index) behind the protocols in ``coach_ai.protocols``. The
repositories are protocol-based (structural typing), not inheritance-based.
"""

from coach_ai.protocols import KeyValueStore, KnowledgeSource, SuggestionEngine, TextProvider

from .gemini_provider import GeminiTextProvider
from .heuristic_suggestion_engine import HeuristicSuggestionEngine
from .json_file_store import JsonFileStore
from .knowledge_store import InMemoryKnowledgeStore
from .memory_store import MemoryKeyValueStore
from .redis_store import RedisKeyValueStore

__all__ = [
    "GeminiTextProvider",
    "HeuristicSuggestionEngine",
    "InMemoryKnowledgeStore",
    "JsonFileStore",
    "KeyValueStore",
    "KnowledgeSource",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "SuggestionEngine",
    "TextProvider",
]
