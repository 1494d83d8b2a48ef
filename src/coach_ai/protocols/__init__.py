"""Protocol interfaces for swappable implementations.

Protocols use structural typing, so any class with matching methods satisfies
them without inheriting from anything. This keeps the services testable with
in-memory fakes and lets storage, provider and retrieval backends be swapped.

Usage:
    ```python
    from coach_ai.protocols import KeyValueStore

    store: KeyValueStore = JsonFileStore(".coach_ai")   # works
    store: KeyValueStore = RedisKeyValueStore(client)   # also works
    ```
"""

from .key_value_store import KeyValueStore
from .knowledge_source import KnowledgeSource
from .suggestion_engine import SuggestionEngine
from .text_provider import TextProvider

__all__ = [
    "KeyValueStore",
    "KnowledgeSource",
    "SuggestionEngine",
    "TextProvider",
]
