"""Knowledge retrieval entities."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class KnowledgeDocument:
    """A fitness knowledge document held by a knowledge source.

    Attributes:
        id: Unique document id
        category: Document kind (``fitness_knowledge``, ``exercise_guide``, ...)
        title: Short human-readable title
        content: Full text
        metadata: Filterable fields such as ``exercise_id`` or ``muscle_group``
    """

    id: str
    category: str
    title: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class KnowledgeSnippet:
    """A scored search hit."""

    document_id: str
    title: str
    content: str
    score: float
