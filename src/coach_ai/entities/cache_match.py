"""Semantic cache match domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SemanticMatch:
    """Domain entity for a semantic cache lookup result.

    Attributes:
        query_text: The stored query that matched
        response: The cached response
        similarity: Jaccard similarity (0 = disjoint, 1 = identical token sets)
        cached_at: Timestamp when the entry was created (Unix timestamp)
    """

    query_text: str
    response: str
    similarity: float
    cached_at: float
