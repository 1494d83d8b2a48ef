"""Knowledge retrieval protocol."""

from typing import Any, Protocol, runtime_checkable

from coach_ai.entities import KnowledgeSnippet


@runtime_checkable
class KnowledgeSource(Protocol):
    """Searchable store of fitness knowledge."""

    async def search(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
        top_k: int = 3,
    ) -> list[KnowledgeSnippet]:
        """Find the snippets most relevant to a query.

        Args:
            query: Free-text query
            filters: Optional field filters (e.g. ``{"category": "recovery"}``)
            top_k: Maximum number of snippets

        Returns:
            Snippets ordered by descending score
        """
        ...
