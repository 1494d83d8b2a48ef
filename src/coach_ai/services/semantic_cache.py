"""Near-duplicate query cache.

Free-text coaching questions rarely repeat exactly, so this cache matches on
token-set Jaccard similarity instead of exact keys. It is deliberately kept
separate from the exact-match ResponseCache.
"""

import logging
import time
from collections import deque
from typing import Callable

from coach_ai.config import settings
from coach_ai.entities import SemanticCacheEntry, SemanticMatch
from coach_ai.utils import tokenize

logger = logging.getLogger(__name__)


def jaccard(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    """Jaccard similarity of two token sets (0.0 when both are empty)."""
    if not a and not b:
        return 0.0
    return len(a & b) / len(a | b)


class SemanticCache:
    """FIFO-bounded cache of (query, answer) pairs matched by similarity."""

    def __init__(
        self,
        threshold: float | None = None,
        max_entries: int | None = None,
        default_ttl: float = 2 * 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            threshold: Minimum Jaccard similarity for a hit. Defaults to settings.
            max_entries: Capacity; the oldest entry is dropped when full.
            default_ttl: Lifetime of stored answers in seconds.
            clock: Returns the current POSIX time in seconds.
        """
        self._threshold = threshold if threshold is not None else settings.semantic_cache_threshold
        capacity = max_entries if max_entries is not None else settings.semantic_cache_max_entries
        self._entries: deque[SemanticCacheEntry] = deque(maxlen=capacity)
        self._default_ttl = default_ttl
        self._clock = clock

    @property
    def threshold(self) -> float:
        return self._threshold

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def tokenize(text: str) -> frozenset[str]:
        return frozenset(tokenize(text))

    def similarity(self, a: str, b: str) -> float:
        return jaccard(self.tokenize(a), self.tokenize(b))

    def find(self, query: str, threshold: float | None = None) -> SemanticMatch | None:
        """Find the most similar non-expired query.

        Args:
            query: The incoming question
            threshold: Override the default similarity threshold

        Returns:
            The best match at or above the threshold, or None
        """
        threshold = self._threshold if threshold is None else threshold
        tokens = self.tokenize(query)
        if not tokens:
            return None

        now = self._clock()
        best: SemanticMatch | None = None
        for entry in self._entries:
            if entry.is_expired(now):
                continue
            score = jaccard(tokens, entry.token_set)
            if score >= threshold and (best is None or score > best.similarity):
                best = SemanticMatch(
                    query_text=entry.query_text,
                    response=entry.response,
                    similarity=score,
                    cached_at=entry.created_at,
                )
        if best is not None:
            logger.debug("Semantic hit (%.2f) for %r", best.similarity, query)
        return best

    def store(self, query: str, response: str, ttl: float | None = None) -> None:
        self._entries.append(
            SemanticCacheEntry(
                query_text=query,
                token_set=self.tokenize(query),
                response=response,
                created_at=self._clock(),
                ttl=self._default_ttl if ttl is None else ttl,
            )
        )

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count
