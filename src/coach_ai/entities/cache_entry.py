"""Cache entry domain entities."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """A cached response owned by the response cache.

    Mutable on purpose: ``hit_count`` is bumped on every successful read.

    Attributes:
        key: The cache key (``feature:digest``)
        value: The cached payload (JSON-compatible)
        created_at: POSIX timestamp of insertion
        ttl: Lifetime in seconds
        hit_count: Number of successful reads
    """

    key: str
    value: Any
    created_at: float
    ttl: float
    hit_count: int = 0

    def is_expired(self, now: float) -> bool:
        """An entry is expired strictly after ``created_at + ttl``."""
        return now > self.created_at + self.ttl

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "created_at": self.created_at,
            "ttl": self.ttl,
            "hit_count": self.hit_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        return cls(
            key=data["key"],
            value=data["value"],
            created_at=float(data["created_at"]),
            ttl=float(data["ttl"]),
            hit_count=int(data.get("hit_count", 0)),
        )


@dataclass(frozen=True)
class SemanticCacheEntry:
    """A free-text query and the answer it produced.

    Attributes:
        query_text: The original query
        token_set: Normalized tokens used for Jaccard similarity
        response: The stored answer
        created_at: POSIX timestamp of insertion
        ttl: Lifetime in seconds
    """

    query_text: str
    token_set: frozenset[str]
    response: str
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now > self.created_at + self.ttl
