"""Redis implementation of KeyValueStore.

Documents are stored as JSON strings under a common key prefix.
"""

import json
from typing import Any

import redis

from coach_ai.config import get_redis_client
from coach_ai.exceptions import StorageError


class RedisKeyValueStore:
    """Redis-backed document store.

    This class satisfies the KeyValueStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(self, redis_client: redis.Redis | None = None, prefix: str = "coach_ai:") -> None:
        """Initialize the store.

        Args:
            redis_client: Redis client instance. If None, creates default.
            prefix: Prefix prepended to every key.
        """
        self._client = redis_client or get_redis_client()
        self._prefix = prefix

    @classmethod
    def create(cls, prefix: str = "coach_ai:") -> "RedisKeyValueStore":
        return cls(redis_client=get_redis_client(), prefix=prefix)

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client.get(self._prefix + key)
        except redis.RedisError as e:
            raise StorageError(f"Redis read failed for {key}: {e}") from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt document at {key}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            self._client.set(self._prefix + key, json.dumps(value, default=str))
        except redis.RedisError as e:
            raise StorageError(f"Redis write failed for {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._prefix + key)
        except redis.RedisError as e:
            raise StorageError(f"Redis delete failed for {key}: {e}") from e
