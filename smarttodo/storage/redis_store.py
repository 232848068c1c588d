from __future__ import annotations

import os
from typing import Any, cast

import redis

from smarttodo.errors import PersistenceError

from .interface import KeyValueAdapter


class RedisAdapter(KeyValueAdapter):
    """Redis-backed storage for a single local task list.

    Data structures:
    - String per record: key `{prefix}:{record}` holding the record's JSON
    - Both records are written in one MULTI/EXEC pipeline so tasks and the
      id counter never drift apart
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        key_prefix: str = "smarttodo",
        client: Any | None = None,
        **kwargs: str,
    ) -> None:
        super().__init__(**kwargs)
        if client is not None:
            self._redis = client
        else:
            url = url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
            self._redis = redis.Redis.from_url(url, decode_responses=True)
        self._prefix = key_prefix.rstrip(":")

    def _key(self, record: str) -> str:
        return f"{self._prefix}:{record}"

    def _get(self, key: str) -> str | None:
        try:
            raw = cast(str | bytes | None, self._redis.get(self._key(key)))
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"redis read failed: {e}") from e
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw

    def _set_many(self, items: dict[str, str]) -> None:
        try:
            p = self._redis.pipeline(transaction=True)
            for key, value in items.items():
                p.set(self._key(key), value)
            p.execute()
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"redis write failed: {e}") from e

    def clear(self) -> None:
        try:
            self._redis.delete(self._key(self._tasks_key), self._key(self._settings_key))
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"redis delete failed: {e}") from e


__all__ = ["RedisAdapter"]
