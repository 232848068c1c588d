from __future__ import annotations

import copy
from typing import Any

from .interface import PersistenceAdapter, Snapshot


class CachingAdapter:
    """Memoize the last loaded or saved snapshot of another adapter.

    - load hits the wrapped adapter once, then serves copies of the cache
    - save writes through; the cache is updated only when the write succeeds
    """

    def __init__(self, inner: PersistenceAdapter) -> None:
        self._inner = inner
        self._snapshot: Snapshot | None = None

    @property
    def inner(self) -> PersistenceAdapter:
        return self._inner

    @property
    def cached(self) -> bool:
        return self._snapshot is not None

    def load(self) -> Snapshot:
        if self._snapshot is None:
            self._snapshot = self._inner.load()
        return copy.deepcopy(self._snapshot)

    def save(self, tasks: list[dict[str, Any]], meta: dict[str, Any]) -> None:
        self._inner.save(tasks, meta)
        self._snapshot = Snapshot(tasks=copy.deepcopy(tasks), meta=copy.deepcopy(meta))

    def invalidate(self) -> None:
        self._snapshot = None


__all__ = ["CachingAdapter"]
