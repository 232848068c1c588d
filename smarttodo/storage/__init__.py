from __future__ import annotations

from .cache import CachingAdapter
from .file_store import FileAdapter
from .interface import SETTINGS_KEY, TASKS_KEY, KeyValueAdapter, PersistenceAdapter, Snapshot
from .memory import MemoryAdapter
from .redis_store import RedisAdapter

__all__ = [
    "CachingAdapter",
    "FileAdapter",
    "KeyValueAdapter",
    "MemoryAdapter",
    "PersistenceAdapter",
    "RedisAdapter",
    "Snapshot",
    "SETTINGS_KEY",
    "TASKS_KEY",
]
