from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from smarttodo.storage import CachingAdapter, FileAdapter, MemoryAdapter, RedisAdapter
from smarttodo.storage.interface import PersistenceAdapter
from smarttodo.store import Clock, TaskStore

STORAGE_KINDS = ("file", "memory", "redis")


@dataclass(slots=True)
class TodoConfig:
    storage: str = "file"
    data_dir: str = ".smarttodo"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "smarttodo"
    cache: bool = False
    allow_empty_export: bool = False


def _flag(value: Any) -> bool:
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def load_config(env: dict[str, str] | None = None) -> TodoConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    storage = (e.get("TODO_STORAGE") or "").strip().lower() or "file"
    if storage not in STORAGE_KINDS:
        storage = "file"
    return TodoConfig(
        storage=storage,
        data_dir=(e.get("TODO_DATA_DIR") or "").strip() or ".smarttodo",
        redis_url=(e.get("REDIS_URL") or "").strip() or "redis://localhost:6379/0",
        key_prefix=(e.get("TODO_STORE_PREFIX") or "").strip() or "smarttodo",
        cache=_flag(e.get("TODO_CACHE")),
        allow_empty_export=_flag(e.get("TODO_ALLOW_EMPTY_EXPORT")),
    )


def build_adapter(config: TodoConfig) -> PersistenceAdapter:
    adapter: PersistenceAdapter
    if config.storage == "memory":
        adapter = MemoryAdapter()
    elif config.storage == "redis":
        adapter = RedisAdapter(url=config.redis_url, key_prefix=config.key_prefix)
    else:
        adapter = FileAdapter(config.data_dir)
    if config.cache:
        adapter = CachingAdapter(adapter)
    return adapter


def build_store(config: TodoConfig | None = None, *, clock: Clock | None = None) -> TaskStore:
    cfg = config or load_config()
    return TaskStore(build_adapter(cfg), clock=clock, allow_empty_export=cfg.allow_empty_export)


__all__ = ["TodoConfig", "load_config", "build_adapter", "build_store", "STORAGE_KINDS"]
