from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Protocol

from smarttodo.errors import PersistenceError

TASKS_KEY = "smartTodoTasks"
SETTINGS_KEY = "smartTodoSettings"


@dataclass(slots=True)
class Snapshot:
    tasks: list[dict[str, Any]] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)


class PersistenceAdapter(Protocol):
    """Storage the task store reads on startup and writes after every mutation.

    Both methods raise PersistenceError on failure; callers decide whether that is fatal.
    """

    def load(self) -> Snapshot:
        """Return the persisted tasks and settings (empty when nothing is saved)."""

    def save(self, tasks: list[dict[str, Any]], meta: dict[str, Any]) -> None:
        """Replace the persisted tasks and settings."""


class KeyValueAdapter:
    """Two JSON records under fixed keys, like browser localStorage.

    Subclasses provide raw string get/set; decoding and shape checks live here.
    """

    def __init__(self, *, tasks_key: str = TASKS_KEY, settings_key: str = SETTINGS_KEY) -> None:
        self._tasks_key = tasks_key
        self._settings_key = settings_key

    def _get(self, key: str) -> str | None:  # pragma: no cover - interface only
        raise NotImplementedError

    def _set_many(self, items: dict[str, str]) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def load(self) -> Snapshot:
        raw_tasks = self._get(self._tasks_key)
        raw_settings = self._get(self._settings_key)
        tasks = _decode(self._tasks_key, raw_tasks, list) if raw_tasks is not None else []
        meta = _decode(self._settings_key, raw_settings, dict) if raw_settings is not None else {}
        return Snapshot(tasks=tasks, meta=meta)

    def save(self, tasks: list[dict[str, Any]], meta: dict[str, Any]) -> None:
        try:
            items = {
                self._tasks_key: json.dumps(tasks, ensure_ascii=False),
                self._settings_key: json.dumps(meta, ensure_ascii=False),
            }
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"failed to encode tasks: {exc}") from exc
        self._set_many(items)


def _decode(key: str, raw: str, expected: type) -> Any:
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise PersistenceError(f"corrupt record {key}: {exc}") from exc
    if not isinstance(value, expected):
        raise PersistenceError(f"corrupt record {key}: expected {expected.__name__}")
    return value


__all__ = ["PersistenceAdapter", "KeyValueAdapter", "Snapshot", "TASKS_KEY", "SETTINGS_KEY"]
