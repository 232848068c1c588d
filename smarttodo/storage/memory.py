from __future__ import annotations

from .interface import KeyValueAdapter


class MemoryAdapter(KeyValueAdapter):
    """Process-local storage; nothing survives the interpreter."""

    def __init__(self, data: dict[str, str] | None = None, **kwargs: str) -> None:
        super().__init__(**kwargs)
        self.data: dict[str, str] = dict(data or {})

    def _get(self, key: str) -> str | None:
        return self.data.get(key)

    def _set_many(self, items: dict[str, str]) -> None:
        self.data.update(items)


__all__ = ["MemoryAdapter"]
