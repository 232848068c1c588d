from __future__ import annotations

import datetime as _dt
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_TEXT_LENGTH = 200
EXPORT_VERSION = "1.0"


def utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.UTC)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FilterKind(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    HIGH_PRIORITY = "high-priority"

    @classmethod
    def _missing_(cls, value: object) -> FilterKind | None:
        if not isinstance(value, str):
            return None
        name = value.strip().lower().replace("_", "-")
        if name == "high":  # value written by older settings records
            return cls.HIGH_PRIORITY
        for member in cls:
            if member.value == name:
                return member
        return None


class _WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Task(_WireModel):
    """A single to-do item.

    - Extra fields are kept as-is so imported and persisted data round-trips
    - Naive timestamps are read as UTC
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: int = Field(gt=0)
    text: str
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    created_at: _dt.datetime = Field(default_factory=utc_now)
    completed_at: _dt.datetime | None = None
    edited_at: _dt.datetime | None = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("text must be non-empty")
        if len(value) > MAX_TEXT_LENGTH:
            raise ValueError(f"text must be at most {MAX_TEXT_LENGTH} characters")
        return value

    @field_validator("created_at", "completed_at", "edited_at")
    @classmethod
    def _assume_utc(cls, value: _dt.datetime | None) -> _dt.datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=_dt.UTC)
        return value


class Settings(_WireModel):
    filter: FilterKind = FilterKind.ALL
    id_counter: int = Field(default=1, ge=1)

    @classmethod
    def from_raw(cls, raw: Any) -> Settings:
        """Best-effort parse of a persisted settings record; bad values fall back to defaults."""
        if not isinstance(raw, dict):
            return cls()
        try:
            kind = FilterKind(raw.get("filter") or FilterKind.ALL)
        except ValueError:
            kind = FilterKind.ALL
        counter_raw = raw.get("idCounter", raw.get("taskIdCounter"))
        try:
            counter = max(1, int(counter_raw)) if counter_raw is not None else 1
        except (TypeError, ValueError, OverflowError):
            counter = 1
        return cls(filter=kind, id_counter=counter)


class ExportEnvelope(_WireModel):
    tasks: list[Task]
    export_date: _dt.datetime = Field(default_factory=utc_now)
    version: str = EXPORT_VERSION


__all__ = [
    "MAX_TEXT_LENGTH",
    "EXPORT_VERSION",
    "Priority",
    "FilterKind",
    "Task",
    "Settings",
    "ExportEnvelope",
    "utc_now",
]
