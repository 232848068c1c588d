from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, computed_field

DEFAULT_DURATION_MS = 3000


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


ICONS: dict[NotificationLevel, str] = {
    NotificationLevel.SUCCESS: "✅",
    NotificationLevel.WARNING: "⚠️",
    NotificationLevel.ERROR: "❌",
    NotificationLevel.INFO: "ℹ️",
}


class Notification(BaseModel):
    """User feedback emitted alongside an operation result.

    Display (toast, status line, ...) is left to the presentation layer.
    """

    level: NotificationLevel = NotificationLevel.INFO
    message: str
    duration_ms: int = DEFAULT_DURATION_MS

    @computed_field  # type: ignore[prop-decorator]
    @property
    def icon(self) -> str:
        return ICONS[self.level]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def success(message: str) -> Notification:
    return Notification(level=NotificationLevel.SUCCESS, message=message)


def info(message: str) -> Notification:
    return Notification(level=NotificationLevel.INFO, message=message)


def warning(message: str) -> Notification:
    return Notification(level=NotificationLevel.WARNING, message=message)


def error(message: str) -> Notification:
    return Notification(level=NotificationLevel.ERROR, message=message)


__all__ = [
    "Notification",
    "NotificationLevel",
    "ICONS",
    "success",
    "info",
    "warning",
    "error",
]
