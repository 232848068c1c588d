from __future__ import annotations

import datetime as _dt
from dataclasses import asdict, dataclass
from typing import Any

from smarttodo.models.task import FilterKind, Task, utc_now
from smarttodo.store import TaskStore

CAUTION_LENGTH = 150
LIMIT_LENGTH = 180


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'s' if n > 1 else ''} ago"


def time_ago(ts: _dt.datetime, now: _dt.datetime | None = None) -> str:
    """Human-readable age of a timestamp; falls back to the date after a week."""
    now = now or utc_now()
    minutes = int((now - ts).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hour")
    days = hours // 24
    if days < 7:
        return _plural(days, "day")
    return ts.date().isoformat()


@dataclass(slots=True)
class TaskViewModel:
    id: int
    text: str
    completed: bool
    priority: str
    priority_label: str
    created_label: str
    edited_label: str | None
    completed_label: str | None
    toggle_title: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def task_view_model(task: Task, now: _dt.datetime | None = None) -> TaskViewModel:
    now = now or utc_now()
    return TaskViewModel(
        id=task.id,
        text=task.text,
        completed=task.completed,
        priority=task.priority.value,
        priority_label=task.priority.value.upper(),
        created_label=f"Created {time_ago(task.created_at, now)}",
        edited_label=f"Edited {time_ago(task.edited_at, now)}" if task.edited_at else None,
        completed_label=(
            f"Completed {time_ago(task.completed_at, now)}" if task.completed_at else None
        ),
        toggle_title="Mark as active" if task.completed else "Complete task",
    )


def list_view(
    store: TaskStore, now: _dt.datetime | None = None, kind: FilterKind | str | None = None
) -> dict[str, Any]:
    """Everything a renderer needs for one frame of the task list.

    `kind` shows a one-off filter without changing the saved one.
    """
    now = now or utc_now()
    view = store.filter(kind)
    items = [task_view_model(t, now).as_dict() for t in view]
    return {
        "filter": view.kind.value,
        "items": items,
        "empty": not items,
        "show_clear_completed": store.has_completed(),
        "stats": store.stats().as_dict(),
    }


def char_counter_level(length: int) -> str:
    if length > LIMIT_LENGTH:
        return "limit"
    if length > CAUTION_LENGTH:
        return "caution"
    return "normal"


__all__ = ["time_ago", "TaskViewModel", "task_view_model", "list_view", "char_counter_level"]
