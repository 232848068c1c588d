from __future__ import annotations

import datetime as _dt
from collections.abc import Callable
from pathlib import Path
from typing import Any

from smarttodo import transfer, views
from smarttodo.errors import TodoError
from smarttodo.models import notification as notify
from smarttodo.models.notification import Notification
from smarttodo.models.task import Task
from smarttodo.observability import get_json_logger, get_metrics
from smarttodo.store import ImportResult, TaskStore

_ERROR_LEVELS: dict[str, Callable[[str], Notification]] = {
    "validation": notify.warning,
    "duplicate": notify.warning,
    "empty_export": notify.warning,
    "not_found": notify.warning,
    "import_format": notify.error,
    "persistence": notify.error,
}


def _serialize_task(task: Task) -> dict[str, Any]:
    return task.to_wire()


def _import_result(res: ImportResult) -> dict[str, Any]:
    return {
        "ok": True,
        "imported": res.imported,
        "skipped": res.skipped,
        "mode": res.mode,
        "notification": notify.success(
            f"Successfully imported {res.imported} task(s)!"
        ).to_wire(),
    }


def _error_result(exc: TodoError, **fields: Any) -> dict[str, Any]:
    make = _ERROR_LEVELS.get(exc.code, notify.error)
    return {
        "ok": False,
        "error": {"code": exc.code, "message": exc.message},
        "notification": make(exc.message).to_wire(),
        **fields,
    }


class TodoApi:
    """Operations surface for a presentation layer.

    Every method returns a JSON-safe dict and never raises a TodoError:
    - success: `ok: True` plus the operation's data and usually a `notification`
    - failure: `ok: False` plus `error: {code, message}` and a `notification`
    - confirmation needed: `ok: False`, `requires_confirmation: True`, `prompt`
    - `warning` is attached whenever the store could not load or save
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    @property
    def store(self) -> TaskStore:
        return self._store

    def _call(
        self,
        tool: str,
        fn: Callable[[], dict[str, Any]],
        *,
        metadata: dict[str, Any] | None = None,
        empty: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger = get_json_logger("smarttodo.api")
        metrics = get_metrics()
        logger.info(
            "tool call",
            extra={"event": "tool_call", "tool": tool, "metadata": dict(metadata or {})},
        )
        metrics.increment("tool_calls", {"tool": tool})
        try:
            result = fn()
        except TodoError as e:
            logger.warning(
                "tool error",
                extra={
                    "event": "tool_error",
                    "tool": tool,
                    "metadata": {"code": e.code, "error": str(e)[:200]},
                },
            )
            metrics.increment("tool_errors", {"tool": tool, "code": e.code})
            result = _error_result(e, **(empty or {}))
        warning = self._store.take_warning()
        if warning is not None:
            result["warning"] = notify.error(warning.message).to_wire()
        return result

    # ----------------------------
    # Task operations
    # ----------------------------
    def add(self, text: str, priority: str = "medium") -> dict[str, Any]:
        def run() -> dict[str, Any]:
            task = self._store.add(text, priority)
            return {
                "ok": True,
                "task": _serialize_task(task),
                "notification": notify.success("Task added successfully!").to_wire(),
            }

        return self._call("todo.add", run, metadata={"priority": priority}, empty={"task": None})

    def delete(self, task_id: int, *, confirmed: bool = False) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            res = self._store.delete(task_id, confirmed=confirmed)
            if res.requires_confirmation:
                return {
                    "ok": False,
                    "requires_confirmation": True,
                    "prompt": "Are you sure you want to delete this high priority task?",
                    "task": _serialize_task(res.task),
                }
            return {
                "ok": True,
                "deleted": True,
                "task": _serialize_task(res.task),
                "notification": notify.info("Task deleted").to_wire(),
            }

        return self._call(
            "todo.delete",
            run,
            metadata={"task_id": task_id, "confirmed": confirmed},
            empty={"deleted": False, "task": None},
        )

    def toggle_complete(self, task_id: int) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            task = self._store.toggle_complete(task_id)
            note = (
                notify.success("Task completed!")
                if task.completed
                else notify.info("Task marked as active")
            )
            return {"ok": True, "task": _serialize_task(task), "notification": note.to_wire()}

        return self._call(
            "todo.toggle", run, metadata={"task_id": task_id}, empty={"task": None}
        )

    def edit(self, task_id: int, new_text: str) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            task = self._store.edit(task_id, new_text)
            return {
                "ok": True,
                "task": _serialize_task(task),
                "notification": notify.success("Task updated successfully!").to_wire(),
            }

        return self._call("todo.edit", run, metadata={"task_id": task_id}, empty={"task": None})

    def clear_completed(self, *, confirmed: bool = False) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            res = self._store.clear_completed(confirmed=confirmed)
            if res.nothing_to_clear:
                return {
                    "ok": True,
                    "removed": 0,
                    "nothing_to_clear": True,
                    "notification": notify.info("No completed tasks to clear!").to_wire(),
                }
            if res.requires_confirmation:
                return {
                    "ok": False,
                    "requires_confirmation": True,
                    "pending": res.pending,
                    "prompt": (
                        f"Are you sure you want to delete {res.pending} completed task(s)?"
                    ),
                }
            return {
                "ok": True,
                "removed": res.removed,
                "notification": notify.success(
                    f"{res.removed} completed task(s) cleared!"
                ).to_wire(),
            }

        return self._call(
            "todo.clear_completed", run, metadata={"confirmed": confirmed}, empty={"removed": 0}
        )

    # ----------------------------
    # Filtering and stats
    # ----------------------------
    def set_filter(self, kind: str) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            return {"ok": True, "filter": self._store.set_filter(kind).value}

        return self._call("todo.set_filter", run, metadata={"filter": kind})

    def get_filtered(self, kind: str | None = None) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            view = self._store.filter(kind)
            return {
                "ok": True,
                "filter": view.kind.value,
                "tasks": [_serialize_task(t) for t in view],
            }

        return self._call("todo.list", run, metadata={"filter": kind}, empty={"tasks": []})

    def stats(self) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            return {"ok": True, "stats": self._store.stats().as_dict()}

        return self._call("todo.stats", run)

    def list_view(
        self, now: _dt.datetime | None = None, kind: str | None = None
    ) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            return {"ok": True, **views.list_view(self._store, now, kind)}

        return self._call("todo.view", run, metadata={"filter": kind})

    # ----------------------------
    # Import / export
    # ----------------------------
    def export_tasks(self) -> dict[str, Any]:
        def run() -> dict[str, Any]:
            envelope = self._store.export_tasks()
            return {
                "ok": True,
                "envelope": envelope.to_wire(),
                "filename": transfer.export_filename(envelope.export_date),
                "notification": notify.success("Tasks exported successfully!").to_wire(),
            }

        return self._call("todo.export", run, empty={"envelope": None})

    def import_tasks(self, payload: Any, mode: str = "merge") -> dict[str, Any]:
        def run() -> dict[str, Any]:
            return _import_result(self._store.import_tasks(payload, mode))

        return self._call("todo.import", run, metadata={"mode": mode}, empty={"imported": 0})

    def import_file(self, path: str | Path, mode: str = "merge") -> dict[str, Any]:
        """Read a JSON file, then import it; a read failure leaves the store untouched."""

        def run() -> dict[str, Any]:
            payload = transfer.read_payload(path)
            return _import_result(self._store.import_tasks(payload, mode))

        return self._call(
            "todo.import_file",
            run,
            metadata={"path": str(path), "mode": mode},
            empty={"imported": 0},
        )


__all__ = ["TodoApi"]
