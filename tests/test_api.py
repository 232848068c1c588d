from __future__ import annotations

import json
from pathlib import Path

import pytest

from smarttodo.api import TodoApi
from smarttodo.errors import PersistenceError
from smarttodo.observability import get_metrics
from smarttodo.storage import MemoryAdapter
from smarttodo.store import TaskStore


@pytest.fixture()
def api(store: TaskStore) -> TodoApi:
    return TodoApi(store)


def test_add_returns_task_and_notification(api: TodoApi) -> None:
    res = api.add("Write tests", "high")
    assert res["ok"] is True
    task = res["task"]
    assert task["id"] == 1
    assert task["text"] == "Write tests"
    assert task["priority"] == "high"
    assert task["completed"] is False
    assert isinstance(task["createdAt"], str)
    assert res["notification"]["level"] == "success"
    assert res["notification"]["message"] == "Task added successfully!"
    assert "warning" not in res


@pytest.mark.parametrize(
    "text,code",
    [("", "validation"), ("x" * 201, "validation"), ("write TESTS", "duplicate")],
)
def test_add_failures_are_typed(api: TodoApi, text: str, code: str) -> None:
    api.add("Write tests")
    res = api.add(text)
    assert res["ok"] is False
    assert res["task"] is None
    assert res["error"]["code"] == code
    assert res["notification"]["level"] == "warning"
    assert get_metrics().value("tool_errors", {"tool": "todo.add", "code": code}) == 1


def test_unknown_ids_report_not_found(api: TodoApi) -> None:
    for res in (api.toggle_complete(3), api.edit(3, "x"), api.delete(3)):
        assert res["ok"] is False
        assert res["error"]["code"] == "not_found"


def test_delete_confirmation_round_trip(api: TodoApi) -> None:
    tid = api.add("Ship release", "high")["task"]["id"]

    first = api.delete(tid)
    assert first["ok"] is False
    assert first["requires_confirmation"] is True
    assert "high priority" in first["prompt"]
    assert api.stats()["stats"]["total"] == 1

    second = api.delete(tid, confirmed=True)
    assert second["ok"] is True
    assert second["deleted"] is True
    assert api.stats()["stats"]["total"] == 0


def test_toggle_notifications(api: TodoApi) -> None:
    tid = api.add("Toggle me")["task"]["id"]
    done = api.toggle_complete(tid)
    assert done["task"]["completed"] is True
    assert done["task"]["completedAt"] is not None
    assert done["notification"]["message"] == "Task completed!"

    undone = api.toggle_complete(tid)
    assert undone["task"]["completedAt"] is None
    assert undone["notification"]["level"] == "info"


def test_clear_completed_flow(api: TodoApi) -> None:
    nothing = api.clear_completed()
    assert nothing["ok"] is True
    assert nothing["nothing_to_clear"] is True
    assert "requires_confirmation" not in nothing

    for text in ("a", "b"):
        api.toggle_complete(api.add(text)["task"]["id"])
    ask = api.clear_completed()
    assert ask["requires_confirmation"] is True
    assert ask["pending"] == 2
    assert ask["prompt"] == "Are you sure you want to delete 2 completed task(s)?"

    done = api.clear_completed(confirmed=True)
    assert done["removed"] == 2
    assert done["notification"]["message"] == "2 completed task(s) cleared!"


def test_filter_and_listing(api: TodoApi) -> None:
    api.add("low", "low")
    api.add("high", "high")
    assert api.set_filter("high-priority") == {"ok": True, "filter": "high-priority"}
    listed = api.get_filtered()
    assert [t["text"] for t in listed["tasks"]] == ["high"]
    assert api.get_filtered("all")["filter"] == "all"

    bad = api.set_filter("tomorrow")
    assert bad["ok"] is False
    assert bad["error"]["code"] == "validation"


def test_export_and_import(api: TodoApi, tmp_path: Path) -> None:
    empty = api.export_tasks()
    assert empty["ok"] is False
    assert empty["error"]["code"] == "empty_export"

    api.add("exported")
    exported = api.export_tasks()
    assert exported["ok"] is True
    assert exported["envelope"]["version"] == "1.0"
    assert exported["filename"].startswith("smart-todo-tasks-")

    path = tmp_path / "tasks.json"
    path.write_text(json.dumps(exported["envelope"]), encoding="utf-8")
    res = api.import_file(path, "merge")
    assert res["ok"] is True
    assert res["imported"] == 1
    assert res["notification"]["message"] == "Successfully imported 1 task(s)!"
    assert api.stats()["stats"]["total"] == 2


def test_import_failures(api: TodoApi, tmp_path: Path) -> None:
    res = api.import_tasks({"foo": "bar"})
    assert res["ok"] is False
    assert res["imported"] == 0
    assert res["error"]["code"] == "import_format"
    assert res["notification"]["level"] == "error"

    missing = api.import_file(tmp_path / "nope.json")
    assert missing["error"]["message"] == "Failed to read file!"


def test_persistence_warning_attached(
    monkeypatch: pytest.MonkeyPatch, api: TodoApi
) -> None:
    def _boom(self: object, *args: object, **kwargs: object) -> None:
        raise PersistenceError("disk full")

    monkeypatch.setattr(MemoryAdapter, "save", _boom, raising=True)
    res = api.add("still works")
    assert res["ok"] is True
    assert res["warning"]["level"] == "error"
    assert res["warning"]["message"] == "Failed to save tasks!"

    monkeypatch.undo()
    assert "warning" not in api.add("saved now")


def test_load_warning_surfaces_on_first_call() -> None:
    api = TodoApi(TaskStore(MemoryAdapter({"smartTodoTasks": "oops"})))
    first = api.stats()
    assert first["warning"]["message"] == "Failed to load saved tasks!"
    assert "warning" not in api.stats()


def test_list_view_result(api: TodoApi) -> None:
    api.add("visible")
    res = api.list_view()
    assert res["ok"] is True
    assert res["empty"] is False
    assert res["items"][0]["text"] == "visible"
    assert res["show_clear_completed"] is False


def test_tool_calls_counted(api: TodoApi) -> None:
    api.add("one")
    api.stats()
    api.stats()
    metrics = get_metrics()
    assert metrics.value("tool_calls", {"tool": "todo.add"}) == 1
    assert metrics.value("tool_calls", {"tool": "todo.stats"}) == 2


def test_lenient_import_and_unserializable_entries(api: TodoApi) -> None:
    res = api.import_tasks([{"text": "a", "priority": "urgent"}, {"text": "b", "createdAt": ""}])
    assert res["ok"] is True
    assert res["imported"] == 2

    before = api.get_filtered("all")["tasks"]
    bad = api.import_tasks([{"text": "x", "blob": object()}], "replace")
    assert bad["ok"] is False
    assert bad["error"]["code"] == "import_format"
    assert api.get_filtered("all")["tasks"] == before


def test_import_file_is_one_tool_call(api: TodoApi, tmp_path: Path) -> None:
    good = tmp_path / "good.json"
    good.write_text(json.dumps([{"text": "from file"}]), encoding="utf-8")
    assert api.import_file(good)["imported"] == 1
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"tasks": []}), encoding="utf-8")
    assert api.import_file(bad)["ok"] is False

    metrics = get_metrics()
    assert metrics.value("tool_calls", {"tool": "todo.import_file"}) == 2
    assert metrics.value("tool_calls", {"tool": "todo.import"}) == 0
    assert metrics.value("tool_errors", {"tool": "todo.import_file", "code": "import_format"}) == 1


def test_list_view_with_one_off_filter(api: TodoApi) -> None:
    api.add("normal")
    api.add("urgent", "high")
    res = api.list_view(kind="high-priority")
    assert res["filter"] == "high-priority"
    assert [item["text"] for item in res["items"]] == ["urgent"]
    assert api.store.current_filter.value == "all"
