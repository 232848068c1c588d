from __future__ import annotations

import datetime as dt

import pytest

from smarttodo.store import TaskStore
from smarttodo.views import char_counter_level, list_view, task_view_model, time_ago
from tests.helpers.clock import FakeClock

NOW = dt.datetime(2024, 3, 10, 12, 0, tzinfo=dt.UTC)


@pytest.mark.parametrize(
    "delta,expected",
    [
        (dt.timedelta(seconds=30), "Just now"),
        (dt.timedelta(minutes=1), "1 minute ago"),
        (dt.timedelta(minutes=59), "59 minutes ago"),
        (dt.timedelta(hours=1), "1 hour ago"),
        (dt.timedelta(hours=23, minutes=59), "23 hours ago"),
        (dt.timedelta(days=2), "2 days ago"),
        (dt.timedelta(days=8), "2024-03-02"),
        (dt.timedelta(minutes=-5), "Just now"),
    ],
)
def test_time_ago(delta: dt.timedelta, expected: str) -> None:
    assert time_ago(NOW - delta, NOW) == expected


def test_task_view_model_labels(store: TaskStore, clock: FakeClock) -> None:
    task = store.add("Review PR", "high")
    clock.advance(hours=2)
    store.edit(task.id, "Review the PR")
    clock.advance(minutes=10)
    store.toggle_complete(task.id)

    vm = task_view_model(task, clock.now + dt.timedelta(minutes=3))
    assert vm.priority_label == "HIGH"
    assert vm.created_label == "Created 2 hours ago"
    assert vm.edited_label == "Edited 13 minutes ago"
    assert vm.completed_label == "Completed 3 minutes ago"
    assert vm.toggle_title == "Mark as active"


def test_task_view_model_for_fresh_task(store: TaskStore, clock: FakeClock) -> None:
    vm = task_view_model(store.add("New"), clock.now)
    assert vm.edited_label is None
    assert vm.completed_label is None
    assert vm.toggle_title == "Complete task"
    assert vm.as_dict()["text"] == "New"


def test_list_view_follows_current_filter(store: TaskStore, clock: FakeClock) -> None:
    store.add("open")
    done = store.add("done")
    store.toggle_complete(done.id)
    store.set_filter("active")

    view = list_view(store, clock.now)
    assert view["filter"] == "active"
    assert [item["text"] for item in view["items"]] == ["open"]
    assert view["empty"] is False
    assert view["show_clear_completed"] is True
    assert view["stats"] == {"total": 2, "active": 1, "completed": 1}

    store.set_filter("high-priority")
    assert list_view(store, clock.now)["empty"] is True


@pytest.mark.parametrize(
    "length,level",
    [(0, "normal"), (150, "normal"), (151, "caution"), (180, "caution"), (181, "limit")],
)
def test_char_counter_level(length: int, level: str) -> None:
    assert char_counter_level(length) == level
