from __future__ import annotations

import datetime as _dt
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Literal

import pydantic
from pydantic_core import PydanticSerializationError

from smarttodo import transfer
from smarttodo.errors import (
    DuplicateError,
    EmptyExportError,
    ImportFormatError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from smarttodo.models.task import (
    MAX_TEXT_LENGTH,
    ExportEnvelope,
    FilterKind,
    Priority,
    Settings,
    Task,
    utc_now,
)
from smarttodo.observability import get_json_logger, get_metrics
from smarttodo.storage.interface import PersistenceAdapter

Clock = Callable[[], _dt.datetime]
ImportMode = Literal["merge", "replace"]
IMPORT_MODES: tuple[str, ...] = ("merge", "replace")

_TIMESTAMP = pydantic.TypeAdapter(_dt.datetime)


@dataclass(slots=True, frozen=True)
class TaskStats:
    total: int
    active: int
    completed: int

    def as_dict(self) -> dict[str, int]:
        return {"total": self.total, "active": self.active, "completed": self.completed}


@dataclass(slots=True)
class DeleteResult:
    task: Task
    deleted: bool = False
    requires_confirmation: bool = False


@dataclass(slots=True)
class ClearResult:
    removed: int = 0
    pending: int = 0
    requires_confirmation: bool = False
    nothing_to_clear: bool = False


@dataclass(slots=True)
class ImportResult:
    imported: int
    mode: str
    skipped: int = 0


def matches_filter(task: Task, kind: FilterKind) -> bool:
    if kind is FilterKind.ACTIVE:
        return not task.completed
    if kind is FilterKind.COMPLETED:
        return task.completed
    if kind is FilterKind.HIGH_PRIORITY:
        return task.priority is Priority.HIGH
    return True


class TaskView:
    """Filtered, read-only view over a store's tasks.

    Iteration is lazy and restartable: every `iter()` walks the collection as
    it is at that moment, in storage order.
    """

    def __init__(self, source: Callable[[], Sequence[Task]], kind: FilterKind) -> None:
        self._source = source
        self.kind = kind

    def __iter__(self) -> Iterator[Task]:
        for task in tuple(self._source()):
            if matches_filter(task, self.kind):
                yield task

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def ids(self) -> list[int]:
        return [t.id for t in self]


def normalize_text(text: Any, *, empty_message: str = "Please enter a task!") -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(empty_message, reason="required")
    value = text.strip()
    if len(value) > MAX_TEXT_LENGTH:
        raise ValidationError(
            f"Task is too long! Please keep it under {MAX_TEXT_LENGTH} characters.",
            reason="too_long",
        )
    return value


def parse_priority(value: Priority | str) -> Priority:
    try:
        return Priority(value.strip().lower() if isinstance(value, str) else value)
    except ValueError:
        raise ValidationError(f"Unknown priority: {value!r}", reason="priority") from None


def parse_filter(value: FilterKind | str) -> FilterKind:
    try:
        return FilterKind(value)
    except ValueError:
        raise ValidationError(f"Unknown filter: {value!r}", reason="filter") from None


def _lenient_timestamp(value: Any, fallback: _dt.datetime | None) -> _dt.datetime | None:
    if not value:
        return fallback
    try:
        return _TIMESTAMP.validate_python(value)
    except pydantic.ValidationError:
        return fallback


def _import_fields(entry: dict[str, Any], task_id: int, now: _dt.datetime) -> dict[str, Any]:
    """Coerce an imported entry towards a valid Task.

    Unknown priorities become medium and a missing or unreadable `createdAt`
    becomes `now`; other fields are left for model validation.
    """
    data = dict(entry)
    created = data.pop("createdAt", None) or data.pop("created_at", None)
    data.pop("created_at", None)
    data["createdAt"] = _lenient_timestamp(created, now)
    for wire, name in (("completedAt", "completed_at"), ("editedAt", "edited_at")):
        value = data.pop(wire, None) or data.pop(name, None)
        data.pop(name, None)
        data[wire] = _lenient_timestamp(value, None)
    if "priority" in data:
        try:
            data["priority"] = parse_priority(data["priority"])
        except ValidationError:
            data["priority"] = Priority.MEDIUM
    data["id"] = task_id
    return data


class TaskStore:
    """Ordered task collection with id allocation, filter state and persistence.

    - New tasks are prepended; completing a task moves it to the end
    - Every mutation is saved through the adapter; a failed save is logged,
      kept as a pending warning (see `take_warning`) and never raised
    - Destructive operations on high-priority or completed tasks report
      `requires_confirmation` instead of prompting; callers re-invoke with
      `confirmed=True`
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        clock: Clock | None = None,
        allow_empty_export: bool = False,
    ) -> None:
        self._adapter = adapter
        self._clock: Clock = clock or utc_now
        self._allow_empty_export = allow_empty_export
        self._tasks: list[Task] = []
        self._filter = FilterKind.ALL
        self._next_id = 1
        self._warning: PersistenceError | None = None
        self._load()

    # ----------------------------
    # Persistence
    # ----------------------------
    def _load(self) -> None:
        logger = get_json_logger("smarttodo.store")
        try:
            snapshot = self._adapter.load()
        except PersistenceError as e:
            logger.warning(
                "failed to load saved tasks; starting empty",
                extra={"event": "load_failed", "metadata": {"error": str(e)[:200]}},
            )
            get_metrics().increment("persistence_errors", {"op": "load"})
            warning = PersistenceError("Failed to load saved tasks!")
            warning.__cause__ = e
            self._warning = warning
            return

        tasks: list[Task] = []
        seen: set[int] = set()
        for raw in snapshot.tasks:
            try:
                task = Task.model_validate(raw)
            except pydantic.ValidationError as e:
                logger.warning(
                    "skipping invalid saved task",
                    extra={"event": "load_skip", "metadata": {"error": str(e)[:200]}},
                )
                continue
            if task.id in seen:
                logger.warning(
                    "skipping saved task with duplicate id",
                    extra={"event": "load_skip", "task_id": task.id},
                )
                continue
            seen.add(task.id)
            tasks.append(task)

        settings = Settings.from_raw(snapshot.meta)
        self._tasks = tasks
        self._filter = settings.filter
        self._next_id = max(settings.id_counter, max(seen, default=0) + 1)
        logger.debug(
            "task store loaded",
            extra={
                "event": "store_loaded",
                "metadata": {"tasks": len(tasks), "next_id": self._next_id},
            },
        )

    def _settings(self) -> Settings:
        return Settings(filter=self._filter, id_counter=self._next_id)

    def _persist(self) -> bool:
        try:
            try:
                records = [t.to_wire() for t in self._tasks]
            except PydanticSerializationError as exc:
                raise PersistenceError(f"Task data is not serializable: {exc}") from exc
            self._adapter.save(records, self._settings().to_wire())
        except PersistenceError as e:
            get_json_logger("smarttodo.store").error(
                "failed to save tasks",
                extra={"event": "save_failed", "metadata": {"error": str(e)[:200]}},
            )
            get_metrics().increment("persistence_errors", {"op": "save"})
            warning = PersistenceError("Failed to save tasks!")
            warning.__cause__ = e
            self._warning = warning
            return False
        return True

    def take_warning(self) -> PersistenceError | None:
        """Return and clear the pending persistence warning, if any."""
        warning, self._warning = self._warning, None
        return warning

    def close(self) -> bool:
        """Resave everything; called on teardown as a safety net."""
        return self._persist()

    def __enter__(self) -> TaskStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ----------------------------
    # Queries
    # ----------------------------
    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def current_filter(self) -> FilterKind:
        return self._filter

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: int) -> Task:
        return self._find(task_id)[1]

    def filter(self, kind: FilterKind | str | None = None) -> TaskView:
        resolved = self._filter if kind is None else parse_filter(kind)
        return TaskView(lambda: self._tasks, resolved)

    def get_filtered(self) -> list[Task]:
        return list(self.filter())

    def stats(self) -> TaskStats:
        completed = sum(1 for t in self._tasks if t.completed)
        return TaskStats(
            total=len(self._tasks),
            active=len(self._tasks) - completed,
            completed=completed,
        )

    def has_completed(self) -> bool:
        return any(t.completed for t in self._tasks)

    # ----------------------------
    # Mutations
    # ----------------------------
    def add(self, text: str, priority: Priority | str = Priority.MEDIUM) -> Task:
        value = normalize_text(text)
        prio = parse_priority(priority)
        if self._has_active_duplicate(value):
            raise DuplicateError("This task already exists!")
        task = Task(id=self._allocate_id(), text=value, priority=prio, created_at=self._clock())
        self._tasks.insert(0, task)
        self._persist()
        return task

    def delete(self, task_id: int, *, confirmed: bool = False) -> DeleteResult:
        index, task = self._find(task_id)
        if task.priority is Priority.HIGH and not task.completed and not confirmed:
            return DeleteResult(task=task, requires_confirmation=True)
        del self._tasks[index]
        self._persist()
        return DeleteResult(task=task, deleted=True)

    def toggle_complete(self, task_id: int) -> Task:
        index, task = self._find(task_id)
        task.completed = not task.completed
        if task.completed:
            task.completed_at = self._clock()
            self._tasks.append(self._tasks.pop(index))
        else:
            task.completed_at = None
        self._persist()
        return task

    def edit(self, task_id: int, new_text: str) -> Task:
        _, task = self._find(task_id)
        value = normalize_text(new_text, empty_message="Task cannot be empty!")
        if self._has_active_duplicate(value, exclude_id=task.id):
            raise DuplicateError("A task with this text already exists!")
        task.text = value
        task.edited_at = self._clock()
        self._persist()
        return task

    def clear_completed(self, *, confirmed: bool = False) -> ClearResult:
        count = sum(1 for t in self._tasks if t.completed)
        if count == 0:
            return ClearResult(nothing_to_clear=True)
        if not confirmed:
            return ClearResult(pending=count, requires_confirmation=True)
        self._tasks = [t for t in self._tasks if not t.completed]
        self._persist()
        return ClearResult(removed=count)

    def set_filter(self, kind: FilterKind | str) -> FilterKind:
        self._filter = parse_filter(kind)
        self._persist()
        return self._filter

    # ----------------------------
    # Import / export
    # ----------------------------
    def export_tasks(self) -> ExportEnvelope:
        if not self._tasks and not self._allow_empty_export:
            raise EmptyExportError("No tasks to export!")
        return ExportEnvelope(
            tasks=[t.model_copy(deep=True) for t in self._tasks],
            export_date=self._clock(),
        )

    def import_tasks(self, payload: Any, mode: ImportMode | str = "merge") -> ImportResult:
        """Add (merge) or swap in (replace) the tasks of an export envelope or bare list.

        Every imported task gets a fresh id; `createdAt` is filled in when
        missing or unreadable and unknown priorities import as medium. Nothing
        changes unless at least one entry is valid.
        """
        if mode not in IMPORT_MODES:
            raise ValidationError(f"Unknown import mode: {mode!r}", reason="mode")
        entries, skipped = transfer.valid_entries(transfer.extract_entries(payload))

        now = self._clock()
        next_id = self._next_id
        imported: list[Task] = []
        for entry in entries:
            try:
                task = Task.model_validate(_import_fields(entry, next_id, now))
                task.to_wire()
            except (pydantic.ValidationError, PydanticSerializationError):
                skipped += 1
                continue
            imported.append(task)
            next_id += 1
        if not imported:
            raise ImportFormatError(transfer.NO_VALID_TASKS)

        self._next_id = next_id
        if mode == "replace":
            self._tasks = imported
        else:
            self._tasks = imported + self._tasks
        self._persist()
        get_json_logger("smarttodo.store").info(
            "tasks imported",
            extra={
                "event": "import",
                "mode": mode,
                "metadata": {"imported": len(imported), "skipped": skipped},
            },
        )
        return ImportResult(imported=len(imported), mode=mode, skipped=skipped)

    # ----------------------------
    # Helpers
    # ----------------------------
    def _allocate_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def _find(self, task_id: int) -> tuple[int, Task]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index, task
        raise NotFoundError(task_id)

    def _has_active_duplicate(self, text: str, *, exclude_id: int | None = None) -> bool:
        folded = text.casefold()
        return any(
            not t.completed and t.id != exclude_id and t.text.casefold() == folded
            for t in self._tasks
        )


__all__ = [
    "TaskStore",
    "TaskView",
    "TaskStats",
    "DeleteResult",
    "ClearResult",
    "ImportResult",
    "IMPORT_MODES",
    "matches_filter",
    "normalize_text",
    "parse_priority",
    "parse_filter",
]
