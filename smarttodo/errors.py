from __future__ import annotations


class TodoError(Exception):
    """Base class for failures the task store reports to its callers.

    `code` is a stable, JSON-safe identifier; `message` is user-facing text.
    """

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TodoError):
    code = "validation"

    def __init__(self, message: str, *, reason: str = "invalid") -> None:
        super().__init__(message)
        self.reason = reason


class DuplicateError(TodoError):
    code = "duplicate"


class NotFoundError(TodoError):
    code = "not_found"

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class ImportFormatError(TodoError):
    code = "import_format"


class PersistenceError(TodoError):
    code = "persistence"


class EmptyExportError(TodoError):
    code = "empty_export"


__all__ = [
    "TodoError",
    "ValidationError",
    "DuplicateError",
    "NotFoundError",
    "ImportFormatError",
    "PersistenceError",
    "EmptyExportError",
]
