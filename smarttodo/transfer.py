"""Export envelope rendering and import payload parsing.

Nothing here touches a store: parsing finishes (or fails) before the store
applies anything, so a bad file never leaves a half-imported collection.
"""

from __future__ import annotations

import datetime as _dt
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from smarttodo.errors import ImportFormatError
from smarttodo.models.task import MAX_TEXT_LENGTH, ExportEnvelope

INVALID_FORMAT = "Invalid file format"
NO_VALID_TASKS = "No valid tasks found in file"


def decode_payload(raw: str | bytes | bytearray) -> Any:
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ImportFormatError(INVALID_FORMAT) from exc


def extract_entries(payload: Any) -> list[Any]:
    """Return the raw task entries of an envelope or a bare list.

    JSON text is decoded first. Anything that is not `{"tasks": [...]}` or a
    list fails with ImportFormatError.
    """
    if isinstance(payload, str | bytes | bytearray):
        payload = decode_payload(payload)
    items = payload.get("tasks") if isinstance(payload, Mapping) else payload
    if not isinstance(items, list | tuple):
        raise ImportFormatError(INVALID_FORMAT)
    return list(items)


def valid_entries(items: list[Any]) -> tuple[list[dict[str, Any]], int]:
    """Keep entries with a usable `text`; return (entries, skipped count).

    Kept entries are shallow copies with `id` removed and `text` trimmed.
    """
    kept: list[dict[str, Any]] = []
    skipped = 0
    for item in items:
        if not isinstance(item, Mapping):
            skipped += 1
            continue
        text = item.get("text")
        if not isinstance(text, str) or not text.strip() or len(text.strip()) > MAX_TEXT_LENGTH:
            skipped += 1
            continue
        entry = {k: v for k, v in item.items() if k != "id"}
        entry["text"] = text.strip()
        kept.append(entry)
    return kept, skipped


def read_payload(path: str | Path) -> Any:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ImportFormatError("Failed to read file!") from exc
    return decode_payload(raw)


def dumps_envelope(envelope: ExportEnvelope) -> str:
    return json.dumps(envelope.to_wire(), indent=2, ensure_ascii=False)


def export_filename(now: _dt.datetime) -> str:
    return f"smart-todo-tasks-{now.strftime('%Y-%m-%dT%H-%M-%S')}.json"


def write_export(envelope: ExportEnvelope, path: str | Path) -> Path:
    target = Path(path)
    if target.is_dir():
        target = target / export_filename(envelope.export_date)
    target.write_text(dumps_envelope(envelope) + "\n", encoding="utf-8")
    return target


__all__ = [
    "decode_payload",
    "extract_entries",
    "valid_entries",
    "read_payload",
    "dumps_envelope",
    "export_filename",
    "write_export",
]
