from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from typing import Any

from smarttodo import transfer
from smarttodo.api import TodoApi
from smarttodo.config import build_store, load_config
from smarttodo.models.task import ExportEnvelope, FilterKind, Priority
from smarttodo.observability import set_default_log_level


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _print_result(result: dict[str, Any], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result, ensure_ascii=False))
        return
    for key in ("notification", "warning"):
        note = result.get(key)
        if isinstance(note, dict):
            stream = sys.stdout if note.get("level") in {"success", "info"} else sys.stderr
            stream.write(f"{note.get('icon', '')} {note.get('message', '')}\n")


def _print_list(view: dict[str, Any]) -> None:
    print(f"filter: {view['filter']}")
    if view["empty"]:
        print("  (no tasks)")
    for item in view["items"]:
        mark = "x" if item["completed"] else " "
        meta = [item["created_label"]]
        if item["edited_label"]:
            meta.append(item["edited_label"])
        if item["completed_label"]:
            meta.append(item["completed_label"])
        print(f"  [{mark}] {item['id']:>3} {item['priority_label']:<6} {item['text']}")
        print(f"            {' • '.join(meta)}")
    stats = view["stats"]
    print(f"total {stats['total']} • active {stats['active']} • completed {stats['completed']}")


def _with_confirmation(
    call: Callable[[bool], dict[str, Any]], *, assume_yes: bool
) -> dict[str, Any]:
    """Run `call`; if the store asks for confirmation, prompt and re-invoke."""
    result = call(assume_yes)
    if result.get("requires_confirmation"):
        if not _confirm(str(result.get("prompt", "Are you sure?"))):
            sys.stderr.write("cancelled\n")
            return {"ok": False, "cancelled": True}
        result = call(True)
    return result


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("smarttodo")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
        help="Log level used when LOG_LEVEL is unset",
    )
    parser.add_argument("--json", action="store_true", help="Print raw result dicts")
    parser.add_argument("--storage", choices=["file", "memory", "redis"])
    parser.add_argument("--data-dir")
    sub = parser.add_subparsers(dest="cmd")

    p_add = sub.add_parser("add", help="Add a task")
    p_add.add_argument("text")
    p_add.add_argument("--priority", choices=[p.value for p in Priority], default="medium")

    p_list = sub.add_parser("list", help="List tasks for the saved filter")
    p_list.add_argument(
        "--filter",
        choices=[f.value for f in FilterKind],
        help="Show this filter once without saving it",
    )

    p_done = sub.add_parser("done", help="Toggle a task's completion")
    p_done.add_argument("id", type=int)

    p_edit = sub.add_parser("edit", help="Replace a task's text")
    p_edit.add_argument("id", type=int)
    p_edit.add_argument("text")

    p_rm = sub.add_parser("rm", help="Delete a task")
    p_rm.add_argument("id", type=int)
    p_rm.add_argument("--yes", action="store_true")

    p_clear = sub.add_parser("clear", help="Delete all completed tasks")
    p_clear.add_argument("--yes", action="store_true")

    p_filter = sub.add_parser("filter", help="Set the persisted filter")
    p_filter.add_argument("kind", choices=[f.value for f in FilterKind])

    sub.add_parser("stats", help="Show task counts")

    p_export = sub.add_parser("export", help="Write tasks to a JSON file")
    p_export.add_argument("path", nargs="?", default=".")
    p_export.add_argument("--allow-empty", action="store_true")

    p_import = sub.add_parser("import", help="Read tasks from a JSON file")
    p_import.add_argument("path")
    p_import.add_argument("--mode", choices=["merge", "replace"], default="merge")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    cmd = getattr(args, "cmd", None)
    if not cmd:
        parser.print_help()
        return 0

    set_default_log_level(args.log_level)

    overrides: dict[str, str] = {}
    if args.storage:
        overrides["TODO_STORAGE"] = args.storage
    if args.data_dir:
        overrides["TODO_DATA_DIR"] = args.data_dir
    if cmd == "export" and args.allow_empty:
        overrides["TODO_ALLOW_EMPTY_EXPORT"] = "1"
    config = load_config(overrides)

    with build_store(config) as store:
        api = TodoApi(store)
        if cmd == "add":
            result = api.add(args.text, args.priority)
        elif cmd == "list":
            result = api.list_view(kind=args.filter)
            if result.get("ok") and not args.json:
                _print_list(result)
        elif cmd == "done":
            result = api.toggle_complete(args.id)
        elif cmd == "edit":
            result = api.edit(args.id, args.text)
        elif cmd == "rm":
            result = _with_confirmation(
                lambda ok: api.delete(args.id, confirmed=ok), assume_yes=args.yes
            )
        elif cmd == "clear":
            result = _with_confirmation(
                lambda ok: api.clear_completed(confirmed=ok), assume_yes=args.yes
            )
        elif cmd == "filter":
            result = api.set_filter(args.kind)
        elif cmd == "stats":
            result = api.stats()
            if result.get("ok") and not args.json:
                s = result["stats"]
                print(f"total {s['total']} • active {s['active']} • completed {s['completed']}")
        elif cmd == "export":
            result = api.export_tasks()
            if result.get("ok"):
                try:
                    envelope = ExportEnvelope.model_validate(result["envelope"])
                    target = transfer.write_export(envelope, args.path)
                except OSError as exc:
                    sys.stderr.write(f"error: failed to write export: {exc}\n")
                    return 1
                result["path"] = str(target)
                if not args.json:
                    print(target)
        elif cmd == "import":
            result = api.import_file(args.path, args.mode)
        else:  # pragma: no cover - argparse restricts choices
            parser.print_help()
            return 2

    _print_result(result, as_json=args.json)
    return 0 if result.get("ok") else 1


if __name__ == "__main__":
    raise SystemExit(main())
