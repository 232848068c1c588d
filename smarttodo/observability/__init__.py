from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
from collections.abc import Mapping
from typing import Any

SENSITIVE_KEYS = {"redis_url", "password", "token", "secret", "authorization"}


def _iso_now() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def _redact(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.lower() in SENSITIVE_KEYS:
                redacted[k] = "[REDACTED]"
            else:
                redacted[k] = _redact(v)
        return redacted
    if isinstance(obj, list | tuple):
        return [_redact(v) for v in obj]
    return obj


def _build_base_payload(record: logging.LogRecord) -> dict[str, Any]:
    return {
        "ts": _iso_now(),
        "level": record.levelname.lower(),
        "logger": record.name,
        "msg": record.getMessage(),
    }


def _add_standard_extras(payload: dict[str, Any], record: logging.LogRecord) -> None:
    # Structured fields callers pass via `extra=`
    for attr in ("event", "tool", "task_id", "filter", "mode", "attributes", "metadata"):
        if hasattr(record, attr):
            payload[attr] = getattr(record, attr)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = _build_base_payload(record)
        _add_standard_extras(payload, record)
        for key in ("attributes", "metadata"):
            if isinstance(payload.get(key), dict):
                payload[key] = _redact(payload[key])
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["err_type"] = getattr(exc_type, "__name__", str(exc_type))
            if exc_value is not None:
                payload["err"] = str(exc_value)
            payload["stack"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleLogFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(message)s")

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = _iso_now()[11:19]  # HH:MM:SS
        parts: list[str] = [ts, record.levelname.upper(), record.name]
        event = getattr(record, "event", None)
        if event:
            parts.append(str(event))
        tool = getattr(record, "tool", None)
        if tool:
            parts.append(f"tool={tool}")
        task_id = getattr(record, "task_id", None)
        if task_id is not None:
            parts.append(f"task={task_id}")
        parts.append("-")
        parts.append(record.getMessage())
        return " ".join(parts)


def _choose_formatter() -> logging.Formatter:
    format_pref = (os.getenv("LOG_FORMAT") or "").strip().lower() or "auto"
    if format_pref == "auto":
        try:
            if sys.stderr.isatty():
                return ConsoleLogFormatter()
        except Exception:
            pass
        return JsonLogFormatter()
    if format_pref == "console":
        return ConsoleLogFormatter()
    return JsonLogFormatter()


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    name = (value or "").strip().upper()
    if not name:
        return default
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else default


_default_level: str | None = None


def set_default_log_level(level: str | None) -> None:
    """Level used when LOG_LEVEL is unset; re-applied to loggers already handed out."""
    global _default_level
    _default_level = level
    for name, existing in list(logging.Logger.manager.loggerDict.items()):
        if not isinstance(existing, logging.Logger) or not existing.handlers:
            continue
        if name == "smarttodo" or name.startswith("smarttodo."):
            existing.setLevel(_level_for_logger(name))


def _level_for_logger(logger_name: str) -> int:
    base_level = _parse_level(os.getenv("LOG_LEVEL") or _default_level, logging.INFO)
    overrides = (os.getenv("LOG_MODULE_LEVELS") or "").strip()
    if not overrides:
        return base_level
    for entry in overrides.split(","):
        entry = entry.strip()
        if not entry or "=" not in entry:
            continue
        prefix, lvl = entry.split("=", 1)
        prefix = prefix.strip()
        if not prefix:
            continue
        if logger_name == prefix or logger_name.startswith(prefix + "."):
            return _parse_level(lvl, base_level)
    return base_level


def get_json_logger(name: str = "smarttodo") -> logging.Logger:
    """Return a logger writing one line per record to stderr.

    Handlers are attached once per logger name; the level is read from
    LOG_LEVEL / LOG_MODULE_LEVELS at that moment.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(_choose_formatter())
        logger.addHandler(handler)
        logger.setLevel(_level_for_logger(name))
        logger.propagate = False
    return logger


class Metrics:
    def __init__(self) -> None:
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}

    def increment(
        self,
        name: str,
        labels: Mapping[str, str] | None = None,
        amount: int = 1,
    ) -> None:
        label_items: tuple[tuple[str, str], ...] = tuple(sorted((labels or {}).items()))
        key = (name, label_items)
        self._counters[key] = self._counters.get(key, 0) + amount

    def value(self, name: str, labels: Mapping[str, str] | None = None) -> int:
        label_items = tuple(sorted((labels or {}).items()))
        return self._counters.get((name, label_items), 0)

    def snapshot(self) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for (name, label_items), value in sorted(self._counters.items()):
            out.append(
                {
                    "name": name,
                    "labels": dict(label_items),
                    "value": value,
                }
            )
        return out


# ----------------------------
# Metrics singleton
# ----------------------------

_metrics_singleton: Metrics | None = None


def get_metrics() -> Metrics:
    global _metrics_singleton
    if _metrics_singleton is None:
        _metrics_singleton = Metrics()
    return _metrics_singleton


def reset_metrics() -> None:
    global _metrics_singleton
    _metrics_singleton = Metrics()


__all__ = [
    "ConsoleLogFormatter",
    "JsonLogFormatter",
    "Metrics",
    "get_json_logger",
    "get_metrics",
    "reset_metrics",
    "set_default_log_level",
]
