from __future__ import annotations

import os
import tempfile
from pathlib import Path

from smarttodo.errors import PersistenceError

from .interface import KeyValueAdapter


class FileAdapter(KeyValueAdapter):
    """One `<key>.json` file per record inside `data_dir`.

    Writes go through a temp file and os.replace so a crash never leaves a
    half-written record behind.
    """

    def __init__(self, data_dir: str | Path = ".smarttodo", **kwargs: str) -> None:
        super().__init__(**kwargs)
        self._dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def _get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"failed to read {path}: {exc}") from exc

    def _set_many(self, items: dict[str, str]) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            for key, value in items.items():
                self._write_atomic(self.path_for(key), value)
        except OSError as exc:
            raise PersistenceError(f"failed to write {self._dir}: {exc}") from exc

    @staticmethod
    def _write_atomic(path: Path, value: str) -> None:
        fd, tmp = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


__all__ = ["FileAdapter"]
