from __future__ import annotations

import threading
from pathlib import Path
from urllib.parse import quote, unquote

from glowlogy.application.ports.key_value_store import KeyValueStorePort


class FileKeyValueStore(KeyValueStorePort):
    """One file per key under data_dir; survives process restarts."""

    _SUFFIX = ".kv"

    def __init__(self, data_dir: str = "./data/cache") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict

    def _get_lock(self, key: str) -> threading.Lock:
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _get_file_path(self, key: str) -> Path:
        return self._data_dir / f"{quote(key, safe='')}{self._SUFFIX}"

    def read(self, key: str) -> str | None:
        file_path = self._get_file_path(key)
        with self._get_lock(key):
            try:
                return file_path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None

    def write(self, key: str, value: str) -> None:
        """Write atomically through a temp file; OSError (e.g. disk full) propagates."""
        file_path = self._get_file_path(key)
        temp_path = file_path.with_suffix(".tmp")

        with self._get_lock(key):
            try:
                temp_path.write_text(value, encoding="utf-8")
                temp_path.replace(file_path)
            except OSError:
                temp_path.unlink(missing_ok=True)
                raise

    def delete(self, key: str) -> None:
        with self._get_lock(key):
            self._get_file_path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        return [
            unquote(path.name[: -len(self._SUFFIX)])
            for path in sorted(self._data_dir.glob(f"*{self._SUFFIX}"))
        ]
