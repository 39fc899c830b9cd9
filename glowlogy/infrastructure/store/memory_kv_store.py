from __future__ import annotations

from glowlogy.application.ports.key_value_store import KeyValueStorePort, StorageQuotaExceededError


class MemoryKeyValueStore(KeyValueStorePort):
    def __init__(self, max_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._max_bytes = max_bytes

    def read(self, key: str) -> str | None:
        return self._items.get(key)

    def write(self, key: str, value: str) -> None:
        if self._max_bytes is not None:
            used = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
            if used + len(key) + len(value) > self._max_bytes:
                raise StorageQuotaExceededError(f"writing {key} would exceed {self._max_bytes} bytes")
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)
