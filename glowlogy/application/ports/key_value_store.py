from abc import ABC, abstractmethod


class StorageQuotaExceededError(RuntimeError):
    """Raised by a key/value store that has no room left for a write."""
    pass


class KeyValueStorePort(ABC):
    @abstractmethod
    def read(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def keys(self) -> list[str]:
        raise NotImplementedError
