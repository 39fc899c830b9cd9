"""
Two-level cache: a volatile in-process map in front of a durable key/value store.

Entries carry an absolute expiry. Reads check the volatile tier first, then the
durable tier (promoting hits), and purge anything found expired. Durable writes
are best-effort; the volatile tier always receives the value.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, MutableMapping

from glowlogy.application.exceptions import CacheCorruptionError
from glowlogy.application.ports.key_value_store import KeyValueStorePort
from glowlogy.domain.entities.cache_entry import CacheEntry


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheHit:
    payload: Any
    source: str  # "memory" | "storage"


class TieredCache:
    def __init__(
        self,
        durable: KeyValueStorePort,
        ttls: Mapping[str, float],
        key_prefix: str = "glowlogy_",
        clock: Callable[[], float] = time.time,
        volatile: MutableMapping[str, CacheEntry] | None = None,
    ) -> None:
        self._durable = durable
        self._ttls = dict(ttls)
        self._key_prefix = key_prefix
        self._clock = clock
        self._volatile: MutableMapping[str, CacheEntry] = volatile if volatile is not None else {}
        self._generations: dict[str, int] = {}

    def ttl_for(self, namespace: str) -> float | None:
        return self._ttls.get(namespace)

    def storage_key(self, namespace: str) -> str:
        return f"{self._key_prefix}{namespace}"

    def generation(self, namespace: str) -> int:
        """Counter bumped by every invalidate(); capture it before a remote read."""
        return self._generations.get(namespace, 0)

    def get(self, namespace: str) -> Any | None:
        hit = self.lookup(namespace)
        return hit.payload if hit else None

    def lookup(self, namespace: str) -> CacheHit | None:
        if namespace not in self._ttls:
            return None
        now = self._clock()

        entry = self._volatile.get(namespace)
        if entry is not None:
            if not entry.is_expired(now):
                logger.debug("Cache hit", extra={"namespace": namespace, "source": "memory"})
                return CacheHit(payload=entry.payload, source="memory")
            del self._volatile[namespace]

        entry = self._read_durable(namespace)
        if entry is None:
            logger.debug("Cache miss", extra={"namespace": namespace})
            return None
        if entry.is_expired(now):
            self._delete_durable(self.storage_key(namespace))
            logger.debug("Cache miss", extra={"namespace": namespace, "reason": "expired"})
            return None

        # Promotion keeps the durable expiry so a hit never extends the entry's life.
        self._volatile[namespace] = entry
        logger.debug("Cache hit", extra={"namespace": namespace, "source": "storage"})
        return CacheHit(payload=entry.payload, source="storage")

    def set(self, namespace: str, payload: Any, generation: int | None = None) -> bool:
        """
        Store payload in both tiers. Returns False when nothing was cached.

        With generation given, the write is dropped if the namespace was
        invalidated since that generation was read.
        """
        ttl = self._ttls.get(namespace)
        if ttl is None:
            logger.warning("No TTL configured; value not cached", extra={"namespace": namespace})
            return False
        if generation is not None and generation != self.generation(namespace):
            logger.debug("Stale value not cached", extra={"namespace": namespace, "reason": "invalidated"})
            return False

        entry = CacheEntry(namespace=namespace, payload=payload, expires_at=self._clock() + ttl)
        self._volatile[namespace] = entry
        self._write_durable(entry)
        return True

    def invalidate(self, namespace: str) -> None:
        self._generations[namespace] = self.generation(namespace) + 1
        self._volatile.pop(namespace, None)
        self._delete_durable(self.storage_key(namespace))
        logger.debug("Cache invalidated", extra={"namespace": namespace})

    def clear_expired(self) -> int:
        """Purge expired or unreadable durable entries under this cache's prefix."""
        now = self._clock()
        purged = 0
        try:
            keys = self._durable.keys()
        except OSError as e:
            logger.warning("Durable cache unavailable", extra={"error": str(e)})
            return 0

        for key in keys:
            if not key.startswith(self._key_prefix):
                continue
            namespace = key[len(self._key_prefix):]
            try:
                entry = self._decode(namespace, self._read_raw(key))
            except CacheCorruptionError:
                entry = None
            if entry is None or entry.is_expired(now):
                if self._delete_durable(key):
                    purged += 1
        if purged:
            logger.info("Purged expired cache entries", extra={"reason": f"purged={purged}"})
        return purged

    def clear_all(self) -> None:
        self._volatile.clear()
        for namespace in self._ttls:
            self._generations[namespace] = self.generation(namespace) + 1
            self._delete_durable(self.storage_key(namespace))

    def _read_raw(self, key: str) -> str | None:
        try:
            return self._durable.read(key)
        except (OSError, ValueError) as e:
            # ValueError covers undecodable bytes (UnicodeDecodeError).
            raise CacheCorruptionError(f"unreadable durable key {key}") from e

    def _read_durable(self, namespace: str) -> CacheEntry | None:
        key = self.storage_key(namespace)
        try:
            return self._decode(namespace, self._read_raw(key))
        except CacheCorruptionError:
            logger.debug("Corrupt cache entry removed", extra={"namespace": namespace})
            self._delete_durable(key)
            return None

    def _delete_durable(self, key: str) -> bool:
        try:
            self._durable.delete(key)
        except Exception as e:
            logger.warning("Durable cache delete failed", extra={"reason": key, "error": str(e)})
            return False
        return True

    def _write_durable(self, entry: CacheEntry) -> None:
        key = self.storage_key(entry.namespace)
        try:
            raw = json.dumps(entry.to_envelope(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.warning(
                "Payload not serialisable; kept in memory only",
                extra={"namespace": entry.namespace, "error": str(e)},
            )
            return

        try:
            self._durable.write(key, raw)
            return
        except Exception as e:
            logger.info(
                "Durable cache write failed; purging expired entries and retrying",
                extra={"namespace": entry.namespace, "error": str(e)},
            )

        self.clear_expired()
        try:
            self._durable.write(key, raw)
        except Exception as e:
            logger.warning(
                "Durable cache write failed; kept in memory only",
                extra={"namespace": entry.namespace, "error": str(e)},
            )
            # An older durable copy must not outlive the value that replaced it.
            self._delete_durable(key)

    @staticmethod
    def _decode(namespace: str, raw: str | None) -> CacheEntry | None:
        if raw is None:
            return None
        try:
            return CacheEntry.from_envelope(namespace, json.loads(raw))
        except (TypeError, ValueError) as e:
            raise CacheCorruptionError(f"unreadable cache entry for {namespace}") from e
