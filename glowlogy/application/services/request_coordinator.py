from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, TypeVar


T = TypeVar("T")

logger = logging.getLogger(__name__)


def default_id_of(item: Any) -> Any:
    if isinstance(item, dict):
        return item.get("id")
    return getattr(item, "id", None)


@dataclass
class _PendingBatch:
    ids: dict[Any, None] = field(default_factory=dict)  # insertion-ordered set
    waiters: list[tuple[frozenset, asyncio.Future]] = field(default_factory=list)


class RequestCoordinator:
    """
    Collapses concurrent reads against the remote store.

    dedupe() shares one in-flight fetch per key; batch() merges by-id lookups
    arriving within a short window into one fetch and fans the results back out.
    No retries happen here: a failed fetch rejects every waiting caller.
    """

    def __init__(self, batch_delay: float = 0.05) -> None:
        self._batch_delay = batch_delay
        self._in_flight: dict[str, asyncio.Task] = {}
        self._batches: dict[str, _PendingBatch] = {}
        self._flushes: set[asyncio.Task] = set()

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def pending_batch_ids(self, collection: str) -> list[Any]:
        batch = self._batches.get(collection)
        return list(batch.ids) if batch else []

    async def dedupe(self, key: str, fetch_fn: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run_exclusive(key, fetch_fn))
            self._in_flight[key] = task
        else:
            logger.debug("Joined in-flight request", extra={"source": key})
        # Shielded so one caller giving up does not cancel the shared fetch.
        return await asyncio.shield(task)

    async def _run_exclusive(self, key: str, fetch_fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await fetch_fn()
        finally:
            self._in_flight.pop(key, None)

    async def batch(
        self,
        collection: str,
        ids: Iterable[Any],
        fetch_fn: Callable[[list[Any]], Awaitable[list[T]]],
        id_of: Callable[[Any], Any] = default_id_of,
    ) -> list[T]:
        requested = list(ids)
        loop = asyncio.get_running_loop()

        batch = self._batches.get(collection)
        if batch is None:
            batch = _PendingBatch()
            self._batches[collection] = batch
            flush = asyncio.ensure_future(self._flush_later(collection, batch, fetch_fn, id_of))
            self._flushes.add(flush)
            flush.add_done_callback(self._flushes.discard)

        for item_id in requested:
            batch.ids[item_id] = None
        future: asyncio.Future = loop.create_future()
        batch.waiters.append((frozenset(requested), future))
        return await future

    async def _flush_later(
        self,
        collection: str,
        batch: _PendingBatch,
        fetch_fn: Callable[[list[Any]], Awaitable[list[T]]],
        id_of: Callable[[Any], Any],
    ) -> None:
        await asyncio.sleep(self._batch_delay)
        if self._batches.get(collection) is batch:
            del self._batches[collection]

        union = list(batch.ids)
        logger.debug(
            "Flushing batch",
            extra={"collection": collection, "reason": f"ids={len(union)} callers={len(batch.waiters)}"},
        )
        try:
            results = list(await fetch_fn(union))
        except Exception as e:
            for _, future in batch.waiters:
                if not future.done():
                    future.set_exception(e)
            return

        for wanted, future in batch.waiters:
            if not future.done():
                future.set_result([item for item in results if id_of(item) in wanted])
