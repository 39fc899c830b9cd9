"""
Tests for in-flight de-duplication and id batching.
"""

from __future__ import annotations

import asyncio

import pytest

from glowlogy.application.services.request_coordinator import RequestCoordinator


def test_concurrent_dedupe_shares_one_fetch():
    calls = []

    async def fetch():
        calls.append(1)
        await asyncio.sleep(0.01)
        return ["result"]

    async def scenario():
        coordinator = RequestCoordinator()
        results = await asyncio.gather(*(coordinator.dedupe("services", fetch) for _ in range(5)))
        return coordinator, results

    coordinator, results = asyncio.run(scenario())

    assert len(calls) == 1
    assert results == [["result"]] * 5
    assert not coordinator.in_flight("services")


def test_dedupe_key_released_after_completion():
    calls = []

    async def fetch():
        calls.append(1)
        return len(calls)

    async def scenario():
        coordinator = RequestCoordinator()
        first = await coordinator.dedupe("k", fetch)
        second = await coordinator.dedupe("k", fetch)
        return first, second

    assert asyncio.run(scenario()) == (1, 2)


def test_dedupe_failure_reaches_every_caller_and_releases_key():
    async def fetch():
        await asyncio.sleep(0.01)
        raise ConnectionError("offline")

    async def scenario():
        coordinator = RequestCoordinator()
        results = await asyncio.gather(
            coordinator.dedupe("k", fetch),
            coordinator.dedupe("k", fetch),
            return_exceptions=True,
        )
        return coordinator, results

    coordinator, results = asyncio.run(scenario())

    assert all(isinstance(r, ConnectionError) for r in results)
    assert not coordinator.in_flight("k")


def test_different_keys_fetch_independently():
    calls = []

    async def fetch_for(key):
        async def fetch():
            calls.append(key)
            return key
        return fetch

    async def scenario():
        coordinator = RequestCoordinator()
        return await asyncio.gather(
            coordinator.dedupe("a", await fetch_for("a")),
            coordinator.dedupe("b", await fetch_for("b")),
        )

    assert asyncio.run(scenario()) == ["a", "b"]
    assert sorted(calls) == ["a", "b"]


def test_batch_merges_ids_and_filters_per_caller():
    fetched = []

    async def fetch(ids):
        fetched.append(list(ids))
        return [{"id": item_id, "name": item_id.upper()} for item_id in ids]

    async def scenario():
        coordinator = RequestCoordinator(batch_delay=0.01)
        first = asyncio.ensure_future(coordinator.batch("services", ["a", "b"], fetch))
        second = asyncio.ensure_future(coordinator.batch("services", ["b", "c"], fetch))
        await asyncio.sleep(0)
        pending = coordinator.pending_batch_ids("services")
        return pending, await first, await second

    pending, first, second = asyncio.run(scenario())

    assert pending == ["a", "b", "c"]
    assert fetched == [["a", "b", "c"]]
    assert [item["id"] for item in first] == ["a", "b"]
    assert [item["id"] for item in second] == ["b", "c"]


def test_batches_for_different_collections_are_separate():
    fetched = []

    async def fetch(ids):
        fetched.append(list(ids))
        return [{"id": item_id} for item_id in ids]

    async def scenario():
        coordinator = RequestCoordinator(batch_delay=0.01)
        return await asyncio.gather(
            coordinator.batch("services", ["a"], fetch),
            coordinator.batch("locations", ["a"], fetch),
        )

    asyncio.run(scenario())
    assert fetched == [["a"], ["a"]]


def test_batch_failure_rejects_all_callers():
    async def fetch(ids):
        raise ConnectionError("offline")

    async def scenario():
        coordinator = RequestCoordinator(batch_delay=0.01)
        return await asyncio.gather(
            coordinator.batch("services", ["a"], fetch),
            coordinator.batch("services", ["b"], fetch),
            return_exceptions=True,
        )

    results = asyncio.run(scenario())
    assert all(isinstance(r, ConnectionError) for r in results)


def test_new_batch_opens_after_flush():
    fetched = []

    async def fetch(ids):
        fetched.append(list(ids))
        return [{"id": item_id} for item_id in ids]

    async def scenario():
        coordinator = RequestCoordinator(batch_delay=0.01)
        await coordinator.batch("services", ["a"], fetch)
        await coordinator.batch("services", ["b"], fetch)
        return coordinator

    coordinator = asyncio.run(scenario())
    assert fetched == [["a"], ["b"]]
    assert coordinator.pending_batch_ids("services") == []


def test_batch_uses_custom_id_extractor():
    async def fetch(ids):
        return [("a", 1), ("b", 2)]

    async def scenario():
        coordinator = RequestCoordinator(batch_delay=0)
        return await coordinator.batch("pairs", ["b"], fetch, id_of=lambda item: item[0])

    assert asyncio.run(scenario()) == [("b", 2)]


@pytest.mark.parametrize("delay", [0, 0.005])
def test_batch_returns_empty_for_unknown_ids(delay):
    async def fetch(ids):
        return []

    async def scenario():
        coordinator = RequestCoordinator(batch_delay=delay)
        return await coordinator.batch("services", ["missing"], fetch)

    assert asyncio.run(scenario()) == []
