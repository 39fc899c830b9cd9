"""
Tests for durable key/value stores.
"""

from __future__ import annotations

import tempfile

import pytest

from glowlogy.application.ports.key_value_store import StorageQuotaExceededError
from glowlogy.infrastructure.store.file_kv_store import FileKeyValueStore
from glowlogy.infrastructure.store.memory_kv_store import MemoryKeyValueStore


def test_file_store_persistence():
    """Values written by one store instance are visible to the next."""
    with tempfile.TemporaryDirectory() as tmpdir:
        FileKeyValueStore(data_dir=tmpdir).write("glowlogy_services", '{"data": [], "expiry": 1}')

        store = FileKeyValueStore(data_dir=tmpdir)
        assert store.read("glowlogy_services") == '{"data": [], "expiry": 1}'
        assert store.keys() == ["glowlogy_services"]


def test_file_store_keys_round_trip_unsafe_characters():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = FileKeyValueStore(data_dir=tmpdir)
        store.write("a/b c", "x")

        assert store.keys() == ["a/b c"]
        assert store.read("a/b c") == "x"


def test_file_store_delete_and_missing():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = FileKeyValueStore(data_dir=tmpdir)
        store.write("k", "v")
        store.delete("k")
        store.delete("never-written")

        assert store.read("k") is None
        assert store.keys() == []


def test_memory_store_quota():
    store = MemoryKeyValueStore(max_bytes=10)
    store.write("k", "12345")

    with pytest.raises(StorageQuotaExceededError):
        store.write("k2", "123456")

    # Overwriting a key only counts the new value.
    store.write("k", "123456789")
    assert store.read("k") == "123456789"
