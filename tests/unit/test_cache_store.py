"""Unit tests for the digest cache stores."""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest

from repodigest.cache.store import (
    CacheMetadata,
    FileSystemCacheStore,
    MemoryCacheStore,
    content_filename,
    human_size,
)
from repodigest.exceptions import CacheError
from conftest import FrozenClock

URL = "https://github.com/example/demo.git"
METADATA = CacheMetadata(included_count=3, skipped_count=1, total_size=120, duration_ms=42)


@pytest.fixture
def fs_store(tmp_path: Path, clock: FrozenClock) -> FileSystemCacheStore:
    return FileSystemCacheStore(tmp_path / "cache", clock=clock)


class TestFileSystemCacheStore:
    """Tests for FileSystemCacheStore."""

    def test_miss_on_empty(self, fs_store: FileSystemCacheStore) -> None:
        assert fs_store.get(URL) is None
        assert fs_store.list_entries() == []

    def test_put_then_get(self, fs_store: FileSystemCacheStore, clock: FrozenClock) -> None:
        fs_store.put(URL, "digest text", METADATA)

        entry = fs_store.get(URL)

        assert entry is not None
        assert entry.content == "digest text"
        assert entry.key == "https://github.com/example/demo"
        assert entry.timestamp == clock.now
        assert entry.included_count == 3
        assert entry.size == len("digest text")

    def test_layout_on_disk(self, fs_store: FileSystemCacheStore) -> None:
        fs_store.put(URL, "body", METADATA)

        index = json.loads(fs_store.index_path.read_text())
        record = index["https://github.com/example/demo"]
        assert record["filename"].startswith("example-demo-")
        assert (fs_store.extractions_dir / record["filename"]).read_text() == "body"

    def test_equivalent_locators_share_entry(self, fs_store: FileSystemCacheStore) -> None:
        fs_store.put("git@github.com:Example/Demo.git", "shared", METADATA)
        entry = fs_store.get("https://github.com/example/demo/")
        assert entry is not None
        assert entry.content == "shared"

    def test_expired_entry_is_miss_but_kept(self, fs_store: FileSystemCacheStore, clock: FrozenClock) -> None:
        fs_store.put(URL, "old", METADATA)

        clock.advance(hours=24)
        assert fs_store.get(URL) is not None

        clock.advance(seconds=1)
        assert fs_store.get(URL) is None
        listing = fs_store.list_entries()
        assert len(listing) == 1
        assert listing[0].expired is True

        fs_store.put(URL, "new", METADATA)
        entry = fs_store.get(URL)
        assert entry is not None
        assert entry.content == "new"

    def test_custom_expiry(self, tmp_path: Path, clock: FrozenClock) -> None:
        store = FileSystemCacheStore(tmp_path / "c", expiry=timedelta(minutes=5), clock=clock)
        store.put(URL, "x", METADATA)
        clock.advance(minutes=6)
        assert store.get(URL) is None

    def test_corrupt_index_treated_as_empty(self, fs_store: FileSystemCacheStore) -> None:
        fs_store.root.mkdir(parents=True)
        fs_store.index_path.write_text("{not json")

        assert fs_store.get(URL) is None

        fs_store.put(URL, "fresh", METADATA)
        entry = fs_store.get(URL)
        assert entry is not None
        assert entry.content == "fresh"

    def test_missing_content_file_is_miss(self, fs_store: FileSystemCacheStore) -> None:
        entry = fs_store.put(URL, "body", METADATA)
        (fs_store.extractions_dir / entry.filename).unlink()
        assert fs_store.get(URL) is None

    def test_undecodable_content_file_is_miss(self, fs_store: FileSystemCacheStore) -> None:
        entry = fs_store.put(URL, "body", METADATA)
        (fs_store.extractions_dir / entry.filename).write_bytes(b"\xff\xfe bad")

        assert fs_store.get(URL) is None

    def test_naive_index_timestamp_dropped(self, fs_store: FileSystemCacheStore) -> None:
        fs_store.put(URL, "body", METADATA)
        index = json.loads(fs_store.index_path.read_text())
        for record in index.values():
            record["timestamp"] = "2025-01-01T00:00:00"
        fs_store.index_path.write_text(json.dumps(index))

        assert fs_store.get(URL) is None
        assert fs_store.list_entries() == []

    def test_put_failure_raises_cache_error(self, tmp_path: Path, clock: FrozenClock) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        store = FileSystemCacheStore(blocker, clock=clock)

        with pytest.raises(CacheError) as exc:
            store.put(URL, "body", METADATA)
        assert exc.value.key == "https://github.com/example/demo"

    def test_clear(self, fs_store: FileSystemCacheStore) -> None:
        fs_store.put(URL, "a", METADATA)
        fs_store.put("https://github.com/example/other", "b", METADATA)

        fs_store.clear()

        assert fs_store.get(URL) is None
        assert fs_store.list_entries() == []
        assert list(fs_store.extractions_dir.iterdir()) == []


class TestMemoryCacheStore:
    """Tests for MemoryCacheStore."""

    def test_round_trip_and_expiry(self, clock: FrozenClock) -> None:
        store = MemoryCacheStore(clock=clock)
        store.put(URL, "mem", METADATA)

        assert len(store) == 1
        entry = store.get("https://github.com/EXAMPLE/demo")
        assert entry is not None
        assert entry.content == "mem"

        clock.advance(days=2)
        assert store.get(URL) is None
        assert store.list_entries()[0].expired is True

    def test_clear(self, clock: FrozenClock) -> None:
        store = MemoryCacheStore(clock=clock)
        store.put(URL, "mem", METADATA)
        store.clear()
        assert len(store) == 0


def test_content_filename_is_readable_and_stable() -> None:
    name = content_filename("https://github.com/example/demo")
    assert name == content_filename("https://github.com/example/demo")
    assert name.startswith("example-demo-")
    assert name.endswith(".txt")
    assert len(name) == len("example-demo-") + 8 + len(".txt")


def test_human_size() -> None:
    assert human_size(2048) == "2.00 KB"
    assert human_size(0) == "unknown"
    assert human_size(None) == "unknown"
