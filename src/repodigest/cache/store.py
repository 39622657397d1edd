"""Digest cache stores with time-based expiry.

Layout of the filesystem store::

    <root>/
        ├── index.json          (normalized key -> metadata)
        └── extractions/
            └── <owner>-<repo>-<hash>.txt
"""

from __future__ import annotations

import hashlib
import json
import os
import re
import tempfile
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, ValidationError, field_validator

from repodigest.exceptions import CacheError
from repodigest.fetch.locator import cache_key

logger = structlog.get_logger()

DEFAULT_EXPIRY = timedelta(hours=24)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class CacheMetadata(BaseModel):
    """Statistics stored alongside a cached digest."""

    included_count: int = 0
    skipped_count: int = 0
    total_size: int = 0
    duration_ms: int = 0


class CacheIndexRecord(CacheMetadata):
    """One index.json record."""

    filename: str
    timestamp: datetime
    size: int = 0

    @field_validator("timestamp")
    @classmethod
    def require_timezone(cls, value: datetime) -> datetime:
        """Reject naive timestamps, which cannot be compared with the clock."""
        if value.tzinfo is None:
            msg = "timestamp must be timezone-aware"
            raise ValueError(msg)
        return value


class CacheEntry(CacheIndexRecord):
    """A cached digest returned by ``get``."""

    key: str
    content: str


class CacheListing(BaseModel):
    """Summary of a cached repository for listings."""

    key: str
    filename: str
    cached_at: datetime
    expired: bool
    size: str
    included_count: int
    total_size: int
    duration_ms: int


def human_size(size: int | None) -> str:
    if not size:
        return "unknown"
    return f"{size / 1024:.2f} KB"


def content_filename(key: str) -> str:
    """Readable, collision-resistant file name for a normalized key."""
    digest = hashlib.md5(key.encode("utf-8")).hexdigest()[:8]
    readable = re.sub(r"[^a-zA-Z0-9\-]", "", "-".join(key.split("/")[-2:]))
    return f"{readable}-{digest}.txt"


class CacheStore(Protocol):
    """Persistent key -> digest mapping with expiry.

    Keys are normalized with ``cache_key`` so equivalent locators share one
    entry. Implementations must treat expired entries as misses without
    deleting them.
    """

    def get(self, key: str) -> CacheEntry | None:
        """Return the unexpired entry for ``key``, or None."""
        ...

    def put(self, key: str, content: str, metadata: CacheMetadata) -> CacheEntry:
        """Store ``content`` for ``key``, replacing any previous entry."""
        ...

    def clear(self) -> None:
        """Remove every entry."""
        ...

    def list_entries(self) -> list[CacheListing]:
        """Describe every stored entry, expired or not."""
        ...


class _ExpiringStore:
    """Shared clock/expiry handling."""

    def __init__(self, *, expiry: timedelta = DEFAULT_EXPIRY, clock: Clock | None = None) -> None:
        self.expiry = expiry
        self.clock = clock or utc_now

    def is_expired(self, timestamp: datetime) -> bool:
        return self.clock() - timestamp > self.expiry

    def _listing(self, key: str, record: CacheIndexRecord) -> CacheListing:
        return CacheListing(
            key=key,
            filename=record.filename,
            cached_at=record.timestamp,
            expired=self.is_expired(record.timestamp),
            size=human_size(record.size),
            included_count=record.included_count,
            total_size=record.total_size,
            duration_ms=record.duration_ms,
        )


class MemoryCacheStore(_ExpiringStore):
    """In-process cache store."""

    def __init__(self, *, expiry: timedelta = DEFAULT_EXPIRY, clock: Clock | None = None) -> None:
        super().__init__(expiry=expiry, clock=clock)
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> CacheEntry | None:
        normalized = cache_key(key)
        entry = self._entries.get(normalized)
        if entry is None or self.is_expired(entry.timestamp):
            return None
        return entry

    def put(self, key: str, content: str, metadata: CacheMetadata) -> CacheEntry:
        normalized = cache_key(key)
        entry = CacheEntry(
            key=normalized,
            content=content,
            filename=content_filename(normalized),
            timestamp=self.clock(),
            size=len(content),
            **metadata.model_dump(),
        )
        with self._lock:
            self._entries[normalized] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def list_entries(self) -> list[CacheListing]:
        return [self._listing(key, entry) for key, entry in sorted(self._entries.items())]


class FileSystemCacheStore(_ExpiringStore):
    """Cache store backed by an index file and one text file per digest."""

    def __init__(
        self,
        root: Path,
        *,
        expiry: timedelta = DEFAULT_EXPIRY,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            root: Cache root directory (created lazily).
            expiry: Age after which entries are misses.
            clock: Returns the current timezone-aware time.
        """
        super().__init__(expiry=expiry, clock=clock)
        self.root = root
        self._lock = threading.Lock()
        self._log = logger.bind(component="FileSystemCacheStore", root=str(root))

    @property
    def index_path(self) -> Path:
        return self.root / "index.json"

    @property
    def extractions_dir(self) -> Path:
        return self.root / "extractions"

    def _load_index(self) -> dict[str, CacheIndexRecord]:
        if not self.index_path.exists():
            return {}
        try:
            raw: Any = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            self._log.warning("Failed to load cache index", error=str(e))
            return {}
        if not isinstance(raw, dict):
            self._log.warning("Cache index is not a mapping")
            return {}

        index: dict[str, CacheIndexRecord] = {}
        for key, value in raw.items():
            try:
                index[key] = CacheIndexRecord.model_validate(value)
            except ValidationError as e:
                self._log.warning("Dropping malformed cache record", key=key, error=str(e))
        return index

    def _save_index(self, index: dict[str, CacheIndexRecord]) -> None:
        payload = {key: record.model_dump(mode="json") for key, record in index.items()}
        self._atomic_write(self.index_path, json.dumps(payload, indent=2))

    def _atomic_write(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> CacheEntry | None:
        normalized = cache_key(key)
        record = self._load_index().get(normalized)
        if record is None:
            return None

        if self.is_expired(record.timestamp):
            # Left in place until the next put for this key
            self._log.info("Cache expired", key=normalized)
            return None

        content_path = self.extractions_dir / record.filename
        try:
            content = content_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._log.warning("Cache file unreadable", filename=record.filename, error=str(e))
            return None

        self._log.info("Cache hit", key=normalized, filename=record.filename)
        return CacheEntry(key=normalized, content=content, **record.model_dump())

    def put(self, key: str, content: str, metadata: CacheMetadata) -> CacheEntry:
        """Store a digest, overwriting any previous entry for the key.

        Raises:
            CacheError: If the digest or index cannot be written.
        """
        normalized = cache_key(key)
        filename = content_filename(normalized)
        record = CacheIndexRecord(
            filename=filename,
            timestamp=self.clock(),
            size=len(content),
            **metadata.model_dump(),
        )
        try:
            with self._lock:
                self._atomic_write(self.extractions_dir / filename, content)
                index = self._load_index()
                index[normalized] = record
                self._save_index(index)
        except OSError as e:
            msg = f"Failed to cache extraction for {normalized}: {e}"
            raise CacheError(msg, key=normalized, path=self.root) from e

        self._log.info("Cached extraction", key=normalized, filename=filename)
        return CacheEntry(key=normalized, content=content, **record.model_dump())

    def clear(self) -> None:
        """Delete every cached digest and reset the index.

        Raises:
            CacheError: If files cannot be removed.
        """
        try:
            with self._lock:
                if self.extractions_dir.is_dir():
                    for path in self.extractions_dir.iterdir():
                        if path.is_file():
                            path.unlink()
                if self.index_path.exists():
                    self._save_index({})
        except OSError as e:
            msg = f"Failed to clear cache: {e}"
            raise CacheError(msg, path=self.root) from e
        self._log.info("All cache cleared")

    def list_entries(self) -> list[CacheListing]:
        index = self._load_index()
        return [self._listing(key, record) for key, record in sorted(index.items())]
