"""Fake fetcher for testing."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from repodigest.exceptions import FetchError
from repodigest.fetch.locator import validate_locator

logger = structlog.get_logger()


@dataclass
class FetchCall:
    """A recorded call to FakeFetcher.fetch."""

    locator: str
    destination: Path
    timeout: float


@dataclass
class FakeFetcher:
    """A fetcher that materializes an in-memory file tree.

    Attributes:
        files: Relative path -> content to write on every fetch.
        error: If set, raised instead of writing files.
        validate: Whether to apply locator validation like the git fetcher.
        calls: Every fetch call, in order.

    Example:
        >>> fetcher = FakeFetcher(files={"README.md": "# Demo"})
        >>> fetcher.fetch("https://github.com/u/r.git", Path("/tmp/ws/r"), 60)
        PosixPath('/tmp/ws/r')
    """

    files: dict[str, str | bytes] = field(default_factory=dict)
    error: FetchError | None = None
    validate: bool = True
    calls: list[FetchCall] = field(default_factory=list)

    @property
    def call_count(self) -> int:
        """Number of fetches attempted."""
        return len(self.calls)

    def fetch(
        self,
        locator: str,
        destination: Path,
        timeout: float,
        *,
        cancel: threading.Event | None = None,
    ) -> Path:
        """Write the configured files under ``destination``."""
        if self.validate:
            validate_locator(locator)
        self.calls.append(FetchCall(locator=locator, destination=destination, timeout=timeout))

        destination.mkdir(parents=True, exist_ok=True)
        if self.error is not None:
            raise self.error

        for rel_path, content in self.files.items():
            target = destination / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8")

        logger.debug("Fake fetch complete", locator=locator, files=len(self.files))
        return destination
