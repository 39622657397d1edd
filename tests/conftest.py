"""Pytest fixtures for repodigest tests."""

from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import pytest
import structlog

from repodigest.cache.store import MemoryCacheStore
from repodigest.config import ExtractionConfig
from repodigest.extractor import RepoContextExtractor
from repodigest.fetch.fake import FakeFetcher

REPO_URL = "https://github.com/example/demo.git"


class FrozenClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 15, 10, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo global structlog configuration (e.g. CLI runs bound to a closed stream)."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FrozenClock:
    """A clock frozen at a fixed UTC instant."""
    return FrozenClock()


@pytest.fixture
def sample_files() -> dict[str, str | bytes]:
    """A small repository: sources, docs, an ignore file and noise."""
    return {
        ".gitignore": "*.log\nsecret/\n",
        "README.md": "# Demo\n\nA demo project.\n",
        "main.py": "print('hello')\n",
        "src/app.py": "def run():\n    return 42\n",
        "src/util.py": "VALUE = 1\n",
        "debug.log": "noise\n",
        "secret/key.txt": "hidden\n",
        "node_modules/pkg/index.js": "module.exports = 1;\n",
        "assets/logo.png": b"\x89PNG\r\n\x1a\n\x00\x00",
        "data.bin.txt": b"\x00\x01\x02binary",
    }


@pytest.fixture
def repo_tree(tmp_path: Path, sample_files: dict[str, str | bytes]) -> Path:
    """Materialize ``sample_files`` as a checked-out repository."""
    root = tmp_path / "demo"
    for rel, content in sample_files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    return root


@pytest.fixture
def fake_fetcher(sample_files: dict[str, str | bytes]) -> FakeFetcher:
    """A fetcher that writes ``sample_files``."""
    return FakeFetcher(files=dict(sample_files))


@pytest.fixture
def memory_cache(clock: FrozenClock) -> MemoryCacheStore:
    """An in-memory cache driven by the frozen clock."""
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """Parent directory for extraction workspaces."""
    path = tmp_path / "workspaces"
    path.mkdir()
    return path


@pytest.fixture
def extractor(
    fake_fetcher: FakeFetcher,
    memory_cache: MemoryCacheStore,
    workspace_dir: Path,
    clock: FrozenClock,
) -> RepoContextExtractor:
    """An extractor wired to the fake fetcher and in-memory cache."""
    return RepoContextExtractor(
        fake_fetcher,
        memory_cache,
        workspace_dir=workspace_dir,
        clock=clock,
    )


@pytest.fixture
def default_config() -> ExtractionConfig:
    """Create a default ExtractionConfig."""
    return ExtractionConfig.default()
