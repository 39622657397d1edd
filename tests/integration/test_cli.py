"""Integration tests for the command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from repodigest import __version__
from repodigest.cache.store import CacheMetadata, FileSystemCacheStore
from repodigest.cli import app
from repodigest.extractor import RepoContextExtractor

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point settings at a temporary cache and run from a clean directory."""
    cache_dir = tmp_path / "cache"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REPODIGEST_CACHE_DIR", str(cache_dir))
    monkeypatch.delenv("REPODIGEST_CONFIG", raising=False)
    return cache_dir


@pytest.fixture
def fake_extractor(extractor: RepoContextExtractor, monkeypatch: pytest.MonkeyPatch) -> RepoContextExtractor:
    """Route CLI commands to the fake-fetcher extractor."""
    monkeypatch.setattr("repodigest.cli.build_extractor", lambda settings: extractor)
    return extractor


@pytest.mark.integration
class TestExtractCommand:
    """Tests for ``repodigest extract``."""

    def test_prints_digest(self, fake_extractor: RepoContextExtractor) -> None:
        result = runner.invoke(app, ["extract", "example/demo"])

        assert result.exit_code == 0, result.output
        assert "# Repository Context: demo" in result.stdout
        assert "SUCCESS" in result.output
        assert "Files included: 5" in result.output

    def test_writes_output_file(self, fake_extractor: RepoContextExtractor, tmp_path: Path) -> None:
        output = tmp_path / "digest.txt"

        result = runner.invoke(app, ["extract", "https://github.com/example/demo", "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8").startswith("# Repository Context: demo")
        assert "Output file:" in result.output

    def test_json_output(self, fake_extractor: RepoContextExtractor) -> None:
        result = runner.invoke(app, ["extract", "example/demo", "--json", "--max-files", "2"])

        assert result.exit_code == 0, result.output
        body = json.loads(result.stdout)
        assert body["status"] == "success"
        assert body["data"]["included_count"] == 2

    def test_config_file(self, fake_extractor: RepoContextExtractor, tmp_path: Path) -> None:
        config = tmp_path / "repodigest.yaml"
        config.write_text("budgets:\n  max_files: 1\nuse_cache: false\n")

        result = runner.invoke(app, ["extract", "example/demo", "--json", "--config", str(config)])

        assert json.loads(result.stdout)["data"]["included_count"] == 1

    def test_bad_config_file(self, fake_extractor: RepoContextExtractor, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("- not\n- a mapping\n")

        result = runner.invoke(app, ["extract", "example/demo", "--config", str(config)])

        assert result.exit_code == 1
        assert "mapping" in result.output

    def test_unrecognized_url(self, fake_extractor: RepoContextExtractor) -> None:
        result = runner.invoke(app, ["extract", "not-a-valid-url"])

        assert result.exit_code == 1
        assert "Invalid GitHub repository URL" in result.output


@pytest.mark.integration
class TestOtherCommands:
    """Tests for prompt, validate-diagram, cache and version."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_prompt(self, fake_extractor: RepoContextExtractor) -> None:
        result = runner.invoke(app, ["prompt", "example/demo", "--template", "summary"])

        assert result.exit_code == 0, result.output
        assert "REPOSITORY CONTEXT:\n# Repository Context: demo" in result.stdout

    def test_prompt_unknown_template(self, fake_extractor: RepoContextExtractor) -> None:
        result = runner.invoke(app, ["prompt", "example/demo", "--template", "haiku"])
        assert result.exit_code == 1
        assert "Unknown template" in result.output

    def test_validate_diagram(self, tmp_path: Path) -> None:
        good = tmp_path / "good.mmd"
        good.write_text("graph TD\n    A[Client] --> B[API]\n")
        bad = tmp_path / "bad.mmd"
        bad.write_text("A[Client] -> B[API\n")

        ok = runner.invoke(app, ["validate-diagram", str(good)])
        failed = runner.invoke(app, ["validate-diagram", str(bad)])

        assert ok.exit_code == 0
        assert "Diagram is valid" in ok.output
        assert failed.exit_code == 1
        assert "error:" in failed.output
        assert "suggestion:" in failed.output

    def test_cache_list_and_clear(self, isolated_env: Path) -> None:
        assert "Cache is empty." in runner.invoke(app, ["cache", "list"]).output

        FileSystemCacheStore(isolated_env).put(
            "https://github.com/example/demo", "digest", CacheMetadata(included_count=4)
        )
        listing = runner.invoke(app, ["cache", "list"])
        assert "https://github.com/example/demo" in listing.output
        assert "files=4" in listing.output

        cleared = runner.invoke(app, ["cache", "clear"])
        assert cleared.exit_code == 0
        assert "All cache cleared" in cleared.output
        assert "Cache is empty." in runner.invoke(app, ["cache", "list"]).output
