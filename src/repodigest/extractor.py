"""Extraction orchestrator: fetch, exclude, render, budget, cache.

One call to ``RepoContextExtractor.extract`` is one strictly sequential
pipeline::

    VALIDATE -> CACHE_LOOKUP -> PREPARE_WORKSPACE -> FETCH -> BUILD_EXCLUSIONS
             -> RENDER_TREE -> BUDGET_CONTENT -> CACHE_WRITE -> SUCCESS

Validation failures end in ``validation_error``, fetch failures in
``clone_error`` and failures while building the digest in
``extraction_error``. The workspace created for the fetch is removed in a
``finally`` block on every path once it exists, subject to the cleanup
flags of the request's config.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import structlog

from repodigest.cache.store import CacheMetadata, CacheStore, Clock, utc_now
from repodigest.config import CleanupConfig, ExtractionConfig
from repodigest.digest.budget import ContentBudgeter
from repodigest.digest.candidates import collect_candidates
from repodigest.digest.ignore import build_exclusion
from repodigest.digest.sections import bound_prelude, render_prelude, render_summary
from repodigest.digest.tree import render_tree
from repodigest.exceptions import FetchError, LocatorValidationError, ProcessingError, WorkspaceError
from repodigest.fetch.base import Fetcher
from repodigest.fetch.locator import repo_name, validate_locator
from repodigest.models import ExtractionFailure, ExtractionResult, ExtractionSuccess
from repodigest.workspace import Workspace

logger = structlog.get_logger()


class Stage(str, Enum):
    """Pipeline states, in execution order."""

    VALIDATE = "validate"
    CACHE_LOOKUP = "cache_lookup"
    PREPARE_WORKSPACE = "prepare_workspace"
    FETCH = "fetch"
    BUILD_EXCLUSIONS = "build_exclusions"
    RENDER_TREE = "render_tree"
    BUDGET_CONTENT = "budget_content"
    CACHE_WRITE = "cache_write"


@dataclass
class _Run:
    """Mutable bookkeeping for one extract call."""

    locator: str
    started: float
    stage: Stage = Stage.VALIDATE

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


class RepoContextExtractor:
    """Turns a repository locator into a bounded, cached digest.

    Example:
        >>> extractor = RepoContextExtractor(GitFetcher(), FileSystemCacheStore(Path("cache")))
        >>> result = extractor.extract("https://github.com/user/repo.git")
        >>> result.status
        <ResultStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        fetcher: Fetcher,
        cache: CacheStore | None = None,
        *,
        workspace_dir: Path | None = None,
        clock: Clock | None = None,
        default_config: ExtractionConfig | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            fetcher: Fetches repositories into workspaces.
            cache: Digest cache (caching disabled if None).
            workspace_dir: Parent directory for workspaces (system temp if None).
            clock: Time source for digest headers.
            default_config: Config used when ``extract`` receives none.
        """
        self.fetcher = fetcher
        self.cache = cache
        self.workspace_dir = workspace_dir
        self.clock = clock or utc_now
        self.default_config = default_config or ExtractionConfig.default()

    def extract(
        self,
        locator: str,
        config: ExtractionConfig | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> ExtractionResult:
        """Run the extraction pipeline for one locator.

        Args:
            locator: Repository URL.
            config: Extraction config (extractor default if None).
            cancel: Optional event aborting the fetch.

        Returns:
            ExtractionResult with exactly one of ``data``/``error`` set.
        """
        config = config or self.default_config
        run = _Run(locator=locator if isinstance(locator, str) else str(locator or ""), started=time.monotonic())
        log = logger.bind(locator=run.locator)
        log.info("Validating repository URL")

        try:
            target = validate_locator(locator)
        except LocatorValidationError as e:
            log.warning("Invalid repository URL", error=e.message)
            return ExtractionResult.failed(run.locator, ExtractionFailure.from_validation(e), run.elapsed_ms())

        cache = self.cache if config.use_cache else None
        if cache is not None:
            run.stage = Stage.CACHE_LOOKUP
            cached = self._from_cache(cache, target, run)
            if cached is not None:
                return cached

        run.stage = Stage.PREPARE_WORKSPACE
        try:
            workspace = Workspace.create(self.workspace_dir, repo_name(target))
        except WorkspaceError as e:
            log.error("Workspace setup failed", error=str(e))
            return ExtractionResult.failed(target, ExtractionFailure.from_processing(e), run.elapsed_ms())

        succeeded = False
        try:
            run.stage = Stage.FETCH
            log.info("Cloning repository", workspace=str(workspace.root))
            try:
                self.fetcher.fetch(target, workspace.clone_dir, config.fetch_timeout, cancel=cancel)
            except LocatorValidationError as e:
                return ExtractionResult.failed(target, ExtractionFailure.from_validation(e), run.elapsed_ms())
            except FetchError as e:
                log.warning("Clone failed", kind=e.kind.value)
                return ExtractionResult.failed(target, ExtractionFailure.from_fetch(e), run.elapsed_ms())

            try:
                data = self._build_digest(workspace.clone_dir, target, config, run)
            except Exception as e:
                log.exception("Extraction failed", stage=run.stage.value)
                error = ProcessingError(str(e), stage=run.stage.value)
                return ExtractionResult.failed(target, ExtractionFailure.from_processing(error), run.elapsed_ms())

            data.duration_ms = run.elapsed_ms()
            succeeded = True
            log.info(
                "Extraction completed",
                included=data.included_count,
                skipped=data.skipped_count,
                chars=len(data.content),
            )

            if cache is not None:
                run.stage = Stage.CACHE_WRITE
                self._write_cache(cache, target, data)

            return ExtractionResult.succeeded(target, data, run.elapsed_ms())
        finally:
            self._cleanup(workspace, succeeded=succeeded, policy=config.cleanup)

    def extract_and_save(
        self,
        locator: str,
        output_path: Path,
        config: ExtractionConfig | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> ExtractionResult:
        """Extract and write the digest to ``output_path`` on success.

        Save failures are reported on the result rather than raised.
        """
        result = self.extract(locator, config, cancel=cancel)
        if result.data is None:
            return result

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(result.data.content, encoding="utf-8")
            result.output_path = str(output_path)
            result.output_size = output_path.stat().st_size
            logger.info("Digest saved", path=str(output_path), size=result.output_size)
        except OSError as e:
            result.save_error = f"Failed to save to {output_path}: {e}"
            logger.error("Digest save failed", path=str(output_path), error=str(e))
        return result

    @staticmethod
    def _from_cache(cache: CacheStore, target: str, run: _Run) -> ExtractionResult | None:
        try:
            entry = cache.get(target)
        except Exception as e:
            # A damaged cache is a miss, never a failed extraction
            logger.warning("Cache lookup failed", locator=target, error=str(e))
            return None
        if entry is None:
            return None
        data = ExtractionSuccess(
            content=entry.content,
            included_count=entry.included_count,
            skipped_count=entry.skipped_count,
            total_bytes=entry.total_size,
            duration_ms=run.elapsed_ms(),
            from_cache=True,
            cached_at=entry.timestamp,
        )
        logger.info("Serving cached digest", locator=target, cached_at=entry.timestamp.isoformat())
        return ExtractionResult.succeeded(target, data, run.elapsed_ms())

    def _build_digest(
        self,
        root: Path,
        target: str,
        config: ExtractionConfig,
        run: _Run,
    ) -> ExtractionSuccess:
        budgets = config.budgets

        run.stage = Stage.BUILD_EXCLUSIONS
        is_excluded = build_exclusion(root, config.ignore)
        patterns = is_excluded.describe()

        run.stage = Stage.RENDER_TREE
        tree = render_tree(root, is_excluded, budgets.max_tree_items)

        run.stage = Stage.BUDGET_CONTENT
        candidates = collect_candidates(root, is_excluded)
        prelude = render_prelude(
            name=root.name,
            locator=target,
            generated_at=self.clock(),
            tree=tree,
            patterns=patterns,
        )
        prelude = bound_prelude(prelude, budgets.max_total_chars)
        budgeter = ContentBudgeter(
            max_files=budgets.max_files,
            max_total_chars=budgets.max_total_chars,
            max_file_bytes=budgets.max_file_bytes,
            max_lines_per_file=budgets.max_lines_per_file,
            max_line_chars=budgets.max_line_chars,
        )
        budget = budgeter.build(candidates, initial_chars=len(prelude))
        footer = render_summary(
            included_count=len(budget.included),
            skipped=budget.skipped,
            total_bytes=budget.total_bytes,
        )

        return ExtractionSuccess(
            content=prelude + budget.body + footer,
            included_count=len(budget.included),
            skipped=budget.skipped,
            skipped_count=len(budget.skipped),
            total_bytes=budget.total_bytes,
            applied_patterns=patterns,
        )

    @staticmethod
    def _write_cache(cache: CacheStore, target: str, data: ExtractionSuccess) -> None:
        metadata = CacheMetadata(
            included_count=data.included_count,
            skipped_count=data.skipped_count,
            total_size=data.total_bytes,
            duration_ms=data.duration_ms,
        )
        try:
            cache.put(target, data.content, metadata)
        except Exception as e:
            logger.warning("Failed to cache extraction", locator=target, error=str(e))

    @staticmethod
    def _cleanup(workspace: Workspace, *, succeeded: bool, policy: CleanupConfig) -> None:
        wanted = policy.on_success if succeeded else policy.on_error
        if wanted:
            logger.debug("Cleaning up workspace", path=str(workspace.root))
            workspace.remove()
        else:
            logger.info("Workspace preserved", path=str(workspace.root))
