"""FastAPI application exposing repository extraction."""

from __future__ import annotations

from datetime import timedelta

from fastapi import FastAPI

from repodigest import __version__
from repodigest.api.routes import router
from repodigest.cache.store import CacheStore, FileSystemCacheStore
from repodigest.extractor import RepoContextExtractor
from repodigest.fetch.git import GitFetcher
from repodigest.settings import RepoDigestSettings


def create_app(
    settings: RepoDigestSettings | None = None,
    *,
    extractor: RepoContextExtractor | None = None,
    cache: CacheStore | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Optional settings. If not provided, loads from env.
        extractor: Pre-built extractor (built from settings if None).
        cache: Cache store (filesystem store under ``settings.cache_dir`` if None).

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = RepoDigestSettings()

    if cache is None:
        cache = (
            extractor.cache
            if extractor is not None and extractor.cache is not None
            else FileSystemCacheStore(settings.cache_dir, expiry=timedelta(hours=settings.cache_ttl_hours))
        )
    if extractor is None:
        extractor = RepoContextExtractor(
            GitFetcher(git_bin=settings.git_bin),
            cache,
            workspace_dir=settings.workspace_dir,
        )

    app = FastAPI(
        title="repodigest",
        description="Bounded repository context extraction with caching",
        version=__version__,
        docs_url="/api/docs",
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.config = settings.load_extraction_config()
    app.state.extractor = extractor
    app.state.cache = cache

    app.include_router(router, prefix="/api")
    return app
