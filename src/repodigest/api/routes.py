"""API route handlers for extraction and cache management."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from repodigest.exceptions import CacheError, ConfigError
from repodigest.fetch.locator import to_clone_url

router = APIRouter(tags=["api"])

logger = structlog.get_logger()


class ExtractRequest(BaseModel):
    """Request to extract a repository digest."""

    repo_url: str
    use_cache: bool | None = None
    max_files: int | None = None
    max_total_chars: int | None = None
    max_file_bytes: int | None = None
    max_lines_per_file: int | None = None
    max_line_chars: int | None = None
    max_tree_items: int | None = None
    respect_gitignore: bool | None = None
    respect_tool_ignore: bool | None = None
    use_default_excludes: bool | None = None


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/extract")
def extract(request: Request, payload: ExtractRequest) -> JSONResponse:
    """Extract a digest for a repository.

    Runs in the threadpool so independent requests proceed concurrently.
    """
    clone_url = to_clone_url(payload.repo_url)
    if clone_url is None:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Invalid GitHub repository URL",
                "suggestion": (
                    "Please provide a valid GitHub repository URL "
                    "(e.g., https://github.com/user/repo or user/repo)"
                ),
            },
        )

    overrides = payload.model_dump(exclude={"repo_url"}, exclude_none=True)
    try:
        config = request.app.state.config.with_overrides(**overrides)
    except (ValueError, ConfigError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    logger.info("Starting repository analysis", repo_url=payload.repo_url, clone_url=clone_url)
    result = request.app.state.extractor.extract(clone_url, config)
    body: dict[str, Any] = result.model_dump(mode="json")

    if result.error is not None:
        return JSONResponse(
            {
                "error": f"Failed to analyze repository: {result.error.message}",
                "suggestion": result.error.suggestion,
                "result": body,
            },
            status_code=400,
        )
    return JSONResponse(body)


@router.get("/cache")
def list_cache(request: Request) -> list[dict[str, Any]]:
    entries = request.app.state.cache.list_entries()
    return [entry.model_dump(mode="json") for entry in entries]


@router.delete("/cache")
def clear_cache(request: Request) -> dict[str, str]:
    try:
        request.app.state.cache.clear()
    except CacheError as e:
        logger.error("Failed to clear cache", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e
    return {"status": "cleared"}
