"""Repository fetching: locators, the fetcher interface and implementations."""

from repodigest.fetch.base import FETCH_ERROR_DETAILS, Fetcher, classify_fetch_error, fetch_error
from repodigest.fetch.fake import FakeFetcher
from repodigest.fetch.git import GitFetcher
from repodigest.fetch.locator import cache_key, repo_name, to_clone_url, validate_locator

__all__ = [
    "FETCH_ERROR_DETAILS",
    "FakeFetcher",
    "Fetcher",
    "GitFetcher",
    "cache_key",
    "classify_fetch_error",
    "fetch_error",
    "repo_name",
    "to_clone_url",
    "validate_locator",
]
