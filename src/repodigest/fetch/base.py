"""Fetcher interface and fetch failure classification."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import NamedTuple, Protocol

from repodigest.exceptions import FetchError, FetchErrorKind


class FetchErrorDetail(NamedTuple):
    """Fixed user-facing text for a fetch failure kind."""

    message: str
    suggestion: str


FETCH_ERROR_DETAILS: dict[FetchErrorKind, FetchErrorDetail] = {
    FetchErrorKind.NOT_FOUND_OR_PRIVATE: FetchErrorDetail(
        "Repository not found. It may be private, non-existent, or you may lack access.",
        "Verify the repository URL is correct and public, "
        "or provide authentication for private repos.",
    ),
    FetchErrorKind.NETWORK: FetchErrorDetail(
        "Network error: Could not resolve hostname.",
        "Check your internet connection and verify the Git hosting service URL.",
    ),
    FetchErrorKind.PERMISSION_DENIED: FetchErrorDetail(
        "Authentication required or permission denied.",
        "This repository requires authentication. Provide a GitHub token or SSH key.",
    ),
    FetchErrorKind.INVALID_TARGET: FetchErrorDetail(
        "Invalid Git repository URL.",
        "Ensure the URL points to a valid Git repository.",
    ),
    FetchErrorKind.TIMEOUT: FetchErrorDetail(
        "Cloning the repository timed out.",
        "The repository may be very large or the host slow to respond. "
        "Try again later or raise the fetch timeout.",
    ),
    FetchErrorKind.CANCELLED: FetchErrorDetail(
        "Cloning was cancelled before it completed.",
        "Retry the request if the cancellation was not intended.",
    ),
    FetchErrorKind.UNKNOWN: FetchErrorDetail(
        "Unknown error occurred during cloning.",
        "Check the repository URL and try again.",
    ),
}

# Diagnostic substrings, checked in priority order after timeout/cancel
_SIGNALS: tuple[tuple[tuple[str, ...], FetchErrorKind], ...] = (
    (("timed out",), FetchErrorKind.TIMEOUT),
    (("repository not found",), FetchErrorKind.NOT_FOUND_OR_PRIVATE),
    # Anonymous HTTPS requests for missing and private repos both end in
    # a credential prompt, which is disabled for clones.
    (("could not read username", "terminal prompts disabled"), FetchErrorKind.NOT_FOUND_OR_PRIVATE),
    (("could not resolve host",), FetchErrorKind.NETWORK),
    (("permission denied", "authentication failed"), FetchErrorKind.PERMISSION_DENIED),
    (("not a git repository",), FetchErrorKind.INVALID_TARGET),
)


def classify_fetch_error(
    diagnostics: str,
    *,
    timed_out: bool = False,
    cancelled: bool = False,
) -> FetchErrorKind:
    """Map fetch diagnostics onto a failure kind.

    Args:
        diagnostics: Raw stderr of the fetch process.
        timed_out: Whether the process was killed by its timeout.
        cancelled: Whether the process was killed by its cancel event.

    Returns:
        The first matching FetchErrorKind, or UNKNOWN.
    """
    if cancelled:
        return FetchErrorKind.CANCELLED
    if timed_out:
        return FetchErrorKind.TIMEOUT

    text = diagnostics.lower()
    for needles, kind in _SIGNALS:
        if any(needle in text for needle in needles):
            return kind
    return FetchErrorKind.UNKNOWN


def fetch_error(kind: FetchErrorKind, diagnostics: str = "", *, message: str | None = None) -> FetchError:
    """Build a FetchError carrying the fixed message/suggestion for ``kind``."""
    detail = FETCH_ERROR_DETAILS[kind]
    return FetchError(
        message or detail.message,
        kind=kind,
        suggestion=detail.suggestion,
        diagnostics=diagnostics,
    )


class Fetcher(Protocol):
    """Fetches a remote repository into a local directory.

    Implementations raise ``LocatorValidationError`` for malformed locators
    (before any network access) and ``FetchError`` for classified failures.
    """

    def fetch(
        self,
        locator: str,
        destination: Path,
        timeout: float,
        *,
        cancel: threading.Event | None = None,
    ) -> Path:
        """Fetch ``locator`` into ``destination`` and return the checkout path."""
        ...
