"""Repository locator validation, normalization and cache keys."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from repodigest.exceptions import LocatorValidationError

# Hosting URL shapes accepted as clone targets
LOCATOR_PATTERNS = (
    re.compile(r"^https://github\.com/[\w\-.]+/[\w\-.]+(?:\.git)?$"),
    re.compile(r"^https://gitlab\.com/[\w\-./]+(?:\.git)?$"),
    re.compile(r"^https://bitbucket\.org/[\w\-.]+/[\w\-.]+(?:\.git)?$"),
    re.compile(r"^https://[\w\-.]+/.*\.git$"),
)

# Loose GitHub spellings understood by to_clone_url, tried in order
_GITHUB_SHAPES = (
    re.compile(r"^https?://github\.com/([^/\s]+)/([^/\s?#]+?)(?:\.git)?(?:/.*)?$"),
    re.compile(r"^git@github\.com:([^/\s]+)/([^/\s?#]+?)(?:\.git)?$"),
    re.compile(r"^github\.com/([^/\s]+)/([^/\s?#]+?)(?:\.git)?(?:/.*)?$"),
    re.compile(r"^([^/\s]+)/([^/\s?#]+?)(?:\.git)?$"),
)
_NAME_RE = re.compile(r"^[\w\-.]+$")
_SCP_RE = re.compile(r"^[\w.\-]+@([\w.\-]+):(.+)$")

EXPECTED_FORMAT = (
    "URL does not appear to be a valid Git repository URL. "
    "Expected format: https://github.com/user/repo.git"
)


def validate_locator(locator: object) -> str:
    """Check that a locator looks like a clonable hosting URL.

    Args:
        locator: User-supplied repository locator.

    Returns:
        The trimmed locator.

    Raises:
        LocatorValidationError: If the locator is missing or malformed.
    """
    if not locator or not isinstance(locator, str):
        msg = "URL is required and must be a string"
        raise LocatorValidationError(msg, locator=locator)

    trimmed = locator.strip()
    if not trimmed:
        msg = "URL cannot be empty"
        raise LocatorValidationError(msg, locator=locator)

    parts = urlsplit(trimmed)
    if not parts.scheme or not parts.netloc:
        msg = "Invalid URL format"
        raise LocatorValidationError(msg, locator=locator)

    if not any(pattern.match(trimmed) for pattern in LOCATOR_PATTERNS):
        raise LocatorValidationError(EXPECTED_FORMAT, locator=locator)

    return trimmed


def to_clone_url(text: str | None) -> str | None:
    """Convert a loosely formatted GitHub reference into a clone URL.

    Handles ``https://github.com/user/repo/tree/main``,
    ``git@github.com:user/repo.git``, ``github.com/user/repo`` and the
    ``user/repo`` shorthand.

    Returns:
        ``https://github.com/<user>/<repo>.git``, or None if unrecognized.
    """
    if not text or not isinstance(text, str):
        return None

    trimmed = text.strip()
    for shape in _GITHUB_SHAPES:
        match = shape.match(trimmed)
        if not match:
            continue
        owner = match.group(1)
        repo = match.group(2).removesuffix(".git")
        if owner and repo and _NAME_RE.match(owner) and _NAME_RE.match(repo):
            return f"https://github.com/{owner}/{repo}.git"
    return None


def cache_key(locator: str) -> str:
    """Normalize a locator so equivalent spellings share one cache entry.

    Example:
        >>> cache_key("https://GitHub.com/Foo/Bar.git/")
        'https://github.com/foo/bar'
    """
    key = locator.strip()
    scp = _SCP_RE.match(key)
    if scp and "://" not in key:
        key = f"https://{scp.group(1)}/{scp.group(2)}"

    parts = urlsplit(key)
    if parts.netloc:
        key = f"https://{parts.netloc}{parts.path}"
    else:
        key = key.split("#", 1)[0].split("?", 1)[0]

    key = key.rstrip("/").removesuffix(".git").rstrip("/")
    return key.lower()


def repo_name(locator: str) -> str:
    """Return the repository name component of a locator."""
    path = locator.strip().rstrip("/").removesuffix(".git")
    name = re.split(r"[/:]", path)[-1]
    return name or "repository"
