"""Custom exceptions for repodigest."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class RepoDigestError(Exception):
    """Base exception for all repodigest errors."""

    pass


class FetchErrorKind(str, Enum):
    """Classified reasons a repository fetch failed."""

    NOT_FOUND_OR_PRIVATE = "not_found_or_private"
    NETWORK = "network"
    PERMISSION_DENIED = "permission_denied"
    INVALID_TARGET = "invalid_target"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class LocatorValidationError(RepoDigestError):
    """Raised when a repository locator is malformed."""

    def __init__(
        self,
        message: str,
        *,
        locator: object = None,
        suggestion: str = "Please provide a valid Git repository URL.",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.locator = locator
        self.suggestion = suggestion


class FetchError(RepoDigestError):
    """Raised when fetching a repository fails.

    Attributes:
        kind: Classified failure kind.
        message: Human-readable description.
        suggestion: Remediation hint for the user.
        diagnostics: Raw diagnostic output from the fetch process.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: FetchErrorKind = FetchErrorKind.UNKNOWN,
        suggestion: str = "",
        diagnostics: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.suggestion = suggestion
        self.diagnostics = diagnostics


class ProcessingError(RepoDigestError):
    """Raised when a fetched repository cannot be turned into a digest."""

    def __init__(self, message: str, *, stage: str = "") -> None:
        super().__init__(message)
        self.stage = stage


class CacheError(RepoDigestError):
    """Raised when the cache store cannot persist an entry."""

    def __init__(self, message: str, *, key: str = "", path: Path | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.path = path


class WorkspaceError(RepoDigestError):
    """Raised when workspace operations fail."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.path = path


class ConfigError(RepoDigestError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_path: Path | None = None,
        field: str = "",
    ) -> None:
        super().__init__(message)
        self.config_path = config_path
        self.field = field


class CommandError(RepoDigestError):
    """Raised when a subprocess command fails."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        cwd: Path | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.returncode = returncode
        self.cwd = cwd
        self.stderr = stderr


class CommandTimeout(CommandError):
    """Raised when a subprocess exceeds its timeout."""

    pass


class CommandCancelled(CommandError):
    """Raised when a subprocess is aborted through its cancel event."""

    pass
