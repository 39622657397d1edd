"""Result models for repository context extraction."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from repodigest.digest.budget import SkippedFile
from repodigest.exceptions import FetchError, FetchErrorKind, LocatorValidationError


class ResultStatus(str, Enum):
    """Terminal state of an extraction."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    CLONE_ERROR = "clone_error"
    EXTRACTION_ERROR = "extraction_error"


class FailureKind(str, Enum):
    """Stable machine-readable failure category."""

    VALIDATION_ERROR = "validation_error"
    FETCH_ERROR = "fetch_error"
    PROCESSING_ERROR = "processing_error"


class ExtractionSuccess(BaseModel):
    """Payload of a successful extraction.

    Attributes:
        content: The digest text.
        included_count: Files whose content was included.
        skipped: Non-excluded files left out, with reasons.
        skipped_count: Number of skipped files.
        total_bytes: On-disk size of the included files.
        applied_patterns: Descriptions of the exclusion patterns in effect.
        duration_ms: Time spent producing this payload.
        from_cache: Whether the digest was served from the cache.
        cached_at: When the cached digest was stored.
    """

    content: str
    included_count: int = 0
    skipped: list[SkippedFile] = Field(default_factory=list)
    skipped_count: int = 0
    total_bytes: int = 0
    applied_patterns: list[str] = Field(default_factory=list)
    duration_ms: int = 0
    from_cache: bool = False
    cached_at: datetime | None = None


class ExtractionFailure(BaseModel):
    """Payload of a failed extraction.

    ``diagnostics`` carries raw fetch output and is only set for fetch
    failures; it is kept apart from the user-facing ``message``.
    """

    kind: FailureKind
    message: str
    suggestion: str
    fetch_kind: FetchErrorKind | None = None
    diagnostics: str | None = None

    @classmethod
    def from_validation(cls, error: LocatorValidationError) -> ExtractionFailure:
        return cls(
            kind=FailureKind.VALIDATION_ERROR,
            message=error.message,
            suggestion=error.suggestion,
        )

    @classmethod
    def from_fetch(cls, error: FetchError) -> ExtractionFailure:
        return cls(
            kind=FailureKind.FETCH_ERROR,
            fetch_kind=error.kind,
            message=error.message,
            suggestion=error.suggestion,
            diagnostics=error.diagnostics,
        )

    @classmethod
    def from_processing(cls, error: Exception) -> ExtractionFailure:
        return cls(
            kind=FailureKind.PROCESSING_ERROR,
            message=f"Failed to extract repository context: {error}",
            suggestion=(
                "The repository was cloned but could not be processed. "
                "Check repository structure."
            ),
        )


_STATUS_FOR_KIND = {
    FailureKind.VALIDATION_ERROR: ResultStatus.VALIDATION_ERROR,
    FailureKind.FETCH_ERROR: ResultStatus.CLONE_ERROR,
    FailureKind.PROCESSING_ERROR: ResultStatus.EXTRACTION_ERROR,
}


class ExtractionResult(BaseModel):
    """Discriminated outcome of one extraction: exactly one of data/error."""

    status: ResultStatus
    locator: str
    data: ExtractionSuccess | None = None
    error: ExtractionFailure | None = None
    duration_ms: int = 0
    output_path: str | None = None
    output_size: int | None = None
    save_error: str | None = None

    @model_validator(mode="after")
    def check_exclusive(self) -> ExtractionResult:
        """Ensure exactly one payload is set and status agrees with it."""
        if (self.data is None) == (self.error is None):
            msg = "Exactly one of data or error must be set"
            raise ValueError(msg)
        if self.data is not None and self.status != ResultStatus.SUCCESS:
            msg = f"Status {self.status.value} does not match a success payload"
            raise ValueError(msg)
        if self.error is not None and self.status != _STATUS_FOR_KIND[self.error.kind]:
            msg = f"Status {self.status.value} does not match failure kind {self.error.kind.value}"
            raise ValueError(msg)
        return self

    @property
    def success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @classmethod
    def succeeded(cls, locator: str, data: ExtractionSuccess, duration_ms: int) -> ExtractionResult:
        return cls(status=ResultStatus.SUCCESS, locator=locator, data=data, duration_ms=duration_ms)

    @classmethod
    def failed(cls, locator: str, error: ExtractionFailure, duration_ms: int) -> ExtractionResult:
        return cls(
            status=_STATUS_FOR_KIND[error.kind],
            locator=locator,
            error=error,
            duration_ms=duration_ms,
        )
