"""Content selection and truncation under nested budgets."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

import structlog

from repodigest.digest.candidates import FileCandidate
from repodigest.digest.sections import render_file_section

logger = structlog.get_logger()

# Bytes inspected for NUL when deciding whether a file is binary
BINARY_SNIFF_BYTES = 8192

LINE_TRUNCATED_MARKER = " ... [line truncated]"


class SkipReason(str, Enum):
    """Why a candidate's content was left out of the digest."""

    FILE_COUNT_LIMIT = "file-count-limit"
    TOO_LARGE = "too-large"
    BINARY = "binary"
    CHAR_BUDGET = "char-budget"
    READ_ERROR = "read-error"


@dataclass
class SkippedFile:
    """A candidate that was not included, and why."""

    path: str
    reason: SkipReason
    detail: str = ""


@dataclass
class BudgetResult:
    """Result of budgeting file contents.

    Attributes:
        body: Concatenated per-file sections.
        included: Relative paths admitted, in order.
        skipped: Candidates left out with reasons.
        total_bytes: Sum of on-disk sizes of included files.
        total_chars: Running character total including ``initial_chars``.
    """

    body: str
    included: list[str] = field(default_factory=list)
    skipped: list[SkippedFile] = field(default_factory=list)
    total_bytes: int = 0
    total_chars: int = 0


def decode_text(data: bytes) -> str | None:
    """Decode ``data`` as UTF-8 text, or return None if it looks binary."""
    if b"\x00" in data[:BINARY_SNIFF_BYTES]:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def truncate_content(text: str, max_lines: int, max_line_chars: int) -> str:
    """Cut ``text`` to ``max_lines`` lines of at most ``max_line_chars`` each."""
    lines = text.splitlines()
    omitted = max(0, len(lines) - max_lines)
    kept = []
    for line in lines[:max_lines]:
        if len(line) > max_line_chars:
            line = line[:max_line_chars] + LINE_TRUNCATED_MARKER
        kept.append(line)
    if omitted:
        kept.append(f"... [{omitted} more lines omitted]")
    return "\n".join(kept)


class ContentBudgeter:
    """Selects file contents for a digest without exceeding its budgets.

    Checks run per candidate in a fixed order: file count, byte size (from
    the stat taken at enumeration, before reading), text decodability, then
    the global character budget. The character check happens before a
    section is appended, so the running total never passes
    ``max_total_chars``.

    Example:
        >>> budgeter = ContentBudgeter(max_files=10, max_total_chars=5000)
        >>> result = budgeter.build(candidates, initial_chars=len(prelude))
        >>> len(result.included) <= 10
        True
    """

    def __init__(
        self,
        *,
        max_files: int,
        max_total_chars: int,
        max_file_bytes: int = 1024 * 1024,
        max_lines_per_file: int = 2000,
        max_line_chars: int = 500,
    ) -> None:
        self.max_files = max_files
        self.max_total_chars = max_total_chars
        self.max_file_bytes = max_file_bytes
        self.max_lines_per_file = max_lines_per_file
        self.max_line_chars = max_line_chars

    def build(self, candidates: Iterable[FileCandidate], *, initial_chars: int = 0) -> BudgetResult:
        """Admit or skip each candidate in the given order.

        Args:
            candidates: Sorted, non-excluded candidates.
            initial_chars: Length of the text already emitted before the
                file sections (header, tree, exclusion summary).

        Returns:
            BudgetResult with the rendered sections and bookkeeping.
        """
        parts: list[str] = []
        result = BudgetResult(body="", total_chars=initial_chars)

        for candidate in candidates:
            if len(result.included) >= self.max_files:
                result.skipped.append(SkippedFile(candidate.rel_path, SkipReason.FILE_COUNT_LIMIT))
                continue

            if candidate.size > self.max_file_bytes:
                result.skipped.append(
                    SkippedFile(candidate.rel_path, SkipReason.TOO_LARGE, f"{candidate.size} bytes")
                )
                continue

            try:
                data = candidate.abs_path.read_bytes()
            except OSError as e:
                logger.warning("Failed to read file", path=candidate.rel_path, error=str(e))
                result.skipped.append(SkippedFile(candidate.rel_path, SkipReason.READ_ERROR, str(e)))
                continue

            text = decode_text(data)
            candidate.is_text = text is not None
            if text is None:
                result.skipped.append(SkippedFile(candidate.rel_path, SkipReason.BINARY))
                continue

            content = truncate_content(text, self.max_lines_per_file, self.max_line_chars)
            section = render_file_section(candidate.rel_path, content)
            if result.total_chars + len(section) > self.max_total_chars:
                result.skipped.append(
                    SkippedFile(candidate.rel_path, SkipReason.CHAR_BUDGET, f"{len(section)} chars")
                )
                continue

            parts.append(section)
            result.included.append(candidate.rel_path)
            result.total_chars += len(section)
            result.total_bytes += candidate.size

        result.body = "".join(parts)
        logger.debug(
            "Content budgeting complete",
            included=len(result.included),
            skipped=len(result.skipped),
            chars=result.total_chars,
            budget=self.max_total_chars,
        )
        return result
