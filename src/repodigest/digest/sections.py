"""Text sections that make up a digest."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repodigest.digest.budget import SkippedFile

MAX_LISTED_SKIPS = 10
FILE_CONTENTS_HEADING = "## File Contents\n\n"
PRELUDE_TRUNCATED_MARKER = "\n... [truncated to fit character budget]\n"


def render_header(name: str, locator: str, generated_at: datetime) -> str:
    return (
        f"# Repository Context: {name}\n"
        f"Source: {locator}\n"
        f"Generated: {generated_at.isoformat()}\n\n"
    )


def render_tree_section(tree: str) -> str:
    return f"## Directory Structure\n\n```\n{tree}\n```\n\n"


def render_exclusion_section(patterns: Sequence[str]) -> str:
    lines = [f"- {pattern}" for pattern in patterns] or ["(none)"]
    return "## Exclusion Patterns Applied\n\n" + "\n".join(lines) + "\n\n"


def render_file_section(rel_path: str, content: str) -> str:
    return f"### File: {rel_path}\n```\n{content}\n```\n\n"


def render_prelude(
    *,
    name: str,
    locator: str,
    generated_at: datetime,
    tree: str,
    patterns: Sequence[str],
) -> str:
    """Everything that precedes the per-file sections."""
    return (
        render_header(name, locator, generated_at)
        + render_tree_section(tree)
        + render_exclusion_section(patterns)
        + FILE_CONTENTS_HEADING
    )


def bound_prelude(prelude: str, limit: int) -> str:
    """Cut ``prelude`` to at most ``limit`` characters.

    A cut prelude ends with ``PRELUDE_TRUNCATED_MARKER`` unless the limit is
    too small to hold even the marker.
    """
    if len(prelude) <= limit:
        return prelude
    if limit < len(PRELUDE_TRUNCATED_MARKER):
        return prelude[:limit]
    return prelude[: limit - len(PRELUDE_TRUNCATED_MARKER)] + PRELUDE_TRUNCATED_MARKER


def render_summary(
    *,
    included_count: int,
    skipped: Sequence[SkippedFile],
    total_bytes: int,
) -> str:
    """Render the summary footer.

    At most ``MAX_LISTED_SKIPS`` skip reasons are listed, followed by an
    overflow line when more were recorded.
    """
    lines = [
        "## Summary",
        "",
        f"Files included: {included_count}",
        f"Files skipped: {len(skipped)}",
        f"Total size: {total_bytes} bytes",
    ]
    if skipped:
        lines.append("")
        lines.append("Skipped files:")
        for item in skipped[:MAX_LISTED_SKIPS]:
            lines.append(f"- {item.path}: {item.reason.value}")
        overflow = len(skipped) - MAX_LISTED_SKIPS
        if overflow > 0:
            lines.append(f"... and {overflow} more")
    return "\n".join(lines) + "\n"
