"""Enumerate the files eligible for a digest."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger()


@dataclass
class FileCandidate:
    """A non-excluded file in the workspace.

    Attributes:
        rel_path: POSIX path relative to the repository root.
        abs_path: Absolute filesystem path.
        size: Size in bytes at enumeration time.
        is_text: Whether the content decodes as text (None until read).
    """

    rel_path: str
    abs_path: Path
    size: int
    is_text: bool | None = None


def sort_key(candidate: FileCandidate) -> tuple[str, str]:
    return (candidate.rel_path.casefold(), candidate.rel_path)


def collect_candidates(root: Path, is_excluded: Callable[..., bool]) -> list[FileCandidate]:
    """Walk ``root`` once and return sorted, non-excluded regular files.

    Excluded directories are pruned rather than descended. Symlinks are
    neither followed nor listed.
    """
    candidates: list[FileCandidate] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        dirnames[:] = [
            name
            for name in dirnames
            if not (current / name).is_symlink() and not is_excluded(f"{prefix}{name}", is_dir=True)
        ]

        for name in filenames:
            rel = f"{prefix}{name}"
            path = current / name
            if path.is_symlink() or is_excluded(rel):
                continue
            try:
                size = path.stat().st_size
            except OSError as e:
                logger.debug("Cannot stat file", path=rel, error=str(e))
                size = 0
            candidates.append(FileCandidate(rel_path=rel, abs_path=path, size=size))

    candidates.sort(key=sort_key)
    return candidates
