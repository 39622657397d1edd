"""Bounded directory tree rendering."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

from repodigest.digest.ignore import VCS_DIR

# Directories shown as a single collapsed line and never walked
NOISE_DIRS = frozenset(
    {
        "node_modules",
        "bower_components",
        "__pycache__",
        ".venv",
        "venv",
        "dist",
        "build",
        "target",
        "vendor",
        "coverage",
        ".next",
        ".nuxt",
        ".idea",
        ".vscode",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".gradle",
    }
)

COLLAPSED_SUFFIX = "[collapsed]"

ExcludeFn = Callable[..., bool]


class _TreeLimitReached(Exception):
    pass


class TreeRenderer:
    """Renders a depth-first listing, directories first, capped at ``max_items``."""

    def __init__(self, root: Path, is_excluded: ExcludeFn, max_items: int) -> None:
        self.root = root
        self.is_excluded = is_excluded
        self.max_items = max_items
        self.lines: list[str] = []
        self.items = 0
        self.truncated = False

    def render(self) -> str:
        self.lines = [f"{self.root.name}/"]
        try:
            self._walk(self.root, "", "")
        except _TreeLimitReached:
            self.truncated = True
            self.lines.append(f"... (tree truncated at {self.max_items} items)")
        return "\n".join(self.lines)

    def _emit(self, line: str) -> None:
        if self.items >= self.max_items:
            raise _TreeLimitReached
        self.lines.append(line)
        self.items += 1

    def _entries(self, directory: Path, rel_dir: str) -> list[tuple[str, bool]]:
        dirs: list[str] = []
        files: list[str] = []
        with os.scandir(directory) as it:
            for entry in it:
                if entry.name == VCS_DIR:
                    continue
                is_dir = entry.is_dir(follow_symlinks=False)
                rel = f"{rel_dir}{entry.name}"
                if is_dir and entry.name in NOISE_DIRS:
                    dirs.append(entry.name)
                    continue
                if self.is_excluded(rel, is_dir=is_dir):
                    continue
                (dirs if is_dir else files).append(entry.name)

        def order(name: str) -> tuple[str, str]:
            return (name.casefold(), name)

        return [(name, True) for name in sorted(dirs, key=order)] + [
            (name, False) for name in sorted(files, key=order)
        ]

    def _walk(self, directory: Path, rel_dir: str, prefix: str) -> None:
        entries = self._entries(directory, rel_dir)
        for index, (name, is_dir) in enumerate(entries):
            last = index == len(entries) - 1
            connector = "└── " if last else "├── "
            if not is_dir:
                self._emit(f"{prefix}{connector}{name}")
                continue
            if name in NOISE_DIRS:
                self._emit(f"{prefix}{connector}{name}/ {COLLAPSED_SUFFIX}")
                continue
            self._emit(f"{prefix}{connector}{name}/")
            if self.items >= self.max_items:
                # Contents unseen, so the listing is incomplete
                raise _TreeLimitReached
            self._walk(directory / name, f"{rel_dir}{name}/", prefix + ("    " if last else "│   "))


def render_tree(root: Path, is_excluded: ExcludeFn, max_items: int) -> str:
    """Render the directory structure under ``root``.

    Args:
        root: Directory to list.
        is_excluded: Predicate called as ``is_excluded(rel_path, is_dir=...)``.
        max_items: Maximum number of entry lines before truncating.

    Returns:
        The tree as text, starting with ``<root name>/``.
    """
    return TreeRenderer(root, is_excluded, max_items).render()
